"""
detached — state tracking for immutable entities over a mutable store.

    from detached import entity as E    # Immutable records + schema
    from detached import diff as D      # Snapshot differ
    from detached import tracking as Tr # Per-identity lifecycle
    from detached import gateway as G   # Store boundary
    from detached import uow as U       # Public operations
"""

from detached import entity
from detached import diff
from detached import tracking
from detached import gateway
from detached import uow
from detached.errors import (
    ErrorKind,
    TrackingError,
    ValidationError,
    ConflictError,
    StoreError,
    CancelledError,
)
from detached.entity import Entity, schema_for
from detached.gateway import set_field
from detached.uow import Policy, UnitOfWork, unit_of_work

__version__ = "0.1.0"

__all__ = (
    "entity",
    "diff",
    "tracking",
    "gateway",
    "uow",
    "ErrorKind",
    "TrackingError",
    "ValidationError",
    "ConflictError",
    "StoreError",
    "CancelledError",
    "Entity",
    "schema_for",
    "set_field",
    "Policy",
    "UnitOfWork",
    "unit_of_work",
)
