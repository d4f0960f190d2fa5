"""
Unit of work — create, replace, patch, delete and bulk-update immutable entities.

    from detached import uow as U

    uow = U.UnitOfWork(gateway, users, U.Policy().with_timeout(seconds=5))

    john = await uow.create(User(first_name="John", last_name="Doe"))
    jane = await uow.full_replace(john, john.with_changes(first_name="Jane"))

Architecture — one store round trip per operation:

    caller snapshot
         │
         ▼
    validate ──► ValidationError
         │
         ▼
    diff(old, new)
         │
         ▼
    tracker.begin ──► ConflictError
         │
         ▼
    empty? ──► complete, no store call
         │
         ▼
    gateway call  (cancel / timeout ──► abort, CancelledError)
         │        (failure          ──► abort, StoreError)
         ▼
    tracker.complete ──► DETACHED
"""

from detached.uow._policy import (
    ReplaceMode,
    Policy,
)
from detached.uow._unit import UnitOfWork
from detached.uow._builder import (
    UnitOfWorkBuilder,
    unit_of_work,
)

__all__ = (
    "ReplaceMode",
    "Policy",
    "UnitOfWork",
    "UnitOfWorkBuilder",
    "unit_of_work",
)
