"""
Error taxonomy — everything an operation can surface to its caller.

    TrackingError (kind, identity, cause)
        ├── ValidationError  — malformed input, no store call made
        ├── ConflictError    — identity already tracked in this unit of work
        ├── StoreError       — the gateway call failed
        └── CancelledError   — cancelled at the gateway suspension point

Note: CancelledError here is NOT asyncio.CancelledError.
When the surrounding task is cancelled, asyncio.CancelledError propagates
unchanged; this one covers the explicit cancel signal and policy timeouts.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Error Kind
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorKind(Enum):
    """Kinds of tracking errors."""

    VALIDATION = auto()  # Bad input, rejected before the tracker is touched
    CONFLICT = auto()  # Identity already registered in this scope
    STORE = auto()  # Gateway reported a failure
    CANCELLED = auto()  # Cancel signal or timeout before the store confirmed


# ═══════════════════════════════════════════════════════════════════════════════
# Hierarchy
# ═══════════════════════════════════════════════════════════════════════════════


class TrackingError(Exception):
    """
    Base class for every error raised by detached.

    identity: key of the entity involved, when there is one.
    cause: underlying backend exception (also chained as __cause__).
    """

    default_kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        identity: Any = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind if kind is not None else self.default_kind
        self.identity = identity
        self.cause = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, identity={self.identity!r})"


class ValidationError(TrackingError):
    """Malformed or missing input. Reported before any store call."""

    default_kind = ErrorKind.VALIDATION


class ConflictError(TrackingError):
    """Identity already tracked in the current unit of work."""

    default_kind = ErrorKind.CONFLICT


class StoreError(TrackingError):
    """Gateway call failed (constraint violation, missing row, lost connection)."""

    default_kind = ErrorKind.STORE


class CancelledError(TrackingError):
    """Operation cancelled before the store confirmed the write."""

    default_kind = ErrorKind.CANCELLED


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "ErrorKind",
    "TrackingError",
    "ValidationError",
    "ConflictError",
    "StoreError",
    "CancelledError",
)
