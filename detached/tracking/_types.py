"""
Tracking types — lifecycle states and tracked entries.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════════════
# Entity State — Persistence Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class EntityState(Enum):
    """
    Lifecycle state of a tracked entry.

    Lifecycle:
        absent → ADDED | MODIFIED | DELETED | UNCHANGED
        UNCHANGED → MODIFIED (fields marked dirty)
        any live state → DETACHED (store confirmed, entry released)
                       → absent   (aborted)

    DETACHED is terminal: leaving it means a new begin().
    """

    UNCHANGED = auto()
    ADDED = auto()
    MODIFIED = auto()
    DELETED = auto()
    DETACHED = auto()


class Intent(Enum):
    """What the caller is about to do with an entity."""

    CREATE = auto()
    UPDATE = auto()
    DELETE = auto()
    ATTACH = auto()  # Register a baseline with no pending work yet

    @property
    def initial_state(self) -> EntityState:
        return _INITIAL_STATES[self]


_INITIAL_STATES = {
    Intent.CREATE: EntityState.ADDED,
    Intent.UPDATE: EntityState.MODIFIED,
    Intent.DELETE: EntityState.DELETED,
    Intent.ATTACH: EntityState.UNCHANGED,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Pending Key — Stand-in Identity For Store-Generated Keys
# ═══════════════════════════════════════════════════════════════════════════════

_pending_counter = itertools.count(1)


@dataclass(frozen=True, slots=True)
class PendingKey:
    """
    Tracking key of an insert whose identity the store has not assigned yet.

    Every pending insert gets its own key, so they never conflict.
    """

    serial: int

    @classmethod
    def next(cls) -> PendingKey:
        return cls(next(_pending_counter))


# ═══════════════════════════════════════════════════════════════════════════════
# Tracked Entry — Frozen View
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TrackedEntry(Generic[T]):
    """
    Pending lifecycle state of one identity.

    key: tracker key (the identity, or a PendingKey for generated identities).
    identity: entity key, None for a pending insert.
    snapshot: the pending (new) value.
    baseline: the value the entry was attached with, if any.
    dirty_fields: fields to write, empty unless MODIFIED.
    """

    key: Any
    identity: Any
    snapshot: T
    state: EntityState
    dirty_fields: frozenset[str] = frozenset()
    baseline: T | None = None

    @property
    def is_detached(self) -> bool:
        return self.state == EntityState.DETACHED

    @property
    def has_pending_work(self) -> bool:
        return self.state in (EntityState.ADDED, EntityState.MODIFIED, EntityState.DELETED)


__all__ = (
    "EntityState",
    "Intent",
    "PendingKey",
    "TrackedEntry",
)
