"""
State tracker — identity → tracked entry, for one unit of work.

All methods are synchronous. Within one event loop nothing can interleave
between the "already registered?" check and the registration in begin(),
so concurrent begins for one identity fail fast instead of racing.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog

from detached.entity import EntitySchema
from detached.errors import ConflictError, ValidationError
from detached.tracking._types import EntityState, Intent, PendingKey, TrackedEntry

logger = structlog.get_logger(__name__)

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════════════
# Internal Entry
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class _Entry(Generic[T]):
    """Internal mutable record. Handed out only as a frozen TrackedEntry."""

    key: Any
    identity: Any
    snapshot: T
    state: EntityState
    dirty_fields: set[str] = field(default_factory=set)
    baseline: T | None = None

    def freeze(self) -> TrackedEntry[T]:
        return TrackedEntry(
            key=self.key,
            identity=self.identity,
            snapshot=self.snapshot,
            state=self.state,
            dirty_fields=frozenset(self.dirty_fields),
            baseline=self.baseline,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# State Tracker
# ═══════════════════════════════════════════════════════════════════════════════


class StateTracker(Generic[T]):
    """
    Tracked entries of one unit of work.

    Note: Never shared between units of work — each owns its own map.

    Example:
        tracker = StateTracker(users)
        entry = tracker.begin(john, Intent.UPDATE)
        tracker.mark_dirty(entry.key, {"first_name"})
        ...store call...
        tracker.complete(entry.key)   # or tracker.abort(entry.key)
    """

    def __init__(self, schema: EntitySchema[T]) -> None:
        self._schema = schema
        self._entries: dict[Any, _Entry[T]] = {}

    # ── lifecycle ─────────────────────────────────────────────────────────────

    def begin(self, entity: T, intent: Intent) -> TrackedEntry[T]:
        """
        Register a new entry in the state derived from `intent`.

        Raises ConflictError if the identity is already tracked.
        Only CREATE accepts an entity without identity.
        """
        if entity is None or not self._schema.accepts(entity):
            raise ValidationError(
                f"Expected {self._schema.name}, got {type(entity).__name__}"
            )

        identity = self._schema.identity_of(entity)
        if identity is None:
            if intent is not Intent.CREATE:
                raise ValidationError(
                    f"{self._schema.name} without identity cannot be tracked for {intent.name}"
                )
            key: Any = PendingKey.next()
        else:
            key = identity
            if key in self._entries:
                current = self._entries[key]
                raise ConflictError(
                    f"{self._schema.name} {identity!r} is already tracked as {current.state.name}",
                    identity=identity,
                )

        entry = _Entry(
            key=key,
            identity=identity,
            snapshot=entity,
            state=intent.initial_state,
            baseline=entity if intent is Intent.ATTACH else None,
        )
        self._entries[key] = entry
        logger.debug(
            "entry_begun",
            entity=self._schema.name,
            identity=identity,
            state=entry.state.name,
        )
        return entry.freeze()

    def mark_dirty(
        self,
        key: Any,
        fields: Iterable[str],
        *,
        snapshot: T | None = None,
    ) -> TrackedEntry[T]:
        """
        Add fields to the entry's dirty set.

        Valid on MODIFIED entries; an UNCHANGED entry becomes MODIFIED once
        a field is marked. `snapshot` replaces the pending value (same identity).
        """
        entry = self._require(key)
        if entry.state not in (EntityState.MODIFIED, EntityState.UNCHANGED):
            raise ValidationError(
                f"Cannot mark fields dirty on a {entry.state.name} entry",
                identity=entry.identity,
            )

        names = frozenset(fields)
        unknown = names - frozenset(self._schema.data_fields)
        if unknown:
            raise ValidationError(
                f"Unknown or immutable fields for {self._schema.name}: {sorted(unknown)}",
                identity=entry.identity,
            )

        if snapshot is not None:
            if not self._schema.accepts(snapshot):
                raise ValidationError(
                    f"Expected {self._schema.name}, got {type(snapshot).__name__}",
                    identity=entry.identity,
                )
            if self._schema.identity_of(snapshot) != entry.identity:
                raise ValidationError(
                    "Identity is immutable for the lifetime of an entry",
                    identity=entry.identity,
                )
            entry.snapshot = snapshot

        entry.dirty_fields.update(names)
        if names and entry.state == EntityState.UNCHANGED:
            entry.state = EntityState.MODIFIED

        return entry.freeze()

    def complete(self, key: Any, *, snapshot: T | None = None) -> TrackedEntry[T]:
        """
        Store confirmed the write: detach and release the entry.

        `snapshot` is the value as confirmed by the store, if it differs
        from the pending one (e.g. a generated identity filled in).
        """
        entry = self._require(key)
        del self._entries[key]

        entry.state = EntityState.DETACHED
        entry.dirty_fields.clear()
        if snapshot is not None:
            entry.snapshot = snapshot
            entry.identity = self._schema.identity_of(snapshot)

        logger.debug("entry_completed", entity=self._schema.name, identity=entry.identity)
        return entry.freeze()

    def abort(self, key: Any) -> bool:
        """Discard the entry without a trace. Returns True if one existed."""
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        logger.debug(
            "entry_aborted",
            entity=self._schema.name,
            identity=entry.identity,
            state=entry.state.name,
        )
        return True

    def clear(self) -> int:
        """Drop every live entry. Returns how many were dropped."""
        count = len(self._entries)
        self._entries.clear()
        return count

    # ── introspection ─────────────────────────────────────────────────────────

    def get(self, key: Any) -> TrackedEntry[T] | None:
        entry = self._entries.get(key)
        return entry.freeze() if entry is not None else None

    def entries(self) -> tuple[TrackedEntry[T], ...]:
        return tuple(e.freeze() for e in self._entries.values())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _require(self, key: Any) -> _Entry[T]:
        entry = self._entries.get(key)
        if entry is None:
            raise ValidationError(f"No tracked {self._schema.name} for {key!r}", identity=key)
        return entry


__all__ = ("StateTracker",)
