"""
Entity types — immutable, identity-bearing value records.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Generic, Self, TypeVar

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════════════
# Entity — Base Record
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, kw_only=True)
class Entity:
    """
    Base for immutable domain records.

    id is None until the store assigns one.
    Subclasses use the same decorator:

        @dataclass(frozen=True, slots=True, kw_only=True)
        class User(Entity):
            first_name: str = ""
            last_name: str = ""

        jane = john.with_changes(first_name="Jane")

    Note: == is structural over all fields, same_identity() compares id only.
    """

    id: int | None = None

    def with_changes(self, **changes: Any) -> Self:
        """New value sharing every field except the named ones."""
        return replace(self, **changes)

    def same_identity(self, other: object) -> bool:
        """Same logical row: same type and equal, assigned id."""
        if type(other) is not type(self):
            return False
        return self.id is not None and self.id == other.id  # type: ignore[attr-defined]


# ═══════════════════════════════════════════════════════════════════════════════
# Tombstone — Snapshot Marked For Removal
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Tombstone(Generic[T]):
    """The last snapshot of an entity, explicitly marked for removal."""

    snapshot: T


def tombstone(entity: T) -> Tombstone[T]:
    """Mark a snapshot for removal."""
    return Tombstone(entity)


__all__ = (
    "Entity",
    "Tombstone",
    "tombstone",
)
