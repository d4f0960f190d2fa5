"""
ChangeSet — what a pending operation has to write.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """
    Result of diffing two snapshots of one identity.

    is_insert: no prior snapshot, the whole row is written.
    is_delete: new snapshot is a tombstone, fields is ignored (and empty).
    fields: field names to write for an update.
    """

    fields: frozenset[str] = frozenset()
    is_insert: bool = False
    is_delete: bool = False

    @property
    def is_empty(self) -> bool:
        """Nothing to send to the store."""
        return not self.fields and not self.is_insert and not self.is_delete

    @classmethod
    def insert(cls, fields: frozenset[str]) -> ChangeSet:
        return cls(fields=fields, is_insert=True)

    @classmethod
    def delete(cls) -> ChangeSet:
        return cls(is_delete=True)

    @classmethod
    def update(cls, fields: frozenset[str]) -> ChangeSet:
        return cls(fields=fields)


__all__ = ("ChangeSet",)
