"""
Snapshot differ — field-level change detection.

Pure: no side effects, and the same two snapshots always give the same
ChangeSet whatever order the fields were declared or forced in.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

from detached.diff._changeset import ChangeSet
from detached.entity import EntitySchema, Tombstone

T = TypeVar("T")


def diff(
    schema: EntitySchema[T],
    old: T | None,
    new: T | Tombstone[T],
    *,
    force: Iterable[str] = (),
) -> ChangeSet:
    """
    Compare two snapshots of the same identity.

    old is None        → insert, every field counts as changed
    new is a Tombstone → delete, fields ignored
    otherwise          → data fields whose values differ, plus `force`

    Forced fields are included even when structurally equal
    (e.g. re-writing a version stamp).

    Raises ValueError for arguments that cannot describe one identity:
    foreign types, mismatched identities, unknown forced fields.

    Example:
        diff(users, john, john.with_changes(first_name="Jane"))
        # ChangeSet(fields=frozenset({"first_name"}))
    """
    if isinstance(force, str):
        raise ValueError(f"force takes a collection of field names, got {force!r}")
    forced = frozenset(force)
    unknown = forced - frozenset(schema.data_fields)
    if unknown:
        raise ValueError(f"Cannot force {sorted(unknown)} on {schema.name}")

    if isinstance(new, Tombstone):
        _check_snapshot(schema, new.snapshot)
        return ChangeSet.delete()

    _check_snapshot(schema, new)

    if old is None:
        return ChangeSet.insert(frozenset(schema.fields))

    _check_snapshot(schema, old)
    if schema.identity_of(old) != schema.identity_of(new):
        raise ValueError(
            f"{schema.name} snapshots have different identities: "
            f"{schema.identity_of(old)!r} != {schema.identity_of(new)!r}"
        )

    before = schema.values(old)
    after = schema.values(new)
    changed = frozenset(f for f in schema.data_fields if before[f] != after[f])

    return ChangeSet.update(changed | forced)


def _check_snapshot(schema: EntitySchema[T], snapshot: object) -> None:
    if not schema.accepts(snapshot):
        raise ValueError(f"Expected {schema.name}, got {type(snapshot).__name__}")


__all__ = ("diff",)
