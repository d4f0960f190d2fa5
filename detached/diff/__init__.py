"""
Diff — compare two immutable snapshots of one entity.

    from detached import diff as D

    changes = D.diff(users, old, new)
    changes.fields     # frozenset({"first_name"})
    changes.is_empty   # False
"""

from detached.diff._changeset import ChangeSet
from detached.diff._differ import diff

__all__ = (
    "ChangeSet",
    "diff",
)
