"""
Tracking — per-identity lifecycle state inside one unit of work.

    from detached import tracking as Tr

    tracker = Tr.StateTracker(users)
    entry = tracker.begin(user, Tr.Intent.DELETE)   # DELETED
    tracker.complete(entry.key)                      # DETACHED, released

Lifecycle:

    absent ──begin──► ADDED / MODIFIED / DELETED / UNCHANGED
                          │                          │
                          │        mark_dirty ◄──────┘
                          │
              complete ───┼─── abort
                 ▼        │      ▼
             DETACHED     └──► absent
"""

from detached.tracking._types import (
    EntityState,
    Intent,
    PendingKey,
    TrackedEntry,
)
from detached.tracking._tracker import StateTracker

__all__ = (
    "EntityState",
    "Intent",
    "PendingKey",
    "TrackedEntry",
    "StateTracker",
)
