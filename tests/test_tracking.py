"""Tests for the state tracker lifecycle."""

import pytest

from detached.errors import ConflictError, ErrorKind, ValidationError
from detached.tracking import EntityState, Intent, PendingKey, StateTracker

from tests.domain import User, users

JOHN = User(id=1, first_name="John", last_name="Doe")


@pytest.fixture
def tracker() -> StateTracker[User]:
    return StateTracker(users)


class TestBegin:
    """Registering entries."""

    @pytest.mark.parametrize(
        "intent, state",
        [
            (Intent.UPDATE, EntityState.MODIFIED),
            (Intent.DELETE, EntityState.DELETED),
            (Intent.ATTACH, EntityState.UNCHANGED),
            (Intent.CREATE, EntityState.ADDED),
        ],
    )
    def test_state_from_intent(self, tracker, intent, state):
        entry = tracker.begin(JOHN, intent)

        assert entry.state == state
        assert entry.key == 1
        assert entry.dirty_fields == frozenset()
        assert 1 in tracker

    def test_second_begin_conflicts(self, tracker):
        first = tracker.begin(JOHN, Intent.UPDATE)

        with pytest.raises(ConflictError) as exc_info:
            tracker.begin(JOHN.with_changes(first_name="Jane"), Intent.DELETE)

        assert exc_info.value.kind == ErrorKind.CONFLICT
        assert exc_info.value.identity == 1
        assert tracker.get(1) == first

    def test_pending_inserts_do_not_conflict(self, tracker):
        first = tracker.begin(User(first_name="A"), Intent.CREATE)
        second = tracker.begin(User(first_name="A"), Intent.CREATE)

        assert isinstance(first.key, PendingKey)
        assert first.key != second.key
        assert first.identity is None
        assert len(tracker) == 2

    def test_update_requires_identity(self, tracker):
        with pytest.raises(ValidationError):
            tracker.begin(User(first_name="A"), Intent.UPDATE)

        assert len(tracker) == 0

    def test_rejects_foreign_values(self, tracker):
        with pytest.raises(ValidationError):
            tracker.begin(None, Intent.CREATE)  # type: ignore[arg-type]

    def test_attach_keeps_baseline(self, tracker):
        entry = tracker.begin(JOHN, Intent.ATTACH)

        assert entry.baseline is JOHN
        assert not entry.has_pending_work


class TestMarkDirty:
    """Dirty field bookkeeping."""

    def test_accumulates_fields(self, tracker):
        tracker.begin(JOHN, Intent.UPDATE)

        tracker.mark_dirty(1, {"first_name"})
        entry = tracker.mark_dirty(1, ["last_name"])

        assert entry.dirty_fields == {"first_name", "last_name"}
        assert entry.state == EntityState.MODIFIED

    def test_promotes_unchanged_to_modified(self, tracker):
        tracker.begin(JOHN, Intent.ATTACH)
        jane = JOHN.with_changes(first_name="Jane")

        entry = tracker.mark_dirty(1, {"first_name"}, snapshot=jane)

        assert entry.state == EntityState.MODIFIED
        assert entry.snapshot == jane
        assert entry.baseline == JOHN

    def test_empty_marking_leaves_unchanged(self, tracker):
        tracker.begin(JOHN, Intent.ATTACH)

        assert tracker.mark_dirty(1, ()).state == EntityState.UNCHANGED

    @pytest.mark.parametrize("intent", [Intent.DELETE, Intent.CREATE])
    def test_invalid_outside_modified(self, tracker, intent):
        entry = tracker.begin(JOHN, intent)

        with pytest.raises(ValidationError):
            tracker.mark_dirty(entry.key, {"first_name"})

    def test_unknown_field(self, tracker):
        tracker.begin(JOHN, Intent.UPDATE)

        with pytest.raises(ValidationError, match="middle_name"):
            tracker.mark_dirty(1, {"middle_name"})

    def test_identity_is_immutable(self, tracker):
        tracker.begin(JOHN, Intent.UPDATE)

        with pytest.raises(ValidationError, match="immutable"):
            tracker.mark_dirty(1, {"first_name"}, snapshot=JOHN.with_changes(id=2))

        assert tracker.get(1).snapshot == JOHN

    def test_untracked_key(self, tracker):
        with pytest.raises(ValidationError):
            tracker.mark_dirty(42, {"first_name"})


class TestCompleteAndAbort:
    """Leaving the live map."""

    def test_complete_detaches(self, tracker):
        tracker.begin(JOHN, Intent.UPDATE)
        tracker.mark_dirty(1, {"first_name"})

        final = tracker.complete(1)

        assert final.state == EntityState.DETACHED
        assert final.is_detached
        assert final.dirty_fields == frozenset()
        assert 1 not in tracker

    def test_complete_with_confirmed_snapshot(self, tracker):
        entry = tracker.begin(User(first_name="A"), Intent.CREATE)

        final = tracker.complete(entry.key, snapshot=User(id=7, first_name="A"))

        assert final.identity == 7
        assert len(tracker) == 0

    def test_identity_can_be_tracked_again_after_complete(self, tracker):
        tracker.begin(JOHN, Intent.UPDATE)
        tracker.complete(1)

        assert tracker.begin(JOHN, Intent.DELETE).state == EntityState.DELETED

    def test_complete_untracked(self, tracker):
        with pytest.raises(ValidationError):
            tracker.complete(1)

    def test_abort_leaves_no_trace(self, tracker):
        tracker.begin(JOHN, Intent.DELETE)

        assert tracker.abort(1) is True
        assert tracker.get(1) is None
        assert tracker.abort(1) is False

    def test_clear(self, tracker):
        tracker.begin(JOHN, Intent.UPDATE)
        tracker.begin(User(id=2), Intent.DELETE)

        assert len(tracker.entries()) == 2
        assert tracker.clear() == 2
        assert len(tracker) == 0


def test_handed_out_entries_are_snapshots(tracker):
    entry = tracker.begin(JOHN, Intent.UPDATE)

    tracker.mark_dirty(1, {"first_name"})

    assert entry.dirty_fields == frozenset()
