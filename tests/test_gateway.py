"""Tests for field setters and the memory gateway."""

import pytest

from detached import set_field
from detached.errors import StoreError
from detached.gateway import FieldSetter, MemoryGateway

from tests.domain import User, users


class TestFieldSetter:
    """Bulk update assignments."""

    def test_chained_assignments(self):
        setter = set_field("first_name", "jw").set("visits", 3)

        assert setter.as_dict() == {"first_name": "jw", "visits": 3}
        assert setter.fields == {"first_name", "visits"}
        assert len(setter) == 2

    def test_later_assignment_overrides(self):
        setter = set_field("first_name", "a").set("first_name", "b")

        assert list(setter) == [("first_name", "b")]

    def test_set_returns_new_setter(self):
        base = set_field("first_name", "a")

        base.set("last_name", "b")

        assert len(base) == 1

    def test_empty(self):
        assert len(FieldSetter()) == 0
        assert FieldSetter().fields == frozenset()


class TestMemoryGateway:
    """In-memory store behavior."""

    async def test_generated_identities_start_at_sequence_start(self):
        gateway = MemoryGateway(users, start=100)

        first = await gateway.insert(User(first_name="A"))
        second = await gateway.insert(User(first_name="B"))

        assert (first.id, second.id) == (100, 101)

    async def test_generated_identity_skips_taken_ids(self, memory):
        await memory.insert(User(id=1, first_name="Explicit"))

        generated = await memory.insert(User(first_name="Generated"))

        assert generated.id == 2

    async def test_duplicate_explicit_identity(self, memory):
        await memory.insert(User(id=1))

        with pytest.raises(StoreError, match="Duplicate"):
            await memory.insert(User(id=1))

    async def test_update_fields(self, memory, seeded):
        await memory.update_fields(1, {"last_name": "Roe"})

        assert await memory.get(1) == User(id=1, first_name="John", last_name="Roe")

    async def test_update_unknown_column(self, memory, seeded):
        with pytest.raises(StoreError, match="Unknown columns"):
            await memory.update_fields(1, {"middle_name": "Q"})

    async def test_replace_row(self, memory, seeded):
        replacement = User(id=2, first_name="Anna", last_name="Lee", visits=9)

        await memory.replace_row(2, replacement)

        assert await memory.get(2) == replacement

    async def test_replace_row_with_other_identity(self, memory, seeded):
        with pytest.raises(StoreError):
            await memory.replace_row(2, User(id=3))

    @pytest.mark.parametrize(
        "call",
        [
            lambda g: g.update_fields(9, {"first_name": "x"}),
            lambda g: g.replace_row(9, User(id=9)),
            lambda g: g.delete(9),
        ],
    )
    async def test_missing_row(self, memory, call):
        with pytest.raises(StoreError) as exc_info:
            await call(memory)

        assert exc_info.value.identity == 9

    async def test_delete(self, memory, seeded):
        await memory.delete(3)

        assert [u.id for u in await memory.all()] == [1, 2]

    async def test_bulk_update_with_row_callable(self, memory, seeded):
        affected = await memory.bulk_update(
            lambda u: u.last_name != "Lee",
            set_field("first_name", lambda u: u.first_name.upper()),
        )

        assert affected == 2
        assert [u.first_name for u in await memory.all()] == ["JOHN", "Ann", "BOB"]

    async def test_bulk_update_unknown_column(self, memory, seeded):
        with pytest.raises(StoreError):
            await memory.bulk_update(lambda u: True, set_field("middle_name", "Q"))

    async def test_bulk_update_is_all_or_nothing(self, memory):
        await memory.insert(User(first_name="A", visits=2))
        await memory.insert(User(first_name="B", visits=0))
        before = await memory.all()

        with pytest.raises(StoreError) as exc_info:
            await memory.bulk_update(
                lambda u: True,
                set_field("visits", lambda u: 10 // u.visits),
            )

        assert isinstance(exc_info.value.cause, ZeroDivisionError)
        assert await memory.all() == before

    async def test_bulk_update_failing_predicate(self, memory, seeded):
        def predicate(u):
            if u.id == 2:
                raise KeyError("region")
            return True

        with pytest.raises(StoreError):
            await memory.bulk_update(predicate, set_field("first_name", "jw"))

        assert await memory.all() == seeded
