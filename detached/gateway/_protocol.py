"""
Persistence gateway — typed store protocol consumed by the unit of work.

Gateway[T] — writes snapshots of entity type T.
All methods are coroutines; failures raise StoreError.
Each call is assumed atomic at the store.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════════════
# Field Setter — Bulk Update Expression
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FieldSetter:
    """
    Ordered field → value assignments for a bulk update.

    Values are interpreted by the gateway:
    - MemoryGateway: a constant, or a callable of the current row
    - SQLAlchemyGateway: a constant or a SQL expression

    Example:
        set_field("first_name", "jw")
        set_field("visits", lambda u: u.visits + 1).set("last_name", "Doe")
        set_field("visits", UserTable.visits + 1)

    Note: Immutable — set() returns a new FieldSetter.
    """

    assignments: tuple[tuple[str, Any], ...] = ()

    def set(self, name: str, value: Any) -> FieldSetter:
        """Add (or override) one assignment."""
        kept = tuple((f, v) for f, v in self.assignments if f != name)
        return FieldSetter(assignments=(*kept, (name, value)))

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(f for f, _ in self.assignments)

    def as_dict(self) -> dict[str, Any]:
        return dict(self.assignments)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self.assignments)

    def __len__(self) -> int:
        return len(self.assignments)


def set_field(name: str, value: Any) -> FieldSetter:
    """Start a FieldSetter with one assignment."""
    return FieldSetter().set(name, value)


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class Gateway(Protocol[T]):
    """
    Typed persistence gateway protocol.

    Note: Generic over T — the entity type it stores.
    The predicate type of bulk_update is gateway-defined.

    Example — wrapping an existing repository:

        class UserGateway(Gateway[User]):
            def __init__(self, repo: UserRepository):
                self.repo = repo

            async def insert(self, entity: User) -> User:
                try:
                    new_id = await self.repo.insert(entity.first_name, entity.last_name)
                except RepositoryError as e:
                    raise StoreError("Failed to insert", cause=e) from e
                return entity.with_changes(id=new_id)

            # ... other methods
    """

    async def insert(self, entity: T) -> T:
        """Write a full row. Returns the entity as confirmed by the store."""
        ...

    async def update_fields(self, identity: Any, values: Mapping[str, Any]) -> None:
        """Write exactly the given fields of one row."""
        ...

    async def replace_row(self, identity: Any, entity: T) -> None:
        """Write every field of one row."""
        ...

    async def delete(self, identity: Any) -> None:
        """Remove one row."""
        ...

    async def bulk_update(self, predicate: Any, setter: FieldSetter) -> int:
        """Apply `setter` to every row matching `predicate`. Returns affected count."""
        ...


__all__ = (
    "FieldSetter",
    "set_field",
    "Gateway",
)
