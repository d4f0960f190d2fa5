"""
Entity — immutable value records and their registered schema.

    from detached import entity as E

    @dataclass(frozen=True, slots=True, kw_only=True)
    class User(E.Entity):
        first_name: str = ""
        last_name: str = ""

    users = E.schema_for(User)
    jane = john.with_changes(first_name="Jane")
"""

from detached.entity._types import (
    Entity,
    Tombstone,
    tombstone,
)
from detached.entity._schema import (
    EntitySchema,
    schema_for,
)

__all__ = (
    "Entity",
    "Tombstone",
    "tombstone",
    "EntitySchema",
    "schema_for",
)
