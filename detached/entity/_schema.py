"""
Entity schema — the field list, resolved once at registration time.

Everything downstream (differ, tracker, gateways) reads field names from
the schema and never walks the entity type itself.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════════════
# Entity Schema
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class EntitySchema(Generic[T]):
    """
    Resolved shape of one entity type.

    fields: every init field, in declaration order (identity included).
    identity: name of the key field.
    """

    entity_type: type[T]
    identity: str
    fields: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.entity_type.__name__

    @property
    def data_fields(self) -> tuple[str, ...]:
        """All fields except the identity."""
        return tuple(f for f in self.fields if f != self.identity)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def accepts(self, obj: object) -> bool:
        return isinstance(obj, self.entity_type)

    def identity_of(self, entity: T) -> Any:
        return getattr(entity, self.identity)

    def values(self, entity: T, fields: Iterable[str] | None = None) -> dict[str, Any]:
        """
        Field values of a snapshot, in schema order.

        Restricted to `fields` when given.
        """
        if fields is None:
            wanted: tuple[str, ...] | frozenset[str] = self.fields
        else:
            wanted = frozenset(fields)
        return {f: getattr(entity, f) for f in self.fields if f in wanted}

    def build(self, values: Mapping[str, Any]) -> T:
        """Construct a snapshot from a field mapping (e.g. a store row)."""
        return self.entity_type(**{f: values[f] for f in self.fields if f in values})

    def with_identity(self, entity: T, identity: Any) -> T:
        """Copy of `entity` carrying a store-assigned identity."""
        return dataclasses.replace(entity, **{self.identity: identity})  # type: ignore[type-var]


# ═══════════════════════════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════════════════════════


def schema_for(entity_type: type[T], *, identity: str = "id") -> EntitySchema[T]:
    """
    Register an entity type: resolve its field list once.

    The type must be a frozen dataclass with an `identity` field.

    Example:
        users = schema_for(User)
        users.data_fields  # ("first_name", "last_name")
    """
    if not dataclasses.is_dataclass(entity_type) or not isinstance(entity_type, type):
        raise ValueError(f"{entity_type!r} is not a dataclass type")
    if not entity_type.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        raise ValueError(f"{entity_type.__name__} must be frozen")

    fields = tuple(f.name for f in dataclasses.fields(entity_type) if f.init)
    if identity not in fields:
        raise ValueError(f"{entity_type.__name__} has no identity field {identity!r}")

    return EntitySchema(entity_type=entity_type, identity=identity, fields=fields)


__all__ = (
    "EntitySchema",
    "schema_for",
)
