"""
Unit of work builder — fluent factory, one fresh UnitOfWork per build().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from detached.entity import EntitySchema
from detached.gateway import Gateway
from detached.uow._policy import Policy
from detached.uow._unit import UnitOfWork

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class UnitOfWorkBuilder(Generic[T]):
    """
    Fluent unit of work builder.

    Note: Keep the builder, build() per scope (request, job, test).
    Each built UnitOfWork owns its own tracker.
    """

    _gateway: Gateway[T]
    _schema: EntitySchema[T]
    _policy: Policy

    def gateway(self, g: Gateway[T]) -> UnitOfWorkBuilder[T]:
        """Set the persistence gateway."""
        return UnitOfWorkBuilder(
            _gateway=g,
            _schema=self._schema,
            _policy=self._policy,
        )

    def policy(self, p: Policy) -> UnitOfWorkBuilder[T]:
        """Set the unit of work policy."""
        return UnitOfWorkBuilder(
            _gateway=self._gateway,
            _schema=self._schema,
            _policy=p,
        )

    def build(self) -> UnitOfWork[T]:
        """Build a fresh unit of work."""
        return UnitOfWork(self._gateway, self._schema, self._policy)


def unit_of_work(gateway: Gateway[T], schema: EntitySchema[T]) -> UnitOfWorkBuilder[T]:
    """
    Start configuring units of work for one entity type.

    Example:
        users_uow = (
            unit_of_work(SQLAlchemyGateway(session_factory, UserTable, users), users)
            .policy(Policy().with_timeout(seconds=5))
        )

        async with users_uow.build() as uow:
            await uow.create(User(first_name="John"))
    """
    return UnitOfWorkBuilder(
        _gateway=gateway,
        _schema=schema,
        _policy=Policy(),
    )


__all__ = (
    "UnitOfWorkBuilder",
    "unit_of_work",
)
