"""
SQLAlchemy integration — generic gateway for any mapped model.

Usage:
    1. Map a model whose attribute names match the entity's fields:

        class UserTable(Base):
            __tablename__ = "users"
            id: Mapped[int] = mapped_column(primary_key=True)
            first_name: Mapped[str] = mapped_column(String(100))
            last_name: Mapped[str] = mapped_column(String(100))

    2. Create the gateway:

        gateway = SQLAlchemyGateway(session_factory, model=UserTable, schema=users)

    3. Use:

        uow = UnitOfWork(gateway, users)
        jane = await uow.create(User(first_name="Jane"))
        await uow.bulk_update(UserTable.id > 0, set_field("last_name", "Doe"))

Every call runs in its own session and commits before returning.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

import structlog
from sqlalchemy import delete, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.expression import ColumnElement

from detached.entity import EntitySchema
from detached.errors import StoreError
from detached.gateway._protocol import FieldSetter

logger = structlog.get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M")  # Mapped model type


# ═══════════════════════════════════════════════════════════════════════════════
# Generic SQLAlchemy Gateway
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyGateway(Generic[T, M]):
    """
    Generic typed gateway for SQLAlchemy models.

    Type parameters:
        T: Entity type (e.g., User)
        M: Model type (e.g., UserTable)

    bulk_update predicate: a boolean column expression (UserTable.id > 0).
    Setter values: constants or SQL expressions (UserTable.visits + 1).
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model: type[M],
        schema: EntitySchema[T],
    ) -> None:
        """
        Args:
            session_factory: SQLAlchemy async session factory
            model: Mapped class with one attribute per schema field
            schema: Registered entity schema
        """
        missing = [f for f in schema.fields if not hasattr(model, f)]
        if missing:
            raise ValueError(f"{model.__name__} has no columns for {missing}")

        self._session_factory = session_factory
        self._model = model
        self._schema = schema

    async def insert(self, entity: T) -> T:
        """INSERT one row; the database may assign the identity."""
        values = self._schema.values(entity)
        if values[self._schema.identity] is None:
            del values[self._schema.identity]

        try:
            async with self._session_factory() as session:
                row = self._model(**values)
                session.add(row)
                await session.flush()
                await session.refresh(row)
                confirmed = self._to_entity(row)
                await session.commit()

        except SQLAlchemyError as e:
            raise StoreError(
                f"Failed to insert {self._schema.name}: {e}",
                identity=self._schema.identity_of(entity),
                cause=e,
            ) from e

        return confirmed

    async def update_fields(self, identity: Any, values: Mapping[str, Any]) -> None:
        """UPDATE exactly the given columns of one row."""
        await self._update_one(identity, dict(values))

    async def replace_row(self, identity: Any, entity: T) -> None:
        """UPDATE every non-key column of one row."""
        values = self._schema.values(entity, self._schema.data_fields)
        await self._update_one(identity, values)

    async def delete(self, identity: Any) -> None:
        """DELETE one row."""
        stmt = delete(self._model).where(self._key == identity)

        try:
            async with self._session_factory() as session:
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                affected = cursor.rowcount
                if affected == 0:
                    raise StoreError(
                        f"{self._schema.name} {identity!r} does not exist",
                        identity=identity,
                    )
                await session.commit()

        except SQLAlchemyError as e:
            raise StoreError(
                f"Failed to delete {self._schema.name} {identity!r}: {e}",
                identity=identity,
                cause=e,
            ) from e

    async def bulk_update(self, predicate: ColumnElement[bool], setter: FieldSetter) -> int:
        """Single UPDATE ... WHERE over every matching row."""
        stmt = (
            update(self._model)
            .where(predicate)
            .values(**setter.as_dict())
            .execution_options(synchronize_session=False)
        )

        try:
            async with self._session_factory() as session:
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                affected = cursor.rowcount
                await session.commit()

        except SQLAlchemyError as e:
            raise StoreError(f"Failed to bulk update {self._schema.name}: {e}", cause=e) from e

        logger.debug(
            "sql_bulk_update",
            entity=self._schema.name,
            fields=sorted(setter.fields),
            affected=affected,
        )
        return affected

    async def get(self, identity: Any) -> T | None:
        """No-tracking read of one row."""
        try:
            async with self._session_factory() as session:
                row = await session.get(self._model, identity)
                return self._to_entity(row) if row is not None else None

        except SQLAlchemyError as e:
            raise StoreError(
                f"Failed to get {self._schema.name} {identity!r}: {e}",
                identity=identity,
                cause=e,
            ) from e

    # ── helpers ───────────────────────────────────────────────────────────────

    @property
    def _key(self) -> Any:
        return getattr(self._model, self._schema.identity)

    async def _update_one(self, identity: Any, values: dict[str, Any]) -> None:
        stmt = (
            update(self._model)
            .where(self._key == identity)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            async with self._session_factory() as session:
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                affected = cursor.rowcount
                if affected == 0:
                    raise StoreError(
                        f"{self._schema.name} {identity!r} does not exist",
                        identity=identity,
                    )
                await session.commit()

        except SQLAlchemyError as e:
            raise StoreError(
                f"Failed to update {self._schema.name} {identity!r}: {e}",
                identity=identity,
                cause=e,
            ) from e

    def _to_entity(self, row: M) -> T:
        return self._schema.build({f: getattr(row, f) for f in self._schema.fields})


__all__ = ("SQLAlchemyGateway",)
