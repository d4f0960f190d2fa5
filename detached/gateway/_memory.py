"""
Memory gateway — for testing and single-process use.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

import structlog

from detached.entity import EntitySchema
from detached.errors import StoreError
from detached.gateway._protocol import FieldSetter

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class MemoryGateway(Generic[T]):
    """
    In-memory table of immutable rows keyed by identity.

    Identities are generated from a sequence starting at `start` when an
    entity is inserted without one; explicit identities are accepted
    as long as they are free.

    bulk_update predicate: Callable[[T], bool].
    Setter values: constants, or callables evaluated against the current row.

    Note: Only for tests / single process. Nothing survives a restart.
    """

    def __init__(self, schema: EntitySchema[T], *, start: int = 1) -> None:
        self._schema = schema
        self._rows: dict[Any, T] = {}
        self._next_id = start
        self._lock = asyncio.Lock()

    # ── writes ────────────────────────────────────────────────────────────────

    async def insert(self, entity: T) -> T:
        async with self._lock:
            identity = self._schema.identity_of(entity)
            if identity is None:
                identity = self._generate_identity()
                entity = self._schema.with_identity(entity, identity)
            elif identity in self._rows:
                raise StoreError(
                    f"Duplicate key: {self._schema.name} {identity!r} already exists",
                    identity=identity,
                )

            self._rows[identity] = entity
            return entity

    async def update_fields(self, identity: Any, values: Mapping[str, Any]) -> None:
        async with self._lock:
            row = self._require(identity)
            self._check_fields(values.keys(), identity)
            self._rows[identity] = self._replace(row, dict(values))

    async def replace_row(self, identity: Any, entity: T) -> None:
        async with self._lock:
            self._require(identity)
            if self._schema.identity_of(entity) != identity:
                raise StoreError(
                    f"Row {identity!r} cannot be replaced by "
                    f"{self._schema.identity_of(entity)!r}",
                    identity=identity,
                )
            self._rows[identity] = entity

    async def delete(self, identity: Any) -> None:
        async with self._lock:
            self._require(identity)
            del self._rows[identity]

    async def bulk_update(self, predicate: Callable[[T], bool], setter: FieldSetter) -> int:
        async with self._lock:
            self._check_fields(setter.fields, None)

            # Every row is computed before any is written: all or nothing.
            replaced: dict[Any, T] = {}
            try:
                for key, row in self._rows.items():
                    if not predicate(row):
                        continue
                    values = {
                        name: value(row) if callable(value) else value
                        for name, value in setter
                    }
                    replaced[key] = self._replace(row, values)
            except Exception as e:
                raise StoreError(
                    f"Bulk update of {self._schema.name} failed: {e!r}",
                    cause=e,
                ) from e

            self._rows.update(replaced)

            logger.debug(
                "memory_bulk_update",
                entity=self._schema.name,
                fields=sorted(setter.fields),
                affected=len(replaced),
            )
            return len(replaced)

    # ── no-tracking reads ─────────────────────────────────────────────────────

    async def get(self, identity: Any) -> T | None:
        async with self._lock:
            return self._rows.get(identity)

    async def all(self) -> list[T]:
        async with self._lock:
            return list(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)

    # ── helpers ───────────────────────────────────────────────────────────────

    def _generate_identity(self) -> int:
        while self._next_id in self._rows:
            self._next_id += 1
        identity = self._next_id
        self._next_id += 1
        return identity

    def _require(self, identity: Any) -> T:
        row = self._rows.get(identity)
        if row is None:
            raise StoreError(
                f"{self._schema.name} {identity!r} does not exist",
                identity=identity,
            )
        return row

    def _check_fields(self, names: Any, identity: Any) -> None:
        unknown = sorted(set(names) - set(self._schema.data_fields))
        if unknown:
            raise StoreError(
                f"Unknown columns for {self._schema.name}: {unknown}",
                identity=identity,
            )

    def _replace(self, row: T, values: dict[str, Any]) -> T:
        merged = self._schema.values(row)
        merged.update(values)
        return self._schema.build(merged)


__all__ = ("MemoryGateway",)
