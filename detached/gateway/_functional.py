"""
Function-based gateway builder.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from detached.gateway._protocol import FieldSetter

T = TypeVar("T")

InsertFn = Callable[[T], Awaitable[T]]
UpdateFieldsFn = Callable[[Any, Mapping[str, Any]], Awaitable[None]]
ReplaceRowFn = Callable[[Any, T], Awaitable[None]]
DeleteFn = Callable[[Any], Awaitable[None]]
BulkUpdateFn = Callable[[Any, FieldSetter], Awaitable[int]]


@dataclass(frozen=True)
class FunctionalGateway(Generic[T]):
    """
    Gateway built from functions.

    Example:
        gateway = gateway_from(
            insert=repo.insert_user,
            update_fields=repo.update_user_columns,
            replace_row=repo.overwrite_user,
            delete=repo.delete_user,
            bulk_update=repo.update_users_where,
        )
    """

    _insert: InsertFn[T]
    _update_fields: UpdateFieldsFn
    _replace_row: ReplaceRowFn[T]
    _delete: DeleteFn
    _bulk_update: BulkUpdateFn

    async def insert(self, entity: T) -> T:
        return await self._insert(entity)

    async def update_fields(self, identity: Any, values: Mapping[str, Any]) -> None:
        await self._update_fields(identity, values)

    async def replace_row(self, identity: Any, entity: T) -> None:
        await self._replace_row(identity, entity)

    async def delete(self, identity: Any) -> None:
        await self._delete(identity)

    async def bulk_update(self, predicate: Any, setter: FieldSetter) -> int:
        return await self._bulk_update(predicate, setter)


def gateway_from(
    insert: InsertFn[T],
    update_fields: UpdateFieldsFn,
    replace_row: ReplaceRowFn[T],
    delete: DeleteFn,
    bulk_update: BulkUpdateFn,
) -> FunctionalGateway[T]:
    """
    Create Gateway from functions.

    Example:
        gateway = gateway_from(
            insert=lambda user: api.post_user(user),
            update_fields=lambda uid, values: api.patch_user(uid, values),
            replace_row=lambda uid, user: api.put_user(uid, user),
            delete=lambda uid: api.delete_user(uid),
            bulk_update=lambda query, setter: api.patch_users(query, setter.as_dict()),
        )
    """
    return FunctionalGateway(
        _insert=insert,
        _update_fields=update_fields,
        _replace_row=replace_row,
        _delete=delete,
        _bulk_update=bulk_update,
    )


__all__ = (
    "FunctionalGateway",
    "gateway_from",
)
