"""
Unit of work — public create / update / delete API over one tracker.

Each operation:
    validate → diff → begin → gateway call (only suspension point)
             → complete (store confirmed) | abort (anything else)

Nothing is retried here: after a failed write the caller cannot know
whether the store applied it, so retrying is the caller's decision.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from functools import partial
from typing import Any, Generic, TypeVar

import structlog

from detached.diff import diff
from detached.entity import EntitySchema
from detached.errors import CancelledError, StoreError, ValidationError
from detached.gateway import FieldSetter, Gateway
from detached.tracking import Intent, StateTracker, TrackedEntry
from detached.uow._policy import Policy, ReplaceMode

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


# ═══════════════════════════════════════════════════════════════════════════════
# Unit Of Work
# ═══════════════════════════════════════════════════════════════════════════════


class UnitOfWork(Generic[T]):
    """
    Reconciles immutable snapshots with a store through one gateway.

    Example:
        uow = UnitOfWork(MemoryGateway(users), users)

        john = await uow.create(User(first_name="John", last_name="Doe"))
        jane = await uow.full_replace(john, john.with_changes(first_name="Jane"))
        await uow.partial_update(jane.with_changes(last_name="Roe"), "last_name")
        await uow.bulk_update(lambda u: u.id > 0, set_field("first_name", "jw"))
        await uow.delete(jane)

    Every operation accepts `cancel`, an asyncio.Event. If it is set before
    the store confirms the write, the entry is aborted and CancelledError
    is raised. Cancelling the calling task aborts the entry too, and the
    asyncio.CancelledError propagates as usual.

    Note: One tracker per instance, never shared. Build one per scope.
    """

    def __init__(
        self,
        gateway: Gateway[T],
        schema: EntitySchema[T],
        policy: Policy | None = None,
    ) -> None:
        self._gateway = gateway
        self._schema = schema
        self._policy = policy if policy is not None else Policy()
        self._tracker: StateTracker[T] = StateTracker(schema)

    @property
    def gateway(self) -> Gateway[T]:
        return self._gateway

    @property
    def schema(self) -> EntitySchema[T]:
        return self._schema

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def tracker(self) -> StateTracker[T]:
        return self._tracker

    def is_tracked(self, key: Any) -> bool:
        return key in self._tracker

    async def __aenter__(self) -> UnitOfWork[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        leftover = self._tracker.clear()
        if leftover:
            logger.warning(
                "unit_of_work_closed_with_entries",
                entity=self._schema.name,
                count=leftover,
            )

    # ── operations ────────────────────────────────────────────────────────────

    async def create(self, entity: T, *, cancel: asyncio.Event | None = None) -> T:
        """
        Insert a new row. Returns the entity as confirmed by the store,
        with its generated identity filled in.
        """
        self._require_entity(entity)
        identity = self._schema.identity_of(entity)
        if identity is not None and not self._policy.explicit_identity:
            raise ValidationError(
                f"{self._schema.name} identity is generated by the store, got {identity!r}",
                identity=identity,
            )

        changes = diff(self._schema, None, entity)
        entry = self._tracker.begin(entity, Intent.CREATE)

        confirmed = await self._apply(entry, partial(self._gateway.insert, entity), cancel)
        final = self._tracker.complete(entry.key, snapshot=confirmed)

        logger.info(
            "entity_created",
            entity=self._schema.name,
            identity=final.identity,
            fields=sorted(changes.fields),
        )
        return confirmed

    async def full_replace(
        self,
        current: T,
        new: T,
        *,
        force: Iterable[str] = (),
        cancel: asyncio.Event | None = None,
    ) -> T:
        """
        Replace the row of `current` with the values of `new`.

        Only a non-empty change set reaches the store; `force` adds fields
        that must be written even when unchanged. Returns `new`.
        """
        self._require_entity(current)
        self._require_entity(new)
        identity = self._require_identity(current)
        if self._schema.identity_of(new) != identity:
            raise ValidationError(
                f"{self._schema.name} identity is immutable: "
                f"{identity!r} cannot become {self._schema.identity_of(new)!r}",
                identity=identity,
            )
        forced = self._require_fields(force)

        changes = diff(self._schema, current, new, force=forced)
        entry = self._tracker.begin(current, Intent.ATTACH)

        if changes.is_empty:
            self._tracker.complete(entry.key, snapshot=new)
            logger.debug("update_skipped", entity=self._schema.name, identity=identity)
            return new

        entry = self._tracker.mark_dirty(entry.key, changes.fields, snapshot=new)

        call: Callable[[], Awaitable[None]]
        if self._policy.replace_mode == ReplaceMode.FULL_ROW:
            call = partial(self._gateway.replace_row, identity, new)
        else:
            values = self._schema.values(new, entry.dirty_fields)
            call = partial(self._gateway.update_fields, identity, values)

        await self._apply(entry, call, cancel)
        self._tracker.complete(entry.key)

        logger.info(
            "entity_updated",
            entity=self._schema.name,
            identity=identity,
            fields=sorted(entry.dirty_fields),
            mode=self._policy.replace_mode.name,
        )
        return new

    async def partial_update(
        self,
        new: T,
        *fields: str,
        cancel: asyncio.Event | None = None,
    ) -> T:
        """
        Write exactly the selected fields of `new`, whether or not they changed.

        Other fields are never sent, even if they differ from the stored row.
        Returns `new`.

        Example:
            await uow.partial_update(user.with_changes(first_name="UU"), "first_name")
        """
        self._require_entity(new)
        identity = self._require_identity(new)
        selected = self._require_fields(fields)

        entry = self._tracker.begin(new, Intent.UPDATE)

        if not selected:
            self._tracker.complete(entry.key)
            logger.debug("update_skipped", entity=self._schema.name, identity=identity)
            return new

        entry = self._tracker.mark_dirty(entry.key, selected)
        values = self._schema.values(new, entry.dirty_fields)

        await self._apply(entry, partial(self._gateway.update_fields, identity, values), cancel)
        self._tracker.complete(entry.key)

        logger.info(
            "entity_patched",
            entity=self._schema.name,
            identity=identity,
            fields=sorted(selected),
        )
        return new

    async def delete(self, entity: T, *, cancel: asyncio.Event | None = None) -> None:
        """Remove the row of `entity` by identity."""
        self._require_entity(entity)
        identity = self._require_identity(entity)

        entry = self._tracker.begin(entity, Intent.DELETE)

        await self._apply(entry, partial(self._gateway.delete, identity), cancel)
        self._tracker.complete(entry.key)

        logger.info("entity_deleted", entity=self._schema.name, identity=identity)

    async def bulk_update(
        self,
        predicate: Any,
        setter: FieldSetter,
        *,
        cancel: asyncio.Event | None = None,
    ) -> int:
        """
        Apply `setter` to every row matching `predicate` in one store call.

        Rows are neither loaded nor tracked. Returns the affected count.

        Example:
            await uow.bulk_update(UserTable.id > 0, set_field("first_name", "jw"))
        """
        if not isinstance(setter, FieldSetter) or len(setter) == 0:
            raise ValidationError(f"Bulk update of {self._schema.name} needs at least one field")
        fields = self._require_fields(setter.fields)

        try:
            affected = await self._call_gateway(
                partial(self._gateway.bulk_update, predicate, setter), cancel
            )
        except StoreError as e:
            logger.warning(
                "store_call_failed",
                entity=self._schema.name,
                operation="bulk_update",
                error=e.message,
            )
            raise
        except (CancelledError, asyncio.CancelledError):
            logger.info("operation_cancelled", entity=self._schema.name, operation="bulk_update")
            raise

        logger.info(
            "entities_bulk_updated",
            entity=self._schema.name,
            fields=sorted(fields),
            affected=affected,
        )
        return affected

    # ── store call ────────────────────────────────────────────────────────────

    async def _apply(
        self,
        entry: TrackedEntry[T],
        call: Callable[[], Awaitable[R]],
        cancel: asyncio.Event | None,
    ) -> R:
        """Run the gateway call; abort the entry on any failure."""
        try:
            return await self._call_gateway(call, cancel, identity=entry.identity)
        except StoreError as e:
            self._tracker.abort(entry.key)
            logger.warning(
                "store_call_failed",
                entity=self._schema.name,
                identity=entry.identity,
                state=entry.state.name,
                error=e.message,
            )
            raise
        except (CancelledError, asyncio.CancelledError):
            self._tracker.abort(entry.key)
            logger.info(
                "operation_cancelled",
                entity=self._schema.name,
                identity=entry.identity,
                state=entry.state.name,
            )
            raise
        except Exception:
            self._tracker.abort(entry.key)
            raise

    async def _call_gateway(
        self,
        call: Callable[[], Awaitable[R]],
        cancel: asyncio.Event | None,
        *,
        identity: Any = None,
    ) -> R:
        if cancel is not None and cancel.is_set():
            raise CancelledError("Cancelled before the store call", identity=identity)

        deadline = asyncio.timeout(self._policy.timeout_seconds)
        try:
            async with deadline:
                if cancel is None:
                    return await call()
                return await _unless_cancelled(call, cancel, identity)
        except TimeoutError as e:
            if not deadline.expired():
                raise
            raise CancelledError(
                f"Store call exceeded {self._policy.timeout_seconds}s",
                identity=identity,
            ) from e

    # ── validation ────────────────────────────────────────────────────────────

    def _require_entity(self, entity: object) -> None:
        if entity is None:
            raise ValidationError(f"{self._schema.name} is required")
        if not self._schema.accepts(entity):
            raise ValidationError(f"Expected {self._schema.name}, got {type(entity).__name__}")

    def _require_identity(self, entity: T) -> Any:
        identity = self._schema.identity_of(entity)
        if identity is None:
            raise ValidationError(f"{self._schema.name} has no identity; create it first")
        return identity

    def _require_fields(self, names: Iterable[Any]) -> frozenset[str]:
        if isinstance(names, str):
            raise ValidationError(
                f"Field names must be a collection of strings, got the string {names!r}"
            )
        names = tuple(names)
        if any(not isinstance(n, str) for n in names):
            raise ValidationError(f"Field names must be strings, got {names!r}")
        if self._schema.identity in names:
            raise ValidationError(f"{self._schema.name}.{self._schema.identity} cannot be written")
        unknown = sorted(set(names) - set(self._schema.fields))
        if unknown:
            raise ValidationError(f"Unknown fields for {self._schema.name}: {unknown}")
        return frozenset(names)


# ═══════════════════════════════════════════════════════════════════════════════
# Cancellation Race
# ═══════════════════════════════════════════════════════════════════════════════


async def _unless_cancelled(
    call: Callable[[], Awaitable[R]],
    cancel: asyncio.Event,
    identity: Any,
) -> R:
    """
    Await the store call unless `cancel` is set first.

    A call that finishes in the same step as the signal counts as confirmed.
    """
    store_call = asyncio.ensure_future(call())
    store_call.add_done_callback(_retrieve_outcome)
    signal = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait((store_call, signal), return_when=asyncio.FIRST_COMPLETED)
    finally:
        signal.cancel()
        if not store_call.done():
            store_call.cancel()

    if store_call in done:
        return store_call.result()

    raise CancelledError("Cancelled before the store confirmed the write", identity=identity)


def _retrieve_outcome(task: asyncio.Future[Any]) -> None:
    """Mark an abandoned store call's exception as retrieved, logging it instead."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("abandoned_store_call_failed", error=repr(error))


__all__ = ("UnitOfWork",)
