"""Pytest configuration and shared fixtures."""

import asyncio
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from detached.gateway import FunctionalGateway, MemoryGateway, SQLAlchemyGateway, gateway_from
from detached.uow import UnitOfWork

from tests.domain import Base, User, UserTable, users


class Gate:
    """Holds a gateway call open until released."""

    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def pass_through(self) -> None:
        self.entered.set()
        await self.release.wait()


@pytest.fixture
def memory() -> MemoryGateway[User]:
    """Empty in-memory users table."""
    return MemoryGateway(users)


@pytest.fixture
def calls() -> list[tuple[str, tuple[Any, ...]]]:
    """Every gateway call made through the `gateway` fixture."""
    return []


@pytest.fixture
def gate() -> Gate:
    """Gate used by the gated_gateway fixture."""
    return Gate()


def _recording_gateway(memory, calls, gate: Gate | None) -> FunctionalGateway[User]:
    def recorded(name, fn):
        async def call(*args):
            calls.append((name, args))
            if gate is not None:
                await gate.pass_through()
            return await fn(*args)

        return call

    return gateway_from(
        insert=recorded("insert", memory.insert),
        update_fields=recorded("update_fields", memory.update_fields),
        replace_row=recorded("replace_row", memory.replace_row),
        delete=recorded("delete", memory.delete),
        bulk_update=recorded("bulk_update", memory.bulk_update),
    )


@pytest.fixture
def gateway(memory, calls) -> FunctionalGateway[User]:
    """Memory gateway that records calls."""
    return _recording_gateway(memory, calls, None)


@pytest.fixture
def gated_gateway(memory, calls, gate) -> FunctionalGateway[User]:
    """Memory gateway whose calls block until gate.release is set."""
    return _recording_gateway(memory, calls, gate)


@pytest.fixture
def uow(gateway) -> UnitOfWork[User]:
    return UnitOfWork(gateway, users)


@pytest.fixture
async def seeded(memory) -> list[User]:
    """Three stored users, inserted straight through the memory gateway."""
    return [
        await memory.insert(User(first_name="John", last_name="Doe")),
        await memory.insert(User(first_name="Ann", last_name="Lee")),
        await memory.insert(User(first_name="Bob", last_name="Ray")),
    ]


@pytest.fixture
async def session_factory():
    """In-memory SQLite database with the users table."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def sql_gateway(session_factory) -> SQLAlchemyGateway[User, UserTable]:
    return SQLAlchemyGateway(session_factory, model=UserTable, schema=users)
