"""
SQLite Example — the same operations against a real database.

Run: python -m examples.sqlite_example
"""

from sqlalchemy import String
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from detached import set_field
from detached import gateway as G
from detached import uow as U
from examples._infra import User, banner, run, show, users


# ═══════════════════════════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class UserTable(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))


engine = create_async_engine("sqlite+aiosqlite:///./users.db")
session_factory = async_sessionmaker(engine, expire_on_commit=False)

gateway = G.SQLAlchemyGateway(session_factory, model=UserTable, schema=users)


# ═══════════════════════════════════════════════════════════════════════════════
# Demo
# ═══════════════════════════════════════════════════════════════════════════════


async def main() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    banner("SQLite Demo")

    async with U.UnitOfWork(gateway, users) as uow:
        john = await uow.create(User(first_name="John", last_name="Doe"))
        ann = await uow.create(User(first_name="Ann", last_name="Lee"))
        show("created", [john, ann])

        # UPDATE users SET first_name=? WHERE users.id = ?
        await uow.full_replace(john, john.with_changes(first_name="Jane"))

        # UPDATE users SET first_name=? WHERE users.id > ?
        affected = await uow.bulk_update(UserTable.id > 1, set_field("first_name", "jw"))
        print(f"  bulk update: {affected} rows")

        show("stored", [await gateway.get(john.id), await gateway.get(ann.id)])

    await engine.dispose()


if __name__ == "__main__":
    run(main, verbose=True)
