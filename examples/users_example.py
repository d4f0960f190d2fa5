"""
Users Example — immutable records written through a unit of work.

Run: python -m examples.users_example
"""

from detached import StoreError, set_field
from detached import gateway as G
from detached import uow as U
from examples._infra import User, banner, run, show, users


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════

# Generated identities start at 1, like an identity column.
store = G.MemoryGateway(users, start=1)

users_uow = U.unit_of_work(store, users).policy(U.Policy().with_timeout(seconds=5))


# ═══════════════════════════════════════════════════════════════════════════════
# Demo
# ═══════════════════════════════════════════════════════════════════════════════


async def main() -> None:
    banner("Unit of Work Demo")

    async with users_uow.build() as uow:
        # 1. Create — identity assigned by the store
        print("\n1. Create:")
        created = [
            await uow.create(User(first_name=first, last_name=last))
            for first, last in [("wu", "tong"), ("wu", "shang"), ("wang", "xiao")]
        ]
        show("stored", await store.all())

        # 2. Replace — only changed fields are written
        print("\n2. Replace (one field changed):")
        wu = created[0]
        jane = await uow.full_replace(wu, wu.with_changes(first_name="jane"))
        show("stored", [await store.get(jane.id)])

        # 3. Replace with nothing changed — no store call
        print("\n3. Replace (nothing changed):")
        await uow.full_replace(jane, jane)
        print("  skipped")

        # 4. Force a field — written even though it did not change
        print("\n4. Replace (forced field):")
        await uow.full_replace(jane, jane, force=["last_name"])
        print("  last_name rewritten")

        # 5. Partial update — other differing fields are NOT sent
        print("\n5. Partial update:")
        edited = created[1].with_changes(first_name="UU", last_name="not saved")
        await uow.partial_update(edited, "first_name")
        show("stored", [await store.get(edited.id)])

        # 6. Bulk update — one store call, nothing tracked
        print("\n6. Bulk update:")
        affected = await uow.bulk_update(lambda u: u.id > 0, set_field("first_name", "jw"))
        print(f"  {affected} rows")
        show("stored", await store.all())

        # 7. Delete a row that does not exist
        print("\n7. Delete missing row:")
        try:
            await uow.delete(User(id=5))
        except StoreError as e:
            print(f"  error: {e}")
        print(f"  tracked entries: {len(uow.tracker)}")


if __name__ == "__main__":
    run(main)
