"""
Example 02: Async Repository with Hooks

This example demonstrates the async stack over aiosqlite and the
authorization and lifecycle hooks of a repository.
"""

import asyncio
import tempfile
from pathlib import Path

from pydantic import BaseModel

from row_crud import (
    AsyncDatabase,
    ConnectionConfig,
    NamingPolicy,
    PolicyRejectionError,
    RepositoryHooks,
    describe,
)


class Customer(BaseModel):
    """Customer stored in a snake_case table."""

    Id: int = 0
    FullName: str
    EmailAddress: str


def only_example_addresses(action, customer, executor):
    if not customer.EmailAddress.endswith("@example.com"):
        return False, "customers must use an example.com address"
    return True


async def record_audit(action, customer, executor):
    await executor.execute(
        "INSERT INTO audit (action, record_id) VALUES (@action, @record_id)",
        {"action": action.value, "record_id": customer.Id},
    )


async def main():
    db_dir = Path(tempfile.mkdtemp())
    db_path = db_dir / "example.db"

    config = ConnectionConfig(
        driver="sqlite",
        database=str(db_path),
        pool_size=2,
        naming=NamingPolicy.SNAKE_CASE,
    )
    db = AsyncDatabase.from_config(config)
    await db.engine.execute(
        "CREATE TABLE customer (id INTEGER PRIMARY KEY, full_name TEXT, email_address TEXT)"
    )
    await db.engine.execute("CREATE TABLE audit (action TEXT, record_id INTEGER)")

    hooks = RepositoryHooks(allow_save=only_example_addresses, after_save=record_audit)
    customers = db.repository(describe(Customer).auto_fields().build(), hooks)

    print("=== Async repository ===\n")

    print("1. Save an allowed customer:")
    alice = await customers.save(Customer(FullName="Alice", EmailAddress="alice@example.com"))
    print(f"   Saved customer #{alice.Id}\n")

    print("2. Save a vetoed customer:")
    try:
        await customers.save(Customer(FullName="Mallory", EmailAddress="mallory@evil.test"))
    except PolicyRejectionError as e:
        print(f"   Rejected: {e}\n")

    print("3. Audit trail:")
    for row in await db.engine.query_all("SELECT action, record_id FROM audit"):
        print(f"   - {row['action']} #{row['record_id']}")
    print()

    await db.close()
    for leftover in db_dir.iterdir():
        leftover.unlink()
    db_dir.rmdir()


if __name__ == "__main__":
    asyncio.run(main())
