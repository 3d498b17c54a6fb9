"""
Example 01: Repository

This example shows statement synthesis from a record type, identity
write-back on insert, merge by alternate key, and partial updates.
"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional

from row_crud import ConnectionConfig, Database, column, describe


@dataclass
class Business:
    """Business profile, unique per user."""

    __alternate_key__: ClassVar[tuple[str, ...]] = ("UserId",)

    Id: int = 0
    UserId: str = ""
    DisplayName: str = ""
    Email: str = ""
    NextInvoiceNumber: int = 1000
    DateCreated: str = field(default="2024-01-01", metadata=column(not_updated=True))
    DateModified: Optional[str] = field(default=None, metadata=column(not_inserted=True))


def main():
    db_dir = Path(tempfile.mkdtemp())
    db_path = db_dir / "example.db"

    config = ConnectionConfig(driver="sqlite", database=str(db_path), pool_size=2)
    db = Database.from_config(config)
    db.engine.execute(
        "CREATE TABLE Business ("
        "Id INTEGER PRIMARY KEY AUTOINCREMENT, UserId TEXT NOT NULL UNIQUE, "
        "DisplayName TEXT, Email TEXT, NextInvoiceNumber INTEGER, "
        "DateCreated TEXT, DateModified TEXT)"
    )

    businesses = db.repository(describe(Business).auto_fields().build())

    print("=== Synthesized statements ===\n")
    statements = db.statements(businesses.descriptor)
    print(f"   {statements.get_by_id}")
    print(f"   {statements.insert}")
    print(f"   {statements.update}")
    print(f"   {statements.delete}\n")

    print("1. Insert:")
    acme = businesses.save(Business(UserId="u-1", DisplayName="Acme", Email="hi@acme.test"))
    print(f"   Created business with ID: {acme.Id}\n")

    print("2. Merge by alternate key:")
    merged = businesses.merge(Business(UserId="u-1", DisplayName="Acme Ltd"))
    print(f"   Merged into ID {merged.Id}: {businesses.must_get(merged.Id).DisplayName}\n")

    print("3. Partial update:")
    businesses.update_partial(acme.Id, lambda b: setattr(b, "NextInvoiceNumber", 1001))
    print(f"   Next invoice number: {businesses.must_get(acme.Id).NextInvoiceNumber}\n")

    print("4. Update selected columns:")
    acme = businesses.must_get(acme.Id)
    acme.Email = "billing@acme.test"
    acme.DisplayName = "ignored"
    businesses.update_columns(acme, ["Email"])
    stored = businesses.must_get(acme.Id)
    print(f"   {stored.DisplayName} <{stored.Email}>\n")

    print("5. Delete inside a transaction:")

    def remove(connection, tx):
        businesses.delete(stored, transaction=tx)

    db.run_in_transaction(remove)
    print(f"   Lookup after delete: {businesses.get(acme.Id)}\n")

    db.close()
    db_path.unlink()
    for leftover in db_dir.iterdir():
        leftover.unlink()
    db_dir.rmdir()


if __name__ == "__main__":
    main()
