"""Integration tests against a real file-backed SQLite database.

Covers: synthesized statements executing end-to-end, identity write-back,
merge by alternate key, partial updates, hooks, transactional rollback, and
the async stack over aiosqlite.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import ClassVar, Optional

import pytest
from pydantic import BaseModel

from row_crud.core.connection import ConnectionConfig
from row_crud.core.database import AsyncDatabase, Database
from row_crud.core.enums import NamingPolicy, RepositoryAction
from row_crud.core.exceptions import (
    PolicyRejectionError,
    PoolError,
    QueryExecutionError,
    RepositoryError,
)
from row_crud.mapping.builder import describe
from row_crud.mapping.descriptor import column
from row_crud.repository.base import Repository
from row_crud.repository.custom import CustomSql
from row_crud.repository.hooks import RepositoryHooks

pytestmark = pytest.mark.integration

BUSINESS_DDL = (
    "CREATE TABLE Business ("
    "Id INTEGER PRIMARY KEY AUTOINCREMENT, UserId TEXT NOT NULL UNIQUE, "
    "DisplayName TEXT, Email TEXT, NextInvoiceNumber INTEGER, "
    "DateCreated TEXT, DateModified TEXT)"
)
AUDIT_DDL = "CREATE TABLE audit (action TEXT, record_id INTEGER)"
CUSTOMER_DDL = "CREATE TABLE customer (id INTEGER PRIMARY KEY, full_name TEXT, email_address TEXT)"


@dataclass
class Business:
    __alternate_key__: ClassVar[tuple[str, ...]] = ("UserId",)

    Id: int = 0
    UserId: str = ""
    DisplayName: str = ""
    Email: str = ""
    NextInvoiceNumber: int = 1000
    DateCreated: str = field(default="2024-01-01", metadata=column(not_updated=True))
    DateModified: Optional[str] = field(default=None, metadata=column(not_inserted=True))


class Customer(BaseModel):
    Id: int = 0
    FullName: str
    EmailAddress: str


BUSINESS = describe(Business).auto_fields().build()


@pytest.fixture
def database(sqlite_file_config: ConnectionConfig) -> Iterator[Database]:
    db = Database.from_config(sqlite_file_config)
    db.engine.execute(BUSINESS_DDL)
    db.engine.execute(AUDIT_DDL)
    yield db
    db.close()


@pytest.fixture
def businesses(database: Database) -> Repository[Business]:
    return database.repository(BUSINESS)


def _count(database: Database, table: str = "Business") -> int:
    return database.engine.execute_scalar(f"SELECT COUNT(*) FROM {table}")


class TestRoundTrip:
    def test_save_then_get(self, businesses: Repository[Business]) -> None:
        record = businesses.save(Business(UserId="acme", DisplayName="Acme", Email="a@acme.io"))
        assert record.Id > 0
        assert businesses.get(record.Id) == record

    def test_update_existing(self, businesses: Repository[Business]) -> None:
        record = businesses.save(Business(UserId="acme", DisplayName="Acme"))
        record.DisplayName = "Acme Corp"
        businesses.save(record)
        assert businesses.must_get(record.Id).DisplayName == "Acme Corp"

    def test_not_updated_column_is_kept(self, businesses: Repository[Business]) -> None:
        record = businesses.save(Business(UserId="acme", DateCreated="2024-01-01"))
        record.DateCreated = "1999-12-31"
        businesses.save(record)
        assert businesses.must_get(record.Id).DateCreated == "2024-01-01"

    def test_not_inserted_column_is_skipped(self, businesses: Repository[Business]) -> None:
        record = businesses.save(Business(UserId="acme", DateModified="2024-02-02"))
        assert businesses.must_get(record.Id).DateModified is None

        record.DateModified = "2024-03-03"
        businesses.save(record)
        assert businesses.must_get(record.Id).DateModified == "2024-03-03"

    def test_get_missing(self, businesses: Repository[Business]) -> None:
        assert businesses.get(12345) is None

    def test_constraint_violation_is_wrapped(
        self, businesses: Repository[Business]
    ) -> None:
        businesses.save(Business(UserId="acme"))
        with pytest.raises(RepositoryError) as exc_info:
            businesses.save(Business(UserId="acme"))
        assert exc_info.value.action is RepositoryAction.INSERT
        assert isinstance(exc_info.value.__cause__, QueryExecutionError)


class TestMerge:
    def test_reuses_existing_row(
        self, database: Database, businesses: Repository[Business]
    ) -> None:
        original = businesses.save(Business(UserId="acme", DisplayName="Acme"))
        seen: list[tuple[str, str]] = []

        merged = businesses.merge(
            Business(UserId="acme", DisplayName="Acme Two"),
            lambda new, existing: seen.append((new.DisplayName, existing.DisplayName)),
        )

        assert merged.Id == original.Id
        assert seen == [("Acme Two", "Acme")]
        assert _count(database) == 1
        assert businesses.must_get(original.Id).DisplayName == "Acme Two"

    def test_inserts_new_row(self, database: Database, businesses: Repository[Business]) -> None:
        businesses.save(Business(UserId="acme"))
        merged = businesses.merge(Business(UserId="globex"))
        assert merged.Id > 0
        assert _count(database) == 2

    def test_get_alternate(self, businesses: Repository[Business]) -> None:
        stored = businesses.save(Business(UserId="acme", Email="x@acme.io"))
        assert businesses.get_alternate(Business(UserId="acme")) == stored
        assert businesses.get_alternate(Business(UserId="nobody")) is None


class TestPartialUpdates:
    def test_update_columns_touches_only_named_fields(
        self, businesses: Repository[Business]
    ) -> None:
        record = businesses.save(Business(UserId="acme", DisplayName="Acme", Email="old@acme.io"))
        record.DisplayName = "Renamed"
        record.Email = "new@acme.io"

        businesses.update_columns(record, ["displayname"])

        stored = businesses.must_get(record.Id)
        assert stored.DisplayName == "Renamed"
        assert stored.Email == "old@acme.io"

    def test_update_partial(self, businesses: Repository[Business]) -> None:
        record = businesses.save(Business(UserId="acme"))

        def bump(b: Business) -> None:
            b.NextInvoiceNumber += 1

        businesses.update_partial(record.Id, bump)
        assert businesses.must_get(record.Id).NextInvoiceNumber == 1001

    def test_update_partial_creates(self, businesses: Repository[Business]) -> None:
        created = businesses.update_partial(
            999,
            lambda b: setattr(b, "DisplayName", "Fresh"),
            create_if_absent=lambda: Business(UserId="fresh"),
        )
        assert businesses.must_get(created.Id).DisplayName == "Fresh"


class TestTransactions:
    def test_rolled_back_delete_keeps_row(
        self, database: Database, businesses: Repository[Business]
    ) -> None:
        record = businesses.save(Business(UserId="acme"))

        with pytest.raises(RuntimeError, match="undo"), database.transaction() as tx:
            businesses.delete(record, transaction=tx)
            assert businesses.get(record.Id, transaction=tx) is None
            raise RuntimeError("undo")

        assert businesses.get(record.Id) == record

    def test_committed_delete(self, database: Database, businesses: Repository[Business]) -> None:
        record = businesses.save(Business(UserId="acme"))
        with database.transaction() as tx:
            businesses.delete(record, transaction=tx)
        assert businesses.get(record.Id) is None

    def test_run_in_transaction_composes_calls(
        self, database: Database, businesses: Repository[Business]
    ) -> None:
        def work(connection, tx) -> int:
            first = businesses.save(Business(UserId="one"), transaction=tx)
            businesses.save(Business(UserId="two"), transaction=tx)
            businesses.delete(first, transaction=tx)
            return first.Id

        deleted_id = database.run_in_transaction(work)
        assert businesses.get(deleted_id) is None
        assert _count(database) == 1

    def test_run_in_transaction_rolls_back(
        self, database: Database, businesses: Repository[Business]
    ) -> None:
        def work(connection, tx) -> None:
            businesses.save(Business(UserId="one"), transaction=tx)
            businesses.save(Business(UserId="one"), transaction=tx)

        with pytest.raises(RepositoryError):
            database.run_in_transaction(work)
        assert _count(database) == 0


class TestHooks:
    def test_veto_leaves_row(self, database: Database) -> None:
        repo = database.repository(
            BUSINESS,
            RepositoryHooks(allow_delete=lambda record, executor: (False, "protected")),
        )
        record = repo.save(Business(UserId="acme"))
        with pytest.raises(PolicyRejectionError, match="protected"):
            repo.delete(record)
        assert repo.get(record.Id) == record

    def test_hook_writes_through_same_transaction(self, database: Database) -> None:
        def audit(action: RepositoryAction, record: Business, executor) -> None:
            executor.execute(
                "INSERT INTO audit (action, record_id) VALUES (@action, @id)",
                {"action": action.value, "id": record.Id},
            )

        repo = database.repository(BUSINESS, RepositoryHooks(after_save=audit))

        with pytest.raises(RuntimeError), database.transaction() as tx:
            repo.save(Business(UserId="acme"), transaction=tx)
            raise RuntimeError("rollback both")

        assert _count(database, "audit") == 0

        record = repo.save(Business(UserId="acme"))
        rows = database.engine.query_all("SELECT action, record_id FROM audit")
        assert rows == [{"action": "insert", "record_id": record.Id}]



class TestCustomSql:
    def test_custom_insert_and_get(self, database: Database) -> None:
        repo = database.repository(
            BUSINESS,
            custom_sql=CustomSql(
                insert=(
                    "INSERT INTO Business (UserId, DisplayName, Email, NextInvoiceNumber, "
                    "DateCreated) VALUES (@UserId, upper(@DisplayName), @Email, "
                    "@NextInvoiceNumber, @DateCreated) RETURNING Id;"
                ),
                get="SELECT * FROM Business WHERE Id = @id AND Email <> ''",
            ),
        )
        listed = repo.save(Business(UserId="acme", DisplayName="Acme", Email="a@acme.io"))
        unlisted = repo.save(Business(UserId="umbrella", DisplayName="Umbrella"))

        assert repo.must_get(listed.Id).DisplayName == "ACME"
        assert repo.get(unlisted.Id) is None

        unlisted.Email = "u@umbrella.io"
        repo.save(unlisted)
        assert repo.must_get(unlisted.Id).DisplayName == "Umbrella"


class TestPoolWaiting:
    def test_checkout_timeout_is_a_repository_error(
        self, sqlite_file_config: ConnectionConfig
    ) -> None:
        config = sqlite_file_config.model_copy(update={"pool_size": 1, "pool_timeout": 0})
        db = Database.from_config(config)
        db.engine.execute(BUSINESS_DDL)
        repo = db.repository(BUSINESS)

        with db.transaction():
            with pytest.raises(RepositoryError) as exc_info:
                repo.get(1)
        assert exc_info.value.action is RepositoryAction.GET
        assert isinstance(exc_info.value.__cause__, PoolError)

        assert repo.get(1) is None
        db.close()

    async def test_callers_wait_for_a_free_connection(
        self, sqlite_file_config: ConnectionConfig
    ) -> None:
        db = AsyncDatabase.from_config(sqlite_file_config)
        await db.engine.execute(BUSINESS_DDL)
        repo = db.repository(BUSINESS)

        results = await asyncio.gather(*(repo.get(key) for key in range(1, 6)))
        assert results == [None] * 5
        await db.close()

class TestSnakeCaseNaming:
    def test_pydantic_round_trip(self, sqlite_file_config: ConnectionConfig) -> None:
        config = sqlite_file_config.model_copy(update={"naming": NamingPolicy.SNAKE_CASE})
        db = Database.from_config(config)
        db.engine.execute(CUSTOMER_DDL)
        customers = db.repository(describe(Customer).auto_fields().build())

        saved = customers.save(Customer(FullName="Ada Lovelace", EmailAddress="ada@example.com"))
        assert customers.statements.table_name == "main.customer"
        assert customers.get(saved.Id) == saved
        db.close()


class TestAsyncStack:
    async def test_round_trip_and_rollback(self, sqlite_file_config: ConnectionConfig) -> None:
        db = AsyncDatabase.from_config(sqlite_file_config)
        await db.engine.execute(BUSINESS_DDL)
        repo = db.repository(BUSINESS)

        record = await repo.save(Business(UserId="acme", DisplayName="Acme"))
        assert await repo.get(record.Id) == record

        with pytest.raises(RuntimeError):
            async with db.transaction() as tx:
                await repo.delete(record, transaction=tx)
                raise RuntimeError("undo")
        assert await repo.get(record.Id) == record

        merged = await repo.merge(Business(UserId="acme", DisplayName="Merged"))
        assert merged.Id == record.Id
        assert (await repo.must_get(record.Id)).DisplayName == "Merged"

        await db.close()
