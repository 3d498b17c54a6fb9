"""Database facade.

A Database ties together the execution engine, the dialect statement
builder and the statement cache, and offers the unit-of-work wrapper::

    db = Database.from_config(ConnectionConfig(driver="sqlite", database="app.db"))
    users = db.repository(describe(User).build())

    def transfer(connection, tx):
        users.save(alice, transaction=tx)
        users.save(bob, transaction=tx)

    db.run_in_transaction(transfer)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from row_crud.core.cache import StatementCache
from row_crud.core.connection import ConnectionConfig
from row_crud.core.engine import AsyncEngine, Engine
from row_crud.core.transaction import AsyncTransactionManager, TransactionManager
from row_crud.mapping.descriptor import RecordTypeDescriptor
from row_crud.repository.base import AsyncRepository, Repository
from row_crud.repository.custom import CustomSql
from row_crud.repository.hooks import RepositoryHooks
from row_crud.sql import builder_for
from row_crud.sql.base import SqlBuilder
from row_crud.sql.statements import SqlStatements

logger = logging.getLogger(__name__)

R = TypeVar("R")


class _DatabaseCore:
    def __init__(self, sql_builder: SqlBuilder, cache: StatementCache | None) -> None:
        self._sql_builder = sql_builder
        self._cache = cache if cache is not None else StatementCache()

    @property
    def sql_builder(self) -> SqlBuilder:
        return self._sql_builder

    @property
    def cache(self) -> StatementCache:
        return self._cache

    def statements(self, descriptor: RecordTypeDescriptor) -> SqlStatements:
        """Return the statement set for *descriptor*, synthesizing it once.

        Raises:
            MappingError: If the record type cannot produce statements.
        """
        return self._cache.get_or_build(
            descriptor.record_type,
            lambda: self._sql_builder.build_statements(descriptor),
            self._sql_builder.dialect_key,
        )


class Database(_DatabaseCore):
    """Synchronous database facade.

    Args:
        engine: Execution engine.
        sql_builder: Dialect statement builder matching the engine's backend.
        cache: Statement cache; pass one instance to share it between databases.
    """

    def __init__(
        self,
        engine: Engine,
        sql_builder: SqlBuilder,
        cache: StatementCache | None = None,
    ) -> None:
        super().__init__(sql_builder, cache)
        self._engine = engine

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        cache: StatementCache | None = None,
    ) -> Database:
        """Wire engine, dialect builder and cache from a ConnectionConfig."""
        builder = builder_for(config.driver, config.naming, config.default_schema)
        return cls(Engine.from_config(config), builder, cache)

    @property
    def engine(self) -> Engine:
        return self._engine

    def repository(
        self,
        descriptor: RecordTypeDescriptor,
        hooks: RepositoryHooks | None = None,
        custom_sql: CustomSql | None = None,
    ) -> Repository[Any]:
        """Create a repository for the described record type."""
        return Repository(self, descriptor, hooks, custom_sql)

    def transaction(self) -> TransactionManager:
        """Begin a transaction on its own pooled connection."""
        return self._engine.transaction()

    def run_in_transaction(self, work: Callable[[Any, TransactionManager], R]) -> R:
        """Run ``work(connection, transaction)`` as one unit of work.

        Commits when *work* returns and rolls back then re-raises when it
        raises. The connection is released on every exit path.
        """
        with self.transaction() as tx:
            try:
                return work(tx.connection, tx)
            except Exception:
                logger.debug("Unit of work failed, rolling back", exc_info=True)
                raise

    def close(self) -> None:
        """Close the engine's connection pool."""
        self._engine.connection_manager.close_pool()


class AsyncDatabase(_DatabaseCore):
    """Asynchronous database facade."""

    def __init__(
        self,
        engine: AsyncEngine,
        sql_builder: SqlBuilder,
        cache: StatementCache | None = None,
    ) -> None:
        super().__init__(sql_builder, cache)
        self._engine = engine

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        cache: StatementCache | None = None,
    ) -> AsyncDatabase:
        """Wire async engine, dialect builder and cache from a ConnectionConfig."""
        builder = builder_for(config.driver, config.naming, config.default_schema)
        return cls(AsyncEngine.from_config(config), builder, cache)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def repository(
        self,
        descriptor: RecordTypeDescriptor,
        hooks: RepositoryHooks | None = None,
        custom_sql: CustomSql | None = None,
    ) -> AsyncRepository[Any]:
        """Create an async repository for the described record type."""
        return AsyncRepository(self, descriptor, hooks, custom_sql)

    def transaction(self) -> AsyncTransactionManager:
        """Begin an async transaction on its own pooled connection."""
        return self._engine.transaction()

    async def run_in_transaction(
        self,
        work: Callable[[Any, AsyncTransactionManager], Awaitable[R]],
    ) -> R:
        """Await ``work(connection, transaction)`` as one unit of work."""
        async with self.transaction() as tx:
            try:
                return await work(tx.connection, tx)
            except Exception:
                logger.debug("Unit of work failed, rolling back", exc_info=True)
                raise

    async def close(self) -> None:
        """Close the engine's connection pool."""
        await self._engine.connection_manager.close_pool()
