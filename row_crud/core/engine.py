"""Statement execution engines.

An engine is the executor repositories fall back to when no transaction is
passed: every call borrows a pooled connection for just that statement.
Writes (``execute``, ``execute_scalar``) commit on success and roll back on
failure before the connection is returned.

Statements use ``@name`` placeholders; the adapter's paramstyle decides how
they are bound.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from row_crud.core.connection import AsyncConnectionManager, ConnectionConfig, ConnectionManager
from row_crud.core.cursor import (
    map_rows,
    rows_to_dicts,
    rows_to_dicts_async,
    run_statement,
    run_statement_async,
    scalar_of,
    scalar_of_async,
    single_row,
)
from row_crud.core.transaction import AsyncTransactionManager, TransactionManager

R = TypeVar("R")


def _rowcount(cursor: Any) -> int:
    return int(cursor.rowcount)


async def _rowcount_async(cursor: Any) -> int:
    return int(cursor.rowcount)


class Engine:
    """Synchronous execution engine over a ConnectionManager."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> Engine:
        return cls(ConnectionManager(config))

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    def _read(self, sql: str, params: dict[str, Any] | None) -> list[dict[str, Any]]:
        with self._connection_manager.get_connection() as conn:
            cursor = run_statement(self._connection_manager.adapter, conn, sql, params)
            return rows_to_dicts(cursor)

    def _write(
        self,
        sql: str,
        params: dict[str, Any] | None,
        collect: Callable[[Any], R],
    ) -> R:
        with self._connection_manager.get_connection() as conn:
            try:
                cursor = run_statement(self._connection_manager.adapter, conn, sql, params)
                result = collect(cursor)
            except Exception:
                conn.rollback()
                raise
            conn.commit()
            return result

    def query_one(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        """Fetch zero or one row.

        Raises:
            MultipleRowsError: If more than one row matches.
        """
        return single_row(sql, self._read(sql, params), mapper)

    def query_all(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        """Fetch every matching row."""
        return map_rows(self._read(sql, params), mapper)

    def execute_scalar(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        """Run a statement and return the first value of its first row.

        INSERT statements use this to read back the generated identity.
        """
        return self._write(sql, params, scalar_of)

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> int:
        """Run a write statement and return the affected row count."""
        return self._write(sql, params, _rowcount)

    def transaction(self) -> TransactionManager:
        """Transaction that takes its own pooled connection on enter."""
        return TransactionManager(self._connection_manager)


class AsyncEngine:
    """Asynchronous execution engine over an AsyncConnectionManager."""

    def __init__(self, connection_manager: AsyncConnectionManager) -> None:
        self._connection_manager = connection_manager

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> AsyncEngine:
        return cls(AsyncConnectionManager(config))

    @property
    def connection_manager(self) -> AsyncConnectionManager:
        return self._connection_manager

    async def _read(self, sql: str, params: dict[str, Any] | None) -> list[dict[str, Any]]:
        async with self._connection_manager.get_connection() as conn:
            cursor = await run_statement_async(
                self._connection_manager.adapter, conn, sql, params
            )
            return await rows_to_dicts_async(cursor)

    async def _write(
        self,
        sql: str,
        params: dict[str, Any] | None,
        collect: Callable[[Any], Awaitable[R]],
    ) -> R:
        async with self._connection_manager.get_connection() as conn:
            try:
                cursor = await run_statement_async(
                    self._connection_manager.adapter, conn, sql, params
                )
                result = await collect(cursor)
            except Exception:
                await conn.rollback()
                raise
            await conn.commit()
            return result

    async def query_one(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        return single_row(sql, await self._read(sql, params), mapper)

    async def query_all(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        return map_rows(await self._read(sql, params), mapper)

    async def execute_scalar(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        return await self._write(sql, params, scalar_of_async)

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> int:
        return await self._write(sql, params, _rowcount_async)

    def transaction(self) -> AsyncTransactionManager:
        """Async transaction; the connection is acquired in ``__aenter__``."""
        return AsyncTransactionManager(self._connection_manager)
