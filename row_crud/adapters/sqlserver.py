"""SQL Server adapter - sync and async using pyodbc.

pyodbc has no native async API; the async adapter runs every driver call in
a worker thread and exposes awaitable connection and cursor wrappers with the
same surface the engine uses for aiosqlite and psycopg.
"""

from __future__ import annotations

import asyncio
from typing import Any

from row_crud.adapters.pooling import (
    AsyncConnectionPool,
    AsyncPooledAdapter,
    ConnectionPool,
    PooledAdapter,
)
from row_crud.core.connection import ConnectionConfig

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


def _build_connection_string(config: ConnectionConfig) -> str:
    """Build an ODBC connection string from config fields and ``extra``.

    ``extra["driver"]`` selects the ODBC driver; every other ``extra`` entry
    is appended verbatim as ``KEY=value``.
    """
    extra = dict(config.extra)
    driver = extra.pop("driver", DEFAULT_ODBC_DRIVER)
    server = config.host or "localhost"
    if config.port is not None:
        server = f"{server},{config.port}"

    parts = [f"DRIVER={{{driver}}}", f"SERVER={server}", f"DATABASE={config.database}"]
    if config.user is not None:
        parts.append(f"UID={config.user}")
    if config.password is not None:
        parts.append(f"PWD={config.password}")
    parts.extend(f"{key}={value}" for key, value in extra.items())
    return ";".join(parts)


def _connect(config: ConnectionConfig) -> Any:
    import pyodbc

    return pyodbc.connect(
        _build_connection_string(config),
        autocommit=False,
        timeout=config.pool_timeout,
    )


def _execute(connection: Any, sql: str, params: tuple[Any, ...] | None) -> Any:
    cursor = connection.cursor()
    if params:
        cursor.execute(sql, params)
    else:
        cursor.execute(sql)
    return cursor


class SqlServerSyncAdapter(PooledAdapter):
    """Synchronous SQL Server adapter using pyodbc."""

    label = "SQL Server"

    @property
    def paramstyle(self) -> str:
        return "qmark"

    def create_pool(self, config: ConnectionConfig) -> ConnectionPool:
        return self.make_pool([_connect(config) for _ in range(config.pool_size)], config)

    def execute(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> Any:
        return _execute(connection, sql, params)


class _AsyncCursor:
    """Awaitable view of a pyodbc cursor."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    @property
    def description(self) -> Any:
        return self._cursor.description

    @property
    def rowcount(self) -> int:
        return int(self._cursor.rowcount)

    async def fetchone(self) -> Any:
        return await asyncio.to_thread(self._cursor.fetchone)

    async def fetchall(self) -> list[Any]:
        return await asyncio.to_thread(self._cursor.fetchall)


class _AsyncConnection:
    """Awaitable view of a pyodbc connection."""

    def __init__(self, connection: Any) -> None:
        self._connection = connection

    async def execute(self, sql: str, params: tuple[Any, ...] | None = None) -> _AsyncCursor:
        cursor = await asyncio.to_thread(_execute, self._connection, sql, params)
        return _AsyncCursor(cursor)

    async def commit(self) -> None:
        await asyncio.to_thread(self._connection.commit)

    async def rollback(self) -> None:
        await asyncio.to_thread(self._connection.rollback)

    async def close(self) -> None:
        await asyncio.to_thread(self._connection.close)


class SqlServerAsyncAdapter(AsyncPooledAdapter):
    """Asynchronous SQL Server adapter running pyodbc in worker threads."""

    label = "SQL Server"

    @property
    def paramstyle(self) -> str:
        return "qmark"

    async def create_pool_async(self, config: ConnectionConfig) -> AsyncConnectionPool:
        connections = [
            _AsyncConnection(await asyncio.to_thread(_connect, config))
            for _ in range(config.pool_size)
        ]
        return self.make_pool(connections, config)

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | None = None,
    ) -> Any:
        return await connection.execute(sql, params)
