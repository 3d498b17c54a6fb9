"""SQLite adapter - sync (sqlite3 stdlib) and async (aiosqlite).

Requires SQLite 3.35+ for ``INSERT ... RETURNING``. Each pooled connection
opens the same database file, so ``:memory:`` is only useful with
``pool_size=1``.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from row_crud.adapters.pooling import (
    AsyncConnectionPool,
    AsyncPooledAdapter,
    ConnectionPool,
    PooledAdapter,
)
from row_crud.core.connection import ConnectionConfig


def _pragmas(config: ConnectionConfig) -> list[str]:
    """PRAGMA statements run on every new connection."""
    settings: dict[str, Any] = {"journal_mode": "WAL", "foreign_keys": "ON"}
    settings.update(config.extra.get("pragmas", {}))
    return [f"PRAGMA {name}={value}" for name, value in settings.items()]


class SqliteSyncAdapter(PooledAdapter):
    """Synchronous SQLite adapter using stdlib sqlite3."""

    label = "SQLite"

    @property
    def paramstyle(self) -> str:
        return "named"

    def create_pool(self, config: ConnectionConfig) -> ConnectionPool:
        return self.make_pool((self._open(config) for _ in range(config.pool_size)), config)

    @staticmethod
    def _open(config: ConnectionConfig) -> sqlite3.Connection:
        conn = sqlite3.connect(config.database, timeout=config.pool_timeout)
        conn.row_factory = sqlite3.Row
        for pragma in _pragmas(config):
            conn.execute(pragma)
        return conn

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        return connection.execute(sql, params or {})


class SqliteAsyncAdapter(AsyncPooledAdapter):
    """Asynchronous SQLite adapter using aiosqlite."""

    label = "SQLite"

    @property
    def paramstyle(self) -> str:
        return "named"

    async def create_pool_async(self, config: ConnectionConfig) -> AsyncConnectionPool:
        connections = [await self._open(config) for _ in range(config.pool_size)]
        return self.make_pool(connections, config)

    @staticmethod
    async def _open(config: ConnectionConfig) -> Any:
        import aiosqlite

        conn = await aiosqlite.connect(config.database, timeout=config.pool_timeout)
        conn.row_factory = aiosqlite.Row
        for pragma in _pragmas(config):
            await conn.execute(pragma)
        return conn

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return await connection.execute(sql, params or {})
