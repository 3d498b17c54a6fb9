"""PostgreSQL adapter - sync and async using psycopg (v3+).

Rows come back as dicts (``dict_row``). Unquoted aliases are lower-cased by
PostgreSQL, which the model mapper tolerates by matching case-insensitively.
"""

from __future__ import annotations

from typing import Any

from row_crud.adapters.pooling import (
    AsyncConnectionPool,
    AsyncPooledAdapter,
    ConnectionPool,
    PooledAdapter,
)
from row_crud.core.connection import ConnectionConfig


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields and ``extra``."""
    from psycopg.conninfo import make_conninfo

    options: dict[str, Any] = {
        "host": config.host,
        "port": config.port,
        "user": config.user,
        "password": config.password,
        "dbname": config.database,
        "connect_timeout": config.pool_timeout,
    }
    options.update(config.extra)
    return make_conninfo(**{k: v for k, v in options.items() if v is not None})


class PostgresqlSyncAdapter(PooledAdapter):
    """Synchronous PostgreSQL adapter."""

    label = "PostgreSQL"

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def create_pool(self, config: ConnectionConfig) -> ConnectionPool:
        import psycopg
        from psycopg.rows import dict_row

        conninfo = _build_conninfo(config)
        connections = [
            psycopg.connect(conninfo, row_factory=dict_row) for _ in range(config.pool_size)
        ]
        return self.make_pool(connections, config)

    def execute(self, connection: Any, sql: str, params: dict[str, Any] | None = None) -> Any:
        return connection.execute(sql, params)


class PostgresqlAsyncAdapter(AsyncPooledAdapter):
    """Asynchronous PostgreSQL adapter on ``psycopg.AsyncConnection``."""

    label = "PostgreSQL"

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    async def create_pool_async(self, config: ConnectionConfig) -> AsyncConnectionPool:
        import psycopg
        from psycopg.rows import dict_row

        conninfo = _build_conninfo(config)
        connections = [
            await psycopg.AsyncConnection.connect(conninfo, row_factory=dict_row)
            for _ in range(config.pool_size)
        ]
        return self.make_pool(connections, config)

    async def execute_async(
        self, connection: Any, sql: str, params: dict[str, Any] | None = None
    ) -> Any:
        return await connection.execute(sql, params)
