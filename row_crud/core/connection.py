"""Connection configuration and pooled connection managers.

``ConnectionConfig`` carries both the driver settings and the statement
synthesis settings (naming policy, default schema) so one object wires a
whole Database. The managers resolve the backend's adapter lazily by module
path, so optional drivers (psycopg, pyodbc) are only imported when used.
"""

from __future__ import annotations

import importlib
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from pydantic import BaseModel, Field, field_validator

from row_crud.core.enums import DatabaseBackend, NamingPolicy
from row_crud.core.exceptions import AdapterError, ConnectionError  # noqa: A004

logger = logging.getLogger(__name__)


class ConnectionConfig(BaseModel):
    """Driver and statement synthesis settings for one database.

    ``extra`` is passed through to the driver: libpq keywords for
    PostgreSQL, ODBC keywords (plus ``driver``) for SQL Server, and a
    ``pragmas`` mapping for SQLite.
    """

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = Field(default=5, ge=1)
    pool_timeout: int = Field(default=30, ge=0)
    naming: NamingPolicy = NamingPolicy.VERBATIM
    default_schema: str | None = None
    extra: dict[str, Any] = {}

    @field_validator("driver")
    @classmethod
    def _normalize_driver(cls, value: str) -> str:
        return value.strip().lower()


# backend -> (module path, sync adapter class, async adapter class)
_ADAPTERS: dict[DatabaseBackend, tuple[str, str, str]] = {
    DatabaseBackend.SQLITE: ("row_crud.adapters.sqlite", "SqliteSyncAdapter", "SqliteAsyncAdapter"),
    DatabaseBackend.POSTGRESQL: (
        "row_crud.adapters.postgresql",
        "PostgresqlSyncAdapter",
        "PostgresqlAsyncAdapter",
    ),
    DatabaseBackend.SQLSERVER: (
        "row_crud.adapters.sqlserver",
        "SqlServerSyncAdapter",
        "SqlServerAsyncAdapter",
    ),
}


def resolve_backend(driver: str) -> DatabaseBackend:
    """Map a driver name onto a supported backend.

    Raises:
        AdapterError: If no adapter exists for *driver*.
    """
    try:
        return DatabaseBackend(driver.lower())
    except ValueError:
        raise AdapterError(f"Unsupported database driver: {driver}") from None


def _load_adapter(driver: str, asynchronous: bool) -> Any:
    module_path, sync_name, async_name = _ADAPTERS[resolve_backend(driver)]
    class_name = async_name if asynchronous else sync_name
    try:
        return getattr(importlib.import_module(module_path), class_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter {class_name} for '{driver}': {e}") from e


class _ManagerBase:
    def __init__(self, config: ConnectionConfig, asynchronous: bool) -> None:
        self.config = config
        self.backend = resolve_backend(config.driver)
        self._adapter = _load_adapter(config.driver, asynchronous)
        self._pool: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter


class ConnectionManager(_ManagerBase):
    """Owns the sync connection pool of one database."""

    def __init__(self, config: ConnectionConfig) -> None:
        super().__init__(config, asynchronous=False)

    def initialize_pool(self) -> Any:
        """Create the pool on first use and return it."""
        if self._pool is None:
            logger.debug("Opening %s pool of %d", self.backend.value, self.config.pool_size)
            try:
                self._pool = self._adapter.create_pool(self.config)
            except Exception as e:
                raise ConnectionError(f"Cannot open {self.backend.value} pool: {e}") from e
        return self._pool

    @contextmanager
    def get_connection(self):  # type: ignore[no-untyped-def]
        """Borrow a pooled connection for the duration of the block."""
        pool = self.initialize_pool()
        connection = self._adapter.acquire_connection(pool)
        try:
            yield connection
        finally:
            self._adapter.release_connection(connection, pool)

    def close_pool(self) -> None:
        if self._pool is None:
            return
        self._adapter.close_pool(self._pool)
        self._pool = None
        logger.debug("Closed %s pool", self.backend.value)


class AsyncConnectionManager(_ManagerBase):
    """Owns the async connection pool of one database."""

    def __init__(self, config: ConnectionConfig) -> None:
        super().__init__(config, asynchronous=True)

    async def initialize_pool(self) -> Any:
        if self._pool is None:
            logger.debug("Opening async %s pool of %d", self.backend.value, self.config.pool_size)
            try:
                self._pool = await self._adapter.create_pool_async(self.config)
            except Exception as e:
                raise ConnectionError(f"Cannot open {self.backend.value} pool: {e}") from e
        return self._pool

    @asynccontextmanager
    async def get_connection(self):  # type: ignore[no-untyped-def]
        pool = await self.initialize_pool()
        connection = await self._adapter.acquire_connection_async(pool)
        try:
            yield connection
        finally:
            await self._adapter.release_connection_async(connection, pool)

    async def close_pool(self) -> None:
        if self._pool is None:
            return
        await self._adapter.close_pool_async(self._pool)
        self._pool = None
        logger.debug("Closed async %s pool", self.backend.value)
