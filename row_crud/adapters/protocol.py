"""Database adapter protocols.

An adapter owns everything driver-specific: opening connections, the pool,
and executing one already-bound statement. Engines and transactions only
talk to adapters through these protocols.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from row_crud.core.connection import ConnectionConfig

# Bound parameters: a mapping for named/pyformat styles, a tuple for qmark.
BoundParams = dict[str, Any] | tuple[Any, ...] | None


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style: 'named' (:name), 'pyformat' (%(name)s) or 'qmark' (?)."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Open the configured number of connections."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Take a connection out of the pool, waiting up to ``pool_timeout``."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Return a connection to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close every pooled connection."""
        ...

    def execute(self, connection: Any, sql: str, params: BoundParams = None) -> Any:
        """Execute one statement and return a cursor-like object."""
        ...


@runtime_checkable
class AsyncAdapter(Protocol):
    """Asynchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style: 'named' (:name), 'pyformat' (%(name)s) or 'qmark' (?)."""
        ...

    async def create_pool_async(self, config: ConnectionConfig) -> Any:
        """Open the configured number of connections."""
        ...

    async def acquire_connection_async(self, pool: Any) -> Any:
        """Take a connection out of the pool, waiting up to ``pool_timeout``."""
        ...

    async def release_connection_async(self, connection: Any, pool: Any) -> None:
        """Return a connection to the pool."""
        ...

    async def close_pool_async(self, pool: Any) -> None:
        """Close every pooled connection."""
        ...

    async def execute_async(self, connection: Any, sql: str, params: BoundParams = None) -> Any:
        """Execute one statement and return a cursor-like object."""
        ...
