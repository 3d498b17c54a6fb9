"""Queue-backed connection pools shared by the bundled adapters.

A pool holds a fixed set of open connections. Acquiring takes an idle one,
waiting up to ``pool_timeout`` seconds for another caller to release one;
``PoolError`` is raised only when that wait runs out. Adapters mix in
``PooledAdapter`` / ``AsyncPooledAdapter`` and only implement opening
connections and executing statements.
"""

from __future__ import annotations

import asyncio
import logging
import queue
from collections.abc import Iterable
from typing import Any

from row_crud.core.connection import ConnectionConfig
from row_crud.core.exceptions import PoolError

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Blocking pool over ``queue.Queue``; ``len()`` is the idle count."""

    def __init__(self, connections: Iterable[Any], timeout: float, label: str) -> None:
        self._idle: queue.Queue[Any] = queue.Queue()
        for connection in connections:
            self._idle.put(connection)
        self.timeout = timeout
        self.label = label

    def __len__(self) -> int:
        return self._idle.qsize()

    def get(self) -> Any:
        try:
            return self._idle.get(timeout=self.timeout)
        except queue.Empty:
            raise PoolError(
                f"No {self.label} connection became available within {self.timeout}s"
            ) from None

    def put(self, connection: Any) -> None:
        self._idle.put(connection)

    def close(self) -> None:
        """Close the idle connections; checked-out ones are left to their holders."""
        while True:
            try:
                connection = self._idle.get_nowait()
            except queue.Empty:
                return
            connection.close()


class AsyncConnectionPool:
    """Pool over ``asyncio.Queue`` whose connections have an awaitable ``close``."""

    def __init__(self, connections: Iterable[Any], timeout: float, label: str) -> None:
        self._idle: asyncio.Queue[Any] = asyncio.Queue()
        for connection in connections:
            self._idle.put_nowait(connection)
        self.timeout = timeout
        self.label = label

    def __len__(self) -> int:
        return self._idle.qsize()

    async def get(self) -> Any:
        try:
            return self._idle.get_nowait()
        except asyncio.QueueEmpty:
            pass
        logger.debug("%s pool exhausted, waiting up to %ss", self.label, self.timeout)
        try:
            return await asyncio.wait_for(self._idle.get(), self.timeout)
        except asyncio.TimeoutError:
            raise PoolError(
                f"No {self.label} connection became available within {self.timeout}s"
            ) from None

    async def put(self, connection: Any) -> None:
        self._idle.put_nowait(connection)

    async def close(self) -> None:
        while True:
            try:
                connection = self._idle.get_nowait()
            except asyncio.QueueEmpty:
                return
            await connection.close()


class PooledAdapter:
    """Sync pool operations; ``label`` names the backend in errors."""

    label = "database"

    def make_pool(self, connections: Iterable[Any], config: ConnectionConfig) -> ConnectionPool:
        return ConnectionPool(connections, config.pool_timeout, self.label)

    def acquire_connection(self, pool: ConnectionPool) -> Any:
        return pool.get()

    def release_connection(self, connection: Any, pool: ConnectionPool) -> None:
        pool.put(connection)

    def close_pool(self, pool: ConnectionPool) -> None:
        pool.close()


class AsyncPooledAdapter:
    """Async counterpart of ``PooledAdapter``."""

    label = "database"

    def make_pool(
        self, connections: Iterable[Any], config: ConnectionConfig
    ) -> AsyncConnectionPool:
        return AsyncConnectionPool(connections, config.pool_timeout, self.label)

    async def acquire_connection_async(self, pool: AsyncConnectionPool) -> Any:
        return await pool.get()

    async def release_connection_async(self, connection: Any, pool: AsyncConnectionPool) -> None:
        await pool.put(connection)

    async def close_pool_async(self, pool: AsyncConnectionPool) -> None:
        await pool.close()
