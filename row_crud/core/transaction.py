"""Transactions.

A transaction owns one pooled connection from ``__enter__`` until
``__exit__``. Leaving the block normally commits, leaving it with an
exception rolls back, and the connection goes back to the pool either way.

Transactions expose the same execution surface as the engines
(``query_one``, ``query_all``, ``execute_scalar``, ``execute``), which is
what lets repository actions and hooks take either one as their executor.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

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
from row_crud.core.exceptions import TransactionStateError

logger = logging.getLogger(__name__)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class _TransactionBase:
    """Connection slot and state bookkeeping shared by both variants."""

    def __init__(self, connection_manager: Any) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter
        self._pool: Any = None
        self._connection: Any = None
        self._state = _TxState.IDLE

    @property
    def connection(self) -> Any:
        """The driver connection the transaction runs on."""
        return self._connection

    @property
    def state(self) -> str:
        return self._state.value

    def _require_active(self) -> None:
        if self._state is not _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")

    def _check_can_commit(self) -> None:
        if self._state in (_TxState.COMMITTED, _TxState.ROLLED_BACK):
            raise TransactionStateError(self._state.value, "commit")

    def _check_can_rollback(self) -> None:
        if self._state is _TxState.COMMITTED:
            raise TransactionStateError(self._state.value, "rollback")

    def _settle(self, state: _TxState) -> None:
        self._state = state
        logger.debug("Transaction %s", state.value)


class TransactionManager(_TransactionBase):
    """Synchronous transaction context manager."""

    def __enter__(self) -> TransactionManager:
        self._pool = self._connection_manager.initialize_pool()
        self._connection = self._adapter.acquire_connection(self._pool)
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state is _TxState.ACTIVE:
                if exc_type is None:
                    self.commit()
                else:
                    self.rollback()
        finally:
            self._adapter.release_connection(self._connection, self._pool)

    def _cursor(self, sql: str, params: dict[str, Any] | None) -> Any:
        self._require_active()
        return run_statement(self._adapter, self._connection, sql, params)

    def query_one(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        return single_row(sql, rows_to_dicts(self._cursor(sql, params)), mapper)

    def query_all(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        return map_rows(rows_to_dicts(self._cursor(sql, params)), mapper)

    def execute_scalar(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        return scalar_of(self._cursor(sql, params))

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> int:
        return int(self._cursor(sql, params).rowcount)

    def commit(self) -> None:
        """Commit now; the block's exit then leaves the connection alone."""
        self._check_can_commit()
        self._connection.commit()
        self._settle(_TxState.COMMITTED)

    def rollback(self) -> None:
        """Roll back now; the block's exit then leaves the connection alone."""
        self._check_can_rollback()
        self._connection.rollback()
        self._settle(_TxState.ROLLED_BACK)


class AsyncTransactionManager(_TransactionBase):
    """Asynchronous transaction context manager."""

    async def __aenter__(self) -> AsyncTransactionManager:
        self._pool = await self._connection_manager.initialize_pool()
        self._connection = await self._adapter.acquire_connection_async(self._pool)
        self._state = _TxState.ACTIVE
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state is _TxState.ACTIVE:
                if exc_type is None:
                    await self.commit()
                else:
                    await self.rollback()
        finally:
            await self._adapter.release_connection_async(self._connection, self._pool)

    async def _cursor(self, sql: str, params: dict[str, Any] | None) -> Any:
        self._require_active()
        return await run_statement_async(self._adapter, self._connection, sql, params)

    async def query_one(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        rows = await rows_to_dicts_async(await self._cursor(sql, params))
        return single_row(sql, rows, mapper)

    async def query_all(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        mapper: Any | None = None,
    ) -> Any:
        return map_rows(await rows_to_dicts_async(await self._cursor(sql, params)), mapper)

    async def execute_scalar(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        return await scalar_of_async(await self._cursor(sql, params))

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> int:
        return int((await self._cursor(sql, params)).rowcount)

    async def commit(self) -> None:
        self._check_can_commit()
        await self._connection.commit()
        self._settle(_TxState.COMMITTED)

    async def rollback(self) -> None:
        self._check_can_rollback()
        await self._connection.rollback()
        self._settle(_TxState.ROLLED_BACK)
