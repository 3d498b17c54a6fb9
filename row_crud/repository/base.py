"""Generic CRUD repositories.

A repository executes the synthesized statements of one record type through
a Database, runs lifecycle hooks around each action, and turns execution
failures into RepositoryError. Every operation takes an optional
``transaction`` so several calls can share one unit of work::

    users = db.repository(describe(User).build())
    with db.transaction() as tx:
        user = users.must_get(7, transaction=tx)
        users.delete(user, transaction=tx)
"""

from __future__ import annotations

import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from row_crud.core.enums import RepositoryAction
from row_crud.core.exceptions import (
    AdapterError,
    AlternateKeyUnavailableError,
    ExecutionError,
    HydrationError,
    NotFoundError,
    PolicyRejectionError,
    RepositoryError,
)
from row_crud.core.naming import to_snake_case
from row_crud.mapping.descriptor import RecordTypeDescriptor
from row_crud.mapping.model import ModelMapper
from row_crud.repository.custom import CustomSql
from row_crud.repository.hooks import RepositoryHooks, read_verdict

if TYPE_CHECKING:
    from row_crud.core.database import AsyncDatabase, Database
    from row_crud.sql.statements import SqlStatements

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_new_key(value: Any) -> bool:
    """True if *value* is the zero value of a key type (not yet inserted)."""
    if value is None:
        return True
    if isinstance(value, uuid.UUID):
        return value.int == 0
    if isinstance(value, (int, str)):
        return not value
    return False


def _bind_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class _RepositoryCore(Generic[T]):
    """State and helpers shared by the sync and async repositories."""

    def __init__(
        self,
        descriptor: RecordTypeDescriptor,
        statements: SqlStatements,
        hooks: RepositoryHooks | None,
        custom_sql: CustomSql | None,
    ) -> None:
        self.descriptor = descriptor
        self.statements = statements
        self.hooks = hooks or RepositoryHooks()
        self.custom_sql = custom_sql or CustomSql()
        self.mapper: ModelMapper[T] = ModelMapper(
            descriptor.record_type,
            aliases=self._column_aliases(),
            fields=[m.parameter_name for m in statements.column_mappings],
        )

    @property
    def record_name(self) -> str:
        return self.descriptor.name

    def _column_aliases(self) -> dict[str, str]:
        # SELECT * dialects return physical column names
        aliases: dict[str, str] = {}
        for m in self.statements.column_mappings:
            aliases[m.column_name] = m.parameter_name
            aliases[to_snake_case(m.column_name)] = m.parameter_name
        return aliases

    def key_of(self, record: Any) -> Any:
        return getattr(record, self.statements.key_parameter)

    def is_new(self, record: Any) -> bool:
        return is_new_key(self.key_of(record))

    def record_params(self, record: Any) -> dict[str, Any]:
        """Parameter values for every mapped column of *record*."""
        return {
            m.parameter_name: _bind_value(getattr(record, m.parameter_name))
            for m in self.statements.column_mappings
        }

    def save_action(self, record: Any) -> RepositoryAction:
        return RepositoryAction.INSERT if self.is_new(record) else RepositoryAction.UPDATE

    def statement_for(self, action: RepositoryAction) -> str:
        """SQL run for *action*, preferring the custom statement when set."""
        custom = self.custom_sql.for_action(action)
        if custom:
            return custom
        return {
            RepositoryAction.GET: self.statements.get_by_id,
            RepositoryAction.GET_ALTERNATE: self.statements.get_by_alternate_key,
            RepositoryAction.INSERT: self.statements.insert,
            RepositoryAction.UPDATE: self.statements.update,
            RepositoryAction.DELETE: self.statements.delete,
        }[action]

    def require_alternate_key(self) -> None:
        if not self.statements.has_alternate_key:
            raise AlternateKeyUnavailableError(self.record_name)

    def require_saved(self, record: Any) -> None:
        if self.is_new(record):
            raise RepositoryError(
                RepositoryAction.UPDATE,
                f"{self.record_name} must be saved before its columns can be updated",
            )

    def log_action(self, action: RepositoryAction, sql: str) -> None:
        logger.debug("%s.%s: %s", self.record_name, action.value, sql)

    def wrap_failure(
        self,
        action: RepositoryAction,
        sql: str,
        params: Any,
        error: Exception,
    ) -> RepositoryError:
        logger.error(
            "Error executing %s with params %r", sql, params, exc_info=error
        )
        return RepositoryError(action, str(error), sql=sql, parameters=params)

    @staticmethod
    def check_verdict(action: RepositoryAction, result: Any) -> None:
        allowed, message = read_verdict(result)
        if not allowed:
            raise PolicyRejectionError(action, message)


class Repository(_RepositoryCore[T]):
    """Synchronous CRUD repository for one record type.

    Args:
        database: Database providing the engine and the statement cache.
        descriptor: Metadata of the record type.
        hooks: Optional lifecycle hooks.
        custom_sql: Statements to run instead of the synthesized ones.

    Raises:
        MappingError: If statements cannot be synthesized for the type.
    """

    def __init__(
        self,
        database: Database,
        descriptor: RecordTypeDescriptor,
        hooks: RepositoryHooks | None = None,
        custom_sql: CustomSql | None = None,
    ) -> None:
        super().__init__(descriptor, database.statements(descriptor), hooks, custom_sql)
        self.database = database

    def _executor(self, transaction: Any) -> Any:
        return transaction if transaction is not None else self.database.engine

    def _run(
        self,
        action: RepositoryAction,
        sql: str,
        params: Any,
        call: Callable[[], Any],
    ) -> Any:
        self.log_action(action, sql)
        try:
            return call()
        except (ExecutionError, HydrationError, AdapterError) as e:
            raise self.wrap_failure(action, sql, params, e) from e

    def _fetch(
        self,
        action: RepositoryAction,
        sql: str,
        params: dict[str, Any],
        transaction: Any,
    ) -> T | None:
        executor = self._executor(transaction)
        record = self._run(
            action,
            sql,
            params,
            lambda: executor.query_one(sql, params, mapper=self.mapper),
        )
        if record is None:
            return None
        if self.hooks.allow_get is not None:
            self.check_verdict(action, self.hooks.allow_get(record, executor))
        if self.hooks.after_get is not None:
            self.hooks.after_get(record, executor)
        return record  # type: ignore[no-any-return]

    def get(self, key: Any, *, transaction: Any = None) -> T | None:
        """Fetch a record by primary key, or None when absent.

        Raises:
            PolicyRejectionError: If ``allow_get`` vetoes the fetched record.
            RepositoryError: If a connection cannot be checked out, or if
                execution or hydration fails.
        """
        return self._fetch(
            RepositoryAction.GET,
            self.statement_for(RepositoryAction.GET),
            {"id": key},
            transaction,
        )

    def must_get(self, key: Any, *, transaction: Any = None) -> T:
        """Fetch a record by primary key, raising NotFoundError when absent."""
        record = self.get(key, transaction=transaction)
        if record is None:
            raise NotFoundError(self.record_name, key)
        return record

    def get_alternate(self, record: T, *, transaction: Any = None) -> T | None:
        """Fetch the stored row matching *record*'s alternate key columns.

        Raises:
            AlternateKeyUnavailableError: If the type has no alternate key.
        """
        self.require_alternate_key()
        return self._fetch(
            RepositoryAction.GET_ALTERNATE,
            self.statement_for(RepositoryAction.GET_ALTERNATE),
            self.record_params(record),
            transaction,
        )

    def save(self, record: T, *, transaction: Any = None) -> T:
        """Insert a new record or update an existing one.

        A record is new when its key is None, 0, "" or the nil UUID. On
        insert the generated identity is written back to the key field.
        """
        action = self.save_action(record)
        executor = self._executor(transaction)
        if self.hooks.allow_save is not None:
            self.check_verdict(action, self.hooks.allow_save(action, record, executor))
        if self.hooks.before_save is not None:
            self.hooks.before_save(action, record, executor)

        sql = self.statement_for(action)
        params = self.record_params(record)
        if action is RepositoryAction.INSERT:
            key = self._run(action, sql, params, lambda: executor.execute_scalar(sql, params))
            setattr(record, self.statements.key_parameter, key)
        else:
            self._run(action, sql, params, lambda: executor.execute(sql, params))

        if self.hooks.after_save is not None:
            self.hooks.after_save(action, record, executor)
        return record

    def merge(
        self,
        record: T,
        on_existing: Callable[[T, T], None] | None = None,
        *,
        transaction: Any = None,
    ) -> T:
        """Save *record*, reusing the key of a stored row with the same alternate key.

        ``on_existing(new, existing)`` runs before the key is adopted.
        """
        if self.is_new(record):
            existing = self.get_alternate(record, transaction=transaction)
            if existing is not None:
                if on_existing is not None:
                    on_existing(record, existing)
                setattr(record, self.statements.key_parameter, self.key_of(existing))
        return self.save(record, transaction=transaction)

    def delete(self, record: T, *, transaction: Any = None) -> None:
        """Delete the stored row of *record*."""
        executor = self._executor(transaction)
        if self.hooks.allow_delete is not None:
            self.check_verdict(
                RepositoryAction.DELETE, self.hooks.allow_delete(record, executor)
            )
        if self.hooks.before_delete is not None:
            self.hooks.before_delete(record, executor)

        sql = self.statement_for(RepositoryAction.DELETE)
        params = self.record_params(record)
        self._run(RepositoryAction.DELETE, sql, params, lambda: executor.execute(sql, params))

        if self.hooks.after_delete is not None:
            self.hooks.after_delete(record, executor)

    def update_partial(
        self,
        key: Any,
        mutate: Callable[[T], None],
        create_if_absent: Callable[[], T] | None = None,
        *,
        transaction: Any = None,
    ) -> T:
        """Fetch (or create) a record, apply *mutate*, and save it.

        Raises:
            NotFoundError: If the row is absent and no factory is given.
        """
        record = self.get(key, transaction=transaction)
        if record is None and create_if_absent is not None:
            record = create_if_absent()
        if record is None:
            raise NotFoundError(self.record_name, key)
        mutate(record)
        return self.save(record, transaction=transaction)

    def update_columns(
        self,
        record: T,
        names: Iterable[str],
        *,
        transaction: Any = None,
    ) -> T:
        """Update only the named fields of a stored record.

        Raises:
            MappingError: If none of *names* is an updatable field.
        """
        self.require_saved(record)
        action = RepositoryAction.UPDATE
        executor = self._executor(transaction)
        if self.hooks.allow_save is not None:
            self.check_verdict(action, self.hooks.allow_save(action, record, executor))
        if self.hooks.before_save is not None:
            self.hooks.before_save(action, record, executor)

        sql = self.statements.update_columns(names)
        params = self.record_params(record)
        self._run(action, sql, params, lambda: executor.execute(sql, params))

        if self.hooks.after_save is not None:
            self.hooks.after_save(action, record, executor)
        return record


async def _call_hook(hook: Callable[..., Any] | None, *args: Any) -> Any:
    """Call a plain or coroutine hook; a missing hook allows."""
    if hook is None:
        return True
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class AsyncRepository(_RepositoryCore[T]):
    """Async variant of Repository. Hooks may be plain or coroutine functions."""

    def __init__(
        self,
        database: AsyncDatabase,
        descriptor: RecordTypeDescriptor,
        hooks: RepositoryHooks | None = None,
        custom_sql: CustomSql | None = None,
    ) -> None:
        super().__init__(descriptor, database.statements(descriptor), hooks, custom_sql)
        self.database = database

    def _executor(self, transaction: Any) -> Any:
        return transaction if transaction is not None else self.database.engine

    async def _run(
        self,
        action: RepositoryAction,
        sql: str,
        params: Any,
        call: Callable[[], Awaitable[Any]],
    ) -> Any:
        self.log_action(action, sql)
        try:
            return await call()
        except (ExecutionError, HydrationError, AdapterError) as e:
            raise self.wrap_failure(action, sql, params, e) from e

    async def _fetch(
        self,
        action: RepositoryAction,
        sql: str,
        params: dict[str, Any],
        transaction: Any,
    ) -> T | None:
        executor = self._executor(transaction)
        record = await self._run(
            action,
            sql,
            params,
            lambda: executor.query_one(sql, params, mapper=self.mapper),
        )
        if record is None:
            return None
        verdict = await _call_hook(self.hooks.allow_get, record, executor)
        self.check_verdict(action, verdict)
        await _call_hook(self.hooks.after_get, record, executor)
        return record  # type: ignore[no-any-return]

    async def get(self, key: Any, *, transaction: Any = None) -> T | None:
        """Fetch a record by primary key, or None when absent."""
        return await self._fetch(
            RepositoryAction.GET,
            self.statement_for(RepositoryAction.GET),
            {"id": key},
            transaction,
        )

    async def must_get(self, key: Any, *, transaction: Any = None) -> T:
        """Fetch a record by primary key, raising NotFoundError when absent."""
        record = await self.get(key, transaction=transaction)
        if record is None:
            raise NotFoundError(self.record_name, key)
        return record

    async def get_alternate(self, record: T, *, transaction: Any = None) -> T | None:
        """Fetch the stored row matching *record*'s alternate key columns."""
        self.require_alternate_key()
        return await self._fetch(
            RepositoryAction.GET_ALTERNATE,
            self.statement_for(RepositoryAction.GET_ALTERNATE),
            self.record_params(record),
            transaction,
        )

    async def save(self, record: T, *, transaction: Any = None) -> T:
        """Insert a new record or update an existing one."""
        action = self.save_action(record)
        executor = self._executor(transaction)
        self.check_verdict(action, await _call_hook(self.hooks.allow_save, action, record, executor))
        await _call_hook(self.hooks.before_save, action, record, executor)

        sql = self.statement_for(action)
        params = self.record_params(record)
        if action is RepositoryAction.INSERT:
            key = await self._run(
                action, sql, params, lambda: executor.execute_scalar(sql, params)
            )
            setattr(record, self.statements.key_parameter, key)
        else:
            await self._run(action, sql, params, lambda: executor.execute(sql, params))

        await _call_hook(self.hooks.after_save, action, record, executor)
        return record

    async def merge(
        self,
        record: T,
        on_existing: Callable[[T, T], Any] | None = None,
        *,
        transaction: Any = None,
    ) -> T:
        """Save *record*, reusing the key of a stored row with the same alternate key.

        ``on_existing(new, existing)`` may be a plain or coroutine function.
        """
        if self.is_new(record):
            existing = await self.get_alternate(record, transaction=transaction)
            if existing is not None:
                await _call_hook(on_existing, record, existing)
                setattr(record, self.statements.key_parameter, self.key_of(existing))
        return await self.save(record, transaction=transaction)

    async def delete(self, record: T, *, transaction: Any = None) -> None:
        """Delete the stored row of *record*."""
        executor = self._executor(transaction)
        verdict = await _call_hook(self.hooks.allow_delete, record, executor)
        self.check_verdict(RepositoryAction.DELETE, verdict)
        await _call_hook(self.hooks.before_delete, record, executor)

        sql = self.statement_for(RepositoryAction.DELETE)
        params = self.record_params(record)
        await self._run(
            RepositoryAction.DELETE, sql, params, lambda: executor.execute(sql, params)
        )

        await _call_hook(self.hooks.after_delete, record, executor)

    async def update_partial(
        self,
        key: Any,
        mutate: Callable[[T], None],
        create_if_absent: Callable[[], T] | None = None,
        *,
        transaction: Any = None,
    ) -> T:
        """Fetch (or create) a record, apply *mutate*, and save it."""
        record = await self.get(key, transaction=transaction)
        if record is None and create_if_absent is not None:
            record = create_if_absent()
        if record is None:
            raise NotFoundError(self.record_name, key)
        mutate(record)
        return await self.save(record, transaction=transaction)

    async def update_columns(
        self,
        record: T,
        names: Iterable[str],
        *,
        transaction: Any = None,
    ) -> T:
        """Update only the named fields of a stored record."""
        self.require_saved(record)
        action = RepositoryAction.UPDATE
        executor = self._executor(transaction)
        self.check_verdict(action, await _call_hook(self.hooks.allow_save, action, record, executor))
        await _call_hook(self.hooks.before_save, action, record, executor)

        sql = self.statements.update_columns(names)
        params = self.record_params(record)
        await self._run(action, sql, params, lambda: executor.execute(sql, params))

        await _call_hook(self.hooks.after_save, action, record, executor)
        return record
