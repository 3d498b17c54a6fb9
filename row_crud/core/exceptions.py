"""row_crud exception hierarchy.

All exceptions are row_crud-specific. Raw driver exceptions are never
exposed directly; they are chained as ``__cause__`` of the wrapping error.
"""

from __future__ import annotations

from typing import Any

from row_crud.core.enums import RepositoryAction


class RowCrudError(Exception):
    """Base exception for all row_crud errors."""


# --- Metadata ---


class DescriptorError(RowCrudError):
    """Raised when a record type descriptor is declared incorrectly."""


class MappingError(RowCrudError):
    """Raised when statements cannot be synthesized for a record type.

    Fatal for that record type until its metadata is corrected.
    """

    def __init__(self, record_type: str, detail: str) -> None:
        self.record_type = record_type
        super().__init__(f"Cannot build statements for {record_type}: {detail}")


class HydrationError(RowCrudError):
    """Raised when a fetched row cannot be turned into a record."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Cannot map row to {target_class}: {detail}")


class AlternateKeyUnavailableError(RowCrudError):
    """Raised on alternate-key lookup or merge for a type without one."""

    def __init__(self, record_type: str) -> None:
        self.record_type = record_type
        super().__init__(
            f"Record type {record_type} must have at least one updatable key column "
            "to be looked up by alternate key"
        )


# --- Execution ---


class ExecutionError(RowCrudError):
    """Base for statement execution errors."""


class QueryExecutionError(ExecutionError):
    """Raised when the driver fails to execute a statement."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Error executing '{sql}': {detail}")


class ParameterBindingError(ExecutionError):
    """Raised when a statement parameter cannot be bound."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Parameter binding error for '{sql}': {detail}")


class MultipleRowsError(ExecutionError):
    """Raised when query_one encounters more than one row."""

    def __init__(self, sql: str, row_count: int) -> None:
        self.sql = sql
        self.row_count = row_count
        super().__init__(f"query_one for '{sql}' returned {row_count} rows (expected 0 or 1)")


# --- Repository ---


class RepositoryError(RowCrudError):
    """Raised when a repository action fails.

    Carries the action, and for execution failures the SQL text and the
    bound parameters. The driver-level failure is available as ``__cause__``.
    """

    def __init__(
        self,
        action: RepositoryAction,
        message: str,
        *,
        sql: str | None = None,
        parameters: Any = None,
    ) -> None:
        self.action = action
        self.sql = sql
        self.parameters = parameters
        super().__init__(message)


class PolicyRejectionError(RepositoryError):
    """Raised when an ``allow_*`` hook vetoes an action."""

    def __init__(self, action: RepositoryAction, message: str | None) -> None:
        super().__init__(action, message or f"{action.value} rejected")


class NotFoundError(RowCrudError):
    """Raised when a row that must exist is not found."""

    def __init__(self, record_type: str, key: Any) -> None:
        self.record_type = record_type
        self.key = key
        super().__init__(f"{record_type} row id {key} not found")


# --- Transaction ---


class TransactionError(RowCrudError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(RowCrudError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised when a pool cannot open its connections."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
