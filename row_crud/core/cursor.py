"""Cursor helpers shared by engines and transactions.

Adapters return either dict-like rows (psycopg dict_row) or tuple-like rows
(sqlite3.Row, pyodbc.Row); these helpers normalize both to plain dicts and
wrap statement execution so driver errors surface as row_crud errors.
"""

from __future__ import annotations

import logging
from typing import Any

from row_crud.core.exceptions import MultipleRowsError, QueryExecutionError
from row_crud.core.params import normalize_params

logger = logging.getLogger(__name__)


def run_statement(
    adapter: Any,
    connection: Any,
    sql: str,
    params: dict[str, Any] | None,
) -> Any:
    """Bind and execute *sql* on *connection*, returning the driver cursor."""
    statement, bound = normalize_params(sql, params, adapter.paramstyle)
    logger.debug("Executing: %s", statement)
    try:
        return adapter.execute(connection, statement, bound)
    except Exception as e:
        raise QueryExecutionError(sql, str(e)) from e


async def run_statement_async(
    adapter: Any,
    connection: Any,
    sql: str,
    params: dict[str, Any] | None,
) -> Any:
    """Async variant of run_statement."""
    statement, bound = normalize_params(sql, params, adapter.paramstyle)
    logger.debug("Executing: %s", statement)
    try:
        return await adapter.execute_async(connection, statement, bound)
    except Exception as e:
        raise QueryExecutionError(sql, str(e)) from e


def columns_of(cursor: Any) -> list[str] | None:
    """Return the result column names, or None for statements without rows."""
    if cursor.description is None:
        return None
    return [desc[0] for desc in cursor.description]


def to_dicts(columns: list[str], rows: Any) -> list[dict[str, Any]]:
    """Convert fetched rows to dicts keyed by column name."""
    if not rows:
        return []
    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]
    return [dict(zip(columns, row, strict=True)) for row in rows]


def rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Fetch all remaining rows of a sync cursor as dicts."""
    columns = columns_of(cursor)
    if columns is None:
        return []
    return to_dicts(columns, cursor.fetchall())


async def rows_to_dicts_async(cursor: Any) -> list[dict[str, Any]]:
    """Fetch all remaining rows of an async cursor as dicts."""
    columns = columns_of(cursor)
    if columns is None:
        return []
    return to_dicts(columns, await cursor.fetchall())


def single_row(sql: str, rows: list[dict[str, Any]], mapper: Any = None) -> Any:
    """Return the only row of *rows* (mapped when a mapper is given), or None.

    Raises:
        MultipleRowsError: If more than one row was fetched.
    """
    if not rows:
        return None
    if len(rows) > 1:
        raise MultipleRowsError(sql, len(rows))
    return rows[0] if mapper is None else mapper.map_one(rows[0])


def map_rows(rows: list[dict[str, Any]], mapper: Any = None) -> Any:
    return rows if mapper is None else mapper.map_many(rows)


def scalar_of(cursor: Any) -> Any:
    """Return the first column of the first row, or None.

    The cursor is drained so INSERT ... RETURNING statements complete
    before the caller commits.
    """
    if cursor.description is None:
        return None
    rows = cursor.fetchall()
    return first_value(rows[0]) if rows else None


async def scalar_of_async(cursor: Any) -> Any:
    """Async variant of scalar_of."""
    if cursor.description is None:
        return None
    rows = await cursor.fetchall()
    return first_value(rows[0]) if rows else None


def first_value(row: Any) -> Any:
    """Return the first column of a row, or None for no row."""
    if row is None:
        return None
    if isinstance(row, dict):
        return next(iter(row.values()))
    return row[0]
