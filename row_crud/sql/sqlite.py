"""SQLite statement builder.

Same identifier rules and RETURNING clause as PostgreSQL (SQLite 3.35+),
qualified against the ``main`` database.
"""

from __future__ import annotations

from row_crud.sql.postgresql import PostgresqlSqlBuilder


class SqliteSqlBuilder(PostgresqlSqlBuilder):
    """Statement builder for SQLite."""

    default_schema = "main"
