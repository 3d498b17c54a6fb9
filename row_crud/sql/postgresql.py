"""PostgreSQL statement builder.

Identifiers follow the configured naming policy (verbatim, snake_case, or
double-quoted exact case); the generated key comes back via RETURNING.

Example (snake_case)::

    SELECT id AS Id, name AS Name FROM whatever.sample WHERE id = @id
    INSERT INTO whatever.sample (name) VALUES (@Name) RETURNING id;
"""

from __future__ import annotations

from row_crud.core.naming import format_identifier
from row_crud.sql.base import SqlBuilder


class PostgresqlSqlBuilder(SqlBuilder):
    """Statement builder for PostgreSQL."""

    default_schema = "public"

    def format_name(self, identifier: str) -> str:
        return format_identifier(identifier, self.naming)

    def insert_statement(self, table_name: str, names: str, values: str, id_column: str) -> str:
        return f"INSERT INTO {table_name} ({names}) VALUES ({values}) RETURNING {id_column};"
