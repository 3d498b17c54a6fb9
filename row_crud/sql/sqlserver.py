"""SQL Server statement builder.

Every identifier is bracketed (``[dbo].[Sample]``). SELECTs use ``*`` and
rely on column aliases at hydration time; INSERT returns the identity with
an ``OUTPUT [inserted]`` clause so it arrives as an ordinary result row.
"""

from __future__ import annotations

from collections.abc import Sequence

from row_crud.core.enums import NamingPolicy
from row_crud.core.naming import format_identifier, quote_identifier
from row_crud.mapping.columns import ColumnMapping
from row_crud.sql.base import SqlBuilder


class SqlServerSqlBuilder(SqlBuilder):
    """Statement builder for SQL Server."""

    default_schema = "dbo"

    def format_name(self, identifier: str) -> str:
        # Brackets already preserve case, so exact mode only brackets
        policy = NamingPolicy.VERBATIM if self.naming is NamingPolicy.QUOTED_EXACT else self.naming
        return quote_identifier(format_identifier(identifier, policy), "[", "]")

    def select_columns(self, columns: Sequence[ColumnMapping]) -> str:
        return "*"

    def insert_statement(self, table_name: str, names: str, values: str, id_column: str) -> str:
        return f"INSERT INTO {table_name} ({names}) OUTPUT [inserted].{id_column} VALUES ({values})"
