"""SQL statement synthesis per database dialect."""

from __future__ import annotations

from row_crud.core.enums import DatabaseBackend, NamingPolicy
from row_crud.core.exceptions import AdapterError
from row_crud.sql.base import SqlBuilder
from row_crud.sql.postgresql import PostgresqlSqlBuilder
from row_crud.sql.sqlite import SqliteSqlBuilder
from row_crud.sql.sqlserver import SqlServerSqlBuilder
from row_crud.sql.statements import SqlStatements

_BUILDER_MAP: dict[str, type[SqlBuilder]] = {
    DatabaseBackend.SQLITE.value: SqliteSqlBuilder,
    DatabaseBackend.POSTGRESQL.value: PostgresqlSqlBuilder,
    DatabaseBackend.SQLSERVER.value: SqlServerSqlBuilder,
}


def builder_for(
    backend: DatabaseBackend | str,
    naming: NamingPolicy = NamingPolicy.VERBATIM,
    default_schema: str | None = None,
) -> SqlBuilder:
    """Create the statement builder for a database backend.

    Raises:
        AdapterError: If the backend has no statement builder.
    """
    key = backend.value if isinstance(backend, DatabaseBackend) else str(backend)
    builder_cls = _BUILDER_MAP.get(key)
    if builder_cls is None:
        raise AdapterError(f"Unsupported database backend: {key}")
    return builder_cls(naming=naming, default_schema=default_schema)


__all__ = [
    "PostgresqlSqlBuilder",
    "SqlBuilder",
    "SqlServerSqlBuilder",
    "SqlStatements",
    "SqliteSqlBuilder",
    "builder_for",
]
