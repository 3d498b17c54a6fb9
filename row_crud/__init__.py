"""RowCrud - convention-based CRUD statement synthesis and repositories."""

from __future__ import annotations

from row_crud.core.cache import StatementCache
from row_crud.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from row_crud.core.database import AsyncDatabase, Database
from row_crud.core.engine import AsyncEngine, Engine
from row_crud.core.enums import DatabaseBackend, NamingPolicy, RepositoryAction, StatementKind
from row_crud.core.exceptions import (
    AdapterError,
    AlternateKeyUnavailableError,
    ConnectionError,  # noqa: A004
    DescriptorError,
    ExecutionError,
    HydrationError,
    MappingError,
    MultipleRowsError,
    NotFoundError,
    ParameterBindingError,
    PolicyRejectionError,
    PoolError,
    QueryExecutionError,
    RepositoryError,
    RowCrudError,
    TransactionError,
    TransactionStateError,
)
from row_crud.core.naming import format_identifier, quote_identifier, to_snake_case
from row_crud.core.transaction import AsyncTransactionManager, TransactionManager
from row_crud.mapping.builder import RecordTypeBuilder, describe
from row_crud.mapping.columns import ColumnMapping, extract_column_mappings
from row_crud.mapping.descriptor import FieldDescriptor, RecordTypeDescriptor, column
from row_crud.mapping.model import ModelMapper
from row_crud.repository.base import AsyncRepository, Repository
from row_crud.repository.custom import CustomSql
from row_crud.repository.hooks import RepositoryHooks
from row_crud.sql import (
    PostgresqlSqlBuilder,
    SqlBuilder,
    SqliteSqlBuilder,
    SqlServerSqlBuilder,
    SqlStatements,
    builder_for,
)

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "AsyncConnectionManager",
    # Engine
    "Engine",
    "AsyncEngine",
    # Database
    "Database",
    "AsyncDatabase",
    "StatementCache",
    # Transaction
    "TransactionManager",
    "AsyncTransactionManager",
    # Metadata
    "describe",
    "RecordTypeBuilder",
    "RecordTypeDescriptor",
    "FieldDescriptor",
    "column",
    "ColumnMapping",
    "extract_column_mappings",
    "ModelMapper",
    # Statements
    "SqlBuilder",
    "PostgresqlSqlBuilder",
    "SqlServerSqlBuilder",
    "SqliteSqlBuilder",
    "SqlStatements",
    "builder_for",
    # Naming
    "format_identifier",
    "quote_identifier",
    "to_snake_case",
    # Repository
    "Repository",
    "AsyncRepository",
    "RepositoryHooks",
    "CustomSql",
    # Enums
    "DatabaseBackend",
    "NamingPolicy",
    "RepositoryAction",
    "StatementKind",
    # Exceptions
    "RowCrudError",
    "DescriptorError",
    "MappingError",
    "HydrationError",
    "AlternateKeyUnavailableError",
    "ExecutionError",
    "QueryExecutionError",
    "ParameterBindingError",
    "MultipleRowsError",
    "RepositoryError",
    "PolicyRejectionError",
    "NotFoundError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
