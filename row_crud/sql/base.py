"""Dialect-independent statement synthesis.

SqlBuilder implements the shared algorithm that turns column mappings into
SQL text. Dialect subclasses supply the dialect parameter set: identifier
formatting, default schema, select list style, and how INSERT returns the
generated identity.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import ClassVar

from row_crud.core.enums import NamingPolicy
from row_crud.core.exceptions import MappingError
from row_crud.mapping.columns import ColumnMapping, extract_column_mappings, has_alternate_key
from row_crud.mapping.descriptor import RecordTypeDescriptor
from row_crud.sql.statements import SqlStatements

logger = logging.getLogger(__name__)


def _immutable_key(mapping: ColumnMapping) -> bool:
    """Key columns that identify a row for UPDATE and DELETE."""
    return mapping.is_key and not mapping.for_update


class SqlBuilder(ABC):
    """Base class for dialect statement builders.

    Args:
        naming: Identifier naming policy applied to schema, table and columns.
        default_schema: Overrides the dialect's default schema.
    """

    default_schema: ClassVar[str]

    def __init__(
        self,
        naming: NamingPolicy = NamingPolicy.VERBATIM,
        default_schema: str | None = None,
    ) -> None:
        self.naming = naming
        self.schema = default_schema or self.default_schema

    @property
    def dialect_key(self) -> tuple[str, str, str]:
        """Everything besides the descriptor that changes the generated SQL."""
        return (type(self).__qualname__, self.naming.value, self.schema)

    # --- dialect parameter set ---

    @abstractmethod
    def format_name(self, identifier: str) -> str:
        """Format a schema, table or column identifier for this dialect."""

    @abstractmethod
    def insert_statement(self, table_name: str, names: str, values: str, id_column: str) -> str:
        """Assemble an INSERT that returns the generated identity."""

    def qualify(self, schema: str, name: str) -> str:
        """Join already formatted schema and table names."""
        return f"{schema}.{name}"

    def select_columns(self, columns: Sequence[ColumnMapping]) -> str:
        """Select list aliasing every column to its parameter name."""
        return ", ".join(
            f"{self.format_name(col.column_name)} AS {col.parameter_name}" for col in columns
        )

    def set_expression(self, column: ColumnMapping) -> str:
        return f"{self.format_name(column.column_name)}=@{column.parameter_name}"

    # --- shared algorithm ---

    def build_statements(self, descriptor: RecordTypeDescriptor) -> SqlStatements:
        """Synthesize all statements for *descriptor*.

        Raises:
            MappingError: If the record type has no primary key, no insert
                columns, no update columns, or no key columns.
        """
        record_type = descriptor.name
        table_name = self.parse_table_name(descriptor)
        columns = extract_column_mappings(descriptor)

        key_field = descriptor.key_field
        id_mapping = next(
            (c for c in columns if key_field is not None and c.parameter_name == key_field.name),
            None,
        )
        if id_mapping is None:
            raise MappingError(record_type, "missing an eligible 'Id' primary key field")

        id_column = self.format_name(id_mapping.column_name)
        select = self.select_columns(columns)
        alternate = has_alternate_key(columns)
        where_clause = self.where_criteria(record_type, columns)

        statements = SqlStatements(
            table_name=table_name,
            get_by_id=f"SELECT {select} FROM {table_name} WHERE {id_column} = @id",
            get_by_alternate_key=(
                self.build_get_by_alternate_key(table_name, select, columns)
                if alternate
                else ""
            ),
            has_alternate_key=alternate,
            insert=self.build_insert(record_type, table_name, columns, id_mapping),
            update=self.build_update(record_type, table_name, columns, where_clause),
            delete=f"DELETE FROM {table_name} WHERE {where_clause}",
            key_parameter=id_mapping.parameter_name,
            column_mappings=columns,
            update_columns=lambda names: self.build_update(
                record_type, table_name, columns, where_clause, names
            ),
        )
        logger.debug("Built statements for %s on %s", record_type, table_name)
        return statements

    def parse_table_name(self, descriptor: RecordTypeDescriptor) -> str:
        """Resolve, format and qualify the table identity."""
        schema = descriptor.schema or self.schema
        name = descriptor.table or descriptor.name
        return self.qualify(self.format_name(schema), self.format_name(name))

    def build_get_by_alternate_key(
        self,
        table_name: str,
        select: str,
        columns: Sequence[ColumnMapping],
    ) -> str:
        criteria = [self.set_expression(c) for c in columns if c.is_key and c.for_update]
        return f"SELECT {select} FROM {table_name} WHERE {' AND '.join(criteria)}"

    def build_insert(
        self,
        record_type: str,
        table_name: str,
        columns: Sequence[ColumnMapping],
        id_mapping: ColumnMapping,
    ) -> str:
        insert_columns = [c for c in columns if c.for_insert]
        if not insert_columns:
            raise MappingError(record_type, "must have at least one insert column")
        names = ", ".join(self.format_name(c.column_name) for c in insert_columns)
        values = ", ".join(f"@{c.parameter_name}" for c in insert_columns)
        return self.insert_statement(
            table_name, names, values, self.format_name(id_mapping.column_name)
        )

    def where_criteria(self, record_type: str, columns: Sequence[ColumnMapping]) -> str:
        """WHERE clause shared by UPDATE and DELETE."""
        if not any(c.is_key for c in columns):
            raise MappingError(record_type, "must have at least one key column")
        return " AND ".join(self.set_expression(c) for c in columns if _immutable_key(c))

    def build_update(
        self,
        record_type: str,
        table_name: str,
        columns: Sequence[ColumnMapping],
        where_clause: str,
        names: Iterable[str] | None = None,
    ) -> str:
        """Build an UPDATE, optionally narrowed to the named fields."""
        set_columns = [c for c in columns if c.for_update]
        if names is not None:
            wanted = {name.lower() for name in names}
            set_columns = [c for c in set_columns if c.parameter_name.lower() in wanted]
        if not set_columns:
            raise MappingError(record_type, "must have at least one update column")
        set_values = ", ".join(self.set_expression(c) for c in set_columns)
        return f"UPDATE {table_name} SET {set_values} WHERE {where_clause}"
