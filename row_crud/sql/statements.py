"""Synthesized statement set for one record type."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from row_crud.mapping.columns import ColumnMapping


@dataclass(frozen=True)
class SqlStatements:
    """The five CRUD statements for a record type plus their metadata.

    ``update_columns(names)`` returns an UPDATE whose SET list is narrowed to
    the named (case-insensitive) updatable fields, reusing this set's column
    mappings and WHERE clause.
    """

    table_name: str
    get_by_id: str
    get_by_alternate_key: str
    has_alternate_key: bool
    insert: str
    update: str
    delete: str
    key_parameter: str
    column_mappings: tuple[ColumnMapping, ...]
    update_columns: Callable[[Iterable[str]], str] = field(repr=False, compare=False)
