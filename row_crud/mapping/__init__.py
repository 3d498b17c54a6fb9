"""Mapping layer - record type metadata, column mappings, row hydration."""

from __future__ import annotations

from row_crud.mapping.builder import RecordTypeBuilder, describe
from row_crud.mapping.columns import ColumnMapping, extract_column_mappings, has_alternate_key
from row_crud.mapping.descriptor import (
    ColumnInfo,
    FieldDescriptor,
    RecordTypeDescriptor,
    column,
)
from row_crud.mapping.model import ModelMapper

__all__ = [
    "describe",
    "RecordTypeBuilder",
    "RecordTypeDescriptor",
    "FieldDescriptor",
    "ColumnInfo",
    "column",
    "ColumnMapping",
    "extract_column_mappings",
    "has_alternate_key",
    "ModelMapper",
]
