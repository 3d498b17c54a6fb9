"""Record type descriptor DSL builder.

Provides a fluent builder for declaring how a record class maps onto a
table: which fields exist, which are keys, which are excluded from INSERT or
UPDATE, and which columns are aliased.
"""

from __future__ import annotations

import dataclasses
import typing
from typing import Any, ClassVar, get_origin

from row_crud.core.exceptions import DescriptorError
from row_crud.mapping.descriptor import (
    METADATA_KEY,
    ColumnInfo,
    FieldDescriptor,
    RecordTypeDescriptor,
)


def _type_hints(obj: Any) -> dict[str, Any]:
    """Resolve annotations, falling back to raw (possibly string) ones."""
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError):
        return dict(getattr(obj, "__annotations__", {}))


def _discover_fields(cls: type) -> list[FieldDescriptor]:
    """Extract field descriptors from a class (Pydantic, dataclass, or plain)."""
    # Pydantic model
    if hasattr(cls, "model_fields"):
        return [
            FieldDescriptor(name=name, type=info.annotation)
            for name, info in cls.model_fields.items()
        ]

    hints = _type_hints(cls)

    # Dataclass
    if dataclasses.is_dataclass(cls):
        discovered = []
        for f in dataclasses.fields(cls):
            info = f.metadata.get(METADATA_KEY, ColumnInfo())
            discovered.append(
                FieldDescriptor(
                    name=f.name,
                    type=hints.get(f.name, f.type),
                    not_mapped=info.not_mapped,
                    not_inserted=info.not_inserted,
                    not_updated=info.not_updated,
                    is_key=info.key,
                    column=info.column,
                )
            )
        return discovered

    # Plain class - annotated attributes, then properties
    discovered = [
        FieldDescriptor(name=name, type=hint)
        for name, hint in hints.items()
        if get_origin(hint) is not ClassVar and not name.startswith("_")
    ]
    seen = {f.name for f in discovered}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if not isinstance(attr, property) or name.startswith("_") or name in seen:
                continue
            seen.add(name)
            returns = _type_hints(attr.fget).get("return") if attr.fget else None
            discovered.append(
                FieldDescriptor(name=name, type=returns, readable=attr.fget is not None)
            )
    return discovered


def describe(
    record_type: type,
    table: str | None = None,
    schema: str | None = None,
) -> RecordTypeBuilder:
    """Entry point for the record type DSL.

    Args:
        record_type: The record class.
        table: Table name override. Defaults to the class name.
        schema: Schema override. Defaults to the dialect's default schema.

    Returns:
        A builder for chaining field declarations.
    """
    return RecordTypeBuilder(record_type).table(table, schema)


class RecordTypeBuilder:
    """Fluent builder for record type descriptors."""

    def __init__(self, record_type: type) -> None:
        self._record_type = record_type
        self._table: str | None = None
        self._schema: str | None = None
        self._auto_fields_enabled = False
        self._fields: dict[str, FieldDescriptor] = {}
        self._markers: dict[str, dict[str, Any]] = {}
        self._alternate_key: tuple[str, ...] = tuple(
            getattr(record_type, "__alternate_key__", ())
        )

    def table(self, name: str | None = None, schema: str | None = None) -> RecordTypeBuilder:
        """Override the table name and/or schema."""
        self._table = name or self._table
        self._schema = schema or self._schema
        return self

    def auto_fields(self) -> RecordTypeBuilder:
        """Discover fields from the record class in declaration order."""
        self._auto_fields_enabled = True
        return self

    def field(
        self,
        name: str,
        type_: Any = None,
        *,
        readable: bool = True,
        column: str | None = None,
        key: bool = False,
        not_inserted: bool = False,
        not_updated: bool = False,
        not_mapped: bool = False,
    ) -> RecordTypeBuilder:
        """Explicitly declare a single field (replaces a discovered one)."""
        self._fields[name] = FieldDescriptor(
            name=name,
            type=type_,
            readable=readable,
            not_mapped=not_mapped,
            not_inserted=not_inserted,
            not_updated=not_updated,
            is_key=key,
            column=column,
        )
        return self

    def key(self, *names: str) -> RecordTypeBuilder:
        """Mark fields as key columns."""
        return self._mark(names, is_key=True)

    def not_mapped(self, *names: str) -> RecordTypeBuilder:
        """Exclude fields from every statement."""
        return self._mark(names, not_mapped=True)

    def not_inserted(self, *names: str) -> RecordTypeBuilder:
        """Exclude fields from INSERT."""
        return self._mark(names, not_inserted=True)

    def not_updated(self, *names: str) -> RecordTypeBuilder:
        """Exclude fields from UPDATE's SET list."""
        return self._mark(names, not_updated=True)

    def column(self, name: str, column_name: str) -> RecordTypeBuilder:
        """Map a field onto a differently named column."""
        return self._mark((name,), column=column_name)

    def alternate_key(self, *names: str) -> RecordTypeBuilder:
        """Declare the fields that jointly form the alternate key."""
        self._alternate_key = names
        return self

    def _mark(self, names: tuple[str, ...], **changes: Any) -> RecordTypeBuilder:
        for name in names:
            self._markers.setdefault(name, {}).update(changes)
        return self

    def build(self) -> RecordTypeDescriptor:
        """Compile and validate the declarations into a RecordTypeDescriptor."""
        fields: dict[str, FieldDescriptor] = {}
        if self._auto_fields_enabled:
            fields = {f.name: f for f in _discover_fields(self._record_type)}
        # Explicit declarations replace discovered ones in place
        fields.update(self._fields)

        if not fields:
            raise DescriptorError(
                f"{self._record_type.__name__} has no fields: call .auto_fields() or .field()"
            )

        unknown = sorted(set(self._markers) - set(fields))
        if unknown:
            raise DescriptorError(
                f"{self._record_type.__name__} has no field(s) {unknown}"
            )

        for name, changes in self._markers.items():
            fields[name] = dataclasses.replace(fields[name], **changes)

        return RecordTypeDescriptor(
            record_type=self._record_type,
            fields=tuple(fields.values()),
            table=self._table,
            schema=self._schema,
            alternate_key=tuple(self._alternate_key),
        )
