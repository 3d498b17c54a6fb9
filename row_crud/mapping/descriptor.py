"""Record type descriptor data classes.

Frozen dataclasses describing the shape of one record type: its fields,
their per-field markers, and type-level table and alternate-key metadata.
Descriptors are built once (usually with ``describe(...)``) and handed to
the statement synthesizer; they are never mutated.
"""

from __future__ import annotations

import datetime
import types
import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union, get_args, get_origin

from row_crud.core.exceptions import DescriptorError

# dataclasses.field(metadata=...) key holding a ColumnInfo
METADATA_KEY = "row_crud"

_SCALAR_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    str,
    bytes,
    Decimal,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
)
_SCALAR_NAMES = frozenset(t.__name__ for t in _SCALAR_TYPES)


@dataclass(frozen=True)
class ColumnInfo:
    """Per-field markers declared alongside a dataclass field."""

    column: str | None = None
    key: bool = False
    not_inserted: bool = False
    not_updated: bool = False
    not_mapped: bool = False


def column(
    name: str | None = None,
    *,
    key: bool = False,
    not_inserted: bool = False,
    not_updated: bool = False,
    not_mapped: bool = False,
) -> dict[str, ColumnInfo]:
    """Build ``dataclasses.field`` metadata carrying column markers.

    Example:
        >>> from dataclasses import dataclass, field
        >>> @dataclass
        ... class Invoice:
        ...     id: int = 0
        ...     number: str = field(default="", metadata=column(key=True))
        ...     notes: str = field(default="", metadata=column("memo"))
    """
    return {
        METADATA_KEY: ColumnInfo(
            column=name,
            key=key,
            not_inserted=not_inserted,
            not_updated=not_updated,
            not_mapped=not_mapped,
        )
    }


def is_scalar_type(annotation: Any) -> bool:
    """Return True for primitive, string, and optional-scalar annotations.

    Unresolved string annotations (``"int | None"``) are matched by name.
    """
    if isinstance(annotation, str):
        return _is_scalar_name(annotation)

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        return len(args) == 1 and is_scalar_type(args[0])
    if origin is not None:
        return False

    if not isinstance(annotation, type):
        return False
    return issubclass(annotation, _SCALAR_TYPES) or issubclass(annotation, Enum)


def _is_scalar_name(text: str) -> bool:
    text = text.strip()
    if text.startswith("Optional[") and text.endswith("]"):
        text = text[len("Optional[") : -1]
    parts = [part.strip() for part in text.split("|") if part.strip() != "None"]
    return len(parts) == 1 and parts[0].rsplit(".", 1)[-1] in _SCALAR_NAMES


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a record type.

    ``type`` is the field's annotation; None means the caller declared the
    field explicitly without a type, which is treated as a scalar.
    """

    name: str
    type: Any = None
    readable: bool = True
    not_mapped: bool = False
    not_inserted: bool = False
    not_updated: bool = False
    is_key: bool = False
    column: str | None = None

    @property
    def is_scalar(self) -> bool:
        return self.type is None or is_scalar_type(self.type)


@dataclass(frozen=True)
class RecordTypeDescriptor:
    """The shape of one record type, supplied once per type."""

    record_type: type
    fields: tuple[FieldDescriptor, ...]
    table: str | None = None
    schema: str | None = None
    alternate_key: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        """The record type's class name, used as the default table name."""
        return self.record_type.__name__

    @property
    def key_field(self) -> FieldDescriptor | None:
        """The primary key field: ``Id``, or any case variant such as ``id``."""
        for f in self.fields:
            if f.name == "Id":
                return f
        for f in self.fields:
            if f.name.lower() == "id":
                return f
        return None

    def field(self, name: str) -> FieldDescriptor:
        """Look up a field by exact name."""
        for f in self.fields:
            if f.name == name:
                return f
        raise DescriptorError(f"{self.name} has no field '{name}'")
