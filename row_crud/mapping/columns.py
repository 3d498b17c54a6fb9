"""Column mapping extraction.

Decides, for one record type, which fields participate in which statement
and under which column name. Column names are kept exactly as declared;
dialect formatting happens later, during statement synthesis.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from row_crud.core.enums import StatementKind
from row_crud.mapping.descriptor import FieldDescriptor, RecordTypeDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnMapping:
    """How one field maps onto a column.

    ``column_name`` is the physical column (the field name unless aliased);
    ``parameter_name`` is always the field name and is what gets bound.
    """

    column_name: str
    parameter_name: str
    for_insert: bool = True
    for_update: bool = True
    is_key: bool = False


def is_eligible(field: FieldDescriptor) -> bool:
    """A field is mapped only if readable, not excluded, and scalar."""
    return field.readable and not field.not_mapped and field.is_scalar


def extract_column_mappings(
    descriptor: RecordTypeDescriptor,
    statement_kind: StatementKind | None = None,
) -> tuple[ColumnMapping, ...]:
    """Build the ordered column mappings for a record type.

    Args:
        descriptor: The record type to inspect.
        statement_kind: Optional filter that additionally drops fields marked
            not-inserted (INSERT) or not-updated (UPDATE). Without it every
            eligible field is returned, tagged with its participation flags.

    Returns:
        Column mappings in field declaration order. An empty or keyless
        result is valid here; synthesis rejects what it cannot use.
    """
    key_field = descriptor.key_field
    mappings: list[ColumnMapping] = []

    for field in descriptor.fields:
        if not is_eligible(field):
            continue
        if statement_kind is StatementKind.INSERT and field.not_inserted:
            continue
        if statement_kind is StatementKind.UPDATE and field.not_updated:
            continue

        column_name = field.column or field.name
        if key_field is not None and field.name == key_field.name:
            mappings.append(
                ColumnMapping(
                    column_name=column_name,
                    parameter_name=field.name,
                    for_insert=False,
                    for_update=False,
                    is_key=True,
                )
            )
            continue

        mappings.append(
            ColumnMapping(
                column_name=column_name,
                parameter_name=field.name,
                for_insert=not field.not_inserted,
                for_update=not field.not_updated,
                is_key=field.is_key,
            )
        )

    if descriptor.alternate_key:
        mappings = _mark_alternate_key(mappings, descriptor.alternate_key)

    logger.debug(
        "Extracted %d column mappings for %s", len(mappings), descriptor.name
    )
    return tuple(mappings)


def _mark_alternate_key(
    mappings: list[ColumnMapping],
    names: Iterable[str],
) -> list[ColumnMapping]:
    wanted = {name.lower() for name in names}
    return [
        dataclasses.replace(m, is_key=True)
        if m.column_name.lower() in wanted or m.parameter_name.lower() in wanted
        else m
        for m in mappings
    ]


def has_alternate_key(mappings: Iterable[ColumnMapping]) -> bool:
    """True if any key column is also updatable (i.e. not the primary key)."""
    return any(m.is_key and m.for_update for m in mappings)
