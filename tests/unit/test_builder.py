"""Unit tests for record type descriptors and the describe() DSL."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional

import pytest
from pydantic import BaseModel

from row_crud.core.exceptions import DescriptorError
from row_crud.mapping.builder import describe
from row_crud.mapping.descriptor import (
    FieldDescriptor,
    RecordTypeDescriptor,
    column,
    is_scalar_type,
)


class Status(Enum):
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass
class Sample:
    Id: int = 0
    Name: str = ""
    Description: str = ""
    Calculated: Decimal = field(default=Decimal(0), metadata=column(not_mapped=True))


@dataclass
class Account:
    id: int = 0
    number: str = field(default="", metadata=column("account_no", key=True))
    opened: str = field(default="", metadata=column(not_updated=True))
    touched: Optional[str] = field(default=None, metadata=column(not_inserted=True))


@dataclass
class Ticket:
    __alternate_key__: ClassVar[tuple[str, ...]] = ("Code",)

    Id: int = 0
    Code: str = ""


class Customer(BaseModel):
    Id: int = 0
    Email: str
    State: Status = Status.ACTIVE
    Tags: list[str] = []


class Invoice:
    Id: int
    Number: str
    _cache: dict
    kind: ClassVar[str] = "invoice"

    def __init__(self, Id: int = 0, Number: str = "") -> None:
        self.Id = Id
        self.Number = Number

    @property
    def Total(self) -> Decimal:
        return Decimal(0)

    Secret = property(fset=lambda self, value: None)


class TestIsScalarType:
    @pytest.mark.parametrize(
        "annotation",
        [int, str, bool, Decimal, bytes, Status, int | None, Optional[str], "int | None"],
    )
    def test_scalars(self, annotation: object) -> None:
        assert is_scalar_type(annotation) is True

    @pytest.mark.parametrize(
        "annotation",
        [list[int], dict[str, int], int | str, "list[int]", tuple],
    )
    def test_non_scalars(self, annotation: object) -> None:
        assert is_scalar_type(annotation) is False


class TestRecordTypeDescriptor:
    def test_frozen(self) -> None:
        descriptor = describe(Sample).auto_fields().build()
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.table = "other"  # type: ignore[misc]

    def test_name_is_class_name(self) -> None:
        descriptor = describe(Sample).auto_fields().build()
        assert descriptor.name == "Sample"

    def test_key_field_prefers_exact_id(self) -> None:
        descriptor = RecordTypeDescriptor(
            record_type=Sample,
            fields=(FieldDescriptor("ID"), FieldDescriptor("Id")),
        )
        assert descriptor.key_field is not None
        assert descriptor.key_field.name == "Id"

    def test_key_field_case_variant(self) -> None:
        descriptor = describe(Account).auto_fields().build()
        assert descriptor.key_field is not None
        assert descriptor.key_field.name == "id"

    def test_key_field_missing(self) -> None:
        descriptor = describe(Sample).field("Name").build()
        assert descriptor.key_field is None

    def test_field_lookup(self) -> None:
        descriptor = describe(Sample).auto_fields().build()
        assert descriptor.field("Name").type is str
        with pytest.raises(DescriptorError, match="no field 'Missing'"):
            descriptor.field("Missing")

    def test_untyped_field_is_scalar(self) -> None:
        assert FieldDescriptor("Anything").is_scalar is True


class TestDescribeDataclass:
    def test_auto_fields_in_declaration_order(self) -> None:
        descriptor = describe(Sample).auto_fields().build()
        assert [f.name for f in descriptor.fields] == ["Id", "Name", "Description", "Calculated"]

    def test_metadata_markers(self) -> None:
        descriptor = describe(Account).auto_fields().build()
        number = descriptor.field("number")
        assert number.is_key is True
        assert number.column == "account_no"
        assert descriptor.field("opened").not_updated is True
        assert descriptor.field("touched").not_inserted is True
        assert descriptor.field("touched").is_scalar is True

    def test_not_mapped_metadata(self) -> None:
        descriptor = describe(Sample).auto_fields().build()
        assert descriptor.field("Calculated").not_mapped is True

    def test_table_and_schema(self) -> None:
        descriptor = describe(Sample, "Samples", "whatever").auto_fields().build()
        assert descriptor.table == "Samples"
        assert descriptor.schema == "whatever"

    def test_defaults_leave_table_unset(self) -> None:
        descriptor = describe(Sample).auto_fields().build()
        assert descriptor.table is None
        assert descriptor.schema is None

    def test_alternate_key_class_attribute(self) -> None:
        descriptor = describe(Ticket).auto_fields().build()
        assert descriptor.alternate_key == ("Code",)
        assert [f.name for f in descriptor.fields] == ["Id", "Code"]


class TestDescribeMarkers:
    def test_builder_markers(self) -> None:
        descriptor = (
            describe(Sample)
            .auto_fields()
            .key("Name")
            .not_inserted("Description")
            .not_updated("Description")
            .column("Description", "descr")
            .build()
        )
        assert descriptor.field("Name").is_key is True
        description = descriptor.field("Description")
        assert description.not_inserted is True
        assert description.not_updated is True
        assert description.column == "descr"

    def test_not_mapped_marker(self) -> None:
        descriptor = describe(Sample).auto_fields().not_mapped("Description").build()
        assert descriptor.field("Description").not_mapped is True

    def test_alternate_key_marker(self) -> None:
        descriptor = describe(Sample).auto_fields().alternate_key("Name", "Description").build()
        assert descriptor.alternate_key == ("Name", "Description")

    def test_unknown_marker_name(self) -> None:
        with pytest.raises(DescriptorError, match="Nope"):
            describe(Sample).auto_fields().key("Nope").build()

    def test_no_fields(self) -> None:
        with pytest.raises(DescriptorError, match="has no fields"):
            describe(Sample).build()

    def test_explicit_field_replaces_discovered(self) -> None:
        descriptor = (
            describe(Sample).auto_fields().field("Name", str, column="sample_name").build()
        )
        assert [f.name for f in descriptor.fields] == ["Id", "Name", "Description", "Calculated"]
        assert descriptor.field("Name").column == "sample_name"

    def test_explicit_fields_only(self) -> None:
        descriptor = describe(Sample).field("Id", int).field("Name").build()
        assert [f.name for f in descriptor.fields] == ["Id", "Name"]
        assert descriptor.field("Name").type is None


class TestDescribePydantic:
    def test_model_fields(self) -> None:
        descriptor = describe(Customer).auto_fields().build()
        assert [f.name for f in descriptor.fields] == ["Id", "Email", "State", "Tags"]

    def test_enum_is_scalar_and_list_is_not(self) -> None:
        descriptor = describe(Customer).auto_fields().build()
        assert descriptor.field("State").is_scalar is True
        assert descriptor.field("Tags").is_scalar is False


class TestDescribePlainClass:
    def test_annotations_and_properties(self) -> None:
        descriptor = describe(Invoice).auto_fields().build()
        names = [f.name for f in descriptor.fields]
        assert names == ["Id", "Number", "Total", "Secret"]

    def test_property_types_and_readability(self) -> None:
        descriptor = describe(Invoice).auto_fields().build()
        assert descriptor.field("Total").type is Decimal
        assert descriptor.field("Total").readable is True
        assert descriptor.field("Secret").readable is False
