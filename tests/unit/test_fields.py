"""Tests for field descriptors and the record field provider."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, ClassVar

import msgspec
import pytest

from recordtable.errors import FieldAccessError, InvalidArgumentError
from recordtable.fields import (
    GLOBAL_FIELD_REGISTRY,
    FieldDescriptor,
    RecordFieldRegistry,
    field_of,
    find_field,
    is_record_type,
    record_fields,
    register_record_fields,
)
from tests.test_helpers.records import (
    AgedFoo,
    Bar,
    CustomRecord,
    Foo,
    PrimitiveRecord,
    SubRecord,
    build_foo,
)


class StructRecord(msgspec.Struct):
    key: str
    count: int | None = None


class AnnotatedBase:
    id: int


class AnnotatedRecord(AnnotatedBase):
    kind: ClassVar[str] = "annotated"
    name: str
    _secret: str

    def __init__(self, record_id: int, name: str) -> None:
        self.id = record_id
        self.name = name
        self._secret = "hidden"

    @property
    def label(self) -> str:
        return f"{self.id}:{self.name}"

    @property
    def untyped(self):  # noqa: ANN201
        return None


class Risky:
    @property
    def ratio(self) -> float:
        return 1 / 0


class Opaque:
    def __init__(self, value: object) -> None:
        self.value = value


@pytest.fixture
def opaque_fields() -> Iterator[tuple[FieldDescriptor, ...]]:
    """Register a descriptor table for Opaque and remove it afterwards."""
    fields = (
        FieldDescriptor(
            name="value",
            declaring_type=Opaque,
            value_type=int,
            getter=lambda record: record.value,
        ),
        FieldDescriptor(
            name="doubled",
            declaring_type=Opaque,
            value_type=int,
            getter=lambda record: record.value * 2,
        ),
    )
    register_record_fields(Opaque, fields)
    yield fields
    GLOBAL_FIELD_REGISTRY.unregister(Opaque)


def test_dataclass_fields_in_declaration_order() -> None:
    """Describe dataclass fields in declaration order with resolved types."""
    fields = record_fields(PrimitiveRecord)
    assert [item.name for item in fields] == ["id", "name", "amount"]
    assert [item.value_type.__name__ for item in fields] == ["int", "str", "Decimal"]
    assert all(item.declaring_type is PrimitiveRecord for item in fields)


def test_optional_annotation_is_unwrapped() -> None:
    """Strip ``| None`` from the value type and mark the field nullable."""
    foo = field_of(CustomRecord, "foo")
    hot = field_of(CustomRecord, "hot")
    assert foo.value_type is Foo
    assert foo.nullable is True
    assert hot.value_type is bool
    assert hot.nullable is False


def test_struct_fields() -> None:
    """Describe msgspec Struct fields."""
    fields = record_fields(StructRecord)
    assert [item.name for item in fields] == ["key", "count"]
    assert fields[1].value_type is int
    assert fields[1].nullable is True


def test_annotated_class_fields() -> None:
    """Describe annotations base-first, then annotated properties."""
    fields = record_fields(AnnotatedRecord)
    assert [item.name for item in fields] == ["id", "name", "label"]
    assert field_of(AnnotatedRecord, "label").read(AnnotatedRecord(3, "x")) == "3:x"


def test_private_fields_are_opt_in() -> None:
    """Return underscore-prefixed fields only when requested."""
    names = [item.name for item in record_fields(AnnotatedRecord, include_private=True)]
    assert "_secret" in names
    assert find_field(AnnotatedRecord, "_secret") is None
    assert field_of(AnnotatedRecord, "_secret").name == "_secret"


def test_descriptor_equality_ignores_value_type() -> None:
    """Compare descriptors by name and declaring type only."""
    reflected = field_of(Foo, "age")
    manual = FieldDescriptor(name="age", declaring_type=Foo, value_type=str)
    assert reflected == manual
    assert hash(reflected) == hash(manual)
    assert reflected != FieldDescriptor(name="age", declaring_type=Bar)
    assert reflected in set(record_fields(Foo))


def test_read_rejects_foreign_record() -> None:
    """Raise FieldAccessError when reading from a record of another type."""
    with pytest.raises(FieldAccessError, match=r"Foo\.age"):
        field_of(Foo, "age").read(Bar(tab=1.0, payable_now=True))


def test_read_wraps_missing_attribute() -> None:
    """Chain attribute failures into FieldAccessError."""
    foo = build_foo(1)
    del foo.age
    with pytest.raises(FieldAccessError) as excinfo:
        field_of(Foo, "age").read(foo)
    assert isinstance(excinfo.value.__cause__, AttributeError)


def test_read_wraps_failing_property() -> None:
    """Chain any exception raised by a property into FieldAccessError."""
    with pytest.raises(FieldAccessError, match=r"Risky\.ratio") as excinfo:
        field_of(Risky, "ratio").read(Risky())
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)


def test_read_wraps_failing_getter() -> None:
    """Chain getter failures into FieldAccessError."""

    def parse(record: object) -> object:
        msg = f"cannot parse {record!r}"
        raise ValueError(msg)

    descriptor = FieldDescriptor(name="value", declaring_type=Opaque, getter=parse)
    with pytest.raises(FieldAccessError) as excinfo:
        descriptor.read(Opaque("x"))
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_inherited_fields_name_the_defining_class() -> None:
    """Declare inherited fields on the base so lookups agree across subclasses."""
    assert field_of(SubRecord, "hot") == field_of(CustomRecord, "hot")
    assert field_of(SubRecord, "hot").declaring_type is CustomRecord
    assert field_of(SubRecord, "note").declaring_type is SubRecord
    assert field_of(AgedFoo, "age").declaring_type is Foo
    assert field_of(AnnotatedRecord, "id").declaring_type is AnnotatedBase
    assert field_of(AnnotatedRecord, "label").declaring_type is AnnotatedRecord
    assert [item.name for item in record_fields(SubRecord)] == ["id", "foo", "bar", "hot", "note"]


def test_field_of_unknown_name() -> None:
    """Raise InvalidArgumentError for unknown field names."""
    with pytest.raises(InvalidArgumentError, match="has no field 'missing'"):
        field_of(Foo, "missing")


def test_record_fields_requires_a_class() -> None:
    """Reject non-class record types."""
    with pytest.raises(InvalidArgumentError):
        record_fields("Foo")  # type: ignore[arg-type]


def test_registered_table_takes_precedence(
    opaque_fields: tuple[FieldDescriptor, ...],
) -> None:
    """Use the registered descriptor table and its getters."""
    assert record_fields(Opaque) == opaque_fields
    assert is_record_type(Opaque)
    assert field_of(Opaque, "doubled").read(Opaque(4)) == 8


def test_registry_validates_tables() -> None:
    """Reject foreign descriptors, repeated names and re-registration."""
    registry = RecordFieldRegistry()
    with pytest.raises(InvalidArgumentError, match="does not belong"):
        registry.register(Opaque, [field_of(Foo, "age")])
    registry.register(AgedFoo, [field_of(Foo, "age"), field_of(AgedFoo, "retired")])
    repeated = FieldDescriptor(name="value", declaring_type=Opaque)
    with pytest.raises(InvalidArgumentError, match="Duplicate field"):
        registry.register(Opaque, [repeated, repeated])
    registry.register(Opaque, [repeated])
    with pytest.raises(InvalidArgumentError, match="already registered"):
        registry.register(Opaque, [])
    registry.register(Opaque, [], overwrite=True)
    assert registry.get(Opaque) == ()
    assert Opaque in registry
    assert set(registry.snapshot()) == {AgedFoo, Opaque}


@pytest.mark.parametrize(
    ("value_type", "expected"),
    [
        (Foo, True),
        (StructRecord, True),
        (AnnotatedRecord, True),
        (int, False),
        (str, False),
        (Any, False),
        (list[int], False),
    ],
)
def test_is_record_type(value_type: object, *, expected: bool) -> None:
    """Recognize types that expose fields."""
    assert is_record_type(value_type) is expected
