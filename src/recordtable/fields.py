"""Field descriptors and the record field provider.

Record types describe their fields in one of four ways, checked in order:

- an explicit descriptor table registered with ``register_record_fields``
- dataclass fields, in declaration order
- msgspec ``Struct`` fields, in declaration order
- class annotations (base classes first) followed by annotated properties

Every descriptor names the class that defines the field as its
``declaring_type``, so an inherited field compares equal on the base class and
its subclasses. Names starting with an underscore are private and only
returned when ``include_private`` is set.
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import logging
import operator
import types
import typing
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, TypeAlias, Union

import msgspec

from recordtable.errors import FieldAccessError, InvalidArgumentError

_LOGGER = logging.getLogger(__name__)

FieldGetter: TypeAlias = Callable[[object], object]


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldDescriptor:
    """Named, typed field of a record type.

    Equality and hashing use ``(name, declaring_type)`` only, so descriptors
    obtained from separate lookups of the same field compare equal.
    """

    name: str
    declaring_type: type
    value_type: Any = field(default=object, compare=False)
    nullable: bool = field(default=False, compare=False)
    getter: FieldGetter | None = field(default=None, compare=False, repr=False)

    @property
    def qualified_name(self) -> str:
        """Return ``DeclaringType.name`` for messages."""
        return f"{self.declaring_type.__qualname__}.{self.name}"

    @property
    def is_private(self) -> bool:
        """Return whether the field name marks a private field."""
        return self.name.startswith("_")

    def read(self, record: object) -> object:
        """Read this field's value from a record of the declaring type.

        Parameters
        ----------
        record
            Instance of ``declaring_type`` (or a subclass).

        Returns
        -------
        object
            Field value, possibly ``None``.

        Raises
        ------
        FieldAccessError
            Raised when the record is not an instance of the declaring type or
            the value cannot be read.
        """
        if not isinstance(record, self.declaring_type):
            msg = f"Cannot read {self.qualified_name} from a {type(record).__qualname__} record"
            raise FieldAccessError(msg)
        try:
            if self.getter is not None:
                return self.getter(record)
            return getattr(record, self.name)
        except Exception as exc:
            msg = f"Failed to read {self.qualified_name}: {exc}"
            raise FieldAccessError(msg) from exc


@dataclass
class RecordFieldRegistry:
    """Mutable registry of explicit descriptor tables keyed by record type."""

    _entries: dict[type, tuple[FieldDescriptor, ...]] = field(default_factory=dict)

    def register(
        self,
        record_type: type,
        fields: Iterable[FieldDescriptor],
        *,
        overwrite: bool = False,
    ) -> None:
        """Register the ordered descriptor table for a record type.

        Raises
        ------
        InvalidArgumentError
            Raised when the type is already registered without ``overwrite``,
            a descriptor belongs to another type, or a name repeats.
        """
        if record_type in self._entries and not overwrite:
            msg = f"Record type {record_type.__qualname__} already registered. Use overwrite=True."
            raise InvalidArgumentError(msg)
        table = tuple(fields)
        names: set[str] = set()
        for item in table:
            if not issubclass(record_type, item.declaring_type):
                msg = (
                    f"Descriptor {item.qualified_name} does not belong to "
                    f"{record_type.__qualname__}"
                )
                raise InvalidArgumentError(msg)
            if item.name in names:
                msg = f"Duplicate field {item.name!r} for {record_type.__qualname__}"
                raise InvalidArgumentError(msg)
            names.add(item.name)
        self._entries[record_type] = table

    def unregister(self, record_type: type) -> None:
        """Remove the descriptor table for a record type, if present."""
        self._entries.pop(record_type, None)

    def get(self, record_type: type) -> tuple[FieldDescriptor, ...] | None:
        """Return the registered descriptor table, or ``None`` when missing."""
        return self._entries.get(record_type)

    def __contains__(self, record_type: object) -> bool:
        """Check whether a record type is registered."""
        return record_type in self._entries

    def snapshot(self) -> Mapping[type, tuple[FieldDescriptor, ...]]:
        """Return a copy of the registered descriptor tables."""
        return dict(self._entries)

    def restore(self, snapshot: Mapping[type, tuple[FieldDescriptor, ...]]) -> None:
        """Replace the registered descriptor tables with a snapshot."""
        self._entries = dict(snapshot)


GLOBAL_FIELD_REGISTRY = RecordFieldRegistry()


def register_record_fields(
    record_type: type,
    fields: Iterable[FieldDescriptor],
    *,
    overwrite: bool = False,
) -> None:
    """Register an explicit descriptor table in the global registry."""
    GLOBAL_FIELD_REGISTRY.register(record_type, fields, overwrite=overwrite)


def _strip_annotated(annotation: object) -> object:
    while typing.get_origin(annotation) is Annotated:
        annotation = typing.get_args(annotation)[0]
    return annotation


def _split_optional(annotation: object) -> tuple[object, bool]:
    annotation = _strip_annotated(annotation)
    if annotation is None or annotation is type(None):
        return type(None), True
    origin = typing.get_origin(annotation)
    if origin is not Union and origin is not types.UnionType:
        return annotation, False
    args = typing.get_args(annotation)
    members = tuple(_strip_annotated(arg) for arg in args if arg is not type(None))
    if len(members) == len(args):
        return annotation, False
    if len(members) == 1:
        return members[0], True
    return functools.reduce(operator.or_, members), True


def _is_class_var(annotation: object) -> bool:
    if annotation is ClassVar or typing.get_origin(annotation) is ClassVar:
        return True
    return isinstance(annotation, str) and annotation.startswith(("ClassVar", "typing.ClassVar"))


def _type_hints(target: object) -> Mapping[str, object]:
    try:
        return typing.get_type_hints(target)
    except (AttributeError, NameError, TypeError) as exc:
        _LOGGER.debug("Using unresolved annotations for %r: %s", target, exc)
    if not isinstance(target, type):
        return inspect.get_annotations(target)
    hints: dict[str, object] = {}
    for base in reversed(target.__mro__):
        hints.update(inspect.get_annotations(base))
    return hints


def _class_members(record_type: type) -> dict[str, object]:
    members: dict[str, object] = {}
    for base in reversed(record_type.__mro__):
        if base is object:
            continue
        members.update(vars(base))
    return members


def _dataclass_members(record_type: type) -> Iterator[tuple[str, object]]:
    hints = _type_hints(record_type)
    for item in dataclasses.fields(record_type):
        yield item.name, hints.get(item.name, item.type)


def _struct_members(record_type: type[msgspec.Struct]) -> Iterator[tuple[str, object]]:
    for info in msgspec.structs.fields(record_type):
        yield info.name, info.type


def _annotated_members(record_type: type) -> Iterator[tuple[str, object]]:
    seen: set[str] = set()
    for name, annotation in _type_hints(record_type).items():
        if _is_class_var(annotation):
            continue
        seen.add(name)
        yield name, annotation
    for name, member in _class_members(record_type).items():
        if name in seen or not isinstance(member, property) or member.fget is None:
            continue
        returns = _type_hints(member.fget).get("return")
        if returns is None:
            continue
        yield name, returns


def _members(record_type: type) -> Iterator[tuple[str, object]]:
    if dataclasses.is_dataclass(record_type):
        return _dataclass_members(record_type)
    if issubclass(record_type, msgspec.Struct):
        return _struct_members(record_type)
    return _annotated_members(record_type)


def _declaring_class(record_type: type, name: str) -> type:
    for base in record_type.__mro__:
        if name in inspect.get_annotations(base):
            return base
    for base in record_type.__mro__:
        if name in vars(base):
            return base
    return record_type


@functools.cache
def _reflect_fields(record_type: type, include_private: bool) -> tuple[FieldDescriptor, ...]:
    descriptors: list[FieldDescriptor] = []
    for name, annotation in _members(record_type):
        if name.startswith("_") and not include_private:
            continue
        value_type, nullable = _split_optional(annotation)
        descriptors.append(
            FieldDescriptor(
                name=name,
                declaring_type=_declaring_class(record_type, name),
                value_type=value_type,
                nullable=nullable,
            )
        )
    return tuple(descriptors)


def record_fields(
    record_type: type,
    *,
    include_private: bool = False,
) -> tuple[FieldDescriptor, ...]:
    """Return the ordered field descriptors of a record type.

    Parameters
    ----------
    record_type
        Record type to describe.
    include_private
        Whether to include fields whose name starts with an underscore.

    Returns
    -------
    tuple[FieldDescriptor, ...]
        Descriptors in the type's natural order.

    Raises
    ------
    InvalidArgumentError
        Raised when ``record_type`` is not a class.
    """
    if not isinstance(record_type, type):
        msg = f"record_type must be a class, got {record_type!r}"
        raise InvalidArgumentError(msg)
    registered = GLOBAL_FIELD_REGISTRY.get(record_type)
    if registered is None:
        return _reflect_fields(record_type, include_private)
    if include_private:
        return registered
    return tuple(item for item in registered if not item.is_private)


def is_record_type(value_type: object) -> bool:
    """Return whether a value type exposes fields that can be flattened."""
    if not isinstance(value_type, type):
        return False
    if value_type in GLOBAL_FIELD_REGISTRY:
        return True
    if dataclasses.is_dataclass(value_type) or issubclass(value_type, msgspec.Struct):
        return True
    if value_type.__module__ == "builtins":
        return False
    return bool(_reflect_fields(value_type, False))


def find_field(
    record_type: type,
    name: str,
    *,
    include_private: bool = False,
) -> FieldDescriptor | None:
    """Return the descriptor named ``name`` on ``record_type``, or ``None``."""
    for item in record_fields(record_type, include_private=include_private):
        if item.name == name:
            return item
    return None


def field_of(record_type: type, name: str) -> FieldDescriptor:
    """Return the descriptor named ``name`` on ``record_type``.

    Private fields are found when named explicitly.

    Raises
    ------
    InvalidArgumentError
        Raised when the type has no such field.
    """
    descriptor = find_field(record_type, name, include_private=True)
    if descriptor is None:
        msg = f"{record_type.__qualname__} has no field {name!r}"
        raise InvalidArgumentError(msg)
    return descriptor


__all__ = [
    "GLOBAL_FIELD_REGISTRY",
    "FieldDescriptor",
    "FieldGetter",
    "RecordFieldRegistry",
    "field_of",
    "find_field",
    "is_record_type",
    "record_fields",
    "register_record_fields",
]
