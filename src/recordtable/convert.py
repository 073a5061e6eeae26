"""Public conversion entry points."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeAlias

from recordtable.config import ConversionOptions, resolve_options
from recordtable.errors import InvalidArgumentError
from recordtable.fields import FieldDescriptor, find_field, record_fields
from recordtable.populate import populate_rows
from recordtable.schema import build_schema, resolve_flattened
from recordtable.validation import ensure_iterable

if TYPE_CHECKING:
    import threading

    from recordtable.table import Table

_LOGGER = logging.getLogger(__name__)

FieldRef: TypeAlias = FieldDescriptor | str


def _materialize(records: Iterable[object] | None) -> list[object]:
    return list(ensure_iterable(records, label="records"))


def _record_type(rows: list[object], record_type: type | None) -> type:
    if record_type is not None:
        return record_type
    if not rows:
        msg = "record_type is required when records is empty"
        raise InvalidArgumentError(msg)
    return type(rows[0])


def _flatten_descriptors(
    flatten: Iterable[FieldRef],
    *,
    record_type: type,
    include_private: bool,
) -> list[FieldDescriptor]:
    descriptors: list[FieldDescriptor] = []
    for ref in ensure_iterable(flatten, label="flatten"):
        if isinstance(ref, FieldDescriptor):
            descriptors.append(ref)
            continue
        if not isinstance(ref, str):
            msg = f"flatten entries must be FieldDescriptor or str, got {type(ref).__name__}"
            raise InvalidArgumentError(msg)
        descriptor = find_field(record_type, ref, include_private=include_private)
        if descriptor is None:
            _LOGGER.debug("Ignoring unknown flatten field %r of %s", ref, record_type.__qualname__)
            continue
        descriptors.append(descriptor)
    return descriptors


def to_table(
    records: Iterable[object],
    flatten: Iterable[FieldRef] | None = None,
    *,
    record_type: type | None = None,
    options: ConversionOptions | None = None,
    cancel: threading.Event | None = None,
) -> Table:
    """Convert records into a table with one column per record field.

    Parameters
    ----------
    records
        Homogeneous records; iterated once.
    flatten
        Fields of the record type (descriptors or names) whose value type is
        a record type; each is replaced in place by that type's fields. Fields
        that do not belong to the record type are ignored.
    record_type
        Type of the records. Defaults to the type of the first record and is
        required when ``records`` is empty.
    options
        Conversion options; read from the environment when omitted.
    cancel
        Optional event checked once per record.

    Returns
    -------
    Table
        New table with the derived columns and one row per record.

    Raises
    ------
    InvalidArgumentError
        Raised when ``records`` is missing, the record type cannot be
        determined, a flatten entry is malformed, or a flatten field of the
        record type holds a value type that is not a record type. Such a
        field is rejected rather than dropped from the columns.
    FieldAccessError
        Raised when a field cannot be read from a record.
    """
    rows = _materialize(records)
    resolved_type = _record_type(rows, record_type)
    resolved = resolve_options(options)
    fields = record_fields(resolved_type, include_private=resolved.include_private)
    if flatten is not None:
        requests = _flatten_descriptors(
            flatten,
            record_type=resolved_type,
            include_private=resolved.include_private,
        )
        fields = resolve_flattened(fields, requests, include_private=resolved.include_private)
    table = build_schema(fields)
    return populate_rows(
        table,
        fields,
        rows,
        record_type=resolved_type,
        options=resolved,
        cancel=cancel,
    )


def to_table_explicit(
    records: Iterable[object],
    fields: Iterable[FieldDescriptor],
    *,
    record_type: type | None = None,
    options: ConversionOptions | None = None,
    cancel: threading.Event | None = None,
) -> Table:
    """Convert records into a table with exactly the given columns.

    Parameters
    ----------
    records
        Homogeneous records; iterated once.
    fields
        Ordered descriptors, each a field of the record type or of a record
        type held by exactly one of its fields.
    record_type
        Type of the records. Defaults to the type of the first record; when
        omitted for an empty input the table has columns but no rows.
    options
        Conversion options; read from the environment when omitted.
    cancel
        Optional event checked once per record.

    Returns
    -------
    Table
        New table with one column per field and one row per record.

    Raises
    ------
    InvalidArgumentError
        Raised when ``records`` or ``fields`` is missing.
    SchemaMismatchError
        Raised when a field cannot be reached from the record type.
    FieldAccessError
        Raised when a field cannot be read from a record.
    """
    rows = _materialize(records)
    columns = tuple(ensure_iterable(fields, label="fields"))
    table = build_schema(columns)
    if record_type is None and not rows:
        return table
    return populate_rows(
        table,
        columns,
        rows,
        record_type=_record_type(rows, record_type),
        options=options,
        cancel=cancel,
    )


__all__ = ["FieldRef", "to_table", "to_table_explicit"]
