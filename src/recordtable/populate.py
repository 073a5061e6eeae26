"""Row population from records.

Each column is read through a ``CellSource`` planned once per conversion.
A field of the record type itself is read directly. Any other field is read
through the single record field whose value type is, or derives from, the
field's declaring type, and yields the absent marker when that parent value
is ``None``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from recordtable.config import ConversionOptions, resolve_options
from recordtable.errors import ConversionCancelledError, SchemaMismatchError
from recordtable.fields import FieldDescriptor, record_fields
from recordtable.table import ABSENT, Row, Table

if TYPE_CHECKING:
    import threading

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CellSource:
    """Read path for one column."""

    field: FieldDescriptor
    parent: FieldDescriptor | None = None

    def read(self, record: object) -> object:
        if self.parent is None:
            return self.field.read(record)
        parent_value = self.parent.read(record)
        if parent_value is None:
            return ABSENT
        return self.field.read(parent_value)


def _holds(item: FieldDescriptor, declaring_type: type) -> bool:
    try:
        return issubclass(item.value_type, declaring_type)
    except TypeError:
        return False


def _parent_field(
    descriptor: FieldDescriptor,
    own_fields: Sequence[FieldDescriptor],
    record_type: type,
) -> FieldDescriptor:
    declaring_type = descriptor.declaring_type
    candidates = [item for item in own_fields if item.value_type == declaring_type]
    if not candidates:
        candidates = [item for item in own_fields if _holds(item, declaring_type)]
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        msg = (
            f"Field {descriptor.qualified_name} is neither a field of "
            f"{record_type.__qualname__} nor reachable through one of its fields"
        )
    else:
        names = ", ".join(item.name for item in candidates)
        msg = (
            f"Field {descriptor.qualified_name} is reachable through more than one field "
            f"of {record_type.__qualname__}: {names}"
        )
    raise SchemaMismatchError(msg)


def plan_cells(
    fields: Iterable[FieldDescriptor],
    *,
    record_type: type,
    include_private: bool = False,
) -> tuple[CellSource, ...]:
    """Resolve the read path of every column.

    Parameters
    ----------
    fields
        Column fields in table order.
    record_type
        Type of the top-level records.
    include_private
        Whether private fields of the record type can hold nested fields.
        Private fields named explicitly are always read directly.

    Returns
    -------
    tuple[CellSource, ...]
        One read path per field.

    Raises
    ------
    SchemaMismatchError
        Raised when a field is not a field of ``record_type`` and no single
        field of ``record_type`` holds its declaring type or a subclass of it.
    """
    own_fields = record_fields(record_type, include_private=include_private)
    own = set(record_fields(record_type, include_private=True))
    plan: list[CellSource] = []
    for descriptor in fields:
        if descriptor in own:
            plan.append(CellSource(descriptor))
            continue
        parent = _parent_field(descriptor, own_fields, record_type)
        plan.append(CellSource(descriptor, parent))
    return tuple(plan)


def read_rows(
    plan: Sequence[CellSource],
    records: Iterable[object],
    *,
    cancel: threading.Event | None = None,
) -> list[Row]:
    """Read one row per record following the cell plan.

    Raises
    ------
    ConversionCancelledError
        Raised when ``cancel`` is set before a record is read.
    """
    rows: list[Row] = []
    for record in records:
        if cancel is not None and cancel.is_set():
            msg = f"Conversion cancelled after {len(rows)} records"
            raise ConversionCancelledError(msg)
        rows.append(tuple(source.read(record) for source in plan))
    return rows


def populate_rows(
    table: Table,
    fields: Sequence[FieldDescriptor],
    records: Iterable[object],
    *,
    record_type: type,
    options: ConversionOptions | None = None,
    cancel: threading.Event | None = None,
) -> Table:
    """Append one row per record to a table whose columns are already set.

    Rows are appended only after every record has been read, so a failed
    conversion leaves ``table`` unchanged.

    Parameters
    ----------
    table
        Table built from ``fields``.
    fields
        Column fields in table order.
    records
        Records of ``record_type``, in output order.
    record_type
        Type of the top-level records.
    options
        Conversion options; read from the environment when omitted.
    cancel
        Optional event checked once per record.

    Returns
    -------
    Table
        The same ``table``, populated.

    Raises
    ------
    SchemaMismatchError
        Raised when a field cannot be resolved against ``record_type`` or a
        row does not fit the table.
    FieldAccessError
        Raised when a value cannot be read from a record.
    ConversionCancelledError
        Raised when ``cancel`` is set during the conversion.
    """
    resolved = resolve_options(options)
    plan = plan_cells(fields, record_type=record_type, include_private=resolved.include_private)
    rows = read_rows(plan, records, cancel=cancel)
    table.extend_rows(rows, validate_cells=resolved.validate_cells)
    _LOGGER.debug(
        "Populated %d rows across %d columns for %s",
        len(rows),
        table.num_columns,
        record_type.__qualname__,
    )
    return table


__all__ = ["CellSource", "plan_cells", "populate_rows", "read_rows"]
