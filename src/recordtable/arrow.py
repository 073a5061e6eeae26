"""Export tables to Apache Arrow."""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from typing import TYPE_CHECKING

import pyarrow as pa

from recordtable.fields import is_record_type, record_fields

if TYPE_CHECKING:
    from recordtable.table import Column, Table

_PRIMITIVE_ARROW_TYPES: Mapping[type, pa.DataType] = {
    bool: pa.bool_(),
    int: pa.int64(),
    float: pa.float64(),
    str: pa.string(),
    bytes: pa.binary(),
    dt.datetime: pa.timestamp("us"),
    dt.date: pa.date32(),
    dt.time: pa.time64("us"),
    dt.timedelta: pa.duration("us"),
}


def arrow_type_for(value_type: object) -> pa.DataType | None:
    """Return the fixed Arrow type for a Python value type.

    Parameters
    ----------
    value_type
        Declared value type of a column.

    Returns
    -------
    pyarrow.DataType | None
        Arrow type for primitive Python types, or ``None`` when the type
        should be inferred from the values.
    """
    if not isinstance(value_type, type):
        return None
    return _PRIMITIVE_ARROW_TYPES.get(value_type)


def _arrow_value(value: object) -> object:
    if value is None or not is_record_type(type(value)):
        return value
    return {item.name: _arrow_value(item.read(value)) for item in record_fields(type(value))}


def column_to_arrow(column: Column, values: list[object]) -> tuple[pa.Field, pa.Array]:
    """Build the Arrow field and array for one column."""
    dtype = arrow_type_for(column.value_type)
    array = pa.array([_arrow_value(value) for value in values], type=dtype)
    nullable = column.nullable or array.null_count > 0 or pa.types.is_null(array.type)
    return pa.field(column.name, array.type, nullable=nullable), array


def table_to_arrow(table: Table) -> pa.Table:
    """Return a ``pyarrow.Table`` with one Arrow column per table column.

    Primitive Python types map to fixed Arrow types; decimals and nested
    records are inferred by pyarrow, nested records becoming structs of their
    public fields. Absent cells become Arrow nulls.

    Parameters
    ----------
    table
        Table to export.

    Returns
    -------
    pyarrow.Table
        Arrow table with the same column order and row count.
    """
    fields: list[pa.Field] = []
    arrays: list[pa.Array] = []
    for index, column in enumerate(table.columns):
        field, array = column_to_arrow(column, [row[index] for row in table.rows])
        fields.append(field)
        arrays.append(array)
    return pa.Table.from_arrays(arrays, schema=pa.schema(fields))


__all__ = ["arrow_type_for", "column_to_arrow", "table_to_arrow"]
