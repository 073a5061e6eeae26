"""Convert sequences of typed records into tables."""

from __future__ import annotations

from recordtable.arrow import table_to_arrow
from recordtable.config import ConversionOptions
from recordtable.convert import FieldRef, to_table, to_table_explicit
from recordtable.errors import (
    ConversionCancelledError,
    FieldAccessError,
    InvalidArgumentError,
    RecordTableError,
    SchemaMismatchError,
)
from recordtable.fields import (
    FieldDescriptor,
    field_of,
    record_fields,
    register_record_fields,
)
from recordtable.populate import populate_rows
from recordtable.schema import build_schema, resolve_flattened
from recordtable.table import ABSENT, Column, Table

__all__ = [
    "ABSENT",
    "Column",
    "ConversionCancelledError",
    "ConversionOptions",
    "FieldAccessError",
    "FieldDescriptor",
    "FieldRef",
    "InvalidArgumentError",
    "RecordTableError",
    "SchemaMismatchError",
    "Table",
    "build_schema",
    "field_of",
    "populate_rows",
    "record_fields",
    "register_record_fields",
    "resolve_flattened",
    "table_to_arrow",
    "to_table",
    "to_table_explicit",
]
