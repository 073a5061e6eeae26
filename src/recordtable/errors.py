"""Error types raised by record-to-table conversion."""

from __future__ import annotations


class RecordTableError(Exception):
    """Base class for record table errors."""


class InvalidArgumentError(RecordTableError, ValueError):
    """Raised when a required input is missing or malformed."""


class FieldAccessError(RecordTableError, RuntimeError):
    """Raised when a field value cannot be read from a record."""


class SchemaMismatchError(RecordTableError, ValueError):
    """Raised when a field or row does not fit the table schema."""


class ConversionCancelledError(RecordTableError, RuntimeError):
    """Raised when a conversion is cancelled before completion."""


__all__ = [
    "ConversionCancelledError",
    "FieldAccessError",
    "InvalidArgumentError",
    "RecordTableError",
    "SchemaMismatchError",
]
