"""Schema construction and field flattening."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from recordtable.errors import InvalidArgumentError
from recordtable.fields import FieldDescriptor, is_record_type, record_fields
from recordtable.table import Column, Table
from recordtable.validation import ensure_iterable

_LOGGER = logging.getLogger(__name__)


def column_for(descriptor: FieldDescriptor) -> Column:
    """Return the column describing a field descriptor."""
    return Column(
        name=descriptor.name,
        value_type=descriptor.value_type,
        nullable=descriptor.nullable,
    )


def build_schema(fields: Iterable[FieldDescriptor] | None) -> Table:
    """Return an empty table with one column per field descriptor.

    Column order, names and value types are copied verbatim from the
    descriptors. Duplicate names are kept as duplicate columns.

    Parameters
    ----------
    fields
        Ordered field descriptors.

    Returns
    -------
    Table
        Table with the derived columns and no rows.

    Raises
    ------
    InvalidArgumentError
        Raised when ``fields`` is missing or holds a non-descriptor.
    """
    columns: list[Column] = []
    for descriptor in ensure_iterable(fields, label="fields"):
        if not isinstance(descriptor, FieldDescriptor):
            msg = f"fields must contain FieldDescriptor values, got {type(descriptor).__name__}"
            raise InvalidArgumentError(msg)
        columns.append(column_for(descriptor))
    return Table(columns=tuple(columns))


def resolve_flattened(
    natural_fields: Sequence[FieldDescriptor],
    flatten_fields: Iterable[FieldDescriptor],
    *,
    include_private: bool = False,
) -> tuple[FieldDescriptor, ...]:
    """Replace each flatten field with the fields of its value type.

    Natural fields are walked in order; each one that was requested is
    replaced in place by the ordered fields of its value type. Expanded
    fields are not expanded again, so a nested record field inside the
    expansion stays a single column. Requests that are not natural fields
    of the record type are ignored.

    Parameters
    ----------
    natural_fields
        Ordered fields of the top-level record type.
    flatten_fields
        Fields to expand; request order does not affect the result.
    include_private
        Whether expansions include private fields of the nested type.

    Returns
    -------
    tuple[FieldDescriptor, ...]
        Resolved field list.

    Raises
    ------
    InvalidArgumentError
        Raised when a requested field's value type is not a record type.
    """
    requests = set(flatten_fields)
    for ignored in requests.difference(natural_fields):
        _LOGGER.debug("Ignoring flatten request for %s", ignored.qualified_name)
    resolved: list[FieldDescriptor] = []
    for descriptor in natural_fields:
        if descriptor not in requests:
            resolved.append(descriptor)
            continue
        if not is_record_type(descriptor.value_type):
            msg = (
                f"Cannot flatten {descriptor.qualified_name}: "
                f"{descriptor.value_type!r} is not a record type"
            )
            raise InvalidArgumentError(msg)
        position = len(resolved)
        expansion = record_fields(descriptor.value_type, include_private=include_private)
        resolved.extend(expansion)
        _LOGGER.debug(
            "Flattened %s into %d fields at position %d",
            descriptor.qualified_name,
            len(expansion),
            position,
        )
    return tuple(resolved)


__all__ = ["build_schema", "column_for", "resolve_flattened"]
