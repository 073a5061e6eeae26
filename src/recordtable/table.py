"""Table and column result types."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, TypeAlias

from recordtable.arrow import table_to_arrow
from recordtable.errors import InvalidArgumentError, SchemaMismatchError
from recordtable.serde import StructBaseStrict, dumps_json

if TYPE_CHECKING:
    import pyarrow as pa

ABSENT: Final = None

Row: TypeAlias = tuple[object, ...]


class Column(StructBaseStrict, frozen=True):
    """Named, typed column of a table."""

    name: str
    value_type: Any = object
    nullable: bool = False


def value_matches(value: object, value_type: object) -> bool:
    """Return whether a cell value is compatible with a declared value type.

    The absent marker matches every type. Annotations that are not plain
    classes (``typing.Any``, generic aliases, unions) are not checked, and
    ``int`` values are accepted for ``float`` columns.
    """
    if value is ABSENT or not isinstance(value_type, type) or value_type is object:
        return True
    if value_type is float and isinstance(value, int) and not isinstance(value, bool):
        return True
    try:
        return isinstance(value, value_type)
    except TypeError:
        return True


@dataclass
class Table:
    """Ordered columns plus positionally aligned rows."""

    columns: tuple[Column, ...] = ()
    rows: list[Row] = field(default_factory=list)

    @property
    def num_columns(self) -> int:
        """Return the column count."""
        return len(self.columns)

    @property
    def num_rows(self) -> int:
        """Return the row count."""
        return len(self.rows)

    @property
    def column_names(self) -> list[str]:
        """Return column names in order."""
        return [column.name for column in self.columns]

    def __len__(self) -> int:
        return len(self.rows)

    def column_index(self, name: str) -> int:
        """Return the position of the first column named ``name``.

        Raises
        ------
        InvalidArgumentError
            Raised when no column has that name.
        """
        for index, column in enumerate(self.columns):
            if column.name == name:
                return index
        msg = f"Table has no column {name!r}; available: {self.column_names}"
        raise InvalidArgumentError(msg)

    def column(self, name: str) -> list[object]:
        """Return the values of the first column named ``name``, in row order."""
        index = self.column_index(name)
        return [row[index] for row in self.rows]

    def check_row(self, values: Sequence[object], *, validate_cells: bool = False) -> Row:
        """Validate a row against the schema and return it as a tuple.

        Parameters
        ----------
        values
            Cell values in column order.
        validate_cells
            Whether to check each present cell against its column type.

        Returns
        -------
        Row
            The validated row.

        Raises
        ------
        SchemaMismatchError
            Raised when the row length differs from the column count or a
            cell does not match its column type.
        """
        row = tuple(values)
        if len(row) != len(self.columns):
            msg = f"Row has {len(row)} values but the table has {len(self.columns)} columns"
            raise SchemaMismatchError(msg)
        if validate_cells:
            for column, value in zip(self.columns, row, strict=True):
                if not value_matches(value, column.value_type):
                    msg = (
                        f"Value {value!r} of type {type(value).__qualname__} does not match "
                        f"column {column.name!r} of type {column.value_type!r}"
                    )
                    raise SchemaMismatchError(msg)
        return row

    def add_row(self, values: Sequence[object], *, validate_cells: bool = False) -> None:
        """Append one row after validating it against the schema."""
        self.rows.append(self.check_row(values, validate_cells=validate_cells))

    def extend_rows(
        self,
        rows: Iterable[Sequence[object]],
        *,
        validate_cells: bool = False,
    ) -> None:
        """Append rows only if every one of them fits the schema."""
        checked = [self.check_row(values, validate_cells=validate_cells) for values in rows]
        self.rows.extend(checked)

    def to_pylist(self) -> list[dict[str, object]]:
        """Return rows as dictionaries keyed by column name.

        With duplicate column names the last value wins, matching
        ``pyarrow.Table.to_pylist``.
        """
        names = self.column_names
        return [dict(zip(names, row, strict=True)) for row in self.rows]

    def to_arrow(self) -> pa.Table:
        """Return the table as a ``pyarrow.Table``."""
        return table_to_arrow(self)

    def to_json(self) -> bytes:
        """Return the columns and rows as JSON bytes."""
        return dumps_json({"columns": self.columns, "rows": self.rows})


__all__ = ["ABSENT", "Column", "Row", "Table", "value_matches"]
