"""Conversion options and environment overrides."""

from __future__ import annotations

from recordtable.env import env_flag
from recordtable.serde import StructBaseStrict

INCLUDE_PRIVATE_ENV = "RECORDTABLE_INCLUDE_PRIVATE"
VALIDATE_CELLS_ENV = "RECORDTABLE_VALIDATE_CELLS"


class ConversionOptions(StructBaseStrict, frozen=True):
    """Options shared by the conversion entry points.

    Attributes
    ----------
    include_private
        Include fields whose name starts with an underscore in natural field
        lists, flatten expansions and parent lookups.
    validate_cells
        Check every present cell against its column's declared value type.
    """

    include_private: bool = False
    validate_cells: bool = False

    @classmethod
    def from_env(cls) -> ConversionOptions:
        """Build options from ``RECORDTABLE_*`` environment variables.

        Returns
        -------
        ConversionOptions
            Options with unset or invalid variables left at their defaults.
        """
        return cls(
            include_private=env_flag(INCLUDE_PRIVATE_ENV, default=False),
            validate_cells=env_flag(VALIDATE_CELLS_ENV, default=False),
        )


def resolve_options(options: ConversionOptions | None) -> ConversionOptions:
    """Return explicit options, falling back to the environment."""
    if options is not None:
        return options
    return ConversionOptions.from_env()


__all__ = [
    "INCLUDE_PRIVATE_ENV",
    "VALIDATE_CELLS_ENV",
    "ConversionOptions",
    "resolve_options",
]
