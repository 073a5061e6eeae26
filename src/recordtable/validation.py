"""Argument validation helpers for the public conversion surface."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

from recordtable.errors import InvalidArgumentError

T = TypeVar("T")


def ensure_provided(value: T | None, *, label: str) -> T:
    """Validate that a required argument was supplied.

    Parameters
    ----------
    value
        Value to validate.
    label
        Descriptive label for error messages.

    Returns
    -------
    T
        The validated value.

    Raises
    ------
    InvalidArgumentError
        Raised when value is None.
    """
    if value is None:
        msg = f"{label} is required"
        raise InvalidArgumentError(msg)
    return value


def ensure_iterable(value: object, *, label: str) -> Iterable[object]:
    """Validate that value is a non-string iterable.

    Parameters
    ----------
    value
        Value to validate.
    label
        Descriptive label for error messages.

    Returns
    -------
    Iterable[object]
        The validated iterable.

    Raises
    ------
    InvalidArgumentError
        Raised when value is missing, a string, or not iterable.
    """
    ensure_provided(value, label=label)
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        msg = f"{label} must be an iterable, got {type(value).__name__}"
        raise InvalidArgumentError(msg)
    return value


__all__ = ["ensure_iterable", "ensure_provided"]
