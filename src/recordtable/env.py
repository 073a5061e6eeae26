"""Environment variable parsing for conversion settings."""

from __future__ import annotations

import logging
import os

_LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def env_flag(name: str, *, default: bool) -> bool:
    """Read a ``RECORDTABLE_*`` switch from the environment.

    Blank or unset variables keep ``default``; unrecognised values keep it too
    and are logged as a warning.
    """
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    _LOGGER.warning("Ignoring %s=%r; expected a boolean switch", name, raw)
    return default


__all__ = ["env_flag"]
