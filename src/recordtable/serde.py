"""Shared msgspec policy and JSON export helpers."""

from __future__ import annotations

import types
import typing
from typing import Literal

import msgspec

from recordtable.fields import is_record_type, record_fields


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base struct for strict contracts."""


_DEFAULT_ORDER: Literal["deterministic"] = "deterministic"


def _json_enc_hook(obj: object) -> object:
    if isinstance(obj, type):
        return f"{obj.__module__}.{obj.__qualname__}"
    if isinstance(obj, types.UnionType) or typing.get_origin(obj) is not None:
        return str(obj)
    if is_record_type(type(obj)):
        return {item.name: item.read(obj) for item in record_fields(type(obj))}
    msg = f"Unsupported JSON value of type {type(obj).__qualname__}"
    raise TypeError(msg)


JSON_ENCODER = msgspec.json.Encoder(
    enc_hook=_json_enc_hook,
    order=_DEFAULT_ORDER,
    decimal_format="string",
    uuid_format="canonical",
)


def dumps_json(obj: object) -> bytes:
    """Serialize an object to JSON bytes using the shared encoder.

    Parameters
    ----------
    obj
        Object to encode. Type objects encode as ``"module.qualname"`` and
        plain record instances as mappings of their public fields.

    Returns
    -------
    bytes
        JSON payload.
    """
    return JSON_ENCODER.encode(obj)


__all__ = ["JSON_ENCODER", "StructBaseStrict", "dumps_json"]
