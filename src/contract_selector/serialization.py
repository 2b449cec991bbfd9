"""Payload → canonical JSON.

``JsonSerializer`` is the default ``Serializer``.  Payloads that already
are JSON text (``str`` / ``bytes``) are passed through; everything else is
dumped with sorted keys and compact separators.  Values the ``json`` module
does not know natively are converted by ``to_jsonable``.

Any failure — unserializable object, circular reference, NaN, invalid JSON
text — is raised as ``SerializationError`` so callers can tell "this message
cannot be evaluated" from "this message does not match".
"""

from __future__ import annotations

import dataclasses
import datetime as _dt
import json
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any

from .core import Serializer
from .errors import SerializationError


def to_jsonable(obj: Any) -> Any:
    """``default=`` hook for ``json.dumps``.

    Raises ``TypeError`` for objects it cannot represent.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (_dt.datetime, _dt.date, _dt.time)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            raise ValueError(f"Out of range Decimal value is not JSON compliant: {obj}")
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if isinstance(obj, (bytes, bytearray)):
        return obj.decode("utf-8")
    if hasattr(obj, "__dict__") and not callable(obj):
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class JsonSerializer(Serializer):
    """Canonical JSON via the standard ``json`` module."""

    def __init__(self, *, sort_keys: bool = True) -> None:
        self.sort_keys = sort_keys

    def to_json(self, payload: Any) -> str:
        if isinstance(payload, (bytes, bytearray)):
            try:
                return payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise SerializationError(f"payload bytes are not UTF-8: {e}") from e
        if isinstance(payload, str):
            return payload
        try:
            return json.dumps(
                payload,
                default=to_jsonable,
                sort_keys=self.sort_keys,
                separators=(",", ":"),
                allow_nan=False,
            )
        except (TypeError, ValueError, ArithmeticError, RecursionError) as e:
            raise SerializationError(f"Cannot serialize to JSON: {e}") from e
