"""Serialization helpers for non-scalar log context values.

Containers are rendered as compact JSON with a stable key order.  ``Decimal``
values become strings so no precision is lost, and datetimes become ISO-8601.
Unicode is kept as-is and slashes are never escaped (``json`` does not escape
``/`` in the first place).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

SCALAR_TYPES: tuple[type, ...] = (str, int, float, bool, Decimal)


def is_scalar(value: object) -> bool:
    """Return ``True`` for values that render meaningfully with ``str()``.

    Enum members count as scalars; ``None`` does not (callers decide how to
    treat it).
    """
    return isinstance(value, SCALAR_TYPES) or isinstance(value, Enum)


class _ContextEncoder(json.JSONEncoder):
    """JSON encoder for values commonly found in log context."""

    def default(self, o: object) -> Any:
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, BaseModel):
            return o.model_dump(mode="json")
        if isinstance(o, (set, frozenset)):
            return sorted(o, key=str)
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


def is_container(value: object) -> bool:
    """Return ``True`` for values that should be JSON-encoded."""
    return isinstance(value, (Mapping, list, tuple, set, frozenset, BaseModel))


def _key_text(key: object) -> str:
    if isinstance(key, Enum):
        return _key_text(key.value)
    if isinstance(key, str):
        return key
    if key is None or isinstance(key, (bool, int, float)):
        # Same text json.dumps uses for these keys, e.g. True -> "true".
        return json.dumps(key)
    return str(key)


def _normalize_keys(value: object) -> object:
    """Recursively convert mapping keys to strings so keys of mixed types sort."""
    if isinstance(value, Mapping):
        return {_key_text(k): _normalize_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_keys(item) for item in value]
    return value


def encode_value(value: object) -> str:
    """JSON-encode a container value compactly.

    Args:
        value: A mapping, sequence, set, or pydantic model.

    Returns:
        A compact JSON string with sorted keys.  Mapping keys of any type are
        rendered as strings.  Values JSON cannot represent fall back to their
        ``str()`` form.
    """
    try:
        return json.dumps(
            _normalize_keys(value),
            cls=_ContextEncoder,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False,
        )
    except (TypeError, ValueError):
        return str(value)
