"""Size bounds applied to record content before it is queued.

Limits keep a single record from dominating a beacon payload. They mirror
what the ingestion endpoint enforces, so nothing the agent sends is silently
cut again on arrival.
"""

from __future__ import annotations

import collections.abc as cabc
import math

from .models import PropertyValue

MAX_MESSAGE_LENGTH = 1000
MAX_STACK_LENGTH = 2000
MAX_EVENT_NAME_LENGTH = 100
MAX_PROPERTIES = 50
MAX_PROPERTY_KEY_LENGTH = 100
MAX_PROPERTY_VALUE_LENGTH = 500

_ELLIPSIS = "..."


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, marking the cut with ``...``.

    Examples
    --------
    >>> truncate("abcdef", 3)
    'abc...'
    >>> truncate("abc", 3)
    'abc'

    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + _ELLIPSIS


def _clean(text: str, max_length: int) -> str:
    return text.replace("\0", "").strip()[:max_length]


def _bounded_value(value: object) -> PropertyValue | None:
    # bool first: it is a subclass of int.
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        return _clean(value, MAX_PROPERTY_VALUE_LENGTH)
    return None


def sanitize_properties(
    properties: cabc.Mapping[str, object] | None,
) -> dict[str, PropertyValue] | None:
    """Return a flat property map restricted to bounded primitive values.

    Keeps the first ``MAX_PROPERTIES`` keys in insertion order, trims keys and
    string values, and drops values that are not strings, finite numbers or
    booleans. Returns ``None`` when nothing was supplied.
    """
    if properties is None:
        return None
    sanitized: dict[str, PropertyValue] = {}
    for index, (key, value) in enumerate(properties.items()):
        if index >= MAX_PROPERTIES:
            break
        bounded = _bounded_value(value)
        if bounded is None:
            continue
        sanitized[_clean(str(key), MAX_PROPERTY_KEY_LENGTH)] = bounded
    return sanitized


def bound_event_name(name: str) -> str:
    """Trim a custom event name to its maximum length."""
    return _clean(name, MAX_EVENT_NAME_LENGTH)
