"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp for event envelopes."""
    return dt.datetime.now(dt.UTC)


def ms_to_seconds(milliseconds: float) -> float:
    """Convert a millisecond interval into the seconds asyncio timers expect."""
    return milliseconds / 1000.0
