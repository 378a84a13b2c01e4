"""Identifier helpers."""

from __future__ import annotations

import uuid


def generate_id() -> str:
    """Return a random UUID4 string.

    Used for per-navigation page view identifiers and per-measurement vital
    identifiers; never for anything that outlives the page.
    """
    return str(uuid.uuid4())
