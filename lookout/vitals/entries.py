"""Performance timeline entries forwarded by the host adapter.

Entries are tagged on ``entry_type`` so an adapter bridging a browser can
decode a JSON array straight into typed structs:

>>> entries = decode_entries(
...     b'[{"entry_type": "paint", "name": "first-contentful-paint",'
...     b' "start_time": 812.5}]'
... )
>>> entries[0].start_time
812.5

Times are milliseconds relative to navigation start.
"""

from __future__ import annotations

import msgspec


class EntryBase(msgspec.Struct, kw_only=True, frozen=True, tag_field="entry_type"):
    """Fields every performance entry carries."""

    name: str = ""
    start_time: float = 0.0
    duration: float = 0.0

    @property
    def entry_type(self) -> str:
        """Return the timeline entry type."""
        return str(self.__struct_config__.tag)


class PaintEntry(EntryBase, tag="paint"):
    """First paint or first contentful paint."""


class LargestContentfulPaintEntry(EntryBase, tag="largest-contentful-paint"):
    """A largest contentful paint candidate."""


class LayoutShiftEntry(EntryBase, tag="layout-shift"):
    """A layout shift with its score."""

    value: float = 0.0
    had_recent_input: bool = False


class EventTimingEntry(EntryBase, tag="event"):
    """Timing of one input event's handling."""

    processing_start: float | None = None


class NavigationTimingEntry(EntryBase, tag="navigation"):
    """Timing of the document navigation."""

    request_start: float = 0.0
    response_start: float = 0.0
    type: str = "navigate"


PerformanceEntry = (
    PaintEntry
    | LargestContentfulPaintEntry
    | LayoutShiftEntry
    | EventTimingEntry
    | NavigationTimingEntry
)

_ENTRIES_DECODER = msgspec.json.Decoder(list[PerformanceEntry])


def decode_entries(raw: bytes | str) -> list[PerformanceEntry]:
    """Decode a JSON array of timeline entries.

    Raises
    ------
    msgspec.DecodeError
        If ``raw`` is not valid JSON.
    msgspec.ValidationError
        If an entry has an unknown ``entry_type`` or malformed fields.

    """
    return _ENTRIES_DECODER.decode(raw)
