"""Event records delivered to the ingestion endpoint.

Every record shares the envelope fields defined on :class:`EventBase` and is
tagged on the ``type`` field, so a batch body decodes back into the right
variant. Records are frozen once built.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import enum
import typing as typ

import msgspec

PropertyValue = str | int | float | bool


class EventKind(enum.StrEnum):
    """Wire tag of each record variant."""

    PAGE_VIEW = "pageview"
    VITAL = "webvital"
    ERROR = "error"
    CUSTOM = "custom"


class VitalName(enum.StrEnum):
    """Web vitals measured by the agent."""

    LCP = "LCP"
    FCP = "FCP"
    CLS = "CLS"
    INP = "INP"
    TTFB = "TTFB"


class VitalRating(enum.StrEnum):
    """Three-level rating of a vital against its thresholds."""

    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"


class Envelope(msgspec.Struct, kw_only=True, frozen=True, omit_defaults=True):
    """Page snapshot shared by every record built at the same moment.

    Attributes
    ----------
    timestamp
        Emission time, encoded as RFC 3339.
    site_id
        Site identifier from the agent configuration.
    url
        Origin, path and query of the page (fragment removed).
    pathname
        Path of the page.
    referrer
        Document referrer or an empty string.
    screen_width
        Screen width in CSS pixels.
    timezone
        Timezone reported by the host.
    language
        Preferred language tag.
    connection_type
        Effective connection type, omitted when unknown.
    agent_version
        Version of the agent that built the record.

    """

    timestamp: dt.datetime
    site_id: str
    url: str
    pathname: str
    referrer: str
    screen_width: int
    timezone: str
    language: str
    connection_type: str | None = None
    agent_version: str = msgspec.field(name="tracker_version")

    def fields(self) -> dict[str, typ.Any]:
        """Return envelope values keyed by attribute name."""
        return msgspec.structs.asdict(self)


class EventBase(Envelope, tag_field="type"):
    """Envelope fields common to every record variant."""

    @property
    def kind(self) -> EventKind:
        """Return the wire tag of this record."""
        return EventKind(self.__struct_config__.tag)


class PageViewEvent(EventBase, tag="pageview"):
    """A page was viewed.

    ``page_view_id`` is regenerated for every view. The ingestion side counts
    distinct ids to approximate visitors, which also counts in-session
    navigations as separate visits.
    """

    title: str
    page_view_id: str


class VitalEvent(EventBase, tag="webvital"):
    """A finalized web vital measurement.

    ``metric_id`` is stable for one measurement so the ingestion endpoint can
    upsert idempotently.
    """

    metric_name: VitalName
    metric_value: float
    metric_rating: VitalRating
    metric_id: str
    navigation_type: str | None = None


class ErrorEvent(EventBase, tag="error"):
    """An uncaught error or unhandled rejection."""

    message: str
    stack: str | None = None
    source: str | None = None
    line: int | None = None
    column: int | None = None


class CustomEvent(EventBase, tag="custom"):
    """A named event emitted by host code."""

    event_name: str
    properties: dict[str, PropertyValue] | None = None


Event = PageViewEvent | VitalEvent | ErrorEvent | CustomEvent


class EventBatch(msgspec.Struct, kw_only=True, frozen=True):
    """Request body of one delivery: records in enqueue order."""

    events: list[Event]


_ENCODER = msgspec.json.Encoder()
_BATCH_DECODER = msgspec.json.Decoder(EventBatch)


def encode_batch(events: typ.Sequence[Event]) -> bytes:
    """Serialize records into the ``{"events": [...]}`` wire body."""
    return _ENCODER.encode(EventBatch(events=list(events)))


def decode_batch(body: bytes | str) -> list[Event]:
    """Decode a wire body back into records, preserving order.

    Raises
    ------
    msgspec.ValidationError
        If the body does not match the batch schema.

    """
    return _BATCH_DECODER.decode(body).events
