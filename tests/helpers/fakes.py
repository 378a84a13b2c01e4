"""Recording fakes and builders shared by unit and feature tests."""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import typing as typ

import httpx

from lookout.events import Envelope, decode_batch

if typ.TYPE_CHECKING:
    from lookout.events import Event

FIXED_TIME = dt.datetime(2099, 1, 1, 12, 0, tzinfo=dt.UTC)
ENDPOINT = "https://collect.example.test/ingest"
SITE_ID = "docs-site"


def fixed_clock() -> dt.datetime:
    """Return a constant timestamp for deterministic envelopes."""
    return FIXED_TIME


def make_envelope(**overrides: typ.Any) -> Envelope:  # noqa: ANN401
    """Return an envelope with sensible test values."""
    values: dict[str, typ.Any] = {
        "timestamp": FIXED_TIME,
        "site_id": SITE_ID,
        "url": "https://docs.example.test/guide?tab=1",
        "pathname": "/guide",
        "referrer": "",
        "screen_width": 1280,
        "timezone": "Europe/London",
        "language": "en-GB",
        "connection_type": None,
        "agent_version": "0.1.0",
    }
    values.update(overrides)
    return Envelope(**values)


@dataclasses.dataclass(slots=True)
class RecordingTransport:
    """Batch transport storing every batch it receives."""

    batches: list[tuple[Event, ...]] = dataclasses.field(default_factory=list)
    fail_with: Exception | None = None

    def send(self, events: tuple[Event, ...]) -> None:
        """Record ``events``, then raise ``fail_with`` when set."""
        self.batches.append(events)
        if self.fail_with is not None:
            raise self.fail_with


@dataclasses.dataclass(slots=True)
class BeaconCall:
    """A single beacon send."""

    url: str
    body: bytes
    content_type: str

    def events(self) -> list[Event]:
        """Decode the body back into records."""
        return decode_batch(self.body)


@dataclasses.dataclass(slots=True)
class RecordingBeacon:
    """Beacon storing calls and answering with ``accept``."""

    calls: list[BeaconCall] = dataclasses.field(default_factory=list)
    accept: bool = True

    def send(self, url: str, body: bytes, content_type: str) -> bool:
        """Record the call and return ``accept``."""
        self.calls.append(BeaconCall(url=url, body=body, content_type=content_type))
        return self.accept


@dataclasses.dataclass(slots=True)
class RecordedRequest:
    """A request seen by :class:`IngestionEndpoint`."""

    url: httpx.URL
    headers: httpx.Headers
    payload: dict[str, typ.Any]

    @property
    def event_types(self) -> list[str]:
        """Return the ``type`` tag of each record in the body."""
        return [event["type"] for event in self.payload["events"]]


class IngestionEndpoint:
    """In-memory ingestion endpoint behind :class:`httpx.MockTransport`."""

    def __init__(self, status_code: int = 200) -> None:
        """Answer every request with ``status_code``."""
        self.status_code = status_code
        self.requests: list[RecordedRequest] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        """Record the request and answer it."""
        self.requests.append(
            RecordedRequest(
                url=request.url,
                headers=request.headers,
                payload=json.loads(request.content.decode("utf-8")),
            )
        )
        return httpx.Response(status_code=self.status_code, json={"accepted": True})

    def client(self) -> httpx.AsyncClient:
        """Return an async client routed to this endpoint."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
