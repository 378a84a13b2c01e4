"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

from lookout.events import EnvelopeFactory
from lookout.page import PageState
from lookout.scheduling import ManualScheduler
from tests.helpers.fakes import (
    SITE_ID,
    IngestionEndpoint,
    RecordingBeacon,
    RecordingTransport,
    fixed_clock,
)


@pytest.fixture
def page() -> PageState:
    """Return a visible page on a documentation site."""
    return PageState(
        url="https://docs.example.test/guide?tab=1#intro",
        title="Guide",
        referrer="https://search.example.test/",
        screen_width=1280,
        timezone="Europe/London",
        language="en-GB",
        connection_type="4g",
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Return a deterministic scheduler starting at zero."""
    return ManualScheduler()


@pytest.fixture
def envelopes(page: PageState) -> EnvelopeFactory:
    """Return an envelope factory bound to the test page."""
    return EnvelopeFactory(
        site_id=SITE_ID,
        page=page,
        agent_version="0.1.0",
        clock=fixed_clock,
    )


@pytest.fixture
def transport() -> RecordingTransport:
    """Return a batch transport that records batches."""
    return RecordingTransport()


@pytest.fixture
def beacon() -> RecordingBeacon:
    """Return a beacon that accepts and records every send."""
    return RecordingBeacon()


@pytest.fixture
def endpoint() -> IngestionEndpoint:
    """Return an in-memory ingestion endpoint answering 200."""
    return IngestionEndpoint()
