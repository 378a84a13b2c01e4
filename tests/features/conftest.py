"""Shared fixtures for BDD feature tests."""

from __future__ import annotations

import pytest

from lookout.page import PageState
from lookout.scheduling import ManualScheduler
from tests.helpers.fakes import IngestionEndpoint, RecordingBeacon


@pytest.fixture
def feature_page() -> PageState:
    """Return a visible page for a feature scenario."""
    return PageState(
        url="https://docs.example.test/guide",
        title="Guide",
        screen_width=1440,
        timezone="UTC",
        language="en-GB",
    )


@pytest.fixture
def feature_scheduler() -> ManualScheduler:
    """Return a manually advanced scheduler."""
    return ManualScheduler()


@pytest.fixture
def ingestion_endpoint() -> IngestionEndpoint:
    """Return an in-memory ingestion endpoint answering 200."""
    return IngestionEndpoint()


@pytest.fixture
def recording_beacon() -> RecordingBeacon:
    """Return a beacon accepting every send."""
    return RecordingBeacon()
