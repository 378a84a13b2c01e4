"""Build record envelopes from the current page state."""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import typing as typ

from lookout.common.time import utcnow

from .models import Envelope

if typ.TYPE_CHECKING:
    from lookout.page import PageEnvironment

Clock = cabc.Callable[[], dt.datetime]


class EnvelopeFactory:
    """Snapshot the page into an :class:`Envelope` for each new record."""

    def __init__(
        self,
        *,
        site_id: str,
        page: PageEnvironment,
        agent_version: str,
        clock: Clock = utcnow,
    ) -> None:
        """Bind the factory to a site, a page and a clock."""
        self._site_id = site_id
        self._page = page
        self._agent_version = agent_version
        self._clock = clock

    def build(self) -> Envelope:
        """Return an envelope describing the page right now."""
        page = self._page
        return Envelope(
            timestamp=self._clock(),
            site_id=self._site_id,
            url=page.url,
            pathname=page.pathname,
            referrer=page.referrer or "",
            screen_width=page.screen_width,
            timezone=page.timezone,
            language=page.language or "en",
            connection_type=page.connection_type,
            agent_version=self._agent_version,
        )
