"""Page view tracking across initial load and client-side navigations."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from lookout.common.ids import generate_id
from lookout.common.time import ms_to_seconds
from lookout.events.models import PageViewEvent

if typ.TYPE_CHECKING:
    from lookout.events.envelope import EnvelopeFactory
    from lookout.page import PageEnvironment
    from lookout.scheduling import Scheduler, TimerHandle

DEFAULT_PAGE_VIEW_DELAY_MS = 100


class PageViewTracker:
    """Emit :class:`PageViewEvent` records for distinct paths.

    :meth:`track` emits immediately. :meth:`on_navigation` is called by the
    host adapter after any history change; it defers the record by
    ``delay_ms`` so the host can update the document title first, and emits
    only when the path differs from the last recorded one. Navigations that
    arrive while a deferred record is pending share that record.
    """

    def __init__(
        self,
        *,
        page: PageEnvironment,
        envelopes: EnvelopeFactory,
        emit: cabc.Callable[[PageViewEvent], None],
        scheduler: Scheduler,
        delay_ms: int = DEFAULT_PAGE_VIEW_DELAY_MS,
    ) -> None:
        """Bind the tracker to the page, an emit callback and a scheduler."""
        self._page = page
        self._envelopes = envelopes
        self._emit = emit
        self._scheduler = scheduler
        self._delay_s = ms_to_seconds(delay_ms)
        self._last_pathname: str | None = None
        self._page_view_id: str | None = None
        self._pending: TimerHandle | None = None

    @property
    def last_pathname(self) -> str | None:
        """Return the path of the last recorded page view."""
        return self._last_pathname

    @property
    def page_view_id(self) -> str | None:
        """Return the identifier of the last recorded page view."""
        return self._page_view_id

    @property
    def pending(self) -> bool:
        """Return whether a deferred page view is waiting to fire."""
        return self._pending is not None

    def track(self) -> PageViewEvent:
        """Record a page view for the current page now."""
        self._page_view_id = generate_id()
        self._last_pathname = self._page.pathname
        event = PageViewEvent(
            **self._envelopes.build().fields(),
            title=self._page.title,
            page_view_id=self._page_view_id,
        )
        self._emit(event)
        return event

    def on_navigation(self) -> None:
        """Schedule a page view if the path changed since the last one."""
        if self._pending is not None:
            return
        if self._page.pathname == self._last_pathname:
            return
        self._pending = self._scheduler.call_later(self._delay_s, self._on_tick)

    def cancel(self) -> None:
        """Drop a pending deferred page view."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _on_tick(self) -> None:
        self._pending = None
        if self._page.pathname != self._last_pathname:
            self.track()
