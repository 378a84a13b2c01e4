"""The telemetry agent and its public surface.

An :class:`Agent` wires collectors, the batcher and the delivery transport
together for one page. Construction does nothing observable; :meth:`init`
starts collection unless the agent must stay dormant (invalid configuration,
Do-Not-Track, no event loop).

Every public method is safe to call at any time: before :meth:`Agent.init`
they do nothing, and a failure inside the agent is logged in debug mode and
absorbed so the host is never disturbed.

Usage
-----
>>> from lookout.config import AgentConfig
>>> from lookout.page import PageState
>>> async def main() -> None:
...     endpoint = "https://collect.example/ingest"
...     config = AgentConfig(endpoint=endpoint, site_id="docs")
...     agent = create_agent(config, PageState(url="https://docs.example/"))
...     agent.init()
...     agent.track_event("signup", {"plan": "pro"})
...     await agent.aclose()

"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import functools
import typing as typ

from lookout.batching import EventBatcher
from lookout.common.time import utcnow
from lookout.error_capture import ErrorCollector
from lookout.errors import AgentConfigError, SchedulerUnavailableError
from lookout.events import (
    CustomEvent,
    EnvelopeFactory,
    VitalEvent,
    bound_event_name,
    sanitize_properties,
)
from lookout.observability import AgentEventLogger, InitSkipReason
from lookout.page import VisibilityState
from lookout.pageviews import PageViewTracker
from lookout.transport import DeliveryEventLogger, DeliveryTransport, HttpBeacon
from lookout.vitals import WebVitals

if typ.TYPE_CHECKING:
    import httpx

    from lookout.config import AgentConfig
    from lookout.events import Event
    from lookout.events.envelope import Clock
    from lookout.page import PageEnvironment
    from lookout.scheduling import Scheduler
    from lookout.transport import Beacon
    from lookout.vitals import PerformanceEntry, VitalMeasurement

AGENT_VERSION = "0.1.0"

P = typ.ParamSpec("P")


def _absorb_failures(
    method: cabc.Callable[typ.Concatenate[Agent, P], None],
) -> cabc.Callable[typ.Concatenate[Agent, P], None]:
    """Log and swallow any exception raised by a public agent method."""

    @functools.wraps(method)
    def wrapper(self: Agent, /, *args: P.args, **kwargs: P.kwargs) -> None:
        try:
            method(self, *args, **kwargs)
        except Exception as exc:  # noqa: BLE001 - never reaches the host
            self._events.log_call_failed(operation=method.__name__, error=exc)

    return wrapper


class Agent:
    """Client-side telemetry agent bound to one page.

    Use :func:`create_agent` rather than constructing this directly.
    """

    def __init__(  # noqa: PLR0913 - dependencies are injected explicitly
        self,
        config: AgentConfig,
        page: PageEnvironment,
        *,
        scheduler: Scheduler | None = None,
        http_client: httpx.AsyncClient | None = None,
        beacon: Beacon | None = None,
        clock: Clock = utcnow,
    ) -> None:
        """Store dependencies; nothing is collected until :meth:`init`."""
        self._config = config
        self._page = page
        self._scheduler = scheduler
        self._http_client = http_client
        self._beacon = beacon
        self._owned_beacon: HttpBeacon | None = None
        self._clock = clock
        self._events = AgentEventLogger(enabled=config.debug)
        self._initialised = False
        self._batcher: EventBatcher | None = None
        self._transport: DeliveryTransport | None = None
        self._envelopes: EnvelopeFactory | None = None
        self._page_views: PageViewTracker | None = None
        self._vitals: WebVitals | None = None
        self._errors: ErrorCollector | None = None

    @property
    def config(self) -> AgentConfig:
        """Return the configuration the agent was created with."""
        return self._config

    @property
    def initialised(self) -> bool:
        """Return whether :meth:`init` started collection."""
        return self._initialised

    @property
    def pending(self) -> int:
        """Return the number of records waiting in the queue."""
        return 0 if self._batcher is None else self._batcher.pending

    @property
    def current_page_view_id(self) -> str | None:
        """Return the identifier of the last recorded page view."""
        if self._page_views is None:
            return None
        return self._page_views.page_view_id

    def init(self) -> None:
        """Start collection; repeated calls are no-ops.

        The agent stays dormant when the configuration is invalid, when the
        page reports Do-Not-Track and ``respect_dnt`` is set, or when no
        scheduler was supplied and no asyncio loop is running. A failure
        while starting is logged in debug mode and also leaves it dormant.
        """
        if self._initialised:
            self._events.log_init_skipped(reason=InitSkipReason.ALREADY_INITIALISED)
            return
        try:
            self._initialise()
        except Exception as exc:  # noqa: BLE001 - never reaches the host
            self._discard_components()
            self._events.log_call_failed(operation="init", error=exc)

    def _initialise(self) -> None:
        try:
            self._config.validate()
        except AgentConfigError as exc:
            self._events.log_init_skipped(
                reason=InitSkipReason.INVALID_CONFIG,
                error=exc,
            )
            return
        if self._config.respect_dnt and self._page.do_not_track:
            self._events.log_init_skipped(reason=InitSkipReason.DO_NOT_TRACK)
            return
        try:
            scheduler = self._resolve_scheduler()
        except SchedulerUnavailableError as exc:
            self._events.log_init_skipped(
                reason=InitSkipReason.NO_SCHEDULER,
                error=exc,
            )
            return
        self._start(scheduler)
        if self._page_views is not None and self._config.auto_page_views:
            self._page_views.track()
        self._initialised = True
        self._events.log_initialised(self._config, version=AGENT_VERSION)

    @_absorb_failures
    def track_page_view(self) -> None:
        """Record a page view for the current page now."""
        if self._page_views is not None:
            self._page_views.track()

    @_absorb_failures
    def track_event(
        self,
        name: str,
        properties: cabc.Mapping[str, object] | None = None,
    ) -> None:
        """Record a named custom event with optional flat properties."""
        if self._envelopes is None:
            return
        self._emit(
            CustomEvent(
                **self._envelopes.build().fields(),
                event_name=bound_event_name(name),
                properties=sanitize_properties(properties),
            )
        )

    @_absorb_failures
    def flush(self) -> None:
        """Hand every queued record to the transport now."""
        if self._batcher is not None:
            self._batcher.flush()

    @_absorb_failures
    def notify_navigation(self) -> None:
        """Tell the agent the host changed location without a reload."""
        if self._page_views is not None and self._config.auto_page_views:
            self._page_views.on_navigation()

    @_absorb_failures
    def notify_visibility_change(self) -> None:
        """Tell the agent the page visibility changed.

        When the page becomes hidden, pending vitals are finalized and the
        queue is flushed, which selects the beacon path.
        """
        if self._page.visibility_state == VisibilityState.HIDDEN:
            self._finalize_and_flush()

    @_absorb_failures
    def notify_page_hide(self) -> None:
        """Tell the agent the page is being torn down."""
        self._finalize_and_flush()

    @_absorb_failures
    def observe_performance(self, entries: cabc.Iterable[PerformanceEntry]) -> None:
        """Feed timeline entries delivered by the host to the vital collectors."""
        if self._vitals is not None:
            self._vitals.observe(entries)

    @_absorb_failures
    def report_error(
        self,
        error: BaseException | None = None,
        *,
        message: str | None = None,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Record an uncaught error reported by the host."""
        if self._errors is not None:
            self._errors.capture_error(
                error,
                message=message,
                source=source,
                line=line,
                column=column,
            )

    @_absorb_failures
    def report_rejection(self, reason: object) -> None:
        """Record an unhandled rejection reported by the host."""
        if self._errors is not None:
            self._errors.capture_rejection(reason)

    async def drain(self, timeout_s: float | None = None) -> None:
        """Wait for in-flight requests up to the keep-alive grace period."""
        if self._transport is None:
            return
        grace = self._config.keepalive_grace_s if timeout_s is None else timeout_s
        try:
            await self._transport.drain(grace)
        except Exception as exc:  # noqa: BLE001 - never reaches the host
            self._events.log_call_failed(operation="drain", error=exc)

    async def aclose(self) -> None:
        """Flush, wait for in-flight requests and release owned resources."""
        if self._page_views is not None:
            self._page_views.cancel()
        self.flush()
        if self._transport is not None:
            try:
                await self._transport.aclose(self._config.keepalive_grace_s)
            except Exception as exc:  # noqa: BLE001 - never reaches the host
                self._events.log_call_failed(operation="aclose", error=exc)
        if self._owned_beacon is not None:
            grace = self._config.keepalive_grace_s
            await asyncio.to_thread(self._owned_beacon.close, grace)
            self._owned_beacon = None

    def _resolve_scheduler(self) -> Scheduler:
        if self._scheduler is not None:
            return self._scheduler
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SchedulerUnavailableError.no_running_loop() from exc

    def _start(self, scheduler: Scheduler) -> None:
        config = self._config
        beacon = self._beacon
        if beacon is None:
            beacon = self._owned_beacon = HttpBeacon(
                event_logger=DeliveryEventLogger(enabled=config.debug),
            )
        self._envelopes = EnvelopeFactory(
            site_id=config.site_id,
            page=self._page,
            agent_version=AGENT_VERSION,
            clock=self._clock,
        )
        self._transport = DeliveryTransport(
            config.endpoint,
            self._page,
            api_key=config.api_key,
            headers=config.headers,
            http_client=self._http_client,
            beacon=beacon,
            timeout_s=config.delivery_timeout_s,
            event_logger=DeliveryEventLogger(enabled=config.debug),
        )
        self._batcher = EventBatcher(
            self._transport,
            scheduler,
            batch_size=config.effective_batch_size,
            flush_interval_ms=config.flush_interval_ms,
            debug=config.debug,
        )
        self._page_views = PageViewTracker(
            page=self._page,
            envelopes=self._envelopes,
            emit=self._emit,
            scheduler=scheduler,
            delay_ms=config.page_view_delay_ms,
        )
        if config.auto_web_vitals:
            self._vitals = WebVitals(
                self._on_vital,
                supported_entry_types=self._page.supported_entry_types,
                event_logger=self._events,
            )
        if config.auto_errors:
            self._errors = ErrorCollector(envelopes=self._envelopes, emit=self._emit)

    def _discard_components(self) -> None:
        if self._page_views is not None:
            self._page_views.cancel()
        self._batcher = None
        self._transport = None
        self._envelopes = None
        self._page_views = None
        self._vitals = None
        self._errors = None
        if self._owned_beacon is not None:
            self._owned_beacon.close(timeout_s=0)
            self._owned_beacon = None

    def _emit(self, event: Event) -> None:
        if self._batcher is None:
            return
        self._events.log_event_queued(event)
        self._batcher.enqueue(event)

    def _on_vital(self, measurement: VitalMeasurement) -> None:
        if self._envelopes is None:
            return
        self._emit(
            VitalEvent(
                **self._envelopes.build().fields(),
                metric_name=measurement.name,
                metric_value=measurement.value,
                metric_rating=measurement.rating,
                metric_id=measurement.id,
                navigation_type=measurement.navigation_type,
            )
        )

    def _finalize_and_flush(self) -> None:
        if self._vitals is not None:
            self._vitals.finalize()
        if self._batcher is not None:
            self._batcher.flush()


def create_agent(  # noqa: PLR0913 - dependencies are injected explicitly
    config: AgentConfig,
    page: PageEnvironment,
    *,
    scheduler: Scheduler | None = None,
    http_client: httpx.AsyncClient | None = None,
    beacon: Beacon | None = None,
    clock: Clock = utcnow,
) -> Agent:
    """Return a new, uninitialised agent handle.

    Parameters
    ----------
    config
        Agent configuration. Validated by :meth:`Agent.init`.
    page
        The host page the agent observes.
    scheduler
        Timer source. Defaults to the running asyncio loop at init time.
    http_client
        Shared async client for the fetch path.
    beacon
        Unload-safe send primitive. Defaults to :class:`HttpBeacon`.
    clock
        Timestamp source for record envelopes.

    Returns
    -------
    Agent
        Call :meth:`Agent.init` to start collection.

    """
    return Agent(
        config,
        page,
        scheduler=scheduler,
        http_client=http_client,
        beacon=beacon,
        clock=clock,
    )
