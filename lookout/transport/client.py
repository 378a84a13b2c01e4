"""Batch delivery over HTTP.

:class:`DeliveryTransport` implements the batcher's ``send`` contract. Each
batch is attempted exactly once through one of two paths:

* **beacon**: when the page is hidden and a :class:`Beacon` is available.
  The send completes synchronously, so it survives the host stopping the
  event loop right after. Beacons cannot carry headers, so the API key
  travels as an ``apikey`` query parameter.
* **fetch**: otherwise. An ``httpx.AsyncClient`` POST runs as a task on the
  running loop. Tasks are tracked so the host can grant them a bounded grace
  period with :meth:`DeliveryTransport.drain` during teardown.

Failures are classified and logged in debug mode, then dropped.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ

import httpx

from lookout.events.models import encode_batch
from lookout.page import VisibilityState

from .errors import DeliveryError
from .observability import DeliveryEventLogger, DeliveryPath

if typ.TYPE_CHECKING:
    from lookout.events.models import Event
    from lookout.page import PageEnvironment

    from .beacon import Beacon

JSON_CONTENT_TYPE = "application/json"
DEFAULT_TIMEOUT_S = 10.0
_HTTP_SUCCESS_MIN = 200
_HTTP_SUCCESS_MAX = 299


def beacon_url(endpoint: str, api_key: str | None) -> str:
    """Return ``endpoint`` with the API key appended as ``apikey``."""
    if not api_key:
        return endpoint
    return str(httpx.URL(endpoint).copy_set_param("apikey", api_key))


def request_headers(
    api_key: str | None,
    extra: cabc.Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the headers sent with every fetch-path request."""
    headers = {"Content-Type": JSON_CONTENT_TYPE}
    headers.update(extra or {})
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
        headers["apikey"] = api_key
    return headers


class DeliveryTransport:
    """Deliver flushed batches to the ingestion endpoint.

    Parameters
    ----------
    endpoint
        Absolute URL of the ingestion endpoint.
    page
        Host page; its visibility state selects the delivery path.
    api_key
        Optional API key.
    headers
        Extra headers for the fetch path. The beacon path cannot send them.
    http_client
        Shared async client. One is created (and owned) when omitted.
    beacon
        Unload-safe send primitive, or ``None`` when the host has none.
    timeout_s
        Request timeout for the owned client.
    event_logger
        Debug logger for delivery outcomes.

    """

    def __init__(  # noqa: PLR0913 - mirrors the configuration surface
        self,
        endpoint: str,
        page: PageEnvironment,
        *,
        api_key: str | None = None,
        headers: cabc.Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        beacon: Beacon | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        event_logger: DeliveryEventLogger | None = None,
    ) -> None:
        """Initialise the transport; no connection is opened yet."""
        self._endpoint = endpoint
        self._page = page
        self._headers = request_headers(api_key, headers)
        self._beacon = beacon
        self._beacon_url = beacon_url(endpoint, api_key)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s)
        self._events = event_logger or DeliveryEventLogger(enabled=False)
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Return the number of fetch-path requests still in flight."""
        return len(self._tasks)

    def send(self, events: tuple[Event, ...]) -> None:
        """Dispatch ``events`` through the beacon or fetch path.

        Never blocks on the network for the fetch path and never raises.
        """
        if not events:
            return
        body = encode_batch(events)
        hidden = self._page.visibility_state == VisibilityState.HIDDEN
        if hidden and self._beacon is not None:
            self._send_beacon(self._beacon, body, len(events))
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if self._beacon is not None:
                self._send_beacon(self._beacon, body, len(events))
            else:
                self._events.log_dropped(
                    count=len(events),
                    error=DeliveryError.no_event_loop(),
                )
            return
        self._events.log_dispatched(
            path=DeliveryPath.FETCH,
            count=len(events),
            size=len(body),
        )
        task = loop.create_task(self._post(body, len(events)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout_s: float | None = None) -> None:
        """Wait for in-flight requests, abandoning them after ``timeout_s``."""
        if not self._tasks:
            return
        pending = tuple(self._tasks)
        _, still_running = await asyncio.wait(pending, timeout=timeout_s)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)

    async def aclose(self, timeout_s: float | None = None) -> None:
        """Drain in-flight requests and close any owned HTTP resources."""
        await self.drain(timeout_s)
        if self._owns_client:
            await self._client.aclose()

    def _send_beacon(self, beacon: Beacon, body: bytes, count: int) -> None:
        self._events.log_dispatched(
            path=DeliveryPath.BEACON,
            count=count,
            size=len(body),
        )
        try:
            accepted = beacon.send(self._beacon_url, body, JSON_CONTENT_TYPE)
        except Exception as exc:  # noqa: BLE001 - delivery never raises
            self._events.log_failed(path=DeliveryPath.BEACON, count=count, error=exc)
            return
        if not accepted:
            self._events.log_failed(
                path=DeliveryPath.BEACON,
                count=count,
                error=DeliveryError.beacon_rejected(),
            )

    async def _post(self, body: bytes, count: int) -> None:
        try:
            response = await self._client.post(
                self._endpoint,
                content=body,
                headers=self._headers,
            )
        except Exception as exc:  # noqa: BLE001 - batches are attempted once
            self._events.log_failed(path=DeliveryPath.FETCH, count=count, error=exc)
            return
        status = response.status_code
        if not _HTTP_SUCCESS_MIN <= status <= _HTTP_SUCCESS_MAX:
            self._events.log_failed(
                path=DeliveryPath.FETCH,
                count=count,
                error=DeliveryError.http_error(status),
            )
            return
        self._events.log_delivered(path=DeliveryPath.FETCH, count=count, status=status)
