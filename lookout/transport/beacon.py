"""Unload-safe beacon delivery.

A beacon takes a payload and returns whether it was queued, without
response handling and without custom headers. It is used when the page is
hidden, the point after which the host may stop running the event loop, so
the send cannot depend on a later loop iteration. It must not block the
caller either: the request runs on a worker thread.
"""

from __future__ import annotations

import concurrent.futures as cf
import threading
import typing as typ

import httpx

from .errors import DeliveryError
from .observability import DeliveryEventLogger

DEFAULT_BEACON_TIMEOUT_S = 2.0
_HTTP_ERROR_STATUS_THRESHOLD = 400


@typ.runtime_checkable
class Beacon(typ.Protocol):
    """Fire-and-forget send primitive that cannot carry headers."""

    def send(self, url: str, body: bytes, content_type: str) -> bool:
        """Queue ``body`` for ``url`` and report whether it was accepted."""
        ...


class HttpBeacon:
    """:class:`Beacon` posting through :class:`httpx.Client` on a worker thread.

    :meth:`send` hands the request to a single background worker and returns
    at once, like a browser beacon. The worker keeps running when the event
    loop stops; :meth:`close` gives queued requests a bounded grace period.
    Outcomes are only visible through the debug ``event_logger``.

    Parameters
    ----------
    http_client
        Client to post with. One is created (and owned) when omitted.
    timeout_s
        Timeout for the owned client.
    event_logger
        Debug logger for request outcomes.

    """

    def __init__(
        self,
        *,
        http_client: httpx.Client | None = None,
        timeout_s: float = DEFAULT_BEACON_TIMEOUT_S,
        event_logger: DeliveryEventLogger | None = None,
    ) -> None:
        """Initialise the beacon with an optional shared client."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout_s)
        self._events = event_logger or DeliveryEventLogger(enabled=False)
        self._executor = cf.ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="lookout-beacon",
        )
        self._futures: set[cf.Future[None]] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def pending(self) -> int:
        """Return the number of queued or running requests."""
        with self._lock:
            return sum(not future.done() for future in self._futures)

    def send(self, url: str, body: bytes, content_type: str) -> bool:
        """Queue ``body`` for posting; ``False`` once the beacon is closed."""
        if self._closed:
            return False
        try:
            future = self._executor.submit(self._post, url, body, content_type)
        except RuntimeError:
            return False
        with self._lock:
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return True

    def close(self, timeout_s: float | None = None) -> None:
        """Wait up to ``timeout_s`` for queued requests, then stop the worker.

        Requests still queued after the grace period are cancelled. The owned
        client is closed only once nothing is running on it.
        """
        self._closed = True
        with self._lock:
            queued = tuple(self._futures)
        _, not_done = cf.wait(queued, timeout=timeout_s)
        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._owns_client and not any(f.running() for f in not_done):
            self._client.close()

    def _forget(self, future: cf.Future[None]) -> None:
        with self._lock:
            self._futures.discard(future)

    def _post(self, url: str, body: bytes, content_type: str) -> None:
        try:
            response = self._client.post(
                url,
                content=body,
                headers={"Content-Type": content_type},
            )
        except Exception as exc:  # noqa: BLE001 - worker failures end here
            self._events.log_beacon_failed(size=len(body), error=exc)
            return
        status = response.status_code
        if status >= _HTTP_ERROR_STATUS_THRESHOLD:
            self._events.log_beacon_failed(
                size=len(body),
                error=DeliveryError.http_error(status),
            )
            return
        self._events.log_beacon_completed(size=len(body), status=status)
