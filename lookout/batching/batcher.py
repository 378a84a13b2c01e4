"""Accumulate records and decide when a batch is handed to the transport.

The batcher is either idle (empty queue, no timer) or accumulating (records
queued, flush timer armed). A flush swaps the queue for a fresh one, cancels
the timer and hands the taken records to the transport synchronously, so
batch N always reaches the transport before batch N+1 starts filling.

Usage
-----
>>> from lookout.scheduling import ManualScheduler
>>> batcher = EventBatcher(transport, ManualScheduler(), batch_size=2)
>>> batcher.enqueue(first)
>>> batcher.state
<BatcherState.ACCUMULATING: 'accumulating'>
>>> batcher.enqueue(second)  # reaches the threshold and flushes
>>> batcher.state
<BatcherState.IDLE: 'idle'>

"""

from __future__ import annotations

import enum
import typing as typ

from lookout.common.time import ms_to_seconds
from lookout.config import MAX_EVENTS_PER_REQUEST
from lookout.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from lookout.events.models import Event
    from lookout.scheduling import Scheduler, TimerHandle

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_FLUSH_INTERVAL_MS = 5000


class BatcherState(enum.StrEnum):
    """Lifecycle state of an :class:`EventBatcher`."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"


class BatchTransport(typ.Protocol):
    """Receiver of flushed batches."""

    def send(self, events: tuple[Event, ...]) -> None:
        """Deliver ``events`` without blocking and without raising."""
        ...


class EventBatcher:
    """Queue records and flush them by size, by time or on demand.

    Parameters
    ----------
    transport
        Receives each flushed batch.
    scheduler
        Arms the flush timer.
    batch_size
        Queue length that triggers an immediate flush; capped at
        ``MAX_EVENTS_PER_REQUEST``.
    flush_interval_ms
        Delay between the first queued record and a timed flush.
    debug
        Log transport failures that escape the transport.

    """

    def __init__(
        self,
        transport: BatchTransport,
        scheduler: Scheduler,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS,
        debug: bool = False,
    ) -> None:
        """Start idle with an empty queue."""
        self._transport = transport
        self._scheduler = scheduler
        self._batch_size = max(1, min(batch_size, MAX_EVENTS_PER_REQUEST))
        self._flush_interval_s = ms_to_seconds(flush_interval_ms)
        self._debug = debug
        self._queue: list[Event] = []
        self._timer: TimerHandle | None = None

    @property
    def batch_size(self) -> int:
        """Return the effective flush threshold."""
        return self._batch_size

    @property
    def pending(self) -> int:
        """Return the number of queued records."""
        return len(self._queue)

    @property
    def state(self) -> BatcherState:
        """Return the current lifecycle state."""
        if self._queue:
            return BatcherState.ACCUMULATING
        return BatcherState.IDLE

    def enqueue(self, event: Event) -> None:
        """Append ``event``; flush at the size threshold, else arm the timer."""
        self._queue.append(event)
        if len(self._queue) >= self._batch_size:
            self.flush()
        elif self._timer is None:
            self._timer = self._scheduler.call_later(
                self._flush_interval_s,
                self._on_timer,
            )

    def flush(self) -> None:
        """Hand everything queued to the transport; no-op when empty."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self._queue:
            return
        batch, self._queue = tuple(self._queue), []
        try:
            self._transport.send(batch)
        except Exception as exc:  # noqa: BLE001 - batches are attempted once
            if self._debug:
                log_warning(
                    logger,
                    "transport raised while sending %d event(s): %s",
                    len(batch),
                    exc,
                    exc_info=exc,
                )

    def _on_timer(self) -> None:
        self._timer = None
        self.flush()
