"""Unit tests for the event batcher."""

from __future__ import annotations

import pytest

from lookout.batching import BatcherState, EventBatcher
from lookout.config import MAX_EVENTS_PER_REQUEST
from lookout.events import CustomEvent
from lookout.scheduling import ManualScheduler
from tests.helpers.fakes import RecordingTransport, make_envelope


def _custom(name: str) -> CustomEvent:
    return CustomEvent(**make_envelope().fields(), event_name=name)


def _names(batch: tuple[CustomEvent, ...]) -> list[str]:
    return [event.event_name for event in batch]


@pytest.fixture
def batcher(
    transport: RecordingTransport,
    scheduler: ManualScheduler,
) -> EventBatcher:
    """Return a batcher flushing at 3 records or after 5 seconds."""
    return EventBatcher(transport, scheduler, batch_size=3, flush_interval_ms=5000)


def test_first_record_arms_timer(
    batcher: EventBatcher,
    scheduler: ManualScheduler,
) -> None:
    """An idle batcher starts accumulating and arms one timer."""
    assert batcher.state == BatcherState.IDLE

    batcher.enqueue(_custom("a"))
    batcher.enqueue(_custom("b"))

    assert batcher.state == BatcherState.ACCUMULATING
    assert batcher.pending == 2
    assert scheduler.pending == 1


def test_timer_flushes_partial_batch(
    batcher: EventBatcher,
    scheduler: ManualScheduler,
    transport: RecordingTransport,
) -> None:
    """The timer flushes whatever accumulated."""
    batcher.enqueue(_custom("a"))
    scheduler.advance(4.0)
    batcher.enqueue(_custom("b"))
    assert transport.batches == []

    scheduler.advance(1.0)

    assert [_names(batch) for batch in transport.batches] == [["a", "b"]]
    assert batcher.state == BatcherState.IDLE


def test_size_threshold_flushes_and_cancels_timer(
    batcher: EventBatcher,
    scheduler: ManualScheduler,
    transport: RecordingTransport,
) -> None:
    """Reaching the size flushes immediately and disarms the timer."""
    for name in ("a", "b", "c"):
        batcher.enqueue(_custom(name))

    assert [_names(batch) for batch in transport.batches] == [["a", "b", "c"]]
    assert scheduler.pending == 0

    scheduler.advance(10.0)
    assert len(transport.batches) == 1


def test_batches_preserve_enqueue_order(
    transport: RecordingTransport,
    scheduler: ManualScheduler,
) -> None:
    """Records flow out in enqueue order across batches."""
    batcher = EventBatcher(transport, scheduler, batch_size=2)

    for name in ("a", "b", "c", "d", "e"):
        batcher.enqueue(_custom(name))
    batcher.flush()

    assert [_names(batch) for batch in transport.batches] == [
        ["a", "b"],
        ["c", "d"],
        ["e"],
    ]


def test_flush_is_idempotent(
    batcher: EventBatcher,
    transport: RecordingTransport,
) -> None:
    """A second flush with nothing queued sends nothing."""
    batcher.enqueue(_custom("a"))

    batcher.flush()
    batcher.flush()

    assert len(transport.batches) == 1


def test_flush_when_idle_sends_nothing(
    batcher: EventBatcher,
    transport: RecordingTransport,
) -> None:
    """Empty batches are never sent."""
    batcher.flush()
    assert transport.batches == []


def test_batch_size_is_capped(
    transport: RecordingTransport,
    scheduler: ManualScheduler,
) -> None:
    """No batch exceeds what the endpoint accepts."""
    batcher = EventBatcher(transport, scheduler, batch_size=1000)

    for index in range(MAX_EVENTS_PER_REQUEST):
        batcher.enqueue(_custom(str(index)))

    assert batcher.batch_size == MAX_EVENTS_PER_REQUEST
    assert [len(batch) for batch in transport.batches] == [MAX_EVENTS_PER_REQUEST]


def test_transport_failure_is_not_requeued(
    scheduler: ManualScheduler,
) -> None:
    """A failing transport loses the batch and the batcher stays usable."""
    transport = RecordingTransport(fail_with=RuntimeError("offline"))
    batcher = EventBatcher(transport, scheduler, batch_size=2, debug=True)

    batcher.enqueue(_custom("a"))
    batcher.enqueue(_custom("b"))

    assert batcher.pending == 0
    assert batcher.state == BatcherState.IDLE

    transport.fail_with = None
    batcher.enqueue(_custom("c"))
    batcher.flush()

    assert [_names(batch) for batch in transport.batches] == [["a", "b"], ["c"]]


def test_records_enqueued_during_send_start_a_new_batch(
    scheduler: ManualScheduler,
) -> None:
    """The queue is swapped before the transport runs."""
    batches: list[list[str]] = []
    batcher: EventBatcher

    class ReentrantTransport:
        def send(self, events: tuple[CustomEvent, ...]) -> None:
            batches.append(_names(events))
            if len(batches) == 1:
                batcher.enqueue(_custom("late"))

    batcher = EventBatcher(ReentrantTransport(), scheduler, batch_size=5)
    batcher.enqueue(_custom("a"))
    batcher.flush()

    assert batches == [["a"]]
    assert batcher.pending == 1
    assert scheduler.pending == 1


def test_second_record_completes_a_batch_of_two(
    transport: RecordingTransport,
    scheduler: ManualScheduler,
) -> None:
    """With a batch size of two the second record flushes both, in order."""
    batcher = EventBatcher(transport, scheduler, batch_size=2, flush_interval_ms=5000)

    batcher.enqueue(_custom("A"))
    assert transport.batches == []

    batcher.enqueue(_custom("B"))

    assert [_names(batch) for batch in transport.batches] == [["A", "B"]]
    scheduler.advance(5.0)
    assert len(transport.batches) == 1
