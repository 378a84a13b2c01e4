"""Unit tests for the manual scheduler."""

from __future__ import annotations

import pytest

from lookout.scheduling import ManualScheduler


def test_timers_fire_in_deadline_order() -> None:
    """Due timers run in deadline order, ties in registration order."""
    scheduler = ManualScheduler()
    fired: list[str] = []
    scheduler.call_later(0.3, lambda: fired.append("late"))
    scheduler.call_later(0.1, lambda: fired.append("first"))
    scheduler.call_later(0.1, lambda: fired.append("second"))

    scheduler.advance(0.2)
    assert fired == ["first", "second"]

    scheduler.advance(0.1)
    assert fired == ["first", "second", "late"]
    assert scheduler.now == pytest.approx(0.3)


def test_cancelled_timers_do_not_fire() -> None:
    """A cancelled timer is skipped and no longer pending."""
    scheduler = ManualScheduler()
    fired: list[str] = []
    handle = scheduler.call_later(1.0, lambda: fired.append("tick"))

    handle.cancel()
    scheduler.advance(2.0)

    assert fired == []
    assert scheduler.pending == 0


def test_timers_scheduled_by_callbacks_fire_in_window() -> None:
    """A timer added by a callback runs if it falls inside the advance."""
    scheduler = ManualScheduler()
    fired: list[float] = []

    def first() -> None:
        fired.append(scheduler.now)
        scheduler.call_later(0.5, lambda: fired.append(scheduler.now))

    scheduler.call_later(1.0, first)
    scheduler.advance(2.0)

    assert fired == [1.0, 1.5]
    assert scheduler.now == 2.0
