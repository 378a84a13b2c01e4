"""Timer scheduling for the agent.

The agent runs on the host's event loop and only needs ``call_later``. Any
``asyncio`` loop satisfies :class:`Scheduler`. :class:`ManualScheduler` is a
deterministic stand-in that advances time explicitly, for hosts that drive
their own clock and for tests.

Examples
--------
>>> scheduler = ManualScheduler()
>>> fired = []
>>> _ = scheduler.call_later(0.5, lambda: fired.append("tick"))
>>> scheduler.advance(0.4)
>>> fired
[]
>>> scheduler.advance(0.1)
>>> fired
['tick']

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import heapq
import itertools
import typing as typ


class TimerHandle(typ.Protocol):
    """Cancellable handle returned by :meth:`Scheduler.call_later`."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not run yet."""
        ...


class Scheduler(typ.Protocol):
    """Subset of the asyncio loop API used for timed flushes and deferrals."""

    def call_later(
        self,
        delay: float,
        callback: cabc.Callable[[], object],
        /,
    ) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...


@dc.dataclass(slots=True)
class ManualTimer:
    """Timer registered with a :class:`ManualScheduler`."""

    when: float
    callback: cabc.Callable[[], object]
    cancelled: bool = False

    def cancel(self) -> None:
        """Mark the timer cancelled; the scheduler skips it."""
        self.cancelled = True


class ManualScheduler:
    """Deterministic :class:`Scheduler` whose clock only moves on request."""

    def __init__(self) -> None:
        """Start the clock at zero with no timers."""
        self._now = 0.0
        self._counter = itertools.count()
        self._timers: list[tuple[float, int, ManualTimer]] = []

    @property
    def now(self) -> float:
        """Return the current virtual time in seconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Return the number of timers that have not fired or been cancelled."""
        return sum(1 for _, _, timer in self._timers if not timer.cancelled)

    def call_later(
        self,
        delay: float,
        callback: cabc.Callable[[], object],
        /,
    ) -> ManualTimer:
        """Register ``callback`` to run once the clock passes ``now + delay``."""
        timer = ManualTimer(when=self._now + max(0.0, delay), callback=callback)
        heapq.heappush(self._timers, (timer.when, next(self._counter), timer))
        return timer

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order.

        Timers scheduled by callbacks run in the same call when they fall
        inside the advanced window.
        """
        deadline = self._now + seconds
        while self._timers and self._timers[0][0] <= deadline:
            when, _, timer = heapq.heappop(self._timers)
            self._now = max(self._now, when)
            if not timer.cancelled:
                timer.cancelled = True
                timer.callback()
        self._now = deadline
