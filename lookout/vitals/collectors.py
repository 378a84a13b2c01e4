"""Collectors translating timeline entries into vital measurements.

Each collector owns one measurement id for its lifetime and reports through
a callback. Collectors for vitals that keep changing while the page is open
(LCP, CLS, INP) only report from :meth:`finalize`, which the agent calls when
the page is hidden or torn down. FCP and TTFB are single-shot and report as
soon as their entry arrives. Every collector reports at most once.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

import msgspec

from lookout.common.ids import generate_id
from lookout.events.models import VitalName, VitalRating

from .entries import (
    EventTimingEntry,
    LargestContentfulPaintEntry,
    LayoutShiftEntry,
    NavigationTimingEntry,
    PaintEntry,
)
from .rating import rate

if typ.TYPE_CHECKING:
    from .entries import PerformanceEntry

# Layout shift session window bounds, in milliseconds.
SESSION_GAP_MS = 1000.0
SESSION_SPAN_MS = 5000.0

_FIRST_CONTENTFUL_PAINT = "first-contentful-paint"


class VitalMeasurement(msgspec.Struct, kw_only=True, frozen=True):
    """A finalized vital value ready to be wrapped in an envelope."""

    name: VitalName
    value: float
    rating: VitalRating
    id: str
    navigation_type: str


Report = cabc.Callable[[VitalMeasurement], None]
NavigationTypeProvider = cabc.Callable[[], str]


class VitalCollector(typ.Protocol):
    """Interface shared by all vital collectors."""

    name: VitalName
    entry_type: str

    def observe(self, entries: cabc.Sequence[PerformanceEntry]) -> None:
        """Fold newly delivered entries of :attr:`entry_type` into state."""
        ...

    def finalize(self) -> None:
        """Report the current value if this collector reports on hide."""
        ...


class _BaseCollector:
    """Shared report-once bookkeeping."""

    name: typ.ClassVar[VitalName]
    entry_type: typ.ClassVar[str]

    def __init__(
        self,
        report: Report,
        navigation_type: NavigationTypeProvider,
    ) -> None:
        self._report = report
        self._navigation_type = navigation_type
        self._id = generate_id()
        self._reported = False

    @property
    def reported(self) -> bool:
        """Return whether this collector has already reported."""
        return self._reported

    def _emit(self, value: float) -> None:
        if self._reported:
            return
        self._reported = True
        self._report(
            VitalMeasurement(
                name=self.name,
                value=value,
                rating=rate(self.name, value),
                id=self._id,
                navigation_type=self._navigation_type(),
            )
        )

    def finalize(self) -> None:
        """Do nothing; single-shot collectors report as entries arrive."""


class LargestContentfulPaintCollector(_BaseCollector):
    """Track the latest LCP candidate and report it on hide."""

    name = VitalName.LCP
    entry_type = "largest-contentful-paint"

    def __init__(
        self,
        report: Report,
        navigation_type: NavigationTypeProvider,
    ) -> None:
        """Start with no candidate."""
        super().__init__(report, navigation_type)
        self._value = 0.0

    @property
    def value(self) -> float:
        """Return the start time of the latest candidate."""
        return self._value

    def observe(self, entries: cabc.Sequence[PerformanceEntry]) -> None:
        """Keep the start time of the last candidate in ``entries``."""
        candidates = [
            entry
            for entry in entries
            if isinstance(entry, LargestContentfulPaintEntry)
        ]
        if candidates:
            self._value = candidates[-1].start_time

    def finalize(self) -> None:
        """Report the latest candidate once, if one was seen."""
        if self._value > 0:
            self._emit(self._value)


class FirstContentfulPaintCollector(_BaseCollector):
    """Report FCP the first time it is observed."""

    name = VitalName.FCP
    entry_type = "paint"

    def observe(self, entries: cabc.Sequence[PerformanceEntry]) -> None:
        """Report the first ``first-contentful-paint`` entry."""
        for entry in entries:
            if isinstance(entry, PaintEntry) and entry.name == _FIRST_CONTENTFUL_PAINT:
                self._emit(entry.start_time)
                return


@dc.dataclass(slots=True)
class SessionWindow:
    """Layout shifts grouped into one CLS session window.

    A window accepts a shift at ``start_time`` while the gap since its last
    shift is at most ``SESSION_GAP_MS`` and the span since its first shift is
    at most ``SESSION_SPAN_MS``.
    """

    value: float = 0.0
    timestamps: list[float] = dc.field(default_factory=list)

    def accepts(self, start_time: float) -> bool:
        """Return whether a shift at ``start_time`` belongs to this window."""
        if not self.timestamps:
            return True
        return (
            start_time - self.timestamps[-1] <= SESSION_GAP_MS
            and start_time - self.timestamps[0] <= SESSION_SPAN_MS
        )

    def add(self, start_time: float, value: float) -> None:
        """Fold a shift into the window."""
        self.timestamps.append(start_time)
        self.value += value


def session_windows(
    shifts: cabc.Iterable[tuple[float, float]],
) -> list[SessionWindow]:
    """Group ``(start_time, value)`` shifts into CLS session windows.

    Examples
    --------
    >>> windows = session_windows([(0, 0.1), (800, 0.1), (6000, 0.1)])
    >>> [w.timestamps for w in windows]
    [[0, 800], [6000]]

    """
    windows: list[SessionWindow] = []
    current = SessionWindow()
    for start_time, value in shifts:
        if not current.accepts(start_time):
            windows.append(current)
            current = SessionWindow()
        current.add(start_time, value)
    if current.timestamps:
        windows.append(current)
    return windows


class LayoutShiftCollector(_BaseCollector):
    """Report the worst CLS session window on hide."""

    name = VitalName.CLS
    entry_type = "layout-shift"

    def __init__(
        self,
        report: Report,
        navigation_type: NavigationTypeProvider,
    ) -> None:
        """Start with an empty window and no maximum."""
        super().__init__(report, navigation_type)
        self._window = SessionWindow()
        self._max_value = 0.0

    @property
    def window(self) -> SessionWindow:
        """Return the currently open session window."""
        return self._window

    @property
    def value(self) -> float:
        """Return the worst window value so far, open window included."""
        return max(self._max_value, self._window.value)

    def observe(self, entries: cabc.Sequence[PerformanceEntry]) -> None:
        """Fold shifts without recent input into session windows."""
        for entry in entries:
            if not isinstance(entry, LayoutShiftEntry) or entry.had_recent_input:
                continue
            if not self._window.accepts(entry.start_time):
                self._max_value = max(self._max_value, self._window.value)
                self._window = SessionWindow()
            self._window.add(entry.start_time, entry.value)

    def finalize(self) -> None:
        """Report the worst window once, if any shift scored."""
        value = self.value
        if value > 0:
            self._emit(value)


class InteractionToNextPaintCollector(_BaseCollector):
    """Track the slowest processed interaction and report it on hide."""

    name = VitalName.INP
    entry_type = "event"

    def __init__(
        self,
        report: Report,
        navigation_type: NavigationTypeProvider,
    ) -> None:
        """Start with no interaction seen."""
        super().__init__(report, navigation_type)
        self._max_duration = 0.0

    @property
    def value(self) -> float:
        """Return the longest interaction duration so far."""
        return self._max_duration

    def observe(self, entries: cabc.Sequence[PerformanceEntry]) -> None:
        """Keep the longest duration among processed interactions."""
        for entry in entries:
            if isinstance(entry, EventTimingEntry) and entry.processing_start:
                self._max_duration = max(self._max_duration, entry.duration)

    def finalize(self) -> None:
        """Report the longest interaction once, if one was seen."""
        if self._max_duration > 0:
            self._emit(self._max_duration)


class TimeToFirstByteCollector(_BaseCollector):
    """Report TTFB from the first navigation timing entry."""

    name = VitalName.TTFB
    entry_type = "navigation"

    def __init__(
        self,
        report: Report,
        navigation_type: NavigationTypeProvider,
    ) -> None:
        """Start before any navigation entry is seen."""
        super().__init__(report, navigation_type)
        self._computed = False

    def observe(self, entries: cabc.Sequence[PerformanceEntry]) -> None:
        """Report ``response_start - request_start`` once, when non-negative."""
        if self._computed:
            return
        for entry in entries:
            if not isinstance(entry, NavigationTimingEntry):
                continue
            self._computed = True
            ttfb = entry.response_start - entry.request_start
            if ttfb >= 0:
                self._emit(ttfb)
            return
