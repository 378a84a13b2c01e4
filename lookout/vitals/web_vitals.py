"""Install and drive the vital collectors for one page."""

from __future__ import annotations

import collections.abc as cabc
import functools
import typing as typ

from .collectors import (
    FirstContentfulPaintCollector,
    InteractionToNextPaintCollector,
    LargestContentfulPaintCollector,
    LayoutShiftCollector,
    Report,
    TimeToFirstByteCollector,
    VitalCollector,
)
from .entries import NavigationTimingEntry

if typ.TYPE_CHECKING:
    from lookout.observability import AgentEventLogger

    from .entries import PerformanceEntry

DEFAULT_NAVIGATION_TYPE = "navigate"

COLLECTOR_TYPES = (
    LargestContentfulPaintCollector,
    FirstContentfulPaintCollector,
    LayoutShiftCollector,
    InteractionToNextPaintCollector,
    TimeToFirstByteCollector,
)


class WebVitals:
    """Route timeline entries to collectors and finalize them on hide.

    Only collectors whose entry type the page supports are installed. A
    collector that raises is removed and never runs again; the failure is
    logged through ``event_logger`` and nothing propagates to the caller.

    Parameters
    ----------
    report
        Callback receiving each finalized measurement.
    supported_entry_types
        Entry types the host can deliver.
    event_logger
        Receives collector failures.

    """

    def __init__(
        self,
        report: Report,
        *,
        supported_entry_types: cabc.Set[str],
        event_logger: AgentEventLogger,
    ) -> None:
        """Install collectors for the supported entry types."""
        self._event_logger = event_logger
        self._navigation_type = DEFAULT_NAVIGATION_TYPE
        self._collectors: dict[str, VitalCollector] = {
            collector_type.entry_type: collector_type(
                report,
                self.navigation_type,
            )
            for collector_type in COLLECTOR_TYPES
            if collector_type.entry_type in supported_entry_types
        }

    @property
    def collectors(self) -> tuple[VitalCollector, ...]:
        """Return the collectors still installed."""
        return tuple(self._collectors.values())

    def navigation_type(self) -> str:
        """Return how the current document was reached."""
        return self._navigation_type

    def observe(self, entries: cabc.Iterable[PerformanceEntry]) -> None:
        """Dispatch entries to the collector for each entry type."""
        grouped: dict[str, list[PerformanceEntry]] = {}
        for entry in entries:
            if isinstance(entry, NavigationTimingEntry) and entry.type:
                self._navigation_type = entry.type
            grouped.setdefault(entry.entry_type, []).append(entry)
        for entry_type, batch in grouped.items():
            collector = self._collectors.get(entry_type)
            if collector is not None:
                self._run(collector, functools.partial(collector.observe, batch))

    def finalize(self) -> None:
        """Ask every installed collector to report its final value."""
        for collector in self.collectors:
            self._run(collector, collector.finalize)

    def _run(
        self,
        collector: VitalCollector,
        call: cabc.Callable[[], None],
    ) -> None:
        try:
            call()
        except Exception as exc:  # noqa: BLE001 - a failing collector is disabled
            self._collectors.pop(collector.entry_type, None)
            self._event_logger.log_collector_disabled(
                collector=str(collector.name),
                error=exc,
            )
