"""Web vitals collection: timeline entries, ratings and collectors.

Public API
----------
WebVitals
    Installs the LCP, FCP, CLS, INP and TTFB collectors for one page.
VitalMeasurement
    A finalized measurement handed to the agent.
decode_entries
    Decode a JSON array of timeline entries from a host bridge.
rate
    Rate a value against the fixed thresholds.
session_windows
    Group layout shifts into CLS session windows.

"""

from lookout.vitals.collectors import (
    FirstContentfulPaintCollector,
    InteractionToNextPaintCollector,
    LargestContentfulPaintCollector,
    LayoutShiftCollector,
    SessionWindow,
    TimeToFirstByteCollector,
    VitalCollector,
    VitalMeasurement,
    session_windows,
)
from lookout.vitals.entries import (
    EventTimingEntry,
    LargestContentfulPaintEntry,
    LayoutShiftEntry,
    NavigationTimingEntry,
    PaintEntry,
    PerformanceEntry,
    decode_entries,
)
from lookout.vitals.rating import THRESHOLDS, rate
from lookout.vitals.web_vitals import WebVitals

__all__ = [
    "THRESHOLDS",
    "EventTimingEntry",
    "FirstContentfulPaintCollector",
    "InteractionToNextPaintCollector",
    "LargestContentfulPaintCollector",
    "LargestContentfulPaintEntry",
    "LayoutShiftCollector",
    "LayoutShiftEntry",
    "NavigationTimingEntry",
    "PaintEntry",
    "PerformanceEntry",
    "SessionWindow",
    "TimeToFirstByteCollector",
    "VitalCollector",
    "VitalMeasurement",
    "WebVitals",
    "decode_entries",
    "rate",
    "session_windows",
]
