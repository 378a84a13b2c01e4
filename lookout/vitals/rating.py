"""Rate vital values against fixed web vitals thresholds."""

from __future__ import annotations

import types

from lookout.events.models import VitalName, VitalRating

# (good ceiling, needs-improvement ceiling), both inclusive.
THRESHOLDS: types.MappingProxyType[str, tuple[float, float]] = types.MappingProxyType(
    {
        VitalName.LCP: (2500.0, 4000.0),
        VitalName.FCP: (1800.0, 3000.0),
        VitalName.CLS: (0.1, 0.25),
        VitalName.INP: (200.0, 500.0),
        VitalName.TTFB: (800.0, 1800.0),
    }
)


def rate(name: str, value: float) -> VitalRating:
    """Return the rating of ``value`` for the vital ``name``.

    Names without thresholds rate ``good``.

    Examples
    --------
    >>> rate("LCP", 2500)
    <VitalRating.GOOD: 'good'>
    >>> rate("CLS", 0.25)
    <VitalRating.NEEDS_IMPROVEMENT: 'needs-improvement'>

    """
    thresholds = THRESHOLDS.get(name)
    if thresholds is None:
        return VitalRating.GOOD
    good, needs_improvement = thresholds
    if value <= good:
        return VitalRating.GOOD
    if value <= needs_improvement:
        return VitalRating.NEEDS_IMPROVEMENT
    return VitalRating.POOR
