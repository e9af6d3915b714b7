# src/ratekeeper/application/series_stats.py
"""
Series Statistics - Summary of a Historical Rate Series

Summarises a series the way the chart view presents it: current, high, low,
the visual midpoint between high and low, where the current rate sits in that
band, the 7-day trend, volatility, and a coarse rating of how good the current
rate is compared with the period.

Files that USE this module:
- ratekeeper.application.rate_service (history_stats)
- ratekeeper.adapters.formatting.formatter (format_history summary)
- tests.test_series_stats (unit tests)

Files that this module USES:
- ratekeeper.domain.models (HistoricalPoint)
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ratekeeper.domain.models import HistoricalPoint

TREND_WINDOW = 7


@dataclass(frozen=True)
class SeriesStats:
    current: float
    high: float
    low: float
    midpoint: float
    position_pct: float
    week_trend_pct: Optional[float]
    volatility_pct: float
    rating: str


def _rating(position_pct: float) -> str:
    if position_pct >= 80:
        return "excellent"
    if position_pct >= 60:
        return "good"
    if position_pct >= 40:
        return "average"
    if position_pct >= 20:
        return "below_average"
    return "poor"


def summarize(points: Sequence[HistoricalPoint]) -> Optional[SeriesStats]:
    """
    Compute statistics for an ascending series.

    position_pct is 50 when high == low. week_trend_pct compares the current
    rate with the first of the last seven points and is None with fewer than
    seven points. volatility_pct is the population standard deviation over
    the mean, in percent.

    Returns:
        SeriesStats, or None for an empty series
    """
    if not points:
        return None

    rates = [p.rate for p in points]
    current = rates[-1]
    high = max(rates)
    low = min(rates)
    band = high - low
    position = 50.0 if band == 0 else (current - low) / band * 100

    week_trend: Optional[float] = None
    if len(rates) >= TREND_WINDOW:
        week_ago = rates[-TREND_WINDOW]
        week_trend = (current - week_ago) / week_ago * 100

    mean = sum(rates) / len(rates)
    variance = sum((r - mean) ** 2 for r in rates) / len(rates)
    volatility = math.sqrt(variance) / mean * 100 if mean else 0.0

    return SeriesStats(
        current=current,
        high=high,
        low=low,
        midpoint=(high + low) / 2.0,
        position_pct=position,
        week_trend_pct=week_trend,
        volatility_pct=volatility,
        rating=_rating(position),
    )
