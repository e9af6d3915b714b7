# tests/test_series_stats.py
"""
Series Statistics Tests

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- ratekeeper.application.series_stats (summarize)
"""
from datetime import date, timedelta

import pytest  # Testing framework for writing and running tests

from ratekeeper.application.series_stats import summarize
from ratekeeper.domain.models import HistoricalPoint


def points_for(rates):
    start = date(2026, 10, 1)
    return [HistoricalPoint(date=start + timedelta(days=i), rate=r) for i, r in enumerate(rates)]


class TestSummarize:
    def test_empty_series(self):
        assert summarize([]) is None

    def test_band_and_position(self):
        stats = summarize(points_for([1.0, 1.4, 1.2, 1.1]))

        assert stats.current == 1.1
        assert stats.high == 1.4
        assert stats.low == 1.0
        assert stats.midpoint == pytest.approx(1.2)
        assert stats.position_pct == pytest.approx(25.0)
        assert stats.rating == "below_average"

    def test_flat_series(self):
        stats = summarize(points_for([1.2, 1.2, 1.2]))

        assert stats.position_pct == 50.0
        assert stats.rating == "average"
        assert stats.volatility_pct == 0.0

    def test_week_trend_needs_seven_points(self):
        assert summarize(points_for([1.0] * 6)).week_trend_pct is None

        stats = summarize(points_for([2.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.1]))
        assert stats.week_trend_pct == pytest.approx(10.0)

    @pytest.mark.parametrize(
        "current, rating",
        [(1.9, "excellent"), (1.7, "good"), (1.5, "average"), (1.3, "below_average"), (1.1, "poor")],
    )
    def test_rating_bands(self, current, rating):
        assert summarize(points_for([1.0, 2.0, current])).rating == rating

    def test_volatility(self):
        stats = summarize(points_for([1.0, 3.0]))
        # population stdev 1.0 over mean 2.0
        assert stats.volatility_pct == pytest.approx(50.0)
