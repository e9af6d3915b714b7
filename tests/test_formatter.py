# tests/test_formatter.py
"""
Formatter Tests - Unit Tests for Human-Readable Output

This module contains unit tests for the formatting functions: cache age
descriptions, rate and conversion lines, status lines and history summaries.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- ratekeeper.adapters.formatting.formatter (all formatter functions for testing)
- ratekeeper.domain.models (ServiceStatus, HistoricalPoint for test data)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from datetime import date, datetime, timedelta, timezone  # Date/time utilities for test data

from ratekeeper.adapters.formatting.formatter import (
    describe_cache_age,
    format_conversion,
    format_history,
    format_rate_line,
    format_status,
    mode_description,
    _fmt_rate,
)
from ratekeeper.application.series_stats import summarize
from ratekeeper.domain.models import HistoricalPoint, ServiceStatus

NOW = datetime(2026, 10, 14, 10, 0, tzinfo=timezone.utc)


class TestDescribeCacheAge:
    def test_unknown(self):
        assert describe_cache_age(None, NOW) == "Unknown"

    @pytest.mark.parametrize(
        "age, expected",
        [
            (timedelta(seconds=0), "just now"),
            (timedelta(seconds=59), "just now"),
            (timedelta(minutes=1), "1m ago"),
            (timedelta(minutes=59, seconds=59), "59m ago"),
            (timedelta(hours=1), "1h ago"),
            (timedelta(hours=23, minutes=59), "23h ago"),
        ],
    )
    def test_relative_ages(self, age, expected):
        assert describe_cache_age(NOW - age, NOW) == expected

    def test_older_than_a_day_shows_date(self):
        assert describe_cache_age(datetime(2026, 10, 12, 9, 0, tzinfo=timezone.utc), NOW) == "Oct 12"
        assert describe_cache_age(datetime(2026, 3, 5, 9, 0, tzinfo=timezone.utc), NOW) == "Mar 5"


class TestRateLines:
    def test_fmt_rate(self):
        assert _fmt_rate(0.9) == "0.9000"
        assert _fmt_rate(149.5) == "149.5000"
        assert _fmt_rate(0.0000238) == "0.0000238"
        assert _fmt_rate(0) == "0"

    def test_format_rate_line(self):
        assert format_rate_line("USD", "EUR", 0.92) == "1 USD = 0.9200 EUR"
        assert format_rate_line("USD", "XYZ", None) == "1 USD = N/A XYZ"

    def test_format_conversion(self):
        assert format_conversion(100, "EUR", "GBP", 85.869565) == "100.00 EUR = 85.87 GBP"
        assert format_conversion(1250.5, "USD", "JPY", 186949.75) == "1,250.50 USD = 186,949.75 JPY"
        assert format_conversion(100, "EUR", "XYZ", None) == "100.00 EUR = N/A XYZ"


class TestStatus:
    def test_online(self):
        status = ServiceStatus(last_updated=NOW - timedelta(minutes=5), source="currencyapi")
        assert format_status(status, NOW) == "Online · updated 5m ago"

    def test_offline_mock(self):
        status = ServiceStatus(last_updated=None, is_offline=True, is_mock=True, source="mock")
        assert format_status(status, NOW) == "Offline (mock data) · updated Unknown"

    def test_mode_description(self):
        assert mode_description(True) == "Mock mode (no API calls)"
        assert mode_description(False) == "Live mode (real API)"


class TestFormatHistory:
    def test_empty(self):
        assert format_history([]) == "No historical data"

    def test_lines_without_stats(self):
        points = [
            HistoricalPoint(date=date(2026, 10, 12), rate=1.16),
            HistoricalPoint(date=date(2026, 10, 13), rate=1.17),
        ]
        assert format_history(points) == "2026-10-12  1.1600\n2026-10-13  1.1700"

    def test_summary_with_stats(self):
        points = [HistoricalPoint(date=date(2026, 10, 1) + timedelta(days=i), rate=1.0 + i / 100) for i in range(7)]

        text = format_history(points, summarize(points))

        assert "High 1.0600 · Low 1.0000 · Mid 1.0300" in text
        assert "7-day trend +6.00%" in text
        assert text.endswith("Rating: excellent")
