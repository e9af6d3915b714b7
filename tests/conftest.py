# tests/conftest.py
"""
Shared Test Fixtures - Clock, Fake Rate Source and Settings

Files that USE this module:
- pytest (fixtures are injected into every test module)

Files that this module USES:
- ratekeeper.adapters.providers.base (RateSource interface for the fake)
- ratekeeper.config (Settings built per test with a temporary data dir)
"""
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest  # Testing framework for writing and running tests

from ratekeeper.adapters.persistence.file_store import JsonFileStore
from ratekeeper.adapters.providers.base import RateSource
from ratekeeper.config import Settings

# Wednesday, inside market hours (08:00-20:00)
WEDNESDAY_MORNING = datetime(2026, 10, 14, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Mutable clock; call it to read the time."""

    def __init__(self, now: datetime = WEDNESDAY_MORNING):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def fake_history_rate(day: date) -> float:
    """Deterministic, day-dependent rate for fake history."""
    return round(1.10 + (day.toordinal() % 10) / 100, 4)


class FakeSource(RateSource):
    """In-memory source that records every request and can be told to fail."""

    name = "fake"

    def __init__(self, rates: Optional[Dict[str, float]] = None):
        self.rates = dict(rates or {"USD": 1.0, "EUR": 0.9, "GBP": 0.8})
        self.error: Optional[Exception] = None
        self.latest_calls = 0
        self.single_calls: List[date] = []
        self.range_calls: List[Tuple[date, date]] = []
        self._lock = threading.Lock()

    @property
    def requested_days(self) -> List[date]:
        days = list(self.single_calls)
        for start, end in self.range_calls:
            day = start
            while day <= end:
                days.append(day)
                day += timedelta(days=1)
        return sorted(days)

    def latest_rates(self, base: str) -> Dict[str, float]:
        with self._lock:
            self.latest_calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.rates)

    def historical_rate(self, day: date, base: str, target: str) -> float:
        with self._lock:
            self.single_calls.append(day)
        if self.error is not None:
            raise self.error
        return fake_history_rate(day)

    def historical_range(self, start: date, end: date, base: str, target: str) -> Dict[date, float]:
        with self._lock:
            self.range_calls.append((start, end))
        if self.error is not None:
            raise self.error
        result = {}
        day = start
        while day <= end:
            result[day] = fake_history_rate(day)
            day += timedelta(days=1)
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        api_key="test_api_key_1234567890",
        base_currency="USD",
        data_dir=tmp_path / "data",
        market_hours_expiry_minutes=60,
        off_hours_expiry_minutes=120,
        stale_minutes=30,
        background_refresh_cooldown_minutes=15,
        mock_mode=False,
        mock_fallback_enabled=True,
        log_stdout=False,
    )


@pytest.fixture
def store(test_settings) -> JsonFileStore:
    return JsonFileStore(test_settings.data_dir)
