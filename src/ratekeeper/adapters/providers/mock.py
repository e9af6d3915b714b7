# src/ratekeeper/adapters/providers/mock.py
"""
Mock Provider - Deterministic In-Memory Rate Source

This module implements a rate source that never touches the network. It serves
a fixed USD-based table covering every currency the application supports
(rebased on demand for other base currencies) and synthesizes historical
series anchored on the present-day mock rate.

Synthetic history: the point for yesterday equals the mock rate; each earlier
day is the following day's rate times (1 + u) with u drawn uniformly from
[-volatility, +volatility]. The draw for a day is seeded by (seed, pair, day),
so single-day and range requests always agree and a series is continuous.

Files that USE this module:
- ratekeeper.application.rate_service (mock tier, last-resort fallback and synthetic history)
- ratekeeper.app (mock mode from the CLI)
- tests.test_mock_source (unit tests)

Files that this module USES:
- ratekeeper.adapters.providers.base (RateSource interface)
- ratekeeper.domain.conversion (rebasing via cross rates)
"""
from __future__ import annotations

import logging
import random
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional

from ratekeeper.adapters.providers.base import RateSource
from ratekeeper.config import Settings, settings as default_settings
from ratekeeper.domain.conversion import rate_between
from ratekeeper.domain.errors import InvalidRequestError, UnknownCurrencyError
from ratekeeper.domain.models import HistoricalPoint, RateTable
from ratekeeper.shared.clock import Clock, system_clock, yesterday

log = logging.getLogger(__name__)

MOCK_BASE = "USD"

# Realistic rates vs USD for all supported currencies
MOCK_USD_RATES: Dict[str, float] = {
    "USD": 1.0,
    # Very high-value
    "KWD": 0.31, "BHD": 0.38, "OMR": 0.38, "JOD": 0.71, "GBP": 0.79,
    # High-value
    "EUR": 0.92, "CHF": 0.91, "CAD": 1.36, "AUD": 1.52, "NZD": 1.65,
    "SGD": 1.35, "AED": 3.67, "SAR": 3.75, "QAR": 3.64, "ILS": 3.72,
    "BND": 1.35, "BSD": 1.0, "PAB": 1.0, "FJD": 2.27, "BWP": 13.5,
    "AZN": 1.70, "RON": 4.56, "BGN": 1.80, "GEL": 2.70, "PEN": 3.75,
    "BOB": 6.91, "GTQ": 7.75, "UAH": 41.2, "RSD": 107.5, "JMD": 154.5,
    "BBD": 2.0, "TTD": 6.78, "MUR": 45.8, "MVR": 15.4,
    # Medium-value
    "CNY": 7.23, "HKD": 7.82, "TWD": 31.5, "SEK": 10.35, "NOK": 10.62,
    "DKK": 6.87, "PLN": 4.02, "CZK": 23.1, "MXN": 17.2, "ZAR": 18.5,
    "BRL": 5.02, "INR": 83.2, "THB": 34.5, "MYR": 4.47, "PHP": 56.3,
    "TRY": 32.5, "EGP": 48.8, "RUB": 92.5, "MDL": 17.8, "MKD": 56.4,
    "DOP": 59.8, "HNL": 24.7, "NIO": 36.8, "MAD": 9.87, "TND": 3.11,
    "KES": 129.5, "UGX": 3685.0, "TZS": 2505.0, "GHS": 15.2, "NAD": 18.5,
    # Low-value
    "JPY": 149.5, "KRW": 1325.0, "HUF": 360.5, "ISK": 137.2, "CLP": 920.0,
    "ARS": 850.0, "COP": 3925.0, "PKR": 278.5, "LKR": 305.0, "BDT": 110.5,
    "MMK": 2098.0, "NGN": 1580.0, "AMD": 386.0, "KZT": 452.0, "KGS": 87.5,
    "ALL": 92.3, "RWF": 1298.0, "BIF": 2865.0, "DJF": 178.0, "GNF": 8590.0,
    "KMF": 452.0, "MGA": 4520.0, "PYG": 7350.0, "KHR": 4095.0, "MNT": 3420.0,
    # Very low-value
    "VND": 24500.0, "IDR": 15780.0, "IRR": 42050.0, "LAK": 21850.0, "UZS": 12750.0,
    "SLL": 19750.0, "LBP": 89500.0, "SYP": 13000.0, "STN": 22.5, "VES": 36.5,
}


class MockRateSource(RateSource):
    name = "mock"

    def __init__(
        self,
        rates: Optional[Mapping[str, float]] = None,
        volatility: Optional[float] = None,
        seed: int = 0,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the mock source.

        Args:
            rates: USD-based table to serve (defaults to MOCK_USD_RATES)
            volatility: Max relative day-to-day move (defaults to settings.mock_volatility)
            seed: Seed mixed into every synthetic draw
            clock: Clock used to find "yesterday"
            settings: Settings instance to read defaults from
        """
        cfg = settings or default_settings
        self._rates: RateTable = dict(rates if rates is not None else MOCK_USD_RATES)
        self._rates[MOCK_BASE] = 1.0
        self.volatility = cfg.mock_volatility if volatility is None else volatility
        self.seed = seed
        self._clock = clock or system_clock

    @property
    def currencies(self) -> List[str]:
        return sorted(self._rates)

    def anchor_rate(self, base: str, target: str) -> float:
        """
        Present-day mock rate of 1 base in target.

        Raises:
            UnknownCurrencyError: If either code is not in the mock table
        """
        return rate_between(self._rates, MOCK_BASE, base, target)

    def latest_rates(self, base: str) -> RateTable:
        """Mock table rebased on base (table[base] == 1.0)."""
        if base == MOCK_BASE:
            return dict(self._rates)
        if base not in self._rates:
            raise InvalidRequestError(f"mock source has no rates for base {base}")
        divisor = self._rates[base]
        table = {code: value / divisor for code, value in self._rates.items()}
        table[base] = 1.0
        return table

    def _step(self, base: str, target: str, day: date) -> float:
        """Multiplicative move from day+1 back to day."""
        rng = random.Random(f"{self.seed}:{base}_{target}:{day.isoformat()}")
        return 1.0 + rng.uniform(-self.volatility, self.volatility)

    def _walk(self, base: str, target: str, oldest: date) -> Dict[date, float]:
        """Rates for every day from yesterday back to oldest (inclusive)."""
        try:
            rate = self.anchor_rate(base, target)
        except UnknownCurrencyError as e:
            raise InvalidRequestError(f"mock source has no rate for {base}->{target}") from e
        day = yesterday(self._clock)
        series: Dict[date, float] = {}
        while day >= oldest:
            series[day] = rate
            day -= timedelta(days=1)
            rate *= self._step(base, target, day)
        return series

    def historical_rate(self, day: date, base: str, target: str) -> float:
        if day > yesterday(self._clock):
            raise InvalidRequestError(f"no historical data for {day} yet")
        return self._walk(base, target, day)[day]

    def historical_range(self, start: date, end: date, base: str, target: str) -> Dict[date, float]:
        if start > end:
            raise InvalidRequestError(f"range start {start} is after end {end}")
        walk = self._walk(base, target, start)
        return {day: rate for day, rate in walk.items() if start <= day <= end}

    def synthetic_series(self, base: str, target: str, days: int) -> List[HistoricalPoint]:
        """
        A days-long series ending yesterday, oldest first.

        Raises:
            UnknownCurrencyError: If either code is not in the mock table
        """
        if days <= 0:
            return []
        self.anchor_rate(base, target)
        oldest = yesterday(self._clock) - timedelta(days=days - 1)
        walk = self._walk(base, target, oldest)
        log.debug("Synthesized %d mock points for %s->%s", len(walk), base, target)
        return [HistoricalPoint(date=day, rate=walk[day]) for day in sorted(walk)]
