# src/ratekeeper/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Rate tables relative to a base currency
- Cached latest rates with freshness helpers
- Dated historical points and per-pair historical series
- Observable service status

Files that USE this module:
- ratekeeper.application.* (caches and service build and return these models)
- ratekeeper.adapters.* (sources produce rate tables, the file store persists JSON forms)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, field  # Decorator for creating data classes
from datetime import date, datetime, timedelta, timezone  # Date/time utilities for timestamps
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Currency code -> rate relative to a fixed base currency (base itself is 1.0)
RateTable = Dict[str, float]


def pair_key(from_code: str, to_code: str) -> str:
    """Key used for per-pair historical series, e.g. 'GBP_EUR'."""
    return f"{from_code}_{to_code}"


def _parse_ts(raw: Any) -> datetime:
    """Parse an ISO timestamp, accepting both '...Z' and '+00:00'."""
    ts = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class CachedRates:
    """
    Latest fetched rate table plus the time it was fetched.

    Replaced wholesale on every refresh, never merged.

    Attributes:
        rates: Currency code -> rate relative to base_currency
        fetched_at: Aware timestamp of the successful fetch
        base_currency: Code every rate is expressed against
    """
    rates: RateTable
    fetched_at: datetime
    base_currency: str

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at

    def is_expired(self, now: datetime, threshold: timedelta) -> bool:
        return self.age(now) > threshold

    def is_stale(self, now: datetime, threshold: timedelta) -> bool:
        return self.age(now) > threshold

    def to_json(self) -> dict:
        """
        Convert to a JSON-serializable dictionary.

        Floats are written as-is; json uses repr() so they round-trip exactly.
        """
        return {
            "rates": dict(self.rates),
            "fetched_at": self.fetched_at.isoformat(),
            "base_currency": self.base_currency,
        }

    @staticmethod
    def from_json(data: dict) -> "CachedRates":
        """
        Create CachedRates from its JSON dictionary.

        Raises:
            KeyError, ValueError, TypeError: If the record is malformed
        """
        rates = {str(code): float(value) for code, value in data["rates"].items()}
        return CachedRates(
            rates=rates,
            fetched_at=_parse_ts(data["fetched_at"]),
            base_currency=str(data["base_currency"]),
        )


@dataclass(frozen=True)
class HistoricalPoint:
    """Rate of a currency pair on one calendar day."""
    date: date
    rate: float


@dataclass(frozen=True)
class CachedHistoricalSeries:
    """
    Day-indexed rate series for one currency pair.

    Invariant: points are sorted ascending by date with at most one point per day.
    Build instances through from_points() or merged_with() to keep it.

    Attributes:
        pair_key: "FROM_TO"
        points: Ordered points
        fetched_at: When the series was last extended from a remote source
    """
    pair_key: str
    points: Tuple[HistoricalPoint, ...]
    fetched_at: datetime

    @classmethod
    def from_points(
        cls,
        key: str,
        points: Iterable[HistoricalPoint],
        fetched_at: datetime,
        latest_allowed: Optional[date] = None,
        max_points: Optional[int] = None,
    ) -> "CachedHistoricalSeries":
        """
        Build a series, deduplicating by day (first occurrence wins) and sorting.

        Args:
            key: Pair key
            points: Points in any order, duplicates allowed
            fetched_at: Fetch timestamp for the new series
            latest_allowed: Drop points after this day (historical data never includes today)
            max_points: Keep only the newest N points
        """
        by_day: Dict[date, HistoricalPoint] = {}
        for point in points:
            if latest_allowed is not None and point.date > latest_allowed:
                continue
            if point.rate <= 0:
                continue
            by_day.setdefault(point.date, point)
        ordered = [by_day[d] for d in sorted(by_day)]
        if max_points is not None and len(ordered) > max_points:
            ordered = ordered[-max_points:]
        return cls(pair_key=key, points=tuple(ordered), fetched_at=fetched_at)

    @property
    def most_recent_date(self) -> Optional[date]:
        return self.points[-1].date if self.points else None

    @property
    def oldest_date(self) -> Optional[date]:
        return self.points[0].date if self.points else None

    def days_missing(self, yesterday: date) -> int:
        """Calendar days between the newest point and yesterday."""
        if not self.points:
            return 0
        return max(0, (yesterday - self.points[-1].date).days)

    def needs_update(self, yesterday: date) -> bool:
        return self.days_missing(yesterday) > 0

    def merged_with(
        self,
        points: Iterable[HistoricalPoint],
        fetched_at: datetime,
        latest_allowed: Optional[date] = None,
        max_points: Optional[int] = None,
    ) -> "CachedHistoricalSeries":
        """Return a new series with extra points merged in; existing days are kept."""
        return CachedHistoricalSeries.from_points(
            self.pair_key,
            list(self.points) + list(points),
            fetched_at,
            latest_allowed=latest_allowed,
            max_points=max_points,
        )

    def clipped_to(self, latest_allowed: date) -> "CachedHistoricalSeries":
        """Return the series without points after latest_allowed."""
        return CachedHistoricalSeries.from_points(
            self.pair_key, self.points, self.fetched_at, latest_allowed=latest_allowed
        )

    def last(self, count: int) -> List[HistoricalPoint]:
        if count <= 0:
            return []
        return list(self.points[-count:])

    def to_json(self) -> dict:
        return {
            "pair_key": self.pair_key,
            "fetched_at": self.fetched_at.isoformat(),
            "points": [{"date": p.date.isoformat(), "rate": p.rate} for p in self.points],
        }

    @staticmethod
    def from_json(data: dict) -> "CachedHistoricalSeries":
        """
        Create a series from its JSON dictionary, re-establishing ordering.

        Raises:
            KeyError, ValueError, TypeError: If the record is malformed
        """
        points = [
            HistoricalPoint(date=date.fromisoformat(p["date"]), rate=float(p["rate"]))
            for p in data["points"]
        ]
        return CachedHistoricalSeries.from_points(
            str(data["pair_key"]), points, _parse_ts(data["fetched_at"])
        )


@dataclass(frozen=True)
class ServiceStatus:
    """
    Observable state of the rate service.

    Replaced as a whole on every change so a reader never sees a new
    timestamp paired with an old offline flag.

    Attributes:
        last_updated: Fetch time of the rate table last served (None if never)
        is_offline: True when the most recent remote fetch of any kind (latest
            or historical, background refreshes excepted) failed; serving a
            fresh cache does not change it
        is_mock: True while the mock source is active
        source: Name of the active rate source
    """
    last_updated: Optional[datetime] = None
    is_offline: bool = False
    is_mock: bool = False
    source: str = field(default="")
