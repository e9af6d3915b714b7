# src/ratekeeper/application/historical_cache.py
"""
Historical Cache - Rolling Per-Pair Rate Series

Keeps one day-indexed series per currency pair and works out which days a
request actually needs from the remote source, so a series is extended
instead of re-fetched:

- nothing cached: the whole requested window is missing (initial load)
- series ends before yesterday: the trailing days after its newest point
- series starts after the window start: the leading days before its oldest point

Interior holes (days the provider had no data for) are never refetched.
Yesterday is the newest day ever requested or stored; the historical endpoint
has no same-day data.

Missing days are grouped into contiguous runs so each run can be fetched with
one request. Merging dedupes by day, keeps existing points, sorts ascending and
caps the stored history.

Files that USE this module:
- ratekeeper.application.rate_service (fetch_historical_rates)
- tests.test_historical_cache (unit tests)

Files that this module USES:
- ratekeeper.adapters.persistence.file_store (optional durable storage)
- ratekeeper.domain.models (HistoricalPoint, CachedHistoricalSeries)
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from ratekeeper.adapters.persistence.file_store import HISTORY_RECORD, JsonFileStore
from ratekeeper.domain.models import CachedHistoricalSeries, HistoricalPoint

log = logging.getLogger(__name__)


def window_start(requested_days: int, yesterday: date) -> date:
    """First day of a requested_days-long window ending yesterday."""
    return yesterday - timedelta(days=requested_days - 1)


def days_missing(series: Optional[CachedHistoricalSeries], requested_days: int, yesterday: date) -> int:
    """
    Trailing days between the newest cached point and yesterday.

    Capped at requested_days; equals requested_days when nothing is cached.
    """
    if series is None or not series.points:
        return requested_days
    return min(series.days_missing(yesterday), requested_days)


def missing_days(series: Optional[CachedHistoricalSeries], requested_days: int, yesterday: date) -> List[date]:
    """
    Exact days to fetch so that the window ending yesterday is covered.

    Returns:
        Ascending list of days, empty when the cache already covers the window
    """
    start = window_start(requested_days, yesterday)
    if series is None or not series.points:
        return [start + timedelta(days=i) for i in range(requested_days)]

    wanted: List[date] = []
    oldest = series.oldest_date
    newest = series.most_recent_date

    # leading gap: the cached series does not reach back far enough
    if oldest > start:
        day = start
        while day < oldest and day <= yesterday:
            wanted.append(day)
            day += timedelta(days=1)

    # trailing gap: days after the newest point, never before the window
    day = max(newest + timedelta(days=1), start)
    while day <= yesterday:
        if not wanted or day > wanted[-1]:
            wanted.append(day)
        day += timedelta(days=1)
    return wanted


def contiguous_runs(days: Iterable[date]) -> List[Tuple[date, date]]:
    """Group days into (first, last) runs of consecutive calendar days."""
    runs: List[Tuple[date, date]] = []
    for day in sorted(set(days)):
        if runs and day == runs[-1][1] + timedelta(days=1):
            runs[-1] = (runs[-1][0], day)
        else:
            runs.append((day, day))
    return runs


class HistoricalCache:
    def __init__(self, store: Optional[JsonFileStore] = None, max_days: int = 366):
        """
        Args:
            store: Durable storage; None keeps series in memory only
            max_days: Most points kept per pair
        """
        self.store = store
        self.max_days = max_days
        self._series: Dict[str, CachedHistoricalSeries] = {}

    def __len__(self) -> int:
        return len(self._series)

    def load(self) -> int:
        """
        Load persisted series (called once at startup).

        Malformed entries are skipped individually.

        Returns:
            Number of pairs loaded
        """
        if self.store is None:
            return 0
        data = self.store.load(HISTORY_RECORD)
        if data is None:
            return 0
        loaded: Dict[str, CachedHistoricalSeries] = {}
        for key, raw in data.items():
            try:
                loaded[key] = CachedHistoricalSeries.from_json(raw)
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                log.warning("Skipping malformed historical series %s: %s", key, e)
        self._series = loaded
        log.info("Loaded historical cache for %d pairs", len(loaded))
        return len(loaded)

    def get(self, key: str) -> Optional[CachedHistoricalSeries]:
        return self._series.get(key)

    def window(self, key: str, requested_days: int) -> Optional[List[HistoricalPoint]]:
        """Last requested_days points of a cached series, or None if not cached."""
        series = self._series.get(key)
        if series is None or not series.points:
            return None
        return series.last(requested_days)

    def merge(
        self,
        key: str,
        points: Iterable[HistoricalPoint],
        fetched_at: datetime,
        latest_allowed: date,
    ) -> CachedHistoricalSeries:
        """
        Merge fetched points into the pair's series and persist the result.

        Call once per update with every fetched point, after all requests have
        settled; completion order does not matter.
        """
        existing = self._series.get(key)
        if existing is None:
            merged = CachedHistoricalSeries.from_points(
                key, points, fetched_at, latest_allowed=latest_allowed, max_points=self.max_days
            )
        else:
            merged = existing.merged_with(
                points, fetched_at, latest_allowed=latest_allowed, max_points=self.max_days
            )
        self._series[key] = merged
        log.debug("Historical series %s now has %d points", key, len(merged.points))
        self._persist()
        return merged

    def clear(self) -> None:
        self._series = {}
        if self.store is not None:
            self.store.delete(HISTORY_RECORD)

    def _persist(self) -> None:
        if self.store is None:
            return
        snapshot = {key: series.to_json() for key, series in self._series.items()}
        try:
            self.store.save(HISTORY_RECORD, snapshot)
        except RuntimeError as e:
            log.error("Failed to persist historical cache: %s", e)
