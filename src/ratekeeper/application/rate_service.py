# src/ratekeeper/application/rate_service.py
"""
Rate Service - Cached Exchange Rates with Fallback Chain

This module contains the public entry point of the package. RateService
composes a rate source, the latest-rate cache and the historical cache, and
serves conversions and rate queries without ever surfacing a network failure
when some data exists at any tier.

Latest rates (stale-while-revalidate):
- fresh cache: returned immediately; if it is also stale, a background refresh
  is started unless one was started within the cooldown window
- expired or missing cache: synchronous fetch; on failure the expired cache is
  served, then the mock table, and the service is marked offline
- at most one latest-rate fetch per tier is in flight; concurrent callers and
  background refreshes await the same task

Historical rates (rolling cache):
- only days missing from the cached series are fetched, one request per
  contiguous run, concurrently; the merge happens after all requests settle
- on failure the cached series is returned unchanged, or a synthetic mock
  series when nothing is cached

Live and mock data each have their own tier (source + caches); set_mock_mode()
swaps the active tier, so a returned table or series never mixes both.

Files that USE this module:
- ratekeeper.app (CLI commands)
- tests.test_rate_service (unit tests)

Files that this module USES:
- ratekeeper.adapters.providers.* (CurrencyApiSource, MockRateSource)
- ratekeeper.adapters.persistence.file_store (JsonFileStore for the live tier)
- ratekeeper.adapters.formatting.formatter (cache age description)
- ratekeeper.application.rate_cache / historical_cache / expiry / series_stats
- ratekeeper.domain.* (models, conversion rules, errors)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import asyncio
import dataclasses
import logging
from datetime import date, datetime, timedelta
from functools import partial
from typing import Callable, Dict, List, Optional, Set, Tuple

from ratekeeper.adapters.formatting.formatter import describe_cache_age
from ratekeeper.adapters.persistence.file_store import JsonFileStore
from ratekeeper.adapters.providers.base import RateSource
from ratekeeper.adapters.providers.currencyapi import CurrencyApiSource
from ratekeeper.adapters.providers.mock import MockRateSource
from ratekeeper.application.expiry import ExpiryPolicy
from ratekeeper.application.historical_cache import HistoricalCache, contiguous_runs, missing_days
from ratekeeper.application.rate_cache import RateCache
from ratekeeper.application.series_stats import SeriesStats, summarize
from ratekeeper.config import Settings, settings as default_settings
from ratekeeper.domain.conversion import convert_amount, rate_between
from ratekeeper.domain.errors import (
    InvalidRequestError,
    RateSourceError,
    RatesUnavailableError,
    UnknownCurrencyError,
)
from ratekeeper.domain.models import CachedRates, HistoricalPoint, RateTable, ServiceStatus, pair_key
from ratekeeper.shared.clock import Clock, system_clock, yesterday
from ratekeeper.shared.validators import normalize_currency_code

log = logging.getLogger(__name__)

StatusCallback = Callable[[ServiceStatus], None]


class _Tier:
    """A rate source together with the caches fed from it."""

    def __init__(self, source: RateSource, rates: RateCache, history: HistoricalCache):
        self.source = source
        self.rates = rates
        self.history = history
        self.inflight: Optional[asyncio.Task] = None
        self.last_background_refresh: Optional[datetime] = None
        self.history_locks: Dict[str, asyncio.Lock] = {}
        self._locks_loop: Optional[asyncio.AbstractEventLoop] = None

    def history_lock(self, key: str) -> asyncio.Lock:
        """Per-pair lock for the running event loop; locks never cross loops."""
        loop = asyncio.get_running_loop()
        if loop is not self._locks_loop:
            self.history_locks = {}
            self._locks_loop = loop
        lock = self.history_locks.get(key)
        if lock is None:
            lock = self.history_locks[key] = asyncio.Lock()
        return lock


class RateService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        remote: Optional[RateSource] = None,
        mock: Optional[MockRateSource] = None,
        store: Optional[JsonFileStore] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the rate service and load persisted caches.

        Args:
            settings: Settings instance (defaults to the module-level settings)
            remote: Live rate source (defaults to CurrencyApiSource)
            mock: Mock source used for mock mode and last-resort fallback
            store: Durable storage for the live tier; None keeps it in memory
            clock: Clock returning aware datetimes (defaults to local system time)
        """
        cfg = settings or default_settings
        self.settings = cfg
        self.base_currency = cfg.base_currency
        self.background_refresh_cooldown: timedelta = cfg.background_refresh_cooldown
        self._clock: Clock = clock or system_clock

        policy = ExpiryPolicy.from_settings(cfg)
        self.mock_source = mock or MockRateSource(clock=self._clock, settings=cfg)
        self._live = _Tier(
            remote or CurrencyApiSource(settings=cfg),
            RateCache(policy, store),
            HistoricalCache(store, max_days=cfg.historical_max_days),
        )
        self._mock = _Tier(
            self.mock_source,
            RateCache(policy),
            HistoricalCache(max_days=cfg.historical_max_days),
        )
        self._live.rates.load(expected_base=self.base_currency)
        self._live.history.load()

        self._tier = self._mock if cfg.mock_mode else self._live
        self._background_tasks: Set[asyncio.Task] = set()
        self._subscribers: List[StatusCallback] = []

        cached = self._tier.rates.current
        self._status = ServiceStatus(
            last_updated=cached.fetched_at if cached else None,
            is_offline=False,
            is_mock=self._tier is self._mock,
            source=self._tier.source.name,
        )

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def status(self) -> ServiceStatus:
        return self._status

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._status.last_updated

    @property
    def is_offline(self) -> bool:
        """True while the most recent remote fetch (latest or historical) has failed."""
        return self._status.is_offline

    @property
    def is_mock_mode(self) -> bool:
        return self._tier is self._mock

    @property
    def cache_age_description(self) -> str:
        return describe_cache_age(self._status.last_updated, self._clock())

    def now(self) -> datetime:
        return self._clock()

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """
        Register a callback invoked with the new ServiceStatus on every change.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _set_status(self, **changes) -> None:
        new_status = dataclasses.replace(self._status, **changes)
        if new_status == self._status:
            return
        self._status = new_status
        for callback in list(self._subscribers):
            try:
                callback(new_status)
            except Exception:
                log.exception("Status subscriber %r failed", callback)

    # ------------------------------------------------------------------
    # Mode and cache control
    # ------------------------------------------------------------------

    def set_mock_mode(self, enabled: bool) -> None:
        """Switch between the live and mock tiers; takes effect on the next call."""
        tier = self._mock if enabled else self._live
        if tier is self._tier:
            return
        self._tier = tier
        cached = tier.rates.current
        self._set_status(
            last_updated=cached.fetched_at if cached else None,
            is_offline=False,
            is_mock=enabled,
            source=tier.source.name,
        )
        log.info("Mock mode: %s", "ON" if enabled else "OFF")

    def clear_cache(self) -> None:
        """Drop cached latest and historical rates (memory and disk) for both tiers."""
        for tier in (self._live, self._mock):
            tier.rates.clear()
            tier.history.clear()
            tier.last_background_refresh = None
        self._set_status(last_updated=None)
        log.info("Rate caches cleared")

    async def aclose(self) -> None:
        """Wait for background refreshes and in-flight fetches to settle."""
        pending = list(self._background_tasks)
        for tier in (self._live, self._mock):
            if tier.inflight is not None and not tier.inflight.done():
                pending.append(tier.inflight)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Latest rates
    # ------------------------------------------------------------------

    async def fetch_latest_rates(self) -> RateTable:
        """
        Return the current usable rate table.

        Returns:
            Currency code -> rate relative to the base currency

        Raises:
            RatesUnavailableError: Only when the fetch fails, nothing is cached
                and the mock fallback is disabled
        """
        tier = self._tier
        now = self._clock()
        lookup = tier.rates.get(now)

        if lookup is not None and not lookup.is_expired:
            log.debug("Using cached rates (age: %d minutes)", int(lookup.age.total_seconds() // 60))
            if lookup.is_stale:
                self._maybe_refresh_in_background(tier, now)
            self._set_status(last_updated=lookup.cached.fetched_at)
            return dict(lookup.cached.rates)

        if lookup is None:
            log.info("No cached rates, fetching from %s", tier.source.name)
        else:
            log.info(
                "Cached rates expired (age: %d minutes), fetching from %s",
                int(lookup.age.total_seconds() // 60), tier.source.name,
            )
        return await self._refresh(tier)

    async def force_refresh(self) -> RateTable:
        """
        Fetch the latest rates regardless of cache freshness.

        Same failure handling as an expired cache.
        """
        log.info("Forced refresh from %s", self._tier.source.name)
        return await self._refresh(self._tier)

    async def _refresh(self, tier: _Tier) -> RateTable:
        try:
            cached = await asyncio.shield(self._latest_task(tier))
        except RateSourceError as e:
            return self._fallback_latest(tier, e)
        return dict(cached.rates)

    def _latest_task(self, tier: _Tier) -> asyncio.Task:
        """The tier's in-flight latest-rate fetch, started if none is running."""
        if tier.inflight is None or tier.inflight.done():
            task = asyncio.ensure_future(self._fetch_and_store(tier))
            task.add_done_callback(_consume_task_exception)
            tier.inflight = task
        return tier.inflight

    async def _fetch_and_store(self, tier: _Tier) -> CachedRates:
        table = await self._call(tier.source.latest_rates, self.base_currency)
        table = {code: rate for code, rate in table.items() if rate > 0}
        table[self.base_currency] = 1.0
        cached = CachedRates(rates=table, fetched_at=self._clock(), base_currency=self.base_currency)
        tier.rates.replace(cached)
        if tier is self._tier:
            self._set_status(last_updated=cached.fetched_at, is_offline=False)
        log.info("Fetched %d currency rates from %s", len(table), tier.source.name)
        return cached

    def _fallback_latest(self, tier: _Tier, error: RateSourceError) -> RateTable:
        _log_source_error("latest rates", error)
        active = tier is self._tier

        cached = tier.rates.current
        if cached is not None:
            age_hours = cached.age(self._clock()).total_seconds() / 3600
            log.warning("Fetch failed, using cached rates (age: %.1f hours)", age_hours)
            if active:
                self._set_status(last_updated=cached.fetched_at, is_offline=True)
            return dict(cached.rates)

        if self.settings.mock_fallback_enabled:
            try:
                table = self.mock_source.latest_rates(self.base_currency)
            except RateSourceError as mock_error:
                log.error("Mock fallback has no table for base %s: %s", self.base_currency, mock_error)
            else:
                log.warning("Fetch failed and nothing cached, using mock rates")
                if active:
                    self._set_status(is_offline=True)
                return table

        if active:
            self._set_status(is_offline=True)
        raise RatesUnavailableError("No exchange rates available from any source") from error

    def _maybe_refresh_in_background(self, tier: _Tier, now: datetime) -> bool:
        """
        Start a background refresh unless one was started within the cooldown.

        The cooldown timestamp is recorded before the refresh begins, whatever
        its outcome.
        """
        last = tier.last_background_refresh
        if last is not None and now - last < self.background_refresh_cooldown:
            log.debug("Rates are stale but background refresh is cooling down")
            return False
        tier.last_background_refresh = now
        task = asyncio.ensure_future(self._background_refresh(tier))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        log.info("Rates are stale, refreshing in background")
        return True

    async def _background_refresh(self, tier: _Tier) -> None:
        try:
            await asyncio.shield(self._latest_task(tier))
        except RateSourceError as e:
            log.warning("Background refresh failed, keeping cached rates: %s", e)
        except Exception:
            log.exception("Unexpected error during background refresh")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _normalize_pair(self, from_code: str, to_code: str) -> Optional[Tuple[str, str]]:
        src = normalize_currency_code(from_code)
        dst = normalize_currency_code(to_code)
        if src is None or dst is None:
            log.warning("Invalid currency code in pair %r -> %r", from_code, to_code)
            return None
        return src, dst

    async def _rates_or_none(self) -> Optional[RateTable]:
        try:
            return await self.fetch_latest_rates()
        except RatesUnavailableError as e:
            log.error("No rates available: %s", e)
            return None

    async def convert(self, amount: float, from_code: str, to_code: str) -> Optional[float]:
        """
        Convert amount between two currencies.

        Returns:
            Converted amount, or None if a currency is unknown or no rates exist
        """
        pair = self._normalize_pair(from_code, to_code)
        if pair is None:
            return None
        rates = await self._rates_or_none()
        if rates is None:
            return None
        try:
            return convert_amount(rates, self.base_currency, amount, *pair)
        except UnknownCurrencyError as e:
            log.warning("Conversion %s -> %s unavailable: %s", pair[0], pair[1], e)
            return None

    async def get_rate(self, from_code: str, to_code: str) -> Optional[float]:
        """
        Rate for 1 unit of from_code in to_code.

        Returns:
            The rate, or None if a currency is unknown or no rates exist
        """
        pair = self._normalize_pair(from_code, to_code)
        if pair is None:
            return None
        rates = await self._rates_or_none()
        if rates is None:
            return None
        try:
            return rate_between(rates, self.base_currency, *pair)
        except UnknownCurrencyError as e:
            log.warning("Rate %s -> %s unavailable: %s", pair[0], pair[1], e)
            return None

    # ------------------------------------------------------------------
    # Historical rates
    # ------------------------------------------------------------------

    async def fetch_historical_rates(
        self, from_code: str, to_code: str, days: int
    ) -> Optional[List[HistoricalPoint]]:
        """
        Daily rates for the last `days` days ending yesterday, oldest first.

        Only days absent from the cached series are fetched.

        Returns:
            Up to `days` points, or None if no data exists at any tier

        Raises:
            ValueError: If days < 1
        """
        if days < 1:
            raise ValueError("days must be at least 1")
        pair = self._normalize_pair(from_code, to_code)
        if pair is None:
            return None
        from_code, to_code = pair

        tier = self._tier
        key = pair_key(from_code, to_code)
        # same-pair updates are serialized; the second caller then hits the cache
        async with tier.history_lock(key):
            return await self._update_history(tier, key, from_code, to_code, days)

    async def _update_history(
        self, tier: _Tier, key: str, from_code: str, to_code: str, days: int
    ) -> Optional[List[HistoricalPoint]]:
        latest_day = yesterday(self._clock)
        series = tier.history.get(key)
        if series is not None and series.points and series.most_recent_date > latest_day:
            # the clock moved back across midnight; a stored day is now "today"
            series = series.clipped_to(latest_day)
        wanted = missing_days(series, days, latest_day)

        if not wanted:
            log.debug("Historical cache hit for %s (%d days)", key, days)
            return series.last(days)

        cached_count = len(series.points) if series is not None else 0
        log.info("Historical %s: %d cached points, fetching %d missing days", key, cached_count, len(wanted))

        runs = contiguous_runs(wanted)
        results = await asyncio.gather(
            *(self._fetch_run(tier.source, run, from_code, to_code) for run in runs),
            return_exceptions=True,
        )

        fetched: List[HistoricalPoint] = []
        failures: List[RateSourceError] = []
        for run, result in zip(runs, results):
            if isinstance(result, RateSourceError):
                _log_source_error(f"historical {key} {run[0]}..{run[1]}", result)
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                fetched.extend(result)

        active = tier is self._tier
        if fetched:
            merged = tier.history.merge(key, fetched, self._clock(), latest_allowed=latest_day)
            if active:
                self._set_status(is_offline=bool(failures))
            return merged.last(days)

        if active:
            self._set_status(is_offline=bool(failures))

        if series is not None and series.points:
            log.warning("Returning %d cached points for %s without update", len(series.points), key)
            return series.last(days)

        if not failures:
            # the source answered but had no data for the window
            log.warning("Source %s returned no historical data for %s", tier.source.name, key)
            return None

        return self._synthetic_history(from_code, to_code, days)

    async def _fetch_run(
        self, source: RateSource, run: Tuple[date, date], base: str, target: str
    ) -> List[HistoricalPoint]:
        first, last = run
        if first == last:
            rate = await self._call(source.historical_rate, first, base, target)
            return [HistoricalPoint(date=first, rate=rate)]
        by_day = await self._call(source.historical_range, first, last, base, target)
        return [HistoricalPoint(date=day, rate=rate) for day, rate in by_day.items()]

    def _synthetic_history(self, from_code: str, to_code: str, days: int) -> Optional[List[HistoricalPoint]]:
        if not self.settings.mock_fallback_enabled:
            log.error("No historical data for %s -> %s and mock fallback is disabled", from_code, to_code)
            return None
        try:
            points = self.mock_source.synthetic_series(from_code, to_code, days)
        except UnknownCurrencyError as e:
            log.error("No historical data for %s -> %s: %s", from_code, to_code, e)
            return None
        log.warning("Using synthetic history for %s -> %s", from_code, to_code)
        return points

    async def history_stats(self, from_code: str, to_code: str, days: int) -> Optional[SeriesStats]:
        """Summary statistics for fetch_historical_rates(from_code, to_code, days)."""
        points = await self.fetch_historical_rates(from_code, to_code, days)
        if not points:
            return None
        return summarize(points)

    # ------------------------------------------------------------------

    async def _call(self, func, *args):
        """Run a blocking source call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))


def _log_source_error(what: str, error: RateSourceError) -> None:
    if isinstance(error, InvalidRequestError):
        log.error("Fetching %s failed (malformed request, not retrying): %s", what, error)
    else:
        log.warning("Fetching %s failed: %s", what, error)


def _consume_task_exception(task: asyncio.Task) -> None:
    """Mark a shared fetch's exception as retrieved; awaiting callers handle it."""
    if not task.cancelled():
        task.exception()
