# src/ratekeeper/application/rate_cache.py
"""
Rate Cache - Latest Rate Table with Expiry and Staleness

Holds the single latest rate table (one base currency) and answers whether it
can be served without a network call. Lookups never block and never do I/O;
replacing the entry swaps it wholesale and persists it.

Files that USE this module:
- ratekeeper.application.rate_service (one RateCache per source tier)
- tests.test_rate_cache (unit tests)

Files that this module USES:
- ratekeeper.application.expiry (ExpiryPolicy for thresholds)
- ratekeeper.adapters.persistence.file_store (optional durable storage)
- ratekeeper.domain.models (CachedRates)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ratekeeper.adapters.persistence.file_store import RATES_RECORD, JsonFileStore
from ratekeeper.application.expiry import ExpiryPolicy
from ratekeeper.domain.models import CachedRates

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheLookup:
    """Result of RateCache.get(): the entry plus its freshness at lookup time."""
    cached: CachedRates
    is_expired: bool
    is_stale: bool
    age: timedelta


class RateCache:
    def __init__(self, policy: ExpiryPolicy, store: Optional[JsonFileStore] = None):
        """
        Args:
            policy: Expiry/staleness thresholds
            store: Durable storage; None keeps the cache in memory only
        """
        self.policy = policy
        self.store = store
        self._cached: Optional[CachedRates] = None

    @property
    def current(self) -> Optional[CachedRates]:
        return self._cached

    def load(self, expected_base: Optional[str] = None) -> Optional[CachedRates]:
        """
        Load the persisted entry (called once at startup).

        Args:
            expected_base: Discard a record stored for another base currency

        Returns:
            The loaded entry or None
        """
        if self.store is None:
            return None
        data = self.store.load(RATES_RECORD)
        if data is None:
            log.info("No persisted rate cache found")
            return None
        try:
            cached = CachedRates.from_json(data)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            log.warning("Persisted rate cache is malformed, ignoring it: %s", e)
            return None
        if expected_base and cached.base_currency != expected_base:
            log.info(
                "Persisted rate cache is for base %s, expected %s; ignoring it",
                cached.base_currency, expected_base,
            )
            return None
        self._cached = cached
        log.info("Loaded %d cached rates fetched at %s", len(cached.rates), cached.fetched_at.isoformat())
        return cached

    def get(self, now: datetime) -> Optional[CacheLookup]:
        cached = self._cached
        if cached is None:
            return None
        return CacheLookup(
            cached=cached,
            is_expired=cached.is_expired(now, self.policy.expiry_threshold(now)),
            is_stale=cached.is_stale(now, self.policy.stale_threshold),
            age=cached.age(now),
        )

    def replace(self, cached: CachedRates) -> None:
        """Swap the entry wholesale, then persist it (persistence errors are logged)."""
        self._cached = cached
        if self.store is None:
            return
        try:
            self.store.save(RATES_RECORD, cached.to_json())
        except RuntimeError as e:
            log.error("Failed to persist rate cache: %s", e)

    def clear(self) -> None:
        self._cached = None
        if self.store is not None:
            self.store.delete(RATES_RECORD)
