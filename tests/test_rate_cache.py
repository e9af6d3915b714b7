# tests/test_rate_cache.py
"""
Rate Cache Tests - Expiry Policy, Freshness Flags and Persistence

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- ratekeeper.application.expiry (ExpiryPolicy)
- ratekeeper.application.rate_cache (RateCache)
- ratekeeper.adapters.persistence.file_store (JsonFileStore)
"""
from datetime import datetime, timedelta, timezone

import pytest  # Testing framework for writing and running tests

from ratekeeper.adapters.persistence.file_store import RATES_RECORD
from ratekeeper.application.expiry import ExpiryPolicy
from ratekeeper.application.rate_cache import RateCache
from ratekeeper.domain.models import CachedRates

UTC = timezone.utc


def cached_at(when, base="USD"):
    return CachedRates(rates={"USD": 1.0, "EUR": 0.9}, fetched_at=when, base_currency=base)


class TestExpiryPolicy:
    @pytest.mark.parametrize(
        "now, market_open",
        [
            (datetime(2026, 10, 14, 10, 0, tzinfo=UTC), True),    # Wednesday morning
            (datetime(2026, 10, 14, 8, 0, tzinfo=UTC), True),     # opening hour
            (datetime(2026, 10, 14, 19, 59, tzinfo=UTC), True),
            (datetime(2026, 10, 14, 20, 0, tzinfo=UTC), False),   # closing hour
            (datetime(2026, 10, 14, 21, 0, tzinfo=UTC), False),   # Wednesday evening
            (datetime(2026, 10, 14, 7, 59, tzinfo=UTC), False),
            (datetime(2026, 10, 17, 12, 0, tzinfo=UTC), False),   # Saturday noon
            (datetime(2026, 10, 18, 12, 0, tzinfo=UTC), False),   # Sunday noon
        ],
    )
    def test_market_hours(self, now, market_open):
        assert ExpiryPolicy().is_market_hours(now) is market_open

    def test_expiry_threshold(self):
        policy = ExpiryPolicy()
        assert policy.expiry_threshold(datetime(2026, 10, 14, 10, 0, tzinfo=UTC)) == timedelta(hours=1)
        assert policy.expiry_threshold(datetime(2026, 10, 14, 21, 0, tzinfo=UTC)) == timedelta(hours=2)
        assert policy.expiry_threshold(datetime(2026, 10, 17, 12, 0, tzinfo=UTC)) == timedelta(hours=2)

    def test_from_settings(self, test_settings):
        policy = ExpiryPolicy.from_settings(test_settings)
        assert policy.market_hours_expiry == timedelta(minutes=60)
        assert policy.off_hours_expiry == timedelta(minutes=120)
        assert policy.stale_threshold == timedelta(minutes=30)


class TestRateCacheLookup:
    def test_empty_cache(self, clock):
        assert RateCache(ExpiryPolicy()).get(clock()) is None

    def test_fresh_entry(self, clock):
        cache = RateCache(ExpiryPolicy())
        cache.replace(cached_at(clock() - timedelta(minutes=10)))

        lookup = cache.get(clock())

        assert lookup.is_expired is False
        assert lookup.is_stale is False
        assert lookup.age == timedelta(minutes=10)

    def test_stale_but_not_expired(self, clock):
        cache = RateCache(ExpiryPolicy())
        cache.replace(cached_at(clock() - timedelta(minutes=45)))

        lookup = cache.get(clock())

        assert lookup.is_stale is True
        assert lookup.is_expired is False

    def test_expired_during_market_hours(self, clock):
        cache = RateCache(ExpiryPolicy())
        cache.replace(cached_at(clock() - timedelta(minutes=61)))

        assert cache.get(clock()).is_expired is True

    def test_same_age_valid_off_hours(self):
        cache = RateCache(ExpiryPolicy())
        evening = datetime(2026, 10, 14, 21, 0, tzinfo=UTC)
        cache.replace(cached_at(evening - timedelta(minutes=90)))

        lookup = cache.get(evening)

        assert lookup.is_expired is False
        assert lookup.is_stale is True

    def test_replace_is_wholesale(self, clock):
        cache = RateCache(ExpiryPolicy())
        cache.replace(cached_at(clock()))
        cache.replace(CachedRates(rates={"USD": 1.0, "GBP": 0.8}, fetched_at=clock(), base_currency="USD"))

        assert cache.current.rates == {"USD": 1.0, "GBP": 0.8}


class TestRateCachePersistence:
    def test_entry_survives_reload(self, store, clock):
        RateCache(ExpiryPolicy(), store).replace(cached_at(clock()))

        reloaded = RateCache(ExpiryPolicy(), store)
        loaded = reloaded.load(expected_base="USD")

        assert loaded == cached_at(clock())
        assert reloaded.current == loaded

    def test_record_for_other_base_is_ignored(self, store, clock):
        RateCache(ExpiryPolicy(), store).replace(cached_at(clock(), base="EUR"))

        reloaded = RateCache(ExpiryPolicy(), store)

        assert reloaded.load(expected_base="USD") is None
        assert reloaded.current is None

    def test_malformed_record_is_ignored(self, store):
        store.save(RATES_RECORD, {"rates": {"EUR": 0.9}})

        cache = RateCache(ExpiryPolicy(), store)

        assert cache.load() is None

    def test_missing_record(self, store):
        assert RateCache(ExpiryPolicy(), store).load() is None

    def test_clear_removes_record(self, store, clock):
        cache = RateCache(ExpiryPolicy(), store)
        cache.replace(cached_at(clock()))

        cache.clear()

        assert cache.current is None
        assert not store.path_for(RATES_RECORD).exists()
