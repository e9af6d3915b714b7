# src/ratekeeper/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains the rate service and the caches it orchestrates.
Sources and storage are reached through adapter interfaces.
"""

from ratekeeper.application.expiry import ExpiryPolicy
from ratekeeper.application.historical_cache import HistoricalCache
from ratekeeper.application.rate_cache import CacheLookup, RateCache
from ratekeeper.application.rate_service import RateService
from ratekeeper.application.series_stats import SeriesStats, summarize

__all__ = [
    "RateService",
    "RateCache",
    "CacheLookup",
    "HistoricalCache",
    "ExpiryPolicy",
    "SeriesStats",
    "summarize",
]
