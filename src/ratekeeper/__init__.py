# src/ratekeeper/__init__.py
"""
RateKeeper - Exchange Rate Acquisition and Caching Core

Serves currency conversions and rate queries instantly under unreliable
network conditions: a market-hours aware rate cache with stale-while-revalidate
refresh, a rolling per-pair historical cache that only fetches missing days,
and a fallback chain (fresh fetch -> stale cache -> mock data).
"""

__version__ = "1.0.0"
