# src/ratekeeper/adapters/providers/__init__.py
"""
Provider Adapters - Rate Sources

This package contains the rate sources the service can use.
All sources implement the RateSource interface.
"""

from ratekeeper.adapters.providers.base import RateSource
from ratekeeper.adapters.providers.currencyapi import CurrencyApiSource
from ratekeeper.adapters.providers.mock import MOCK_USD_RATES, MockRateSource

__all__ = [
    "RateSource",
    "CurrencyApiSource",
    "MockRateSource",
    "MOCK_USD_RATES",
]
