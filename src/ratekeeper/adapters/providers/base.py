# src/ratekeeper/adapters/providers/base.py
"""
Base Source Interface for Exchange Rate Providers

This module defines the abstract base class for all rate sources.
It establishes the contract that the remote and mock implementations follow.

Files that USE this module:
- ratekeeper.adapters.providers.currencyapi (CurrencyApiSource implements RateSource)
- ratekeeper.adapters.providers.mock (MockRateSource implements RateSource)
- ratekeeper.application.* (caches and service depend on the interface only)

Files that this module USES:
- ratekeeper.domain.models (RateTable)
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict

from ratekeeper.domain.models import RateTable


class RateSource(ABC):
    name: str = "source"

    @abstractmethod
    def latest_rates(self, base: str) -> RateTable:
        """
        Return the latest rate table relative to base.

        Raises:
            RateSourceError: One of InvalidRequestError, TransportError,
                HttpStatusError or DecodingError
        """
        raise NotImplementedError

    @abstractmethod
    def historical_rate(self, day: date, base: str, target: str) -> float:
        """Return the rate of 1 base in target on day."""
        raise NotImplementedError

    @abstractmethod
    def historical_range(self, start: date, end: date, base: str, target: str) -> Dict[date, float]:
        """Return day -> rate of 1 base in target for every available day in [start, end]."""
        raise NotImplementedError
