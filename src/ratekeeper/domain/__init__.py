# src/ratekeeper/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from ratekeeper.domain.models import (
    CachedHistoricalSeries,
    CachedRates,
    HistoricalPoint,
    RateTable,
    ServiceStatus,
    pair_key,
)
from ratekeeper.domain.conversion import convert_amount, rate_between
from ratekeeper.domain.errors import (
    DecodingError,
    DomainError,
    HttpStatusError,
    InvalidRequestError,
    RateSourceError,
    RatesUnavailableError,
    TransportError,
    UnknownCurrencyError,
)

__all__ = [
    "RateTable",
    "CachedRates",
    "HistoricalPoint",
    "CachedHistoricalSeries",
    "ServiceStatus",
    "pair_key",
    "rate_between",
    "convert_amount",
    "DomainError",
    "RateSourceError",
    "InvalidRequestError",
    "TransportError",
    "HttpStatusError",
    "DecodingError",
    "RatesUnavailableError",
    "UnknownCurrencyError",
]
