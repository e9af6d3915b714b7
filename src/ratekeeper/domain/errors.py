# src/ratekeeper/domain/errors.py
"""
Domain Errors - Rate Source and Availability Exceptions

This module defines the exception taxonomy shared by rate sources and the
rate service. Rate sources raise one of the four RateSourceError kinds; the
rate service catches them and walks its fallback chain.
"""
from typing import Optional


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class RateSourceError(DomainError):
    """Raised when a rate source cannot produce data."""
    pass


class InvalidRequestError(RateSourceError):
    """Raised when a request cannot be built (missing API key, bad URL or date range)."""
    pass


class TransportError(RateSourceError):
    """Raised on connectivity failures: no network, DNS, refused connection, timeout."""
    pass


class HttpStatusError(RateSourceError):
    """Raised when the provider answers with a non-success HTTP status."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"HTTP error: {status_code}")


class DecodingError(RateSourceError):
    """Raised when the response body is not valid JSON or has an unexpected shape."""
    pass


class RatesUnavailableError(DomainError):
    """Raised when no rate data exists at any tier (remote, cache, mock)."""
    pass


class UnknownCurrencyError(DomainError):
    """Raised when a currency code is absent from the rate table."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown currency: {code}")
