# src/ratekeeper/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Clock injection
- Logging configuration
"""

from ratekeeper.shared.validators import (
    normalize_currency_code,
    validate_amount,
    validate_api_key,
    validate_currency_code,
)
from ratekeeper.shared.clock import Clock, system_clock, yesterday
from ratekeeper.shared.logging_conf import setup_logging

__all__ = [
    "validate_currency_code",
    "normalize_currency_code",
    "validate_api_key",
    "validate_amount",
    "Clock",
    "system_clock",
    "yesterday",
    "setup_logging",
]
