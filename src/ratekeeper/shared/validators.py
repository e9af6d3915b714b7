# src/ratekeeper/shared/validators.py
"""
Input Validation Utilities - Currency Codes, API Keys and Amounts

This module provides validation and normalisation helpers for configuration
values and caller input: ISO-4217-like currency codes, provider API keys,
and conversion amounts.

Files that USE this module:
- ratekeeper.config.settings (field validators for base currency and API key)
- ratekeeper.application.rate_service (normalises caller currency codes)
- ratekeeper.app (parses CLI amounts)

Files that this module USES:
- None (pure utility functions)
"""
import math
import re
from typing import Optional

_CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")


def validate_currency_code(code: str) -> bool:
    """
    Validate a currency code (three uppercase ASCII letters).

    Args:
        code: Currency code to validate

    Returns:
        True if valid, False otherwise
    """
    if not code or not isinstance(code, str):
        return False
    return bool(_CURRENCY_CODE_RE.match(code))


def normalize_currency_code(code: Optional[str]) -> Optional[str]:
    """
    Strip and upper-case a currency code.

    Returns:
        The normalised code, or None if it is not a valid three-letter code
    """
    if code is None:
        return None
    candidate = str(code).strip().upper()
    return candidate if validate_currency_code(candidate) else None


def validate_api_key(api_key: str) -> bool:
    """
    Validate API key format.

    An empty key is accepted (mock-only deployments); a non-empty key must be
    printable, without whitespace, and at least 16 characters long.

    Args:
        api_key: API key to validate

    Returns:
        True if valid, False otherwise
    """
    if not api_key:
        return True
    if len(api_key) < 16:
        return False
    return bool(re.match(r"^[A-Za-z0-9_\-]+$", api_key))


def validate_amount(value: str) -> Optional[float]:
    """
    Parse a user-supplied amount.

    Accepts thousands separators ("1,250.50"). Rejects NaN, infinities and
    negative numbers.

    Returns:
        Parsed float or None if invalid
    """
    if value is None:
        return None
    try:
        amount = float(str(value).replace(",", "").strip())
    except ValueError:
        return None
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        return None
    return amount
