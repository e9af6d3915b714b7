# src/ratekeeper/domain/conversion.py
"""
Conversion Rules - Base, Inverse and Cross Rates

Pure functions deriving a rate or converted amount from a rate table whose
values are all expressed against one base currency B (T[B] = 1.0):

    from == B  ->  T[to]
    to == B    ->  1 / T[from]
    otherwise  ->  T[to] / T[from]          (cross-rate)

Files that USE this module:
- ratekeeper.application.rate_service (convert and get_rate)
- ratekeeper.adapters.providers.mock (rebasing the mock table)

Files that this module USES:
- ratekeeper.domain.errors (UnknownCurrencyError)
"""
from __future__ import annotations

from typing import Mapping

from ratekeeper.domain.errors import UnknownCurrencyError


def _lookup(rates: Mapping[str, float], code: str) -> float:
    value = rates.get(code)
    # missing or non-positive rates are unknown, never zero
    if value is None or value <= 0:
        raise UnknownCurrencyError(code)
    return float(value)


def rate_between(rates: Mapping[str, float], base: str, from_code: str, to_code: str) -> float:
    """
    Rate for 1 unit of from_code expressed in to_code.

    Raises:
        UnknownCurrencyError: If a non-base code is absent from the table
    """
    if from_code == base:
        if to_code == base:
            return 1.0
        return _lookup(rates, to_code)
    if to_code == base:
        return 1.0 / _lookup(rates, from_code)
    from_rate = _lookup(rates, from_code)
    to_rate = _lookup(rates, to_code)
    return to_rate / from_rate


def convert_amount(
    rates: Mapping[str, float], base: str, amount: float, from_code: str, to_code: str
) -> float:
    """
    Convert amount from from_code to to_code.

    Raises:
        UnknownCurrencyError: If a non-base code is absent from the table
    """
    if from_code == base:
        if to_code == base:
            return amount
        return amount * _lookup(rates, to_code)
    if to_code == base:
        return amount / _lookup(rates, from_code)
    # go through the base: amount in B, then into to_code
    amount_in_base = amount / _lookup(rates, from_code)
    return amount_in_base * _lookup(rates, to_code)
