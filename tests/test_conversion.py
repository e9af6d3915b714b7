# tests/test_conversion.py
"""
Conversion Rule Tests - Base, Inverse and Cross Rates

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- ratekeeper.domain.conversion (rate_between, convert_amount)
"""
import pytest  # Testing framework for writing and running tests

from ratekeeper.domain.conversion import convert_amount, rate_between
from ratekeeper.domain.errors import UnknownCurrencyError

RATES = {"USD": 1.0, "EUR": 0.9, "GBP": 0.8, "JPY": 150.0, "ZZZ": 0.0}


class TestRateBetween:
    def test_from_base(self):
        assert rate_between(RATES, "USD", "USD", "EUR") == 0.9

    def test_to_base(self):
        assert rate_between(RATES, "USD", "EUR", "USD") == pytest.approx(1 / 0.9)

    def test_cross_rate(self):
        assert rate_between(RATES, "USD", "EUR", "JPY") == pytest.approx(150.0 / 0.9)

    def test_base_to_base(self):
        assert rate_between({}, "USD", "USD", "USD") == 1.0

    def test_missing_code(self):
        with pytest.raises(UnknownCurrencyError) as excinfo:
            rate_between(RATES, "USD", "EUR", "CHF")
        assert excinfo.value.code == "CHF"

    def test_zero_rate_is_unknown(self):
        with pytest.raises(UnknownCurrencyError):
            rate_between(RATES, "USD", "ZZZ", "USD")


class TestConvertAmount:
    def test_cross_conversion(self):
        assert convert_amount(RATES, "USD", 100, "EUR", "GBP") == pytest.approx(88.888, abs=0.001)

    def test_from_and_to_base(self):
        assert convert_amount(RATES, "USD", 100, "USD", "JPY") == pytest.approx(15000.0)
        assert convert_amount(RATES, "USD", 15000, "JPY", "USD") == pytest.approx(100.0)

    def test_same_currency(self):
        assert convert_amount(RATES, "USD", 42.0, "GBP", "GBP") == pytest.approx(42.0)

    def test_agrees_with_rate(self):
        for src in ("USD", "EUR", "GBP", "JPY"):
            for dst in ("USD", "EUR", "GBP", "JPY"):
                expected = 10 * rate_between(RATES, "USD", src, dst)
                assert convert_amount(RATES, "USD", 10, src, dst) == pytest.approx(expected)
