"""Tests for currency normalization."""

import pytest
from decimal import Decimal

from kturkey.domain.currency import (
    CurrencyNormalizer,
    normalize_currency_code,
    quantize_money,
)
from kturkey.domain.entities import WarningCode


def test_quantize_money_rounds_half_up():
    """Test money is rounded to cents, half up."""
    assert quantize_money(Decimal("99.905")) == Decimal("99.91")
    assert quantize_money(Decimal("99.904")) == Decimal("99.90")
    assert quantize_money(None) == Decimal("0.00")


def test_normalize_currency_code():
    """Test currency codes are stripped and uppercased."""
    assert normalize_currency_code(" eur ") == "EUR"
    assert normalize_currency_code("") is None
    assert normalize_currency_code(None) is None


class TestToReporting:
    """Tests for reporting-currency conversion."""

    def test_reporting_currency_ignores_stray_rate(self):
        """Test amounts already in the reporting currency are never converted."""
        normalizer = CurrencyNormalizer("TRY")
        assert normalizer.to_reporting(Decimal("1234.56"), "TRY", Decimal("35")) == Decimal("1234.56")
        assert normalizer.to_reporting(Decimal("1234.56"), "try", Decimal("0")) == Decimal("1234.56")
        assert normalizer.warnings == []

    def test_foreign_amount_uses_stored_rate(self):
        """Test foreign amounts are multiplied by their own stored rate."""
        normalizer = CurrencyNormalizer("TRY")
        assert normalizer.to_reporting(Decimal("100"), "EUR", Decimal("35.5")) == Decimal("3550.0")

    @pytest.mark.parametrize("rate", [None, Decimal("0"), Decimal("-2"), "not-a-rate"])
    def test_missing_rate_falls_back_to_one(self, rate):
        """Test a missing or non-positive rate counts as 1.0 with a warning."""
        normalizer = CurrencyNormalizer("TRY")
        assert normalizer.to_reporting(Decimal("100"), "EUR", rate, record_id=7) == Decimal("100")
        assert len(normalizer.warnings) == 1
        assert normalizer.warnings[0].code == WarningCode.MISSING_RATE
        assert normalizer.warnings[0].record_id == 7

    def test_missing_rate_is_logged(self, caplog):
        """Test the fallback is logged as a warning."""
        normalizer = CurrencyNormalizer("TRY")
        with caplog.at_level("WARNING", logger="kturkey"):
            normalizer.effective_rate(None, record_id=3)
        assert "missing or not positive" in caplog.text


class TestDebtCredit:
    """Tests for the effective credit of a payment against a unit's debt."""

    def test_same_currency_ignores_rate(self):
        """Test a payment in the debt currency credits its own amount."""
        normalizer = CurrencyNormalizer("TRY")
        assert normalizer.debt_credit(Decimal("1000"), "TRY", "TRY", Decimal("52")) == Decimal("1000.00")

    def test_local_payment_against_foreign_debt_with_foreign_per_local_rate(self):
        """Test 3700 TRY at 0.027 settles 99.90 EUR, not 3700 EUR."""
        normalizer = CurrencyNormalizer("TRY")
        credit = normalizer.debt_credit(Decimal("3700"), "TRY", "EUR", Decimal("0.027"))
        assert credit == Decimal("99.90")

    def test_local_payment_against_foreign_debt_with_local_per_foreign_rate(self):
        """Test 44200 TRY at 1 EUR = 52 TRY settles 850 EUR."""
        normalizer = CurrencyNormalizer("TRY")
        credit = normalizer.debt_credit(Decimal("44200"), "TRY", "EUR", Decimal("52"))
        assert credit == Decimal("850.00")

    def test_foreign_payment_against_local_debt_multiplies(self):
        """Test 100 USD at 1 USD = 34.25 TRY settles 3425 TRY."""
        normalizer = CurrencyNormalizer("TRY")
        credit = normalizer.debt_credit(Decimal("100"), "USD", "TRY", Decimal("34.25"))
        assert credit == Decimal("3425.00")

    def test_two_foreign_currencies_multiply(self):
        """Test a USD payment against a EUR debt uses EUR per USD."""
        normalizer = CurrencyNormalizer("TRY")
        credit = normalizer.debt_credit(Decimal("200"), "USD", "EUR", Decimal("0.92"))
        assert credit == Decimal("184.00")

    def test_missing_rate_credits_nominal_amount_with_warning(self):
        """Test a cross-currency payment without rate falls back to 1.0."""
        normalizer = CurrencyNormalizer("TRY")
        credit = normalizer.debt_credit(Decimal("50"), "USD", "EUR", None, record_id=4)
        assert credit == Decimal("50.00")
        assert [w.code for w in normalizer.warnings] == [WarningCode.MISSING_RATE]
