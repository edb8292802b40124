"""Currency normalization.

Every conversion uses the rate captured on the record when it was entered,
never a live market rate, so a historical transaction yields the same
reporting amount on every read.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from kturkey.domain.entities import DataQualityWarning, WarningCode

logger = logging.getLogger(__name__)

ONE = Decimal("1")
ZERO = Decimal("0")
CENT = Decimal("0.01")


def quantize_money(value: Optional[Decimal]) -> Decimal:
    """Round a monetary value to two decimals, half up."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_currency_code(code: Optional[str]) -> Optional[str]:
    """Uppercase and strip a currency code, returning None when empty."""
    if code is None:
        return None
    code = str(code).strip().upper()
    return code or None


class CurrencyNormalizer:
    """Convert native amounts into the reporting currency.

    A missing or non-positive stored rate is replaced by 1.0 and recorded as
    a ``missing_rate`` warning; the warnings accumulate on the instance so the
    caller can surface them alongside the computed balances.
    """

    def __init__(self, reporting_currency: str):
        """Initialize currency normalizer.

        Args:
            reporting_currency: Currency code site-wide totals are expressed in
        """
        self.reporting_currency = normalize_currency_code(reporting_currency)
        self.warnings: list[DataQualityWarning] = []

    def effective_rate(
        self, rate: Optional[Decimal], record_id: Optional[int] = None
    ) -> Decimal:
        """Return the stored rate, or 1.0 when it is missing or not positive."""
        if rate is not None:
            try:
                rate = Decimal(str(rate))
            except ArithmeticError:
                rate = None
        if rate is None or not rate.is_finite() or rate <= ZERO:
            message = f"Exchange rate {rate!s} is missing or not positive; using 1.0"
            logger.warning("Record %s: %s", record_id, message)
            self.warnings.append(
                DataQualityWarning(WarningCode.MISSING_RATE, message, record_id)
            )
            return ONE
        return rate

    def is_reporting(self, currency_code: Optional[str]) -> bool:
        return normalize_currency_code(currency_code) == self.reporting_currency

    def to_reporting(
        self,
        amount: Decimal,
        currency_code: str,
        rate: Optional[Decimal],
        record_id: Optional[int] = None,
    ) -> Decimal:
        """Convert a native amount into the reporting currency.

        Amounts already in the reporting currency are returned unchanged,
        whatever value the stored rate has.
        """
        if self.is_reporting(currency_code):
            return amount
        return amount * self.effective_rate(rate, record_id)

    def debt_credit(
        self,
        amount: Decimal,
        payment_currency: str,
        debt_currency: str,
        rate: Optional[Decimal],
        record_id: Optional[int] = None,
    ) -> Decimal:
        """Return how much of a unit's debt a payment settles, in the debt currency.

        Conventions, matching what operators are told when they enter a rate:

        - Same currency: the payment amount, rate ignored.
        - Payment in the local reporting currency against a foreign debt: the
          rate is normally quoted as local units per one foreign unit
          (1 EUR = 52 TRY), so the credit is ``amount / rate``. A rate below
          one can only be a foreign-per-local quote (1 TRY = 0.027 EUR) and
          is multiplied instead.
        - Foreign payment against a local debt: ``amount * rate``
          (1 USD = 52 TRY).
        - Two foreign currencies: ``amount * rate``, the rate being debt
          units per payment unit.

        The result is rounded to cents.
        """
        payment_currency = normalize_currency_code(payment_currency)
        debt_currency = normalize_currency_code(debt_currency)
        if payment_currency == debt_currency:
            return quantize_money(amount)

        rate = self.effective_rate(rate, record_id)
        if payment_currency == self.reporting_currency and rate >= ONE:
            return quantize_money(amount / rate)
        return quantize_money(amount * rate)
