"""Unit domain service: units, their dues and the payments against them."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from kturkey.database.base import Database
from kturkey.domain.currency import ONE, quantize_money
from kturkey.domain.entities import EntryType, Unit
from kturkey.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_inactive,
    account_not_found,
    amount_not_positive,
    rate_not_positive,
    site_not_found,
    unit_not_found,
)
from kturkey.domain.fiscal_period import FiscalPeriodService
from kturkey.domain.site import validate_currency_code

logger = logging.getLogger(__name__)

MAINTENANCE_FEES_CATEGORY = "Maintenance Fees"
PAYMENT_METHODS = ("bank_transfer", "cash", "credit_card", "other")


def _positive_amount(value: Decimal) -> Decimal:
    value = Decimal(str(value))
    if not value.is_finite() or value <= 0:
        raise ValidationError(amount_not_positive(value))
    return value


def _positive_rate(value: Optional[Decimal], what: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{what} exchange rate is required")
    value = Decimal(str(value))
    if not value.is_finite() or value <= 0:
        raise ValidationError(rate_not_positive(value))
    return value


class UnitService:
    """Service for managing units, dues and payments."""

    def __init__(self, db: Database):
        """Initialize unit service.

        Args:
            db: Database instance
        """
        self.db = db
        self.periods = FiscalPeriodService(db)

    def create_unit(
        self,
        site_id: int,
        unit_number: str,
        currency_code: Optional[str] = None,
        opening_balance: Decimal = Decimal("0"),
        block: Optional[str] = None,
        owner_name: Optional[str] = None,
    ) -> int:
        """Create a unit.

        Args:
            site_id: Site ID
            unit_number: Unit number within its block
            currency_code: Debt currency; the site's reporting currency if None
            opening_balance: Debt carried in from before the first due; negative
                for an existing credit
            block: Optional block name
            owner_name: Optional owner name

        Returns:
            Unit ID

        Raises:
            NotFoundError: If the site doesn't exist
            ValidationError: If the unit number or currency is invalid
            ConflictError: If the unit already exists in the block
        """
        site = self.db.get_site(site_id)
        if site is None:
            raise NotFoundError(site_not_found(site_id))
        unit_number = (unit_number or "").strip()
        if not unit_number:
            raise ValidationError("Unit number is required")
        block = (block or "").strip() or None
        currency = validate_currency_code(currency_code or site.default_currency)

        for unit in self.db.list_units(site_id):
            if unit.unit_number == unit_number and unit.block == block:
                raise ConflictError(f"Unit '{unit.label}' already exists")

        return self.db.create_unit(
            site_id=site_id,
            unit_number=unit_number,
            currency_code=currency,
            opening_balance=Decimal(str(opening_balance)),
            block=block,
            owner_name=owner_name,
        )

    def get_unit(self, unit_id: int) -> Optional[Unit]:
        """Get unit by ID."""
        return self.db.get_unit(unit_id)

    def require_unit(self, unit_id: int) -> Unit:
        """Get unit by ID.

        Raises:
            NotFoundError: If the unit doesn't exist
        """
        unit = self.db.get_unit(unit_id)
        if unit is None:
            raise NotFoundError(unit_not_found(unit_id))
        return unit

    def list_units(self, site_id: int) -> list[Unit]:
        """List units of a site ordered by block and number."""
        return self.db.list_units(site_id)

    def add_due(
        self,
        unit_id: int,
        amount: Decimal,
        due_date: date,
        description: Optional[str] = None,
        currency_code: Optional[str] = None,
        fiscal_period_id: Optional[int] = None,
    ) -> int:
        """Accrue a due against a unit.

        Raises:
            NotFoundError: If the unit doesn't exist
            ValidationError: If the amount is not positive or the currency
                differs from the unit's debt currency
        """
        unit = self.require_unit(unit_id)
        amount = _positive_amount(amount)
        if due_date is None:
            raise ValidationError("Due date is required")
        currency = validate_currency_code(currency_code or unit.currency_code)
        if currency != unit.currency_code:
            raise ValidationError(
                f"Unit {unit.label} accrues in {unit.currency_code}, not {currency}"
            )
        if fiscal_period_id is None:
            period = self.periods.find_period_for_date(unit.site_id, due_date)
            fiscal_period_id = period.id if period else None

        return self.db.create_unit_due(
            unit_id=unit_id,
            due_date=due_date,
            amount=amount,
            currency_code=currency,
            description=description,
            fiscal_period_id=fiscal_period_id,
        )

    def record_payment(
        self,
        unit_id: int,
        amount: Decimal,
        payment_date: date,
        account_id: int,
        debt_exchange_rate: Optional[Decimal] = None,
        reporting_exchange_rate: Optional[Decimal] = None,
        currency_code: Optional[str] = None,
        payment_method: str = "bank_transfer",
        description: Optional[str] = None,
        category: str = MAINTENANCE_FEES_CATEGORY,
    ) -> tuple[int, int]:
        """Record a unit payment and the income it brings into an account.

        The payment and its ledger entry are written in one transaction. The
        payment is in the receiving account's currency.

        Args:
            unit_id: Paying unit
            amount: Amount paid, in the account's currency
            payment_date: Payment date
            account_id: Account receiving the money
            debt_exchange_rate: Rate into the unit's debt currency, required
                when the payment currency differs from it
            reporting_exchange_rate: Rate into the site's reporting currency,
                required when the payment currency differs from it
            currency_code: Optional; must match the account currency when given
            payment_method: One of bank_transfer, cash, credit_card, other
            description: Optional description
            category: Ledger category for the income entry

        Returns:
            Tuple of (payment ID, ledger entry ID)

        Raises:
            NotFoundError: If the unit, site or account doesn't exist
            ValidationError: If amount, rates, method or currency are invalid
        """
        unit = self.require_unit(unit_id)
        site = self.db.get_site(unit.site_id)
        if site is None:
            raise NotFoundError(site_not_found(unit.site_id))
        amount = _positive_amount(amount)
        if payment_date is None:
            raise ValidationError("Payment date is required")
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"Unknown payment method '{payment_method}'; use one of {', '.join(PAYMENT_METHODS)}"
            )

        if account_id is None:
            raise ValidationError("Account is required")
        account = self.db.get_account(account_id)
        if account is None or account.site_id != unit.site_id:
            raise NotFoundError(account_not_found(account_id))
        if not account.is_active:
            raise ValidationError(account_inactive(account_id))
        currency = account.currency_code
        if currency_code is not None and currency_code.strip().upper() != currency:
            raise ValidationError(
                f"Payment currency {currency_code.upper()} does not match "
                f"account currency {currency}"
            )

        debt_rate = ONE
        if currency != unit.currency_code:
            debt_rate = _positive_rate(debt_exchange_rate, f"{currency} to {unit.currency_code}")
        reporting_rate = ONE
        if currency != site.default_currency:
            reporting_rate = _positive_rate(
                reporting_exchange_rate, f"{currency} to {site.default_currency}"
            )

        period = self.periods.find_period_for_date(unit.site_id, payment_date)
        payment = dict(
            unit_id=unit.id,
            payment_date=payment_date,
            amount=amount,
            currency_code=currency,
            debt_exchange_rate=debt_rate,
            reporting_exchange_rate=reporting_rate,
            account_id=account.id,
            payment_method=payment_method,
            description=description,
        )
        ledger_entry = dict(
            site_id=unit.site_id,
            fiscal_period_id=period.id if period else None,
            entry_type=EntryType.INCOME.value,
            category=category,
            description=description or f"Payment from unit {unit.label}",
            vendor_name=unit.owner_name,
            amount=amount,
            currency_code=currency,
            exchange_rate=reporting_rate,
            amount_reporting=quantize_money(amount * reporting_rate),
            entry_date=payment_date,
            account_id=account.id,
            unit_id=unit.id,
        )
        payment_id, entry_id = self.db.create_unit_payment(payment, ledger_entry)
        logger.info(
            "Recorded payment %s of %s %s for unit %s (ledger entry %s)",
            payment_id,
            amount,
            currency,
            unit.label,
            entry_id,
        )
        return payment_id, entry_id
