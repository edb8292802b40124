"""Resident statement domain service.

The unit debt ledger replays like the account ledger: start from the unit's
opening balance, add every due, subtract every payment's effective credit,
in date order. Positive balances are money the resident owes.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from kturkey.database.base import Database
from kturkey.domain.currency import CurrencyNormalizer, normalize_currency_code
from kturkey.domain.entities import (
    DataQualityWarning,
    DueAllocation,
    DueStatus,
    StatementRow,
    StatementSummary,
    Unit,
    UnitDue,
    UnitPayment,
    UnitStatement,
    WarningCode,
)
from kturkey.domain.errors import NotFoundError, ValidationError, site_not_found, unit_not_found

logger = logging.getLogger(__name__)

DEBT = "debt"
PAYMENT = "payment"

_KIND_ORDER = {DEBT: 0, PAYMENT: 1}


def allocate_payments(
    dues: Sequence[UnitDue], credit: Decimal, opening_balance: Decimal = Decimal("0")
) -> tuple[list[DueAllocation], Decimal]:
    """Apply payment credit to the oldest debt first.

    A positive opening balance is the oldest debt and is settled before any
    due; a negative one is an earlier credit and adds to what is available.

    Args:
        dues: Dues of one unit, in any order
        credit: Total effective credit of the unit's payments, in debt currency
        opening_balance: Unit's opening balance

    Returns:
        Tuple of (allocation per due in due-date order, leftover overpayment)
    """
    available = credit - opening_balance
    allocations = []
    for due in sorted(dues, key=lambda d: (d.due_date, d.id)):
        applied = min(max(available, Decimal("0")), due.amount)
        available -= applied
        if applied >= due.amount:
            status = DueStatus.PAID
        elif applied > 0:
            status = DueStatus.PARTIAL
        else:
            status = DueStatus.PENDING
        allocations.append(DueAllocation(due=due, paid_amount=applied, status=status))
    return allocations, max(available, Decimal("0"))


def build_unit_statement(
    unit: Unit,
    dues: Sequence[UnitDue],
    payments: Sequence[UnitPayment],
    reporting_currency: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> UnitStatement:
    """Replay a unit's dues and payments into a statement.

    The whole history is always replayed; ``start_date`` and ``end_date``
    only choose which rows are shown. Rows before the window fold into the
    statement's opening balance.

    Args:
        unit: Unit whose debt ledger is replayed
        dues: Every due of the unit
        payments: Every payment of the unit
        reporting_currency: Site reporting currency, used to read payment rates
        start_date: Optional first day shown
        end_date: Optional last day shown

    Returns:
        UnitStatement in the unit's debt currency
    """
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("Statement end date is before start date")

    debt_currency = normalize_currency_code(unit.currency_code)
    normalizer = CurrencyNormalizer(reporting_currency)
    warnings: list[DataQualityWarning] = []

    entries: list[tuple[tuple, StatementRow]] = []
    usable_dues = []
    for due in dues:
        if normalize_currency_code(due.currency_code) != debt_currency:
            message = (
                f"Due {due.id} is in {due.currency_code} but unit {unit.label} "
                f"accrues in {debt_currency}; skipped"
            )
            logger.warning(message)
            warnings.append(DataQualityWarning(WarningCode.MALFORMED_RECORD, message, due.id))
            continue
        usable_dues.append(due)
        row = StatementRow(
            id=due.id,
            date=due.due_date,
            kind=DEBT,
            description=due.description or "Dues",
            amount_debt=due.amount,
            amount_paid=Decimal("0"),
            running_balance=Decimal("0"),
        )
        entries.append(((due.due_date, _KIND_ORDER[DEBT], due.created_at or datetime.min, due.id), row))

    total_credit = Decimal("0")
    for payment in payments:
        credit = normalizer.debt_credit(
            payment.amount,
            payment.currency_code,
            debt_currency,
            payment.debt_exchange_rate,
            payment.id,
        )
        total_credit += credit
        row = StatementRow(
            id=payment.id,
            date=payment.payment_date,
            kind=PAYMENT,
            description=payment.description or "Payment Received",
            amount_debt=Decimal("0"),
            amount_paid=credit,
            running_balance=Decimal("0"),
            native_amount=payment.amount,
            native_currency=normalize_currency_code(payment.currency_code),
        )
        entries.append(
            (
                (
                    payment.payment_date,
                    _KIND_ORDER[PAYMENT],
                    payment.created_at or datetime.min,
                    payment.id,
                ),
                row,
            )
        )

    entries.sort(key=lambda pair: pair[0])

    running = unit.opening_balance
    window_opening = unit.opening_balance
    total_accrued = Decimal("0")
    total_paid = Decimal("0")
    rows: list[StatementRow] = []
    for _, row in entries:
        running = running + row.amount_debt - row.amount_paid
        if start_date is not None and row.date < start_date:
            window_opening = running
            continue
        if end_date is not None and row.date > end_date:
            continue
        total_accrued += row.amount_debt
        total_paid += row.amount_paid
        rows.append(
            StatementRow(
                id=row.id,
                date=row.date,
                kind=row.kind,
                description=row.description,
                amount_debt=row.amount_debt,
                amount_paid=row.amount_paid,
                running_balance=running,
                native_amount=row.native_amount,
                native_currency=row.native_currency,
            )
        )

    ending = rows[-1].running_balance if rows else window_opening
    allocations, overpayment = allocate_payments(
        usable_dues, total_credit, unit.opening_balance
    )
    warnings.extend(normalizer.warnings)

    return UnitStatement(
        unit_id=unit.id,
        currency_code=debt_currency,
        rows=tuple(rows),
        summary=StatementSummary(
            opening_balance=window_opening,
            total_accrued=total_accrued,
            total_paid=total_paid,
            ending_balance=ending,
        ),
        allocations=tuple(allocations),
        overpayment=overpayment,
        warnings=tuple(warnings),
    )


class StatementService:
    """Service for building resident statements from stored records."""

    def __init__(self, db: Database):
        """Initialize statement service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_statement(
        self,
        unit_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> UnitStatement:
        """Build the statement of one unit.

        Raises:
            NotFoundError: If the unit or its site doesn't exist
        """
        unit = self.db.get_unit(unit_id)
        if unit is None:
            raise NotFoundError(unit_not_found(unit_id))
        site = self.db.get_site(unit.site_id)
        if site is None:
            raise NotFoundError(site_not_found(unit.site_id))

        return build_unit_statement(
            unit,
            self.db.list_unit_dues(unit_id),
            self.db.list_unit_payments(unit_id),
            reporting_currency=site.default_currency,
            start_date=start_date,
            end_date=end_date,
        )
