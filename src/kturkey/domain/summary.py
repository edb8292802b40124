"""Summary reporting domain service."""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from kturkey.database.base import Database
from kturkey.domain.entities import (
    CategoryTotal,
    EntryType,
    FiscalPeriod,
    LedgerRow,
    MonthlySummary,
)
from kturkey.domain.errors import NotFoundError, ValidationError, period_not_found
from kturkey.domain.fiscal_period import FiscalPeriodService
from kturkey.domain.ledger import LedgerService, balance_before, is_income_or_expense
from kturkey.domain.replay import filter_rows

UNCATEGORIZED = "Uncategorized"


def month_keys(start_date: date, end_date: date) -> tuple[str, ...]:
    """Return every ``YYYY-MM`` key from start to end, inclusive."""
    keys = []
    year, month = start_date.year, start_date.month
    while (year, month) <= (end_date.year, end_date.month):
        keys.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return tuple(keys)


def month_boundary(key: str) -> date:
    """First day after the ``YYYY-MM`` month ``key``."""
    year, month = (int(part) for part in key.split("-"))
    if month == 12:
        return date(year + 1, 1, 1)
    return date(year, month + 1, 1)


def period_income_expense(rows: Sequence[LedgerRow], period: FiscalPeriod) -> list[LedgerRow]:
    """Income and expense rows booked to ``period`` and dated inside it."""
    return [
        row
        for row in filter_rows(rows, period=period)
        if is_income_or_expense(row) and period.contains(row.transaction.entry_date)
    ]


def group_rows_by_month(rows: Sequence[LedgerRow]) -> dict[str, list[LedgerRow]]:
    """Group ledger rows by the ``YYYY-MM`` of their entry date."""
    grouped: dict[str, list[LedgerRow]] = defaultdict(list)
    for row in rows:
        grouped[row.transaction.entry_date.strftime("%Y-%m")].append(row)
    return dict(grouped)


class SummaryService:
    """Service for building period summaries from replayed ledgers."""

    def __init__(self, db: Database):
        """Initialize summary service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = LedgerService(db)
        self.periods = FiscalPeriodService(db)

    def _resolve_period(self, site_id: int, fiscal_period_id: Optional[int]) -> FiscalPeriod:
        if fiscal_period_id is None:
            period = self.periods.get_active_period(site_id)
            if period is None:
                raise ValidationError("Site has no fiscal periods; create one first")
            return period
        period = self.db.get_fiscal_period(fiscal_period_id)
        if period is None or period.site_id != site_id:
            raise NotFoundError(period_not_found(fiscal_period_id))
        return period

    def monthly_summary(
        self, site_id: int, fiscal_period_id: Optional[int] = None
    ) -> MonthlySummary:
        """Build the month-by-category income and expense grid of a period.

        Amounts are in the reporting currency. Transfers are left out of
        income and expense, as are rows dated outside the period. Each
        month's closing balance is the replayed global balance at month end,
        so it always agrees with the ledger.

        Args:
            site_id: Site ID
            fiscal_period_id: Period to summarize; the active period if None

        Returns:
            MonthlySummary
        """
        period = self._resolve_period(site_id, fiscal_period_id)
        replay = self.ledger.replay_site(site_id)
        result = replay.balances

        months = month_keys(period.start_date, period.end_date)
        income_by_category: dict[str, dict[str, Decimal]] = defaultdict(dict)
        expense_by_category: dict[str, dict[str, Decimal]] = defaultdict(dict)
        income = {month: Decimal("0") for month in months}
        expense = {month: Decimal("0") for month in months}

        rows = period_income_expense(result.rows, period)
        for month, month_rows in group_rows_by_month(rows).items():
            for row in month_rows:
                txn = row.transaction
                category = txn.category or UNCATEGORIZED
                if txn.entry_type == EntryType.INCOME:
                    target, totals = income_by_category[category], income
                else:
                    target, totals = expense_by_category[category], expense
                target[month] = target.get(month, Decimal("0")) + txn.amount_reporting
                totals[month] += txn.amount_reporting

        opening = balance_before(result, period.start_date)
        net = {}
        closing = {}
        period_boundary = period.end_date + timedelta(days=1)
        for month in months:
            net[month] = income[month] - expense[month]
            closing[month] = balance_before(result, min(month_boundary(month), period_boundary))

        return MonthlySummary(
            period_id=period.id,
            months=months,
            income_by_category=dict(income_by_category),
            expense_by_category=dict(expense_by_category),
            income=income,
            expense=expense,
            net=net,
            closing_balance=closing,
            opening_balance=opening,
            warnings=replay.warnings,
        )

    def category_totals(
        self,
        site_id: int,
        fiscal_period_id: Optional[int] = None,
        entry_type: Optional[EntryType] = None,
    ) -> list[CategoryTotal]:
        """Total income and expense per category for a period, largest first.

        Args:
            site_id: Site ID
            fiscal_period_id: Period to total; the active period if None
            entry_type: Optional income or expense filter

        Returns:
            List of CategoryTotal sorted by amount descending
        """
        period = self._resolve_period(site_id, fiscal_period_id)
        result = self.ledger.replay_site(site_id).balances

        amounts: dict[tuple[str, EntryType], Decimal] = defaultdict(Decimal)
        counts: dict[tuple[str, EntryType], int] = defaultdict(int)
        for row in period_income_expense(result.rows, period):
            txn = row.transaction
            if entry_type is not None and txn.entry_type != entry_type:
                continue
            key = (txn.category or UNCATEGORIZED, txn.entry_type)
            amounts[key] += txn.amount_reporting
            counts[key] += 1

        totals = [
            CategoryTotal(category=category, entry_type=kind, amount=amount, count=counts[(category, kind)])
            for (category, kind), amount in amounts.items()
        ]
        totals.sort(key=lambda t: (-t.amount, t.entry_type.value, t.category))
        return totals
