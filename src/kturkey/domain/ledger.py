"""Ledger domain service.

Every read goes through the same pipeline: fetch the site's full ledger
history, ingest it into canonical transactions, replay it over all accounts,
and only then filter the annotated rows for display.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from kturkey.database.base import Database
from kturkey.domain.entities import (
    BalanceResult,
    EntryType,
    IngestionResult,
    LedgerRow,
    LedgerView,
    Site,
)
from kturkey.domain.errors import NotFoundError, period_not_found, site_not_found
from kturkey.domain.ingestion import TransactionIngestionService
from kturkey.domain.replay import check_reconciliation, compute_balances, filter_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteReplay:
    """Ingested and replayed history of one site."""

    site: Site
    ingestion: IngestionResult
    balances: BalanceResult

    @property
    def warnings(self):
        return self.ingestion.warnings + self.balances.warnings


def balance_before(result: BalanceResult, day: date) -> Decimal:
    """Global balance carried into ``day``: after every row dated before it."""
    balance = result.opening_balance
    for row in result.rows:
        if row.transaction.entry_date >= day:
            break
        balance = row.total_balance
    return balance


def is_income_or_expense(row: LedgerRow) -> bool:
    """True for real income and expense, false for transfers and their legs."""
    txn = row.transaction
    return not txn.is_transfer_leg and txn.entry_type != EntryType.TRANSFER


class LedgerService:
    """Service for reading a site's ledger with replayed balances."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def replay_site(self, site_id: int, check: bool = True) -> SiteReplay:
        """Fetch, ingest and replay the full history of a site.

        Args:
            site_id: Site ID
            check: If True, verify the conservation invariant

        Returns:
            SiteReplay with ingestion and replay results

        Raises:
            NotFoundError: If the site doesn't exist
            ReconciliationError: If ``check`` is set and the balances don't reconcile
        """
        site = self.db.get_site(site_id)
        if site is None:
            raise NotFoundError(site_not_found(site_id))

        records = self.db.list_ledger_records(site_id)
        ingestion = TransactionIngestionService(site.default_currency).ingest(records)
        accounts = self.db.list_accounts(site_id, include_inactive=True)
        balances = compute_balances(accounts, ingestion.transactions, site.default_currency)
        if check:
            check_reconciliation(balances)
        return SiteReplay(site=site, ingestion=ingestion, balances=balances)

    def get_ledger(
        self,
        site_id: int,
        fiscal_period_id: Optional[int] = None,
        entry_type: Optional[EntryType] = None,
        search: Optional[str] = None,
        account_id: Optional[int] = None,
        check: bool = True,
    ) -> LedgerView:
        """Get the display ledger of a site, newest rows first.

        Filters apply to the displayed rows only. Income and expense totals
        cover the fiscal period (or all time) regardless of the type and
        search filters, and the opening balance is the global balance carried
        into the period.

        Args:
            site_id: Site ID
            fiscal_period_id: Optional fiscal period to show
            entry_type: Optional type filter; transfer legs count as transfers
            search: Optional case-insensitive text in category, description or vendor
            account_id: Optional account filter
            check: If True, verify the conservation invariant

        Returns:
            LedgerView

        Raises:
            NotFoundError: If the site or period doesn't exist
            ReconciliationError: If ``check`` is set and the balances don't reconcile
        """
        replay = self.replay_site(site_id, check=check)
        result = replay.balances

        period = None
        opening_balance = result.opening_balance
        if fiscal_period_id is not None:
            period = self.db.get_fiscal_period(fiscal_period_id)
            if period is None or period.site_id != site_id:
                raise NotFoundError(period_not_found(fiscal_period_id))
            opening_balance = balance_before(result, period.start_date)

        in_period = filter_rows(result.rows, period=period)
        total_income = Decimal("0")
        total_expense = Decimal("0")
        for row in in_period:
            if not is_income_or_expense(row):
                continue
            if row.transaction.entry_type == EntryType.INCOME:
                total_income += row.transaction.amount_reporting
            else:
                total_expense += row.transaction.amount_reporting

        shown = filter_rows(
            in_period, entry_type=entry_type, search=search, account_id=account_id
        )
        return LedgerView(
            site_id=site_id,
            reporting_currency=result.reporting_currency,
            rows=tuple(reversed(shown)),
            opening_balance=opening_balance,
            total_income=total_income,
            total_expense=total_expense,
            global_balance=result.global_balance,
            account_balances=dict(result.account_balances),
            warnings=replay.warnings,
            skipped=replay.ingestion.skipped,
        )

    def get_account_balances(self, site_id: int) -> dict[int, Decimal]:
        """Current native balance of every account of a site."""
        return dict(self.replay_site(site_id).balances.account_balances)
