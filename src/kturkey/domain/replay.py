"""Balance replay engine.

Balances are recomputed from scratch on every read: accounts start at their
stored initial balance and the full transaction history is applied in
chronological order. Filtering to a fiscal period, a type or a search term
happens only afterwards, on the annotated rows, so it can never change a
balance.
"""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from kturkey.domain.currency import CurrencyNormalizer, normalize_currency_code
from kturkey.domain.entities import (
    Account,
    BalanceResult,
    DataQualityWarning,
    EntryType,
    FiscalPeriod,
    LedgerRow,
    Transaction,
    TransferDirection,
    WarningCode,
)
from kturkey.domain.errors import ReconciliationError, ValidationError

logger = logging.getLogger(__name__)

_DIRECTION_ORDER = {None: 0, TransferDirection.OUT: 0, TransferDirection.IN: 1}


def chronological_order(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort transactions for replay.

    Order is entry date, then creation timestamp (missing timestamps first),
    then id and transfer direction, then input position. The id tie-break makes
    the result independent of how the input happened to be ordered.
    """
    indexed = list(enumerate(transactions))
    indexed.sort(
        key=lambda pair: (
            pair[1].entry_date,
            pair[1].created_at or datetime.min,
            pair[1].id,
            _DIRECTION_ORDER[pair[1].transfer_direction],
            pair[0],
        )
    )
    return [txn for _, txn in indexed]


def transaction_sign(txn: Transaction) -> Optional[int]:
    """Return +1 or -1 for how a transaction moves its account, None if it cannot be applied."""
    if txn.entry_type == EntryType.INCOME:
        return 1
    if txn.entry_type == EntryType.EXPENSE:
        return -1
    if txn.entry_type == EntryType.TRANSFER:
        if txn.account_id is None or txn.transfer_direction is None:
            return None
        if txn.transfer_direction == TransferDirection.OUT:
            return -1
        return 1
    raise ValidationError(f"Unhandled entry type {txn.entry_type!r}")


def display_type(txn: Transaction) -> EntryType:
    """Type shown to users: both legs of any transfer read as a transfer."""
    if txn.entry_type == EntryType.TRANSFER or txn.is_transfer_leg:
        return EntryType.TRANSFER
    return txn.entry_type


class BalanceReplayEngine:
    """Replay a transaction history into per-account and global balances."""

    def __init__(self, reporting_currency: str):
        """Initialize replay engine.

        Args:
            reporting_currency: Currency code the global balance is expressed in
        """
        self.reporting_currency = normalize_currency_code(reporting_currency)

    def replay(
        self, accounts: Sequence[Account], transactions: Sequence[Transaction]
    ) -> BalanceResult:
        """Replay the full history.

        Args:
            accounts: Every account of the site, inactive ones included, since
                their history still counts
            transactions: Full, unfiltered transaction history in any order

        Returns:
            BalanceResult with the final balances and one row per transaction
        """
        normalizer = CurrencyNormalizer(self.reporting_currency)
        warnings: list[DataQualityWarning] = []

        account_balances: dict[int, Decimal] = {}
        account_reporting: dict[int, Decimal] = {}
        account_currency: dict[int, Optional[str]] = {}
        for account in accounts:
            account_balances[account.id] = account.initial_balance
            account_currency[account.id] = normalize_currency_code(account.currency_code)
            if normalizer.is_reporting(account.currency_code):
                opening = account.initial_balance
            else:
                rate = normalizer.effective_rate(account.initial_exchange_rate)
                opening = account.initial_balance * rate
            account_reporting[account.id] = opening

        opening_balance = sum(account_reporting.values(), Decimal("0"))
        global_balance = opening_balance
        unassigned = Decimal("0")
        applied_total = Decimal("0")

        warnings.extend(self.check_transfer_pairs(transactions))
        mismatched_groups = self.find_mismatched_groups(transactions, account_currency)

        rows: list[LedgerRow] = []
        for txn in chronological_order(transactions):
            sign = transaction_sign(txn)
            if sign is None:
                if txn.account_id is None:
                    message = f"Transfer {txn.id} has no account legs; not applied to balances"
                else:
                    message = (
                        f"Transfer {txn.id} on account {txn.account_id} has no transfer "
                        "direction; not applied to balances"
                    )
                logger.warning(message)
                warnings.append(
                    DataQualityWarning(WarningCode.OPAQUE_TRANSFER, message, txn.id)
                )
                rows.append(LedgerRow(txn, None, global_balance))
                continue

            if txn.account_id is not None and txn.account_id not in account_balances:
                message = (
                    f"Transaction {txn.id} references unknown account {txn.account_id}; "
                    "excluded from account and global balances"
                )
                logger.warning(message)
                warnings.append(
                    DataQualityWarning(WarningCode.ORPHANED_ACCOUNT, message, txn.id)
                )
                rows.append(LedgerRow(txn, None, global_balance))
                continue

            mismatch = self.currency_mismatch(txn, account_currency)
            if mismatch is not None or txn.transfer_group_id in mismatched_groups:
                if mismatch is not None:
                    message = (
                        f"Transaction {txn.id} is in {mismatch[0]} but account "
                        f"{txn.account_id} holds {mismatch[1]}; "
                        "excluded from account and global balances"
                    )
                else:
                    message = (
                        f"Transfer {txn.id} leg on account {txn.account_id} pairs with a "
                        "leg in another currency; excluded from account and global balances"
                    )
                logger.warning(message)
                warnings.append(
                    DataQualityWarning(WarningCode.CURRENCY_MISMATCH, message, txn.id)
                )
                rows.append(LedgerRow(txn, None, global_balance))
                continue

            signed_reporting = sign * txn.amount_reporting
            account_balance = None
            if txn.account_id is None:
                unassigned += signed_reporting
            else:
                account_balances[txn.account_id] += sign * txn.amount
                account_reporting[txn.account_id] += signed_reporting
                account_balance = account_balances[txn.account_id]

            global_balance += signed_reporting
            applied_total += signed_reporting
            rows.append(LedgerRow(txn, account_balance, global_balance))

        warnings.extend(normalizer.warnings)
        logger.debug(
            "Replayed %d transactions across %d accounts", len(rows), len(accounts)
        )
        return BalanceResult(
            reporting_currency=self.reporting_currency,
            opening_balance=opening_balance,
            account_balances=account_balances,
            account_reporting_balances=account_reporting,
            unassigned_balance=unassigned,
            global_balance=global_balance,
            rows=tuple(rows),
            applied_reporting_total=applied_total,
            warnings=tuple(warnings),
        )

    def check_transfer_pairs(
        self, transactions: Sequence[Transaction]
    ) -> list[DataQualityWarning]:
        """Warn about transfer groups that are not exactly one outgoing and one incoming leg."""
        groups: dict[str, list[Transaction]] = defaultdict(list)
        for txn in transactions:
            if txn.transfer_group_id is not None:
                groups[txn.transfer_group_id].append(txn)

        warnings = []
        for group_id, legs in groups.items():
            directions = sorted(leg.transfer_direction.value for leg in legs if leg.transfer_direction)
            if directions == ["in", "out"]:
                continue
            message = (
                f"Transfer group {group_id} has legs {directions or 'none'}; "
                "expected one outgoing and one incoming leg"
            )
            logger.warning(message)
            warnings.append(
                DataQualityWarning(WarningCode.UNPAIRED_TRANSFER, message, legs[0].id)
            )
        return warnings

    @staticmethod
    def currency_mismatch(
        txn: Transaction, account_currency: dict[int, Optional[str]]
    ) -> Optional[tuple[Optional[str], Optional[str]]]:
        """Return (transaction currency, account currency) when they differ."""
        if txn.account_id is None or txn.account_id not in account_currency:
            return None
        txn_currency = normalize_currency_code(txn.currency_code)
        held = account_currency[txn.account_id]
        if txn_currency == held:
            return None
        return txn_currency, held

    def find_mismatched_groups(
        self,
        transactions: Sequence[Transaction],
        account_currency: dict[int, Optional[str]],
    ) -> set[str]:
        """Transfer groups with at least one leg booked in a currency its account does not hold.

        Both legs of such a group are left out of the balances so a transfer
        never debits one side without crediting the other.
        """
        return {
            txn.transfer_group_id
            for txn in transactions
            if txn.transfer_group_id is not None
            and self.currency_mismatch(txn, account_currency) is not None
        }


def compute_balances(
    accounts: Sequence[Account],
    transactions: Sequence[Transaction],
    reporting_currency: str,
) -> BalanceResult:
    """Pure entry point: replay ``transactions`` over ``accounts``."""
    return BalanceReplayEngine(reporting_currency).replay(accounts, transactions)


def check_reconciliation(result: BalanceResult) -> None:
    """Raise ReconciliationError when the replayed balances do not conserve money.

    Raises:
        ReconciliationError: If the global balance differs from the opening
            balance plus applied transactions, or from the sum of account
            balances in the reporting currency
    """
    if result.is_reconciled:
        return
    by_account = sum(result.account_reporting_balances.values(), Decimal("0"))
    error = ReconciliationError(
        expected=result.expected_global_balance,
        actual=result.global_balance,
        by_account=by_account + result.unassigned_balance,
    )
    logger.error(str(error))
    raise error


def _matches_search(txn: Transaction, search: str) -> bool:
    needle = search.lower()
    return any(
        needle in value.lower()
        for value in (txn.category, txn.description, txn.vendor_name)
        if value
    )


def filter_rows(
    rows: Iterable[LedgerRow],
    period: Optional[FiscalPeriod] = None,
    entry_type: Optional[EntryType] = None,
    search: Optional[str] = None,
    account_id: Optional[int] = None,
) -> tuple[LedgerRow, ...]:
    """Filter replayed rows for display without touching their balances.

    A row belongs to ``period`` when it was booked to it, or when it carries
    no period (period-independent transfers) and its date falls inside it.
    """
    result = []
    for row in rows:
        txn = row.transaction
        if period is not None:
            if txn.fiscal_period_id is None:
                if not period.contains(txn.entry_date):
                    continue
            elif txn.fiscal_period_id != period.id:
                continue
        if entry_type is not None and display_type(txn) != entry_type:
            continue
        if search and not _matches_search(txn, search):
            continue
        if account_id is not None and txn.account_id != account_id:
            continue
        result.append(row)
    return tuple(result)
