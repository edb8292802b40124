"""Tests for the balance replay engine."""

import random
import pytest
from datetime import date, datetime
from decimal import Decimal

from kturkey.domain.entities import (
    Account,
    AccountType,
    EntryType,
    FiscalPeriod,
    PeriodStatus,
    Transaction,
    TransferDirection,
    WarningCode,
)
from kturkey.domain.errors import ReconciliationError
from kturkey.domain.ingestion import TransactionIngestionService
from kturkey.domain.replay import (
    check_reconciliation,
    chronological_order,
    compute_balances,
    display_type,
    filter_rows,
)


def make_account(id, initial_balance, currency="TRY", rate="1", is_active=True):
    return Account(
        id=id,
        site_id=1,
        name=f"Account {id}",
        account_type=AccountType.BANK,
        currency_code=currency,
        initial_balance=Decimal(initial_balance),
        initial_exchange_rate=Decimal(rate),
        is_active=is_active,
    )


def make_txn(id, entry_type, amount, day, account_id=1, currency="TRY", rate="1",
             created_at=None, period_id=None, group=None, direction=None, category=None):
    amount = Decimal(amount)
    rate = Decimal(rate)
    return Transaction(
        id=id,
        site_id=1,
        entry_type=EntryType(entry_type),
        amount=amount,
        currency_code=currency,
        exchange_rate=rate,
        amount_reporting=amount if currency == "TRY" else amount * rate,
        entry_date=day,
        created_at=created_at,
        fiscal_period_id=period_id,
        account_id=account_id,
        transfer_group_id=group,
        transfer_direction=direction,
        category=category,
    )


def mixed_history():
    accounts = [make_account(1, "10000"), make_account(2, "500", currency="EUR", rate="30")]
    txns = [
        make_txn(1, "expense", "2000", date(2024, 1, 1)),
        make_txn(2, "income", "500", date(2024, 1, 2)),
        make_txn(3, "income", "100", date(2024, 1, 2), account_id=2, currency="EUR", rate="35"),
        make_txn(4, "transfer", "3500", date(2024, 1, 3), group="g1", direction=TransferDirection.OUT),
        make_txn(5, "transfer", "100", date(2024, 1, 3), account_id=2, currency="EUR", rate="35",
                 group="g1", direction=TransferDirection.IN),
        make_txn(6, "expense", "40", date(2024, 1, 3), account_id=2, currency="EUR", rate="36",
                 created_at=datetime(2024, 1, 3, 9, 0)),
        make_txn(7, "expense", "250", date(2024, 1, 3), created_at=datetime(2024, 1, 3, 8, 0)),
    ]
    return accounts, txns


def test_account_level_example():
    """Test 10,000 TRY minus 2,000 then plus 500 gives 8,000 then 8,500."""
    accounts = [make_account(1, "10000")]
    txns = [
        make_txn(1, "expense", "2000", date(2024, 1, 1)),
        make_txn(2, "income", "500", date(2024, 1, 2)),
    ]
    result = compute_balances(accounts, txns, "TRY")

    assert [row.account_balance for row in result.rows] == [Decimal("8000"), Decimal("8500")]
    assert [row.total_balance for row in result.rows] == [Decimal("8000"), Decimal("8500")]
    assert result.account_balances == {1: Decimal("8500")}
    assert result.global_balance == Decimal("8500")
    assert result.opening_balance == Decimal("10000")


def test_opening_balance_converts_foreign_accounts():
    """Test the opening global balance uses each account's initial rate."""
    accounts = [make_account(1, "10000"), make_account(2, "500", currency="EUR", rate="30")]
    result = compute_balances(accounts, [], "TRY")
    assert result.opening_balance == Decimal("25000")
    assert result.global_balance == Decimal("25000")


def test_replay_is_idempotent():
    """Test replaying the same history twice yields identical results."""
    accounts, txns = mixed_history()
    first = compute_balances(accounts, txns, "TRY")
    second = compute_balances(accounts, txns, "TRY")
    assert first == second


def test_shuffled_input_gives_identical_output():
    """Test input order never changes balances or row order."""
    accounts, txns = mixed_history()
    expected = compute_balances(accounts, txns, "TRY")

    rng = random.Random(1234)
    for _ in range(10):
        shuffled = list(txns)
        rng.shuffle(shuffled)
        result = compute_balances(accounts, shuffled, "TRY")
        assert result.global_balance == expected.global_balance
        assert result.account_balances == expected.account_balances
        assert result.rows == expected.rows


def test_conservation_invariant():
    """Test global balance equals opening plus signed reporting amounts and the account sum."""
    accounts, txns = mixed_history()
    result = compute_balances(accounts, txns, "TRY")

    signed = Decimal("0")
    for txn in txns:
        sign = 1
        if txn.entry_type == EntryType.EXPENSE or txn.transfer_direction == TransferDirection.OUT:
            sign = -1
        signed += sign * txn.amount_reporting

    assert result.global_balance == Decimal("25000") + signed
    assert result.global_balance == sum(result.account_reporting_balances.values())
    assert result.is_reconciled
    check_reconciliation(result)


def test_same_day_ordering_uses_created_at_then_id():
    """Test ties on date break on creation time, missing times first, then id."""
    day = date(2024, 1, 3)
    txns = [
        make_txn(3, "expense", "1", day, created_at=datetime(2024, 1, 3, 10)),
        make_txn(1, "expense", "1", day, created_at=datetime(2024, 1, 3, 11)),
        make_txn(2, "expense", "1", day),
        make_txn(4, "expense", "1", date(2024, 1, 2), created_at=datetime(2024, 1, 9)),
    ]
    assert [t.id for t in chronological_order(txns)] == [4, 2, 3, 1]


def test_full_history_required_for_period_view():
    """Test filtering before replay gives wrong balances and filtering after does not."""
    accounts = [make_account(1, "10000")]
    period_2024 = FiscalPeriod(1, 1, "2024", date(2024, 1, 1), date(2024, 12, 31),
                               PeriodStatus.ACTIVE, datetime(2024, 1, 1))
    txns = [
        make_txn(1, "expense", "3000", date(2023, 6, 1), period_id=None),
        make_txn(2, "income", "700", date(2024, 2, 1), period_id=1),
    ]

    after = filter_rows(compute_balances(accounts, txns, "TRY").rows, period=period_2024)
    prefiltered = [t for t in txns if t.fiscal_period_id == 1]
    before = compute_balances(accounts, prefiltered, "TRY").rows

    assert [r.transaction.id for r in after] == [2]
    assert after[0].account_balance == Decimal("7700")
    assert after[0].total_balance == Decimal("7700")
    assert before[0].account_balance == Decimal("10700")
    assert after[0].account_balance != before[0].account_balance


def test_currency_identity_in_replay():
    """Test a reporting-currency row moves the global balance by its exact amount."""
    accounts = [make_account(1, "0")]
    txn = make_txn(1, "income", "123.45", date(2024, 1, 1))
    result = compute_balances(accounts, [txn], "TRY")
    assert result.global_balance == Decimal("123.45")


def test_inactive_account_history_still_counts():
    """Test deactivated accounts keep contributing their history."""
    accounts = [make_account(1, "1000", is_active=False)]
    txns = [make_txn(1, "expense", "400", date(2024, 1, 1))]
    result = compute_balances(accounts, txns, "TRY")
    assert result.account_balances[1] == Decimal("600")
    assert result.global_balance == Decimal("600")


def test_orphaned_account_excluded_from_both_balances():
    """Test a row pointing at an unknown account touches neither balance."""
    accounts = [make_account(1, "1000")]
    txns = [
        make_txn(1, "expense", "100", date(2024, 1, 1)),
        make_txn(2, "expense", "900", date(2024, 1, 2), account_id=99),
    ]
    result = compute_balances(accounts, txns, "TRY")

    assert result.account_balances == {1: Decimal("900")}
    assert result.global_balance == Decimal("900")
    assert result.rows[1].account_balance is None
    assert result.rows[1].total_balance == Decimal("900")
    assert [w.code for w in result.warnings] == [WarningCode.ORPHANED_ACCOUNT]
    assert result.is_reconciled


def test_unassigned_row_affects_global_only():
    """Test a site-level row without an account is tracked as unassigned."""
    accounts = [make_account(1, "1000")]
    txns = [make_txn(1, "income", "50", date(2024, 1, 1), account_id=None)]
    result = compute_balances(accounts, txns, "TRY")

    assert result.account_balances == {1: Decimal("1000")}
    assert result.unassigned_balance == Decimal("50")
    assert result.global_balance == Decimal("1050")
    assert result.is_reconciled


def test_opaque_transfer_not_applied():
    """Test a transfer row with no account legs is shown but not applied."""
    accounts = [make_account(1, "1000")]
    txns = [make_txn(1, "transfer", "300", date(2024, 1, 1), account_id=None)]
    result = compute_balances(accounts, txns, "TRY")

    assert result.global_balance == Decimal("1000")
    assert len(result.rows) == 1
    assert result.rows[0].account_balance is None
    assert WarningCode.OPAQUE_TRANSFER in [w.code for w in result.warnings]
    assert "no account legs" in result.warnings[0].message


def test_transfer_without_direction_names_the_missing_direction():
    """Test a transfer leg with an account but no direction says what is missing."""
    accounts = [make_account(1, "1000")]
    txns = [make_txn(4, "transfer", "300", date(2024, 1, 1))]
    result = compute_balances(accounts, txns, "TRY")

    assert result.account_balances[1] == Decimal("1000")
    assert [w.code for w in result.warnings] == [WarningCode.OPAQUE_TRANSFER]
    message = result.warnings[0].message
    assert "no transfer direction" in message
    assert "account 1" in message
    assert "no account legs" not in message


def test_same_currency_transfer_moves_money_between_accounts():
    """Test a paired transfer leaves the global balance unchanged."""
    accounts = [make_account(1, "1000"), make_account(2, "0")]
    txns = [
        make_txn(1, "transfer", "300", date(2024, 1, 1), group="g", direction=TransferDirection.OUT),
        make_txn(2, "transfer", "300", date(2024, 1, 1), account_id=2, group="g",
                 direction=TransferDirection.IN),
    ]
    result = compute_balances(accounts, txns, "TRY")

    assert result.account_balances == {1: Decimal("700"), 2: Decimal("300")}
    assert result.global_balance == Decimal("1000")
    assert result.warnings == ()


def test_unpaired_transfer_leg_warns_but_applies():
    """Test a lone transfer leg is flagged and still moves its account."""
    accounts = [make_account(1, "1000")]
    txns = [make_txn(1, "transfer", "300", date(2024, 1, 1), group="g", direction=TransferDirection.OUT)]
    result = compute_balances(accounts, txns, "TRY")

    assert result.account_balances[1] == Decimal("700")
    assert [w.code for w in result.warnings] == [WarningCode.UNPAIRED_TRANSFER]


def test_currency_mismatch_excluded_from_balances():
    """Test a TRY row booked on a EUR account is flagged instead of credited as EUR."""
    accounts = [make_account(1, "10000"), make_account(2, "500", currency="EUR", rate="30")]
    txns = [make_txn(1, "income", "3700", date(2024, 1, 5), account_id=2)]
    result = compute_balances(accounts, txns, "TRY")

    assert result.account_balances == {1: Decimal("10000"), 2: Decimal("500")}
    assert result.global_balance == Decimal("25000")
    assert result.rows[0].account_balance is None
    assert [w.code for w in result.warnings] == [WarningCode.CURRENCY_MISMATCH]
    assert "is in TRY but account 2 holds EUR" in result.warnings[0].message
    assert result.is_reconciled


def test_cross_currency_atomic_transfer_not_applied():
    """Test a single-row TRY transfer into a EUR account moves neither side."""
    raw = {
        "id": 1,
        "entry_type": "transfer",
        "amount": "3700",
        "currency_code": "TRY",
        "exchange_rate": "1",
        "entry_date": "2024-01-05",
        "from_account_id": 1,
        "to_account_id": 2,
    }
    ingested = TransactionIngestionService("TRY").ingest([raw])
    accounts = [make_account(1, "10000"), make_account(2, "0", currency="EUR", rate="30")]
    result = compute_balances(accounts, ingested.transactions, "TRY")

    assert result.account_balances == {1: Decimal("10000"), 2: Decimal("0")}
    assert result.global_balance == Decimal("10000")
    assert all(row.account_balance is None for row in result.rows)
    assert [w.code for w in result.warnings] == [WarningCode.CURRENCY_MISMATCH] * 2
    assert result.is_reconciled


def test_matching_currency_legs_unaffected_by_other_mismatches():
    """Test a mismatched row elsewhere does not hold back a valid transfer."""
    accounts = [make_account(1, "1000"), make_account(2, "0"), make_account(3, "0", currency="EUR")]
    txns = [
        make_txn(1, "transfer", "300", date(2024, 1, 1), group="g", direction=TransferDirection.OUT),
        make_txn(2, "transfer", "300", date(2024, 1, 1), account_id=2, group="g",
                 direction=TransferDirection.IN),
        make_txn(3, "expense", "50", date(2024, 1, 2), account_id=3),
    ]
    result = compute_balances(accounts, txns, "TRY")

    assert result.account_balances == {1: Decimal("700"), 2: Decimal("300"), 3: Decimal("0")}
    assert [(w.code, w.record_id) for w in result.warnings] == [(WarningCode.CURRENCY_MISMATCH, 3)]


def test_check_reconciliation_raises_on_tampered_result():
    """Test a result whose balances disagree raises ReconciliationError."""
    accounts = [make_account(1, "1000")]
    result = compute_balances(accounts, [], "TRY")
    tampered = result.__class__(
        **{**result.__dict__, "global_balance": Decimal("999")}
    )
    with pytest.raises(ReconciliationError) as exc_info:
        check_reconciliation(tampered)
    assert exc_info.value.actual == Decimal("999")
    assert exc_info.value.expected == Decimal("1000")


def test_filter_rows_by_type_and_search_keeps_balances():
    """Test display filters drop rows without changing their balances."""
    accounts = [make_account(1, "1000")]
    txns = [
        make_txn(1, "expense", "100", date(2024, 1, 1), category="Electricity"),
        make_txn(2, "income", "50", date(2024, 1, 2), category="Dues"),
        make_txn(3, "expense", "10", date(2024, 1, 3), category="Water"),
    ]
    rows = compute_balances(accounts, txns, "TRY").rows

    expenses = filter_rows(rows, entry_type=EntryType.EXPENSE)
    assert [r.transaction.id for r in expenses] == [1, 3]
    assert expenses[1].total_balance == Decimal("940")

    found = filter_rows(rows, search="electric")
    assert [r.transaction.id for r in found] == [1]


def test_display_type_treats_legs_as_transfers():
    """Test expense/income legs of an FX transfer display as transfers."""
    leg = make_txn(1, "expense", "10", date(2024, 1, 1), group="g", direction=TransferDirection.OUT)
    assert display_type(leg) == EntryType.TRANSFER
    assert display_type(make_txn(2, "expense", "10", date(2024, 1, 1))) == EntryType.EXPENSE
