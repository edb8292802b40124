"""Tests for the summary service."""

import pytest
from datetime import date
from decimal import Decimal

from kturkey.domain.entities import EntryType
from kturkey.domain.errors import NotFoundError, ValidationError
from kturkey.domain.summary import month_keys


@pytest.fixture
def history(account_service, transaction_service, sample_site, sample_period, try_account, eur_account):
    """Entries spread over the first months of 2024, plus one from 2023."""
    cash_id = account_service.create_account(sample_site.id, "Cash box")
    add = transaction_service.create_entry
    add(sample_site.id, EntryType.INCOME, Decimal("1000"), date(2023, 12, 15), "Dues", try_account.id)
    add(sample_site.id, EntryType.EXPENSE, Decimal("300"), date(2024, 1, 10), "Electricity", try_account.id)
    add(sample_site.id, EntryType.INCOME, Decimal("500"), date(2024, 1, 12), "Dues", try_account.id)
    add(sample_site.id, EntryType.INCOME, Decimal("20"), date(2024, 2, 3), "Rent", eur_account.id,
        exchange_rate=Decimal("35"))
    add(sample_site.id, EntryType.EXPENSE, Decimal("150"), date(2024, 2, 20), "Cleaning", try_account.id)
    transaction_service.create_transfer(
        sample_site.id, try_account.id, cash_id, Decimal("250"), date(2024, 2, 25)
    )


def test_month_keys_cross_year():
    """Test month keys run across a year boundary."""
    assert month_keys(date(2023, 11, 15), date(2024, 2, 1)) == ("2023-11", "2023-12", "2024-01", "2024-02")


class TestMonthlySummary:
    """Tests for the month-by-category grid."""

    def test_grid(self, summary_service, sample_site, sample_period, history):
        """Test every month of the period is present and totals are per month."""
        summary = summary_service.monthly_summary(sample_site.id)

        assert summary.period_id == sample_period.id
        assert len(summary.months) == 12
        assert summary.months[0] == "2024-01"
        assert summary.income_by_category == {
            "Dues": {"2024-01": Decimal("500")},
            "Rent": {"2024-02": Decimal("700")},
        }
        assert summary.expense_by_category == {
            "Electricity": {"2024-01": Decimal("300")},
            "Cleaning": {"2024-02": Decimal("150")},
        }
        assert summary.net["2024-01"] == Decimal("200")
        assert summary.net["2024-02"] == Decimal("550")
        assert summary.net["2024-03"] == Decimal("0")

    def test_closing_balance_continues_from_history(self, summary_service, sample_site, history):
        """Test closing balances start from the balance carried into the period."""
        summary = summary_service.monthly_summary(sample_site.id)

        # 10000 TRY + 500 EUR at 30 + 1000 income in 2023
        assert summary.opening_balance == Decimal("26000")
        assert summary.closing_balance["2024-01"] == Decimal("26200")
        assert summary.closing_balance["2024-02"] == Decimal("26750")
        assert summary.closing_balance["2024-12"] == Decimal("26750")

    def test_rows_dated_outside_period_stay_out_of_grid(
        self, summary_service, ledger_service, temp_db, sample_site, sample_period, try_account, history
    ):
        """Test rows booked to the period but dated outside it never skew closing balances."""
        booked = dict(
            site_id=sample_site.id,
            currency_code="TRY",
            exchange_rate=Decimal("1"),
            account_id=try_account.id,
            fiscal_period_id=sample_period.id,
        )
        temp_db.create_ledger_entry(
            **booked, entry_type="income", category="Late dues", amount=Decimal("400"),
            amount_reporting=Decimal("400"), entry_date=date(2023, 12, 20),
        )
        temp_db.create_ledger_entry(
            **booked, entry_type="expense", category="Audit", amount=Decimal("100"),
            amount_reporting=Decimal("100"), entry_date=date(2025, 1, 10),
        )

        summary = summary_service.monthly_summary(sample_site.id)

        assert summary.months == month_keys(date(2024, 1, 1), date(2024, 12, 31))
        assert "Late dues" not in summary.income_by_category
        assert "Audit" not in summary.expense_by_category
        assert summary.opening_balance == Decimal("26400")
        assert summary.closing_balance["2024-02"] == Decimal("27150")
        assert summary.closing_balance["2024-12"] == Decimal("27150")
        assert ledger_service.get_ledger(sample_site.id).global_balance == Decimal("27050")

    def test_no_period(self, summary_service, sample_site):
        """Test a site without periods cannot be summarized."""
        with pytest.raises(ValidationError):
            summary_service.monthly_summary(sample_site.id)

    def test_unknown_period(self, summary_service, sample_site, sample_period):
        """Test an unknown period raises NotFoundError."""
        with pytest.raises(NotFoundError):
            summary_service.monthly_summary(sample_site.id, fiscal_period_id=999)


class TestCategoryTotals:
    """Tests for category totals."""

    def test_sorted_by_amount(self, summary_service, sample_site, history):
        """Test totals exclude transfers and sort largest first."""
        totals = summary_service.category_totals(sample_site.id)

        assert [(t.category, t.entry_type, t.amount) for t in totals] == [
            ("Rent", EntryType.INCOME, Decimal("700")),
            ("Dues", EntryType.INCOME, Decimal("500")),
            ("Electricity", EntryType.EXPENSE, Decimal("300")),
            ("Cleaning", EntryType.EXPENSE, Decimal("150")),
        ]
        assert all(t.count == 1 for t in totals)

    def test_type_filter(self, summary_service, sample_site, history):
        """Test totals can be limited to expenses."""
        totals = summary_service.category_totals(sample_site.id, entry_type=EntryType.EXPENSE)
        assert [t.category for t in totals] == ["Electricity", "Cleaning"]
