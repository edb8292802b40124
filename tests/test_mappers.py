"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from kturkey.database.models import (
    Site as ORMSite,
    FiscalPeriod as ORMFiscalPeriod,
    Account as ORMAccount,
    LedgerEntry as ORMLedgerEntry,
    Unit as ORMUnit,
    UnitDueRecord as ORMUnitDue,
    UnitPayment as ORMUnitPayment,
)
from kturkey.database.mappers import (
    site_to_domain,
    fiscal_period_to_domain,
    account_to_domain,
    ledger_entry_to_record,
    unit_to_domain,
    unit_due_to_domain,
    unit_payment_to_domain,
)
from kturkey.domain.entities import (
    Account,
    AccountType,
    FiscalPeriod,
    PeriodStatus,
    Site,
    Unit,
    UnitDue,
    UnitPayment,
)


class TestSiteMappers:
    """Tests for site and period mappers."""

    def test_site_to_domain(self):
        """Test converting ORM Site to domain Site."""
        orm_site = ORMSite(id=1, name="Palm Residence", default_currency="TRY", created_at=datetime.now(UTC))
        site = site_to_domain(orm_site)

        assert isinstance(site, Site)
        assert site.name == "Palm Residence"
        assert site.default_currency == "TRY"
        assert site.created_at == orm_site.created_at

    def test_fiscal_period_to_domain(self):
        """Test the status string becomes a PeriodStatus."""
        orm_period = ORMFiscalPeriod(
            id=3,
            site_id=1,
            name="2024",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
            status="closed",
            created_at=datetime.now(UTC),
        )
        period = fiscal_period_to_domain(orm_period)

        assert isinstance(period, FiscalPeriod)
        assert period.status == PeriodStatus.CLOSED
        assert period.contains(date(2024, 6, 1))


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test numeric columns come back as Decimal."""
        orm_account = ORMAccount(
            id=1,
            site_id=1,
            name="Cash box",
            account_type="cash",
            currency_code="EUR",
            initial_balance=250.5,
            initial_exchange_rate="31.25",
            is_active=False,
            created_at=datetime.now(UTC),
        )
        account = account_to_domain(orm_account)

        assert isinstance(account, Account)
        assert account.account_type == AccountType.CASH
        assert account.initial_balance == Decimal("250.5")
        assert account.initial_exchange_rate == Decimal("31.25")
        assert account.is_active is False


class TestLedgerEntryMapper:
    """Tests for the raw ledger record mapper."""

    def test_ledger_entry_to_record(self):
        """Test every column is carried into the raw record."""
        orm_entry = ORMLedgerEntry(
            id=9,
            site_id=1,
            fiscal_period_id=None,
            entry_type="transfer",
            category="Transfer",
            description="Move to cash",
            vendor_name=None,
            amount=Decimal("100"),
            currency_code="TRY",
            exchange_rate=Decimal("1"),
            amount_reporting=Decimal("100"),
            entry_date=date(2024, 1, 5),
            account_id=2,
            unit_id=None,
            payment_id=None,
            from_account_id=None,
            to_account_id=None,
            transfer_group_id="abc",
            transfer_direction="out",
            created_at=datetime.now(UTC),
        )
        record = ledger_entry_to_record(orm_entry)

        assert record["id"] == 9
        assert record["transfer_group_id"] == "abc"
        assert record["transfer_direction"] == "out"
        assert record["account_id"] == 2
        assert record["entry_date"] == date(2024, 1, 5)
        assert set(record) >= {"from_account_id", "to_account_id", "payment_id", "created_at"}


class TestUnitMappers:
    """Tests for unit, due and payment mappers."""

    def test_unit_to_domain(self):
        """Test converting ORM Unit to domain Unit."""
        orm_unit = ORMUnit(
            id=4,
            site_id=1,
            unit_number="12",
            block="A",
            owner_name="Ayse Yilmaz",
            currency_code="EUR",
            opening_balance=Decimal("-40"),
            created_at=datetime.now(UTC),
        )
        unit = unit_to_domain(orm_unit)

        assert isinstance(unit, Unit)
        assert unit.label == "A-12"
        assert unit.opening_balance == Decimal("-40")

    def test_unit_due_to_domain(self):
        """Test converting ORM due to domain UnitDue."""
        orm_due = ORMUnitDue(
            id=5,
            unit_id=4,
            fiscal_period_id=3,
            due_date=date(2024, 2, 1),
            amount=Decimal("100"),
            currency_code="EUR",
            description="February",
            created_at=datetime.now(UTC),
        )
        due = unit_due_to_domain(orm_due)

        assert isinstance(due, UnitDue)
        assert due.amount == Decimal("100")
        assert due.fiscal_period_id == 3

    def test_unit_payment_to_domain(self):
        """Test both payment rates are kept apart."""
        orm_payment = ORMUnitPayment(
            id=6,
            unit_id=4,
            payment_date=date(2024, 2, 10),
            amount=Decimal("3700"),
            currency_code="TRY",
            debt_exchange_rate=Decimal("0.027"),
            reporting_exchange_rate=Decimal("1"),
            account_id=2,
            payment_method="cash",
            description=None,
            created_at=datetime.now(UTC),
        )
        payment = unit_payment_to_domain(orm_payment)

        assert isinstance(payment, UnitPayment)
        assert payment.debt_exchange_rate == Decimal("0.027")
        assert payment.reporting_exchange_rate == Decimal("1")
        assert payment.payment_method == "cash"
