"""Shared pytest fixtures for kturkey tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest
from click.testing import CliRunner

from kturkey.database.factories import create_sqlite_database
from kturkey.domain.account import AccountService
from kturkey.domain.entities import AccountType, PeriodStatus
from kturkey.domain.fiscal_period import FiscalPeriodService
from kturkey.domain.ledger import LedgerService
from kturkey.domain.site import SiteService
from kturkey.domain.statement import StatementService
from kturkey.domain.summary import SummaryService
from kturkey.domain.transaction import TransactionService
from kturkey.domain.unit import UnitService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def site_service(temp_db):
    """Create a SiteService with a temporary database."""
    return SiteService(temp_db)


@pytest.fixture
def period_service(temp_db):
    """Create a FiscalPeriodService with a temporary database."""
    return FiscalPeriodService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def unit_service(temp_db):
    """Create a UnitService with a temporary database."""
    return UnitService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def statement_service(temp_db):
    """Create a StatementService with a temporary database."""
    return StatementService(temp_db)


@pytest.fixture
def summary_service(temp_db):
    """Create a SummaryService with a temporary database."""
    return SummaryService(temp_db)


@pytest.fixture
def sample_site(site_service):
    """Create a TRY-reporting site."""
    site_id = site_service.create_site(name="Palm Residence", default_currency="TRY")
    return site_service.get_site(site_id)


@pytest.fixture
def sample_period(period_service, sample_site):
    """Create an active 2024 fiscal period."""
    period_id = period_service.create_period(
        site_id=sample_site.id,
        name="2024",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        status=PeriodStatus.ACTIVE,
    )
    return period_service.get_period(period_id)


@pytest.fixture
def try_account(account_service, sample_site):
    """Create a TRY bank account with 10,000 opening balance."""
    account_id = account_service.create_account(
        site_id=sample_site.id,
        name="Ziraat",
        account_type=AccountType.BANK,
        currency_code="TRY",
        initial_balance=Decimal("10000"),
    )
    return account_service.get_account(account_id)


@pytest.fixture
def eur_account(account_service, sample_site):
    """Create a EUR bank account with 500 EUR opening balance at 30 TRY/EUR."""
    account_id = account_service.create_account(
        site_id=sample_site.id,
        name="Euro Account",
        account_type=AccountType.BANK,
        currency_code="EUR",
        initial_balance=Decimal("500"),
        initial_exchange_rate=Decimal("30"),
    )
    return account_service.get_account(account_id)


@pytest.fixture
def cli_runner():
    """Create a CLI runner for testing."""
    return CliRunner()
