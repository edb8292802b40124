"""Mapper functions to convert SQLAlchemy models into domain values.

Ledger entries are not mapped to entities here: they leave the database as
raw records and become canonical transactions in the ingestion stage.
"""

from decimal import Decimal
from typing import Any

from kturkey.domain import entities as domain
from kturkey.database.models import (
    Site as ORMSite,
    FiscalPeriod as ORMFiscalPeriod,
    Account as ORMAccount,
    LedgerEntry as ORMLedgerEntry,
    Unit as ORMUnit,
    UnitDueRecord as ORMUnitDue,
    UnitPayment as ORMUnitPayment,
)


def _decimal(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def site_to_domain(orm_site: ORMSite) -> domain.Site:
    """Convert SQLAlchemy Site model to domain Site entity."""
    return domain.Site(
        id=orm_site.id,
        name=orm_site.name,
        default_currency=orm_site.default_currency,
        created_at=orm_site.created_at,
    )


def fiscal_period_to_domain(orm_period: ORMFiscalPeriod) -> domain.FiscalPeriod:
    """Convert SQLAlchemy FiscalPeriod model to domain FiscalPeriod entity."""
    return domain.FiscalPeriod(
        id=orm_period.id,
        site_id=orm_period.site_id,
        name=orm_period.name,
        start_date=orm_period.start_date,
        end_date=orm_period.end_date,
        status=domain.PeriodStatus(orm_period.status),
        created_at=orm_period.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        site_id=orm_account.site_id,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        currency_code=orm_account.currency_code,
        initial_balance=_decimal(orm_account.initial_balance),
        initial_exchange_rate=_decimal(orm_account.initial_exchange_rate),
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def ledger_entry_to_record(orm_entry: ORMLedgerEntry) -> dict[str, Any]:
    """Convert SQLAlchemy LedgerEntry model to a raw ledger record."""
    return {
        "id": orm_entry.id,
        "site_id": orm_entry.site_id,
        "fiscal_period_id": orm_entry.fiscal_period_id,
        "entry_type": orm_entry.entry_type,
        "category": orm_entry.category,
        "description": orm_entry.description,
        "vendor_name": orm_entry.vendor_name,
        "amount": orm_entry.amount,
        "currency_code": orm_entry.currency_code,
        "exchange_rate": orm_entry.exchange_rate,
        "amount_reporting": orm_entry.amount_reporting,
        "entry_date": orm_entry.entry_date,
        "account_id": orm_entry.account_id,
        "unit_id": orm_entry.unit_id,
        "payment_id": orm_entry.payment_id,
        "from_account_id": orm_entry.from_account_id,
        "to_account_id": orm_entry.to_account_id,
        "transfer_group_id": orm_entry.transfer_group_id,
        "transfer_direction": orm_entry.transfer_direction,
        "created_at": orm_entry.created_at,
    }


def unit_to_domain(orm_unit: ORMUnit) -> domain.Unit:
    """Convert SQLAlchemy Unit model to domain Unit entity."""
    return domain.Unit(
        id=orm_unit.id,
        site_id=orm_unit.site_id,
        unit_number=orm_unit.unit_number,
        currency_code=orm_unit.currency_code,
        opening_balance=_decimal(orm_unit.opening_balance),
        block=orm_unit.block,
        owner_name=orm_unit.owner_name,
        created_at=orm_unit.created_at,
    )


def unit_due_to_domain(orm_due: ORMUnitDue) -> domain.UnitDue:
    """Convert SQLAlchemy UnitDueRecord model to domain UnitDue entity."""
    return domain.UnitDue(
        id=orm_due.id,
        unit_id=orm_due.unit_id,
        due_date=orm_due.due_date,
        amount=_decimal(orm_due.amount),
        currency_code=orm_due.currency_code,
        description=orm_due.description,
        fiscal_period_id=orm_due.fiscal_period_id,
        created_at=orm_due.created_at,
    )


def unit_payment_to_domain(orm_payment: ORMUnitPayment) -> domain.UnitPayment:
    """Convert SQLAlchemy UnitPayment model to domain UnitPayment entity."""
    return domain.UnitPayment(
        id=orm_payment.id,
        unit_id=orm_payment.unit_id,
        payment_date=orm_payment.payment_date,
        amount=_decimal(orm_payment.amount),
        currency_code=orm_payment.currency_code,
        debt_exchange_rate=_decimal(orm_payment.debt_exchange_rate),
        reporting_exchange_rate=_decimal(orm_payment.reporting_exchange_rate),
        account_id=orm_payment.account_id,
        payment_method=orm_payment.payment_method,
        description=orm_payment.description,
        created_at=orm_payment.created_at,
    )
