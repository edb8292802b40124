"""SQLAlchemy models for kturkey database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

AMOUNT = Numeric(14, 2)
RATE = Numeric(18, 8)


class Site(Base):
    """Residential site model."""

    __tablename__ = "sites"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    default_currency = Column(String(3), nullable=False, default="TRY")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    fiscal_periods = relationship("FiscalPeriod", back_populates="site")
    accounts = relationship("Account", back_populates="site")
    units = relationship("Unit", back_populates="site")


class FiscalPeriod(Base):
    """Fiscal period model."""

    __tablename__ = "fiscal_periods"

    id = Column(Integer, primary_key=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="draft")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("site_id", "name", name="uq_site_period_name"),)

    # Relationships
    site = relationship("Site", back_populates="fiscal_periods")


class Account(Base):
    """Cash or bank account model.

    Accounts are deactivated rather than deleted so their history keeps
    replaying.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False, default="bank")
    currency_code = Column(String(3), nullable=False)
    initial_balance = Column(AMOUNT, nullable=False, default=0)
    initial_exchange_rate = Column(RATE, nullable=False, default=1)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("site_id", "name", name="uq_site_account_name"),)

    # Relationships
    site = relationship("Site", back_populates="accounts")


class LedgerEntry(Base):
    """Ledger entry model: income, expense, transfer leg or atomic transfer."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False)
    fiscal_period_id = Column(Integer, ForeignKey("fiscal_periods.id"), nullable=True)
    entry_type = Column(String, nullable=False)
    category = Column(String, nullable=True)
    description = Column(String, nullable=True)
    vendor_name = Column(String, nullable=True)
    amount = Column(AMOUNT, nullable=False)
    currency_code = Column(String(3), nullable=False)
    exchange_rate = Column(RATE, nullable=False, default=1)
    amount_reporting = Column(AMOUNT, nullable=False)
    entry_date = Column(Date, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=True)
    payment_id = Column(Integer, ForeignKey("unit_payments.id"), nullable=True)
    from_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    to_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    transfer_group_id = Column(String, nullable=True, index=True)
    transfer_direction = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    payment = relationship("UnitPayment", back_populates="ledger_entries")


class Unit(Base):
    """Residential unit model."""

    __tablename__ = "units"

    id = Column(Integer, primary_key=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False)
    unit_number = Column(String, nullable=False)
    block = Column(String, nullable=True)
    owner_name = Column(String, nullable=True)
    currency_code = Column(String(3), nullable=False)
    opening_balance = Column(AMOUNT, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        UniqueConstraint("site_id", "block", "unit_number", name="uq_site_unit_number"),
    )

    # Relationships
    site = relationship("Site", back_populates="units")
    dues = relationship("UnitDueRecord", back_populates="unit", cascade="all, delete-orphan")
    payments = relationship("UnitPayment", back_populates="unit", cascade="all, delete-orphan")


class UnitDueRecord(Base):
    """Due accrued against a unit."""

    __tablename__ = "unit_dues"

    id = Column(Integer, primary_key=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False)
    fiscal_period_id = Column(Integer, ForeignKey("fiscal_periods.id"), nullable=True)
    due_date = Column(Date, nullable=False)
    amount = Column(AMOUNT, nullable=False)
    currency_code = Column(String(3), nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    unit = relationship("Unit", back_populates="dues")


class UnitPayment(Base):
    """Payment received from a unit."""

    __tablename__ = "unit_payments"

    id = Column(Integer, primary_key=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False)
    payment_date = Column(Date, nullable=False)
    amount = Column(AMOUNT, nullable=False)
    currency_code = Column(String(3), nullable=False)
    debt_exchange_rate = Column(RATE, nullable=False, default=1)
    reporting_exchange_rate = Column(RATE, nullable=False, default=1)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    payment_method = Column(String, nullable=False, default="bank_transfer")
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    unit = relationship("Unit", back_populates="payments")
    ledger_entries = relationship("LedgerEntry", back_populates="payment")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
