"""Domain model entities for kturkey.

These are pure data classes representing business concepts, independent of
database schema. Balances are never stored on them: every balance in the
system is derived by replaying transactions (see ``kturkey.domain.replay``).
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class EntryType(str, Enum):
    """Kind of money movement recorded on the ledger."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransferDirection(str, Enum):
    """Which side of a transfer a leg represents."""

    OUT = "out"
    IN = "in"


class AccountType(str, Enum):
    """Cash or bank holding point."""

    BANK = "bank"
    CASH = "cash"


class PeriodStatus(str, Enum):
    """Fiscal period lifecycle."""

    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


class DueStatus(str, Enum):
    """Settlement state of a single unit due."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class WarningCode(str, Enum):
    """Data-quality problems that are recovered from locally."""

    MISSING_RATE = "missing_rate"
    ORPHANED_ACCOUNT = "orphaned_account"
    MALFORMED_RECORD = "malformed_record"
    UNPAIRED_TRANSFER = "unpaired_transfer"
    OPAQUE_TRANSFER = "opaque_transfer"
    CURRENCY_MISMATCH = "currency_mismatch"


@dataclass(frozen=True)
class Site:
    """Residential site; its default currency is the reporting currency."""

    id: int
    name: str
    default_currency: str
    created_at: datetime


@dataclass(frozen=True)
class FiscalPeriod:
    """Fiscal period domain entity."""

    id: int
    site_id: int
    name: str
    start_date: date
    end_date: date
    status: PeriodStatus
    created_at: datetime

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class Account:
    """Cash or bank account domain entity.

    ``initial_exchange_rate`` converts the initial balance into the
    reporting currency and is only meaningful for foreign-currency accounts.
    """

    id: int
    site_id: int
    name: str
    account_type: AccountType
    currency_code: str
    initial_balance: Decimal
    initial_exchange_rate: Decimal = Decimal("1")
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Canonical transaction, the single shape the replay engine consumes.

    ``amount`` is always non-negative and in ``currency_code``; the sign is
    implied by ``entry_type`` (and ``transfer_direction`` for transfer legs).
    ``amount_reporting`` is ``amount * exchange_rate`` unless the native
    currency is the reporting currency, in which case it equals ``amount``.
    """

    id: int
    site_id: int
    entry_type: EntryType
    amount: Decimal
    currency_code: str
    exchange_rate: Decimal
    amount_reporting: Decimal
    entry_date: date
    created_at: Optional[datetime] = None
    fiscal_period_id: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    account_id: Optional[int] = None
    unit_id: Optional[int] = None
    payment_id: Optional[int] = None
    transfer_group_id: Optional[str] = None
    transfer_direction: Optional[TransferDirection] = None

    @property
    def is_transfer_leg(self) -> bool:
        return self.transfer_group_id is not None and self.transfer_direction is not None


@dataclass(frozen=True)
class Unit:
    """Residential unit with its own debt ledger."""

    id: int
    site_id: int
    unit_number: str
    currency_code: str
    opening_balance: Decimal
    block: Optional[str] = None
    owner_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def label(self) -> str:
        if self.block:
            return f"{self.block}-{self.unit_number}"
        return self.unit_number


@dataclass(frozen=True)
class UnitDue:
    """Charge accrued against a unit, in its own currency."""

    id: int
    unit_id: int
    due_date: date
    amount: Decimal
    currency_code: str
    description: Optional[str] = None
    fiscal_period_id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class UnitPayment:
    """Credit applied against a unit's debt ledger.

    Two rates are kept apart on purpose: ``debt_exchange_rate`` converts the
    payment into the unit's debt currency, ``reporting_exchange_rate``
    converts it into the site's reporting currency for the account ledger.
    """

    id: int
    unit_id: int
    payment_date: date
    amount: Decimal
    currency_code: str
    debt_exchange_rate: Decimal = Decimal("1")
    reporting_exchange_rate: Decimal = Decimal("1")
    account_id: Optional[int] = None
    payment_method: str = "bank_transfer"
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class DataQualityWarning:
    """Non-fatal problem found while ingesting, normalizing or replaying."""

    code: WarningCode
    message: str
    record_id: Optional[int] = None


@dataclass(frozen=True)
class IngestionResult:
    """Canonical transactions plus what was skipped on the way."""

    transactions: tuple[Transaction, ...]
    skipped: int = 0
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True)
class LedgerRow:
    """Transaction annotated with the balances right after it was applied.

    ``account_balance`` is in the account's native currency and is None when
    the transaction did not touch an account; ``total_balance`` is the global
    balance in the reporting currency.
    """

    transaction: Transaction
    account_balance: Optional[Decimal]
    total_balance: Decimal


@dataclass(frozen=True)
class BalanceResult:
    """Outcome of replaying a full transaction history."""

    reporting_currency: str
    opening_balance: Decimal
    account_balances: dict[int, Decimal]
    account_reporting_balances: dict[int, Decimal]
    unassigned_balance: Decimal
    global_balance: Decimal
    rows: tuple[LedgerRow, ...]
    applied_reporting_total: Decimal
    warnings: tuple[DataQualityWarning, ...] = ()

    @property
    def expected_global_balance(self) -> Decimal:
        """Opening balance plus the signed reporting amount of every applied row."""
        return self.opening_balance + self.applied_reporting_total

    @property
    def is_reconciled(self) -> bool:
        by_account = sum(self.account_reporting_balances.values(), Decimal("0"))
        return (
            self.global_balance == self.expected_global_balance
            and self.global_balance == by_account + self.unassigned_balance
        )


@dataclass(frozen=True)
class LedgerView:
    """Display-ready ledger for a site: replayed, then filtered."""

    site_id: int
    reporting_currency: str
    rows: tuple[LedgerRow, ...]
    opening_balance: Decimal
    total_income: Decimal
    total_expense: Decimal
    global_balance: Decimal
    account_balances: dict[int, Decimal]
    warnings: tuple[DataQualityWarning, ...] = ()
    skipped: int = 0

    @property
    def net_balance(self) -> Decimal:
        return self.opening_balance + self.total_income - self.total_expense


@dataclass(frozen=True)
class StatementRow:
    """One accrual or payment on a unit statement."""

    id: int
    date: date
    kind: str
    description: str
    amount_debt: Decimal
    amount_paid: Decimal
    running_balance: Decimal
    native_amount: Optional[Decimal] = None
    native_currency: Optional[str] = None


@dataclass(frozen=True)
class StatementSummary:
    """Totals for a unit statement, in the unit's debt currency."""

    opening_balance: Decimal
    total_accrued: Decimal
    total_paid: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class DueAllocation:
    """How much of one due has been settled by payments."""

    due: UnitDue
    paid_amount: Decimal
    status: DueStatus

    @property
    def remaining(self) -> Decimal:
        return self.due.amount - self.paid_amount


@dataclass(frozen=True)
class UnitStatement:
    """Resident statement for one unit."""

    unit_id: int
    currency_code: str
    rows: tuple[StatementRow, ...]
    summary: StatementSummary
    allocations: tuple[DueAllocation, ...] = ()
    overpayment: Decimal = Decimal("0")
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True)
class CategoryTotal:
    """Reporting-currency total for one ledger category."""

    category: str
    entry_type: EntryType
    amount: Decimal
    count: int


@dataclass(frozen=True)
class MonthlySummary:
    """Income/expense grid for a fiscal period, keyed by ``YYYY-MM``."""

    period_id: int
    months: tuple[str, ...]
    income_by_category: dict[str, dict[str, Decimal]]
    expense_by_category: dict[str, dict[str, Decimal]]
    income: dict[str, Decimal]
    expense: dict[str, Decimal]
    net: dict[str, Decimal]
    closing_balance: dict[str, Decimal]
    opening_balance: Decimal = Decimal("0")
    warnings: tuple[DataQualityWarning, ...] = field(default_factory=tuple)
