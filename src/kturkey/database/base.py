"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from kturkey.domain.entities import (
    Site,
    FiscalPeriod,
    Account,
    Unit,
    UnitDue,
    UnitPayment,
)


class Database(ABC):
    """Abstract database interface for kturkey."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Site operations
    @abstractmethod
    def create_site(self, name: str, default_currency: str) -> int:
        """Create a site. Returns site ID."""
        pass

    @abstractmethod
    def get_site(self, site_id: int) -> Optional[Site]:
        """Get site by ID."""
        pass

    @abstractmethod
    def list_sites(self) -> list[Site]:
        """List all sites."""
        pass

    # Fiscal period operations
    @abstractmethod
    def create_fiscal_period(
        self, site_id: int, name: str, start_date: date, end_date: date, status: str
    ) -> int:
        """Create a fiscal period. Returns period ID."""
        pass

    @abstractmethod
    def get_fiscal_period(self, period_id: int) -> Optional[FiscalPeriod]:
        """Get fiscal period by ID."""
        pass

    @abstractmethod
    def list_fiscal_periods(self, site_id: int) -> list[FiscalPeriod]:
        """List fiscal periods of a site, most recent start date first."""
        pass

    @abstractmethod
    def update_fiscal_period_status(self, period_id: int, status: str) -> None:
        """Set the status of a fiscal period."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        site_id: int,
        name: str,
        account_type: str,
        currency_code: str,
        initial_balance: Decimal,
        initial_exchange_rate: Decimal,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, site_id: int, include_inactive: bool = True) -> list[Account]:
        """List accounts of a site in creation order."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        initial_balance: Optional[Decimal] = None,
        initial_exchange_rate: Optional[Decimal] = None,
    ) -> None:
        """Update account fields that are not None."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    # Ledger operations
    @abstractmethod
    def create_ledger_entry(self, **fields: Any) -> int:
        """Create a ledger entry from column values. Returns entry ID."""
        pass

    @abstractmethod
    def create_transfer_legs(
        self, out_leg: dict[str, Any], in_leg: dict[str, Any]
    ) -> tuple[int, int]:
        """Create both legs of a transfer in one transaction. Returns both IDs."""
        pass

    @abstractmethod
    def get_ledger_record(self, entry_id: int) -> Optional[dict[str, Any]]:
        """Get a raw ledger record by ID."""
        pass

    @abstractmethod
    def list_ledger_records(self, site_id: int) -> list[dict[str, Any]]:
        """List the full ledger history of a site as raw records.

        Returned unfiltered by period on purpose: balances need every row
        since each account's opening.
        """
        pass

    @abstractmethod
    def update_ledger_entry(self, entry_id: int, **fields: Any) -> None:
        """Update the given columns of a ledger entry."""
        pass

    @abstractmethod
    def delete_ledger_entries(self, entry_ids: list[int]) -> None:
        """Delete ledger entries in one transaction."""
        pass

    @abstractmethod
    def list_transfer_group(self, transfer_group_id: str) -> list[dict[str, Any]]:
        """List the raw records sharing a transfer group."""
        pass

    # Unit operations
    @abstractmethod
    def create_unit(
        self,
        site_id: int,
        unit_number: str,
        currency_code: str,
        opening_balance: Decimal,
        block: Optional[str] = None,
        owner_name: Optional[str] = None,
    ) -> int:
        """Create a unit. Returns unit ID."""
        pass

    @abstractmethod
    def get_unit(self, unit_id: int) -> Optional[Unit]:
        """Get unit by ID."""
        pass

    @abstractmethod
    def list_units(self, site_id: int) -> list[Unit]:
        """List units of a site."""
        pass

    @abstractmethod
    def create_unit_due(
        self,
        unit_id: int,
        due_date: date,
        amount: Decimal,
        currency_code: str,
        description: Optional[str] = None,
        fiscal_period_id: Optional[int] = None,
    ) -> int:
        """Create a due for a unit. Returns due ID."""
        pass

    @abstractmethod
    def list_unit_dues(self, unit_id: int) -> list[UnitDue]:
        """List all dues of a unit."""
        pass

    @abstractmethod
    def create_unit_payment(
        self, payment: dict[str, Any], ledger_entry: dict[str, Any]
    ) -> tuple[int, int]:
        """Create a payment and its income ledger entry in one transaction.

        Returns:
            Tuple of (payment ID, ledger entry ID)
        """
        pass

    @abstractmethod
    def list_unit_payments(self, unit_id: int) -> list[UnitPayment]:
        """List all payments of a unit."""
        pass
