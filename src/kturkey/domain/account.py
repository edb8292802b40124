"""Account domain service."""

from decimal import Decimal
from typing import Optional

from kturkey.database.base import Database
from kturkey.domain.entities import Account as AccountEntity, AccountType
from kturkey.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    rate_not_positive,
    site_not_found,
)
from kturkey.domain.ledger import LedgerService
from kturkey.domain.site import validate_currency_code


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_unique_name(self, site_id: int, name: str, exclude_id: Optional[int] = None) -> None:
        for acc in self.db.list_accounts(site_id, include_inactive=True):
            if acc.id != exclude_id and acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

    def create_account(
        self,
        site_id: int,
        name: str,
        account_type: AccountType = AccountType.BANK,
        currency_code: Optional[str] = None,
        initial_balance: Decimal = Decimal("0"),
        initial_exchange_rate: Decimal = Decimal("1"),
    ) -> int:
        """Create a new account.

        Args:
            site_id: Site the account belongs to
            name: Account name
            account_type: Bank or cash
            currency_code: Native currency; the site's reporting currency if None
            initial_balance: Opening balance in the native currency
            initial_exchange_rate: Native-to-reporting rate for the opening
                balance; forced to 1 when the account is in the reporting currency

        Returns:
            Account ID

        Raises:
            NotFoundError: If the site doesn't exist
            ValidationError: If name, currency or rate is invalid
            ConflictError: If account name already exists on the site
        """
        site = self.db.get_site(site_id)
        if site is None:
            raise NotFoundError(site_not_found(site_id))

        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required")
        currency = validate_currency_code(currency_code or site.default_currency)
        initial_balance = Decimal(str(initial_balance))
        initial_exchange_rate = Decimal(str(initial_exchange_rate))

        if currency == site.default_currency:
            initial_exchange_rate = Decimal("1")
        elif initial_exchange_rate <= 0:
            raise ValidationError(rate_not_positive(initial_exchange_rate))

        self._check_unique_name(site_id, name)

        return self.db.create_account(
            site_id=site_id,
            name=name,
            account_type=AccountType(account_type).value,
            currency_code=currency,
            initial_balance=initial_balance,
            initial_exchange_rate=initial_exchange_rate,
        )

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, site_id: int, include_inactive: bool = False) -> list[AccountEntity]:
        """List accounts of a site.

        Args:
            site_id: Site ID
            include_inactive: If True, deactivated accounts are listed too

        Returns:
            List of account entities
        """
        return self.db.list_accounts(site_id, include_inactive=include_inactive)

    def list_with_balances(
        self, site_id: int, include_inactive: bool = False
    ) -> list[tuple[AccountEntity, Decimal]]:
        """List accounts with their replayed native balance.

        Balances always come from the full history, inactive accounts'
        transactions included, even when those accounts aren't listed.
        """
        balances = LedgerService(self.db).get_account_balances(site_id)
        return [
            (account, balances.get(account.id, account.initial_balance))
            for account in self.list_accounts(site_id, include_inactive=include_inactive)
        ]

    def rename_account(self, account_id: int, name: str) -> None:
        """Rename an account.

        Args:
            account_id: Account ID to rename
            name: New account name

        Raises:
            NotFoundError: If account not found
            ValidationError: If the name is empty
            ConflictError: If name already exists on the site
        """
        account = self.require_account(account_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required")

        self._check_unique_name(account.site_id, name, exclude_id=account_id)
        self.db.update_account(account_id=account_id, name=name)

    def set_initial_balance(
        self,
        account_id: int,
        initial_balance: Decimal,
        initial_exchange_rate: Optional[Decimal] = None,
    ) -> None:
        """Adjust an account's opening balance and, for foreign accounts, its rate.

        Raises:
            NotFoundError: If account not found
            ValidationError: If the rate is not positive
        """
        account = self.require_account(account_id)
        site = self.db.get_site(account.site_id)
        if initial_exchange_rate is not None:
            initial_exchange_rate = Decimal(str(initial_exchange_rate))
            if site is not None and account.currency_code == site.default_currency:
                initial_exchange_rate = Decimal("1")
            elif initial_exchange_rate <= 0:
                raise ValidationError(rate_not_positive(initial_exchange_rate))
        self.db.update_account(
            account_id=account_id,
            initial_balance=Decimal(str(initial_balance)),
            initial_exchange_rate=initial_exchange_rate,
        )

    def deactivate_account(self, account_id: int) -> None:
        """Deactivate an account.

        The account keeps its history, which still counts towards balances,
        but it can no longer take new transactions.

        Raises:
            NotFoundError: If account not found
        """
        self.require_account(account_id)
        self.db.set_account_active(account_id, False)

    def reactivate_account(self, account_id: int) -> None:
        """Reactivate a deactivated account.

        Raises:
            NotFoundError: If account not found
        """
        self.require_account(account_id)
        self.db.set_account_active(account_id, True)
