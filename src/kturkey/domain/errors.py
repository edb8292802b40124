"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class ReconciliationError(DomainError):
    """Replayed global balance disagrees with the conservation invariant."""

    def __init__(self, expected: Decimal, actual: Decimal, by_account: Decimal):
        self.expected = expected
        self.actual = actual
        self.by_account = by_account
        super().__init__(
            f"Ledger does not reconcile: global balance {actual} but opening balance "
            f"plus transactions gives {expected} and accounts sum to {by_account}"
        )


def site_not_found(site_id: int) -> str:
    """Return message for missing site."""
    return f"Site {site_id} not found"


def period_not_found(period_id: int) -> str:
    """Return message for missing fiscal period."""
    return f"Fiscal period {period_id} not found"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_inactive(account_id: int) -> str:
    """Return message for posting to a deactivated account."""
    return f"Account {account_id} is inactive and cannot take new transactions"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing ledger entry."""
    return f"Transaction {transaction_id} not found"


def unit_not_found(unit_id: int) -> str:
    """Return message for missing unit."""
    return f"Unit {unit_id} not found"


def invalid_currency(code: str) -> str:
    """Return message for a malformed ISO currency code."""
    return f"Invalid currency code '{code}': expected three letters such as TRY or EUR"


def amount_not_positive(amount: Decimal) -> str:
    """Return message for zero or negative amounts."""
    return f"Amount must be greater than zero, got {amount}"


def rate_not_positive(rate: Decimal) -> str:
    """Return message for zero or negative exchange rates."""
    return f"Exchange rate must be greater than zero, got {rate}"
