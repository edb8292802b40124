"""Utility for resolving account names to IDs."""

from kturkey.domain.account import AccountService


def resolve_account(account_service: AccountService, site_id: int, account: str | int) -> int:
    """Resolve account name or ID to account ID within a site.

    Args:
        account_service: AccountService instance
        site_id: Site the account must belong to
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        ValueError: If account is not found
    """
    # Try to parse as integer (handles string IDs like "1")
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        account_obj = account_service.get_account(account_id)
        if account_obj is None or account_obj.site_id != site_id:
            raise ValueError(f"Account ID {account_id} not found")
        return account_id

    # Try to find by name, inactive accounts included so errors name the real problem
    for acc in account_service.list_accounts(site_id, include_inactive=True):
        if acc.name == account:
            return acc.id

    raise ValueError(f"Account '{account}' not found")
