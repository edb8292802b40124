"""Account management commands."""

import click
from decimal import Decimal
from kturkey.cli.account_resolution import resolve_account_or_exit, resolve_site_or_exit
from kturkey.cli.error_handling import handle_domain_error
from kturkey.cli.formatting import format_money
from kturkey.domain.account import AccountService
from kturkey.domain.entities import AccountType
from kturkey.utils.amount_parser import parse_amount, parse_rate


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    default="bank",
    show_default=True,
)
@click.option("--currency", help="Account currency (defaults to the site currency)")
@click.option("--initial-balance", default="0", help="Opening balance in the account currency")
@click.option(
    "--initial-rate",
    help="Rate converting the opening balance to the site currency (foreign accounts only)",
)
@click.pass_context
def create_account(
    ctx,
    name: str,
    account_type: str,
    currency: str | None,
    initial_balance: str,
    initial_rate: str | None,
):
    """Create a new account.

    Examples:
        kturkey account create "Ziraat" --initial-balance 10000
        kturkey account create "Cash box" --type cash
        kturkey account create "EUR account" --currency EUR --initial-balance 500 --initial-rate 35.5
    """
    site = resolve_site_or_exit(ctx)
    service = AccountService(ctx.obj["db"])
    try:
        balance = parse_amount(initial_balance)
        rate = parse_rate(initial_rate) if initial_rate is not None else Decimal("1")
        account_id = service.create_account(
            site_id=site.id,
            name=name,
            account_type=AccountType(account_type),
            currency_code=currency,
            initial_balance=balance,
            initial_exchange_rate=rate,
        )
        account = service.get_account(account_id)
        click.echo(f"Created account '{name}' (ID: {account_id})")
        click.echo(f"  Opening balance: {format_money(balance, account.currency_code)}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts with their current balances."""
    site = resolve_site_or_exit(ctx)
    service = AccountService(ctx.obj["db"])
    try:
        accounts = service.list_with_balances(site.id, include_inactive=include_inactive)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc, balance in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type.value:4s} | "
            f"{format_money(balance, acc.currency_code):>20s}{status}"
        )


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.

    Examples:
        kturkey account rename "Ziraat" "Ziraat TRY"
    """
    site = resolve_site_or_exit(ctx)
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, site.id, account)
    try:
        service.rename_account(account_id=account_id, name=new_name)
        click.echo(f"Renamed account to '{new_name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Deactivate an account.

    ACCOUNT can be an account name or ID. Its history is kept and still
    counts towards balances, but it cannot take new transactions.
    """
    site = resolve_site_or_exit(ctx)
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, site.id, account)
    try:
        service.deactivate_account(account_id)
        click.echo(f"Deactivated account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
