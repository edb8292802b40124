"""Add ledger entry command."""

import click
from kturkey.cli.account_resolution import (
    resolve_account_or_exit,
    resolve_period_or_exit,
    resolve_site_or_exit,
)
from kturkey.cli.error_handling import handle_domain_error
from kturkey.cli.formatting import format_money
from kturkey.domain.account import AccountService
from kturkey.domain.entities import EntryType
from kturkey.domain.transaction import TransactionService
from kturkey.utils.amount_parser import parse_amount, parse_rate
from kturkey.utils.date_parser import parse_date


@click.command("add")
@click.option(
    "--type",
    "entry_type",
    type=click.Choice([EntryType.INCOME.value, EntryType.EXPENSE.value]),
    required=True,
)
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--date",
    required=True,
    help="Entry date (YYYY-MM-DD, DD.MM.YYYY or relative like 'today', 'yesterday')",
)
@click.option("--amount", required=True, help="Positive amount in the account currency")
@click.option("--category", required=True, help="Category, e.g. 'Electricity'")
@click.option("--rate", help="Rate to the site currency (required for foreign-currency accounts)")
@click.option("--description", help="Entry description")
@click.option("--vendor", help="Vendor or payer name")
@click.option("--unit", "unit_id", type=int, help="Linked unit ID")
@click.option("--period", help="Fiscal period name or ID (defaults to the period containing the date)")
@click.pass_context
def add_entry(
    ctx,
    entry_type: str,
    account: str,
    date: str,
    amount: str,
    category: str,
    rate: str | None,
    description: str | None,
    vendor: str | None,
    unit_id: int | None,
    period: str | None,
):
    """Add an income or expense entry.

    Examples:
        kturkey add --type expense --account Ziraat --date 2025-01-05 --amount 2000 --category Electricity
        kturkey add --type income --account "EUR account" --date today --amount 100 --category Rent --rate 36.2
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    account_service = AccountService(db)
    transaction_service = TransactionService(db)

    account_id = resolve_account_or_exit(ctx, account_service, site.id, account)
    account_obj = account_service.get_account(account_id)

    # Parse date
    try:
        entry_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    # Parse amount and rate
    try:
        entry_amount = parse_amount(amount)
        entry_rate = parse_rate(rate) if rate is not None else None
    except ValueError as e:
        click.echo(f"Error: Invalid number: {e}", err=True)
        ctx.exit(1)

    period_id = None
    if period is not None:
        period_id = resolve_period_or_exit(ctx, site.id, period).id

    try:
        entry_id = transaction_service.create_entry(
            site_id=site.id,
            entry_type=EntryType(entry_type),
            amount=entry_amount,
            entry_date=entry_date,
            category=category,
            account_id=account_id,
            exchange_rate=entry_rate,
            description=description,
            vendor_name=vendor,
            unit_id=unit_id,
            fiscal_period_id=period_id,
        )
        click.echo(f"Created {entry_type} {entry_id}")
        click.echo(f"  Account: {account_obj.name}")
        click.echo(f"  Date: {entry_date}")
        click.echo(f"  Amount: {format_money(entry_amount, account_obj.currency_code)}")
        click.echo(f"  Category: {category}")
        if description:
            click.echo(f"  Description: {description}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_entry)
