"""Transaction management commands."""

import click
from kturkey.cli.account_resolution import resolve_account_or_exit, resolve_site_or_exit
from kturkey.cli.error_handling import handle_domain_error
from kturkey.domain.account import AccountService
from kturkey.domain.transaction import TransactionService
from kturkey.utils.amount_parser import parse_amount, parse_rate
from kturkey.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Edit or delete ledger entries."""
    pass


@transaction_group.command("edit")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--date", help="Entry date")
@click.option("--amount", help="Positive amount")
@click.option("--category", help="Category")
@click.option("--description", help="Description")
@click.option("--vendor", help="Vendor or payer name")
@click.option("--rate", help="Rate to the site currency")
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: int,
    account: str | None,
    date: str | None,
    amount: str | None,
    category: str | None,
    description: str | None,
    vendor: str | None,
    rate: str | None,
) -> None:
    """Edit a ledger entry.

    Updates only the fields that are provided. Transfers accept only
    --date and --description, applied to both legs.

    Examples:
        kturkey transaction edit 12 --amount 2100
        kturkey transaction edit 12 --category Water --date 2025-01-06
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    transaction_service = TransactionService(db)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), site.id, account)

    try:
        entry_date = parse_date(date) if date is not None else None
        entry_amount = parse_amount(amount) if amount is not None else None
        entry_rate = parse_rate(rate) if rate is not None else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    record = transaction_service.get_entry(transaction_id)
    if record is None or record["site_id"] != site.id:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    try:
        transaction_service.update_entry(
            entry_id=transaction_id,
            amount=entry_amount,
            category=category,
            entry_date=entry_date,
            description=description,
            vendor_name=vendor,
            exchange_rate=entry_rate,
            account_id=account_id,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a ledger entry.

    Deleting one leg of a transfer deletes the whole transfer.

    Examples:
        kturkey transaction delete 12
        kturkey transaction delete 12 --yes
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    transaction_service = TransactionService(db)

    record = transaction_service.get_entry(transaction_id)
    if record is None or record["site_id"] != site.id:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        deleted = transaction_service.delete_entry(transaction_id)
        click.echo(f"Deleted transaction{'s' if len(deleted) != 1 else ''} {', '.join(map(str, deleted))}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
