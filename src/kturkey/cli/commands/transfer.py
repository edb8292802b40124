"""Transfer command."""

import click
from kturkey.cli.account_resolution import resolve_account_or_exit, resolve_site_or_exit
from kturkey.cli.error_handling import handle_domain_error
from kturkey.cli.formatting import format_money
from kturkey.domain.account import AccountService
from kturkey.domain.transaction import TransactionService
from kturkey.utils.amount_parser import parse_amount, parse_rate
from kturkey.utils.date_parser import parse_date


@click.command("transfer")
@click.option("--from", "from_account", required=True, help="Source account name or ID")
@click.option("--to", "to_account", required=True, help="Destination account name or ID")
@click.option("--amount", required=True, help="Amount sent, in the source currency")
@click.option("--date", required=True, help="Transfer date")
@click.option("--received", help="Amount received, in the destination currency")
@click.option("--rate", help="Destination units per source unit")
@click.option(
    "--reporting-rate",
    help="Source currency to site currency rate (when the source is a foreign account)",
)
@click.option("--description", help="Transfer description")
@click.pass_context
def transfer(
    ctx,
    from_account: str,
    to_account: str,
    amount: str,
    date: str,
    received: str | None,
    rate: str | None,
    reporting_rate: str | None,
    description: str | None,
):
    """Move money between two accounts.

    For accounts in different currencies give either --received or --rate
    (received = amount x rate).

    Examples:
        kturkey transfer --from Ziraat --to "Cash box" --amount 1500 --date today
        kturkey transfer --from Ziraat --to "EUR account" --amount 3700 --rate 0.027 --date today
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    account_service = AccountService(db)
    source_id = resolve_account_or_exit(ctx, account_service, site.id, from_account)
    target_id = resolve_account_or_exit(ctx, account_service, site.id, to_account)

    try:
        transfer_date = parse_date(date)
        sent = parse_amount(amount)
        received_amount = parse_amount(received) if received is not None else None
        fx_rate = parse_rate(rate) if rate is not None else None
        source_rate = parse_rate(reporting_rate) if reporting_rate is not None else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        group_id = TransactionService(db).create_transfer(
            site_id=site.id,
            from_account_id=source_id,
            to_account_id=target_id,
            amount=sent,
            entry_date=transfer_date,
            received_amount=received_amount,
            exchange_rate=fx_rate,
            reporting_rate=source_rate,
            description=description,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    legs = {leg["transfer_direction"]: leg for leg in db.list_transfer_group(group_id)}
    source = account_service.get_account(source_id)
    target = account_service.get_account(target_id)
    click.echo(f"Created transfer {group_id}")
    click.echo(f"  From: {source.name} {format_money(legs['out']['amount'], source.currency_code)}")
    click.echo(f"  To:   {target.name} {format_money(legs['in']['amount'], target.currency_code)}")


def register_commands(cli):
    """Register transfer command with main CLI."""
    cli.add_command(transfer)
