"""Ledger view command."""

import click
from kturkey.cli.account_resolution import (
    resolve_account_or_exit,
    resolve_period_or_exit,
    resolve_site_or_exit,
)
from kturkey.cli.error_handling import echo_warnings, handle_domain_error
from kturkey.cli.formatting import format_money, truncate
from kturkey.domain.account import AccountService
from kturkey.domain.entities import EntryType
from kturkey.domain.errors import ReconciliationError
from kturkey.domain.ledger import LedgerService
from kturkey.domain.replay import display_type


@click.command("ledger")
@click.option("--period", help="Fiscal period name or ID (default: all time)")
@click.option("--type", "entry_type", type=click.Choice([t.value for t in EntryType]))
@click.option("--search", help="Text to find in category, description or vendor")
@click.option("--account", help="Account name or ID")
@click.option(
    "--check",
    is_flag=True,
    help="Verify that balances reconcile and exit with status 1 if they don't",
)
@click.pass_context
def show_ledger(
    ctx,
    period: str | None,
    entry_type: str | None,
    search: str | None,
    account: str | None,
    check: bool,
):
    """Show the ledger with running balances, newest first.

    Balances are replayed from the full history, so filtering never
    changes them.

    Examples:
        kturkey ledger
        kturkey ledger --period 2025 --type expense
        kturkey ledger --search elektrik --check
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    account_service = AccountService(db)

    period_id = resolve_period_or_exit(ctx, site.id, period).id if period else None
    account_id = (
        resolve_account_or_exit(ctx, account_service, site.id, account) if account else None
    )

    try:
        view = LedgerService(db).get_ledger(
            site_id=site.id,
            fiscal_period_id=period_id,
            entry_type=EntryType(entry_type) if entry_type else None,
            search=search,
            account_id=account_id,
            check=check,
        )
    except ReconciliationError as e:
        click.echo(f"Reconciliation failed: {e}", err=True)
        ctx.exit(1)
    except ValueError as e:
        handle_domain_error(ctx, e)

    currency = view.reporting_currency
    accounts = {acc.id: acc for acc in account_service.list_accounts(site.id, include_inactive=True)}

    if not view.rows:
        click.echo("No transactions found.")
    else:
        click.echo(
            f"\n{'Date':10s} | {'ID':>5s} | {'Type':8s} | {'Category':18s} | "
            f"{'Account':14s} | {'Amount':>18s} | {'Acct balance':>18s} | {'Total':>16s}"
        )
        click.echo("-" * 130)
        for row in view.rows:
            txn = row.transaction
            acc = accounts.get(txn.account_id)
            click.echo(
                f"{txn.entry_date!s:10s} | {txn.id:5d} | {display_type(txn).value:8s} | "
                f"{truncate(txn.category, 18):18s} | {truncate(acc.name if acc else '', 14):14s} | "
                f"{format_money(txn.amount, txn.currency_code):>18s} | "
                f"{format_money(row.account_balance, acc.currency_code if acc else ''):>18s} | "
                f"{format_money(row.total_balance):>16s}"
            )

    click.echo("")
    click.echo(f"Opening balance: {format_money(view.opening_balance, currency)}")
    click.echo(f"Income:          {format_money(view.total_income, currency)}")
    click.echo(f"Expense:         {format_money(view.total_expense, currency)}")
    click.echo(f"Net:             {format_money(view.net_balance, currency)}")
    click.echo(f"Current balance: {format_money(view.global_balance, currency)}")
    if view.skipped:
        click.echo(f"Skipped {view.skipped} malformed record(s)")
    echo_warnings(view.warnings)
    if check:
        click.echo("Balances reconcile.")


def register_commands(cli):
    """Register ledger command with main CLI."""
    cli.add_command(show_ledger)
