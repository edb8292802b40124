"""Summary commands."""

import click
from decimal import Decimal
from kturkey.cli.account_resolution import resolve_period_or_exit, resolve_site_or_exit
from kturkey.cli.error_handling import echo_warnings, handle_domain_error
from kturkey.cli.formatting import format_money, truncate
from kturkey.domain.entities import EntryType
from kturkey.domain.summary import SummaryService


@click.group()
def summary_group():
    """Period summaries."""
    pass


@summary_group.command("monthly")
@click.option("--period", help="Fiscal period name or ID (default: active period)")
@click.pass_context
def monthly_summary(ctx, period: str | None):
    """Show income and expense per category and month.

    Examples:
        kturkey summary monthly
        kturkey summary monthly --period 2024
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    period_id = resolve_period_or_exit(ctx, site.id, period).id if period else None

    try:
        report = SummaryService(db).monthly_summary(site.id, fiscal_period_id=period_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    months = report.months
    header = f"{'':22s}" + "".join(f" {m:>12s}" for m in months)

    def line(label: str, values: dict[str, Decimal]) -> str:
        return f"{truncate(label, 22):22s}" + "".join(
            f" {format_money(values.get(m, Decimal('0'))):>12s}" for m in months
        )

    click.echo(f"\nAmounts in {site.default_currency}")
    click.echo(header)
    click.echo("Income")
    for category in sorted(report.income_by_category):
        click.echo(line(f"  {category}", report.income_by_category[category]))
    click.echo(line("Total income", report.income))
    click.echo("Expense")
    for category in sorted(report.expense_by_category):
        click.echo(line(f"  {category}", report.expense_by_category[category]))
    click.echo(line("Total expense", report.expense))
    click.echo(line("Net", report.net))
    click.echo(line("Closing balance", report.closing_balance))
    click.echo(f"\nOpening balance: {format_money(report.opening_balance, site.default_currency)}")
    echo_warnings(report.warnings)


@summary_group.command("categories")
@click.option("--period", help="Fiscal period name or ID (default: active period)")
@click.option("--type", "entry_type", type=click.Choice([EntryType.INCOME.value, EntryType.EXPENSE.value]))
@click.pass_context
def category_summary(ctx, period: str | None, entry_type: str | None):
    """Show income and expense totals per category, largest first."""
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    period_id = resolve_period_or_exit(ctx, site.id, period).id if period else None

    try:
        totals = SummaryService(db).category_totals(
            site.id,
            fiscal_period_id=period_id,
            entry_type=EntryType(entry_type) if entry_type else None,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not totals:
        click.echo("No income or expense in this period.")
        return

    click.echo(f"\n{'Category':25s} | {'Type':7s} | {'Count':>5s} | {'Amount':>20s}")
    click.echo("-" * 66)
    for total in totals:
        click.echo(
            f"{truncate(total.category, 25):25s} | {total.entry_type.value:7s} | "
            f"{total.count:5d} | {format_money(total.amount, site.default_currency):>20s}"
        )


def register_commands(cli):
    """Register summary commands with main CLI."""
    cli.add_command(summary_group, name="summary")
