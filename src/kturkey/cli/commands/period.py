"""Fiscal period commands."""

import click
from kturkey.cli.account_resolution import resolve_period_or_exit, resolve_site_or_exit
from kturkey.cli.error_handling import handle_domain_error
from kturkey.domain.entities import PeriodStatus
from kturkey.domain.fiscal_period import FiscalPeriodService
from kturkey.utils.date_parser import parse_date

STATUS_CHOICE = click.Choice([s.value for s in PeriodStatus])


@click.group()
def period_group():
    """Manage fiscal periods."""
    pass


@period_group.command("create")
@click.argument("name", metavar="PERIOD_NAME")
@click.option("--start", "start_date", required=True, help="First day (YYYY-MM-DD)")
@click.option("--end", "end_date", required=True, help="Last day (YYYY-MM-DD)")
@click.option("--status", type=STATUS_CHOICE, default="draft", show_default=True)
@click.pass_context
def create_period(ctx, name: str, start_date: str, end_date: str, status: str):
    """Create a fiscal period.

    Examples:
        kturkey period create 2025 --start 2025-01-01 --end 2025-12-31 --status active
    """
    site = resolve_site_or_exit(ctx)
    service = FiscalPeriodService(ctx.obj["db"])
    try:
        start = parse_date(start_date)
        end = parse_date(end_date)
        period_id = service.create_period(
            site_id=site.id,
            name=name,
            start_date=start,
            end_date=end,
            status=PeriodStatus(status),
        )
        click.echo(f"Created fiscal period '{name}' (ID: {period_id}) {start} to {end}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@period_group.command("list")
@click.pass_context
def list_periods(ctx):
    """List fiscal periods, most recent first."""
    site = resolve_site_or_exit(ctx)
    service = FiscalPeriodService(ctx.obj["db"])
    periods = service.list_periods(site.id)
    if not periods:
        click.echo("No fiscal periods found.")
        return

    click.echo(f"\nFiscal periods of {site.name}:")
    click.echo("-" * 60)
    for period in periods:
        click.echo(
            f"ID: {period.id:3d} | {period.name:15s} | "
            f"{period.start_date} to {period.end_date} | {period.status.value}"
        )


@period_group.command("set-status")
@click.argument("period", metavar="PERIOD")
@click.argument("status", type=STATUS_CHOICE)
@click.pass_context
def set_period_status(ctx, period: str, status: str):
    """Change the status of a fiscal period.

    PERIOD can be a period name or ID.

    Examples:
        kturkey period set-status 2024 closed
    """
    site = resolve_site_or_exit(ctx)
    target = resolve_period_or_exit(ctx, site.id, period)
    service = FiscalPeriodService(ctx.obj["db"])
    try:
        service.set_status(target.id, PeriodStatus(status))
        click.echo(f"Fiscal period '{target.name}' is now {status}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register fiscal period commands with main CLI."""
    cli.add_command(period_group, name="period")
