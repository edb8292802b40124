"""CLI helpers for site, period and account resolution."""

from __future__ import annotations

import click
from kturkey.domain.account import AccountService
from kturkey.domain.entities import FiscalPeriod, Site
from kturkey.domain.fiscal_period import FiscalPeriodService
from kturkey.domain.site import SiteService
from kturkey.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, site_id: int, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, site_id, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_site_or_exit(ctx: click.Context) -> Site:
    """Resolve the site chosen with --site, or the only site when there is one."""
    service = SiteService(ctx.obj["db"])
    site_ref = ctx.obj.get("site_ref")
    sites = service.list_sites()

    if site_ref is None:
        if len(sites) == 1:
            return sites[0]
        if not sites:
            click.echo("Error: No sites found. Create one with 'kturkey site create'.", err=True)
        else:
            click.echo("Error: Several sites exist; choose one with --site.", err=True)
        ctx.exit(1)

    for site in sites:
        if site.name == site_ref or str(site.id) == str(site_ref).strip():
            return site
    click.echo(f"Error: Site '{site_ref}' not found", err=True)
    ctx.exit(1)


def resolve_period_or_exit(ctx: click.Context, site_id: int, period: str) -> FiscalPeriod:
    """Resolve a fiscal period name or ID within a site, or exit with a CLI error."""
    service = FiscalPeriodService(ctx.obj["db"])
    for candidate in service.list_periods(site_id):
        if candidate.name == period or str(candidate.id) == period.strip():
            return candidate
    click.echo(f"Error: Fiscal period '{period}' not found", err=True)
    ctx.exit(1)
