"""Site management commands."""

import click
from kturkey.cli.error_handling import handle_domain_error
from kturkey.domain.site import SiteService


@click.group()
def site_group():
    """Manage sites."""
    pass


@site_group.command("create")
@click.argument("name", metavar="SITE_NAME")
@click.option(
    "--currency",
    help="Reporting currency (defaults to KTURKEY_DEFAULT_CURRENCY, then TRY)",
)
@click.pass_context
def create_site(ctx, name: str, currency: str | None):
    """Create a new site.

    Examples:
        kturkey site create "Palm Residence"
        kturkey site create "Alanya Gardens" --currency EUR
    """
    service = SiteService(ctx.obj["db"])
    try:
        site_id = service.create_site(name=name, default_currency=currency)
        site = service.get_site(site_id)
        click.echo(f"Created site '{site.name}' (ID: {site_id}, currency: {site.default_currency})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@site_group.command("list")
@click.pass_context
def list_sites(ctx):
    """List all sites."""
    service = SiteService(ctx.obj["db"])
    sites = service.list_sites()
    if not sites:
        click.echo("No sites found.")
        return

    click.echo("\nSites:")
    click.echo("-" * 50)
    for site in sites:
        click.echo(f"ID: {site.id:3d} | {site.name:30s} | {site.default_currency}")


def register_commands(cli):
    """Register site commands with main CLI."""
    cli.add_command(site_group, name="site")
