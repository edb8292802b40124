"""Main CLI entry point."""

import click
from kturkey.database.factories import create_sqlite_database
from kturkey.logging_setup import setup_logging

# Import and register all commands at module level
from kturkey.cli.commands import (
    site,
    period,
    account,
    add,
    transfer,
    transaction,
    ledger,
    unit,
    summary,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides KTURKEY_DB_PATH environment variable)",
    envvar="KTURKEY_DB_PATH",
)
@click.option(
    "--site",
    "site_ref",
    help="Site name or ID (overrides KTURKEY_SITE; optional when only one site exists)",
    envvar="KTURKEY_SITE",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (overrides KTURKEY_LOG_LEVEL environment variable)",
    envvar="KTURKEY_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, site_ref: str | None, log_level: str | None):
    """KTurkey - multi-currency ledger for residential sites.

    Record income, expenses and transfers across TRY and foreign-currency
    accounts, track unit dues and payments, and read balances that are
    always replayed from the full history.
    """
    ctx.ensure_object(dict)
    logger = setup_logging(log_level)
    ctx.call_on_close(logger.handlers.clear)
    ctx.obj["site_ref"] = site_ref

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
site.register_commands(cli)
period.register_commands(cli)
account.register_commands(cli)
add.register_commands(cli)
transfer.register_commands(cli)
transaction.register_commands(cli)
ledger.register_commands(cli)
unit.register_commands(cli)
summary.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
