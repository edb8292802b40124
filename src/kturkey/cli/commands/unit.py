"""Unit, due and payment commands."""

import click
from decimal import Decimal
from kturkey.cli.account_resolution import resolve_account_or_exit, resolve_site_or_exit
from kturkey.cli.error_handling import echo_warnings, handle_domain_error
from kturkey.cli.formatting import format_money, truncate
from kturkey.domain.account import AccountService
from kturkey.domain.entities import DueStatus
from kturkey.domain.statement import StatementService
from kturkey.domain.unit import PAYMENT_METHODS, UnitService
from kturkey.utils.amount_parser import parse_amount, parse_rate
from kturkey.utils.date_parser import month_bounds, parse_date


def _unit_in_site_or_exit(ctx, service: UnitService, site_id: int, unit_id: int):
    unit = service.get_unit(unit_id)
    if unit is None or unit.site_id != site_id:
        click.echo(f"Error: Unit {unit_id} not found", err=True)
        ctx.exit(1)
    return unit


@click.group()
def unit_group():
    """Manage units, dues and payments."""
    pass


@unit_group.command("create")
@click.argument("unit_number", metavar="UNIT_NUMBER")
@click.option("--block", help="Block name")
@click.option("--owner", help="Owner name")
@click.option("--currency", help="Debt currency (defaults to the site currency)")
@click.option("--opening-balance", default="0", help="Debt carried in; negative for a credit")
@click.pass_context
def create_unit(
    ctx,
    unit_number: str,
    block: str | None,
    owner: str | None,
    currency: str | None,
    opening_balance: str,
):
    """Create a unit.

    Examples:
        kturkey unit create 5 --block A --owner "Ayşe Yılmaz" --opening-balance 500
        kturkey unit create 12 --block B --currency EUR
    """
    site = resolve_site_or_exit(ctx)
    service = UnitService(ctx.obj["db"])
    try:
        unit_id = service.create_unit(
            site_id=site.id,
            unit_number=unit_number,
            currency_code=currency,
            opening_balance=parse_amount(opening_balance),
            block=block,
            owner_name=owner,
        )
        unit = service.get_unit(unit_id)
        click.echo(f"Created unit {unit.label} (ID: {unit_id}, currency: {unit.currency_code})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@unit_group.command("list")
@click.pass_context
def list_units(ctx):
    """List units with their current debt."""
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    units = UnitService(db).list_units(site.id)
    if not units:
        click.echo("No units found.")
        return

    statements = StatementService(db)
    click.echo("\nUnits:")
    click.echo("-" * 70)
    for unit in units:
        balance = statements.get_statement(unit.id).summary.ending_balance
        click.echo(
            f"ID: {unit.id:3d} | {unit.label:8s} | {truncate(unit.owner_name, 22):22s} | "
            f"{format_money(balance, unit.currency_code):>20s}"
        )


@unit_group.command("due")
@click.argument("unit_id", type=int)
@click.option("--amount", required=True, help="Due amount in the unit currency")
@click.option("--date", required=True, help="Due date")
@click.option("--description", help="Description, e.g. 'January dues'")
@click.pass_context
def add_due(ctx, unit_id: int, amount: str, date: str, description: str | None):
    """Accrue a due against a unit.

    Examples:
        kturkey unit due 3 --amount 1200 --date 2024-01-01 --description "January dues"
    """
    site = resolve_site_or_exit(ctx)
    service = UnitService(ctx.obj["db"])
    unit = _unit_in_site_or_exit(ctx, service, site.id, unit_id)
    try:
        due_amount = parse_amount(amount)
        due_id = service.add_due(
            unit_id=unit.id,
            amount=due_amount,
            due_date=parse_date(date),
            description=description,
        )
        click.echo(f"Added due {due_id} of {format_money(due_amount, unit.currency_code)} to unit {unit.label}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@unit_group.command("pay")
@click.argument("unit_id", type=int)
@click.option("--amount", required=True, help="Amount paid, in the receiving account's currency")
@click.option("--date", required=True, help="Payment date")
@click.option("--account", required=True, help="Receiving account name or ID")
@click.option(
    "--debt-rate",
    help=(
        "Rate to the unit's debt currency when currencies differ. Paying in the "
        "site currency against a foreign debt: a rate of 1 or more is local units "
        "per foreign unit and divides the payment (1 EUR = 52 TRY, enter 52); a "
        "rate below 1 is foreign units per local unit and multiplies it "
        "(1 TRY = 0.027 EUR, enter 0.027). Otherwise: debt units per payment unit."
    ),
)
@click.option("--reporting-rate", help="Rate to the site currency for foreign accounts")
@click.option("--method", type=click.Choice(PAYMENT_METHODS), default="bank_transfer", show_default=True)
@click.option("--description", help="Description")
@click.pass_context
def pay(
    ctx,
    unit_id: int,
    amount: str,
    date: str,
    account: str,
    debt_rate: str | None,
    reporting_rate: str | None,
    method: str,
    description: str | None,
):
    """Record a payment from a unit.

    Also records the matching income in the receiving account.

    Examples:
        kturkey unit pay 3 --amount 1000 --date 2024-01-15 --account Ziraat
        kturkey unit pay 7 --amount 44200 --date today --account Ziraat --debt-rate 52
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    service = UnitService(db)
    unit = _unit_in_site_or_exit(ctx, service, site.id, unit_id)
    account_id = resolve_account_or_exit(ctx, AccountService(db), site.id, account)

    try:
        paid = parse_amount(amount)
        payment_date = parse_date(date)
        debt = parse_rate(debt_rate) if debt_rate is not None else None
        reporting = parse_rate(reporting_rate) if reporting_rate is not None else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        payment_id, entry_id = service.record_payment(
            unit_id=unit.id,
            amount=paid,
            payment_date=payment_date,
            account_id=account_id,
            debt_exchange_rate=debt,
            reporting_exchange_rate=reporting,
            payment_method=method,
            description=description,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    statement = StatementService(db).get_statement(unit.id)
    click.echo(f"Recorded payment {payment_id} for unit {unit.label} (ledger entry {entry_id})")
    click.echo(
        f"  Balance due: {format_money(statement.summary.ending_balance, statement.currency_code)}"
    )


@unit_group.command("statement")
@click.argument("unit_id", type=int)
@click.option("--from", "start_date", help="First day shown")
@click.option("--to", "end_date", help="Last day shown")
@click.option("--month", help="Show one month (YYYY-MM)")
@click.pass_context
def statement(ctx, unit_id: int, start_date: str | None, end_date: str | None, month: str | None):
    """Show a unit's statement with running balance.

    Examples:
        kturkey unit statement 3
        kturkey unit statement 3 --from 2024-01-01 --to 2024-06-30
        kturkey unit statement 3 --month 2024-02
    """
    db = ctx.obj["db"]
    site = resolve_site_or_exit(ctx)
    unit = _unit_in_site_or_exit(ctx, UnitService(db), site.id, unit_id)

    if month and (start_date or end_date):
        click.echo("Error: --month cannot be combined with --from or --to.", err=True)
        ctx.exit(1)

    try:
        if month:
            start, end = month_bounds(month)
        else:
            start = parse_date(start_date) if start_date else None
            end = parse_date(end_date) if end_date else None
        result = StatementService(db).get_statement(unit.id, start_date=start, end_date=end)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    currency = result.currency_code
    click.echo(f"\nStatement for unit {unit.label}" + (f" ({unit.owner_name})" if unit.owner_name else ""))
    click.echo(f"{'Date':10s} | {'Description':28s} | {'Debt':>14s} | {'Paid':>14s} | {'Balance':>14s}")
    click.echo("-" * 92)
    click.echo(f"{'':10s} | {'Opening balance':28s} | {'':>14s} | {'':>14s} | "
               f"{format_money(result.summary.opening_balance):>14s}")
    for row in result.rows:
        description = row.description
        if row.native_currency and row.native_currency != currency:
            description = f"{description} ({format_money(row.native_amount, row.native_currency)})"
        click.echo(
            f"{row.date!s:10s} | {truncate(description, 28):28s} | "
            f"{format_money(row.amount_debt) if row.amount_debt else '':>14s} | "
            f"{format_money(row.amount_paid) if row.amount_paid else '':>14s} | "
            f"{format_money(row.running_balance):>14s}"
        )

    summary = result.summary
    click.echo("")
    click.echo(f"Opening balance: {format_money(summary.opening_balance, currency)}")
    click.echo(f"Total accrued:   {format_money(summary.total_accrued, currency)}")
    click.echo(f"Total paid:      {format_money(summary.total_paid, currency)}")
    click.echo(f"Ending balance:  {format_money(summary.ending_balance, currency)}")
    if result.overpayment > Decimal("0"):
        click.echo(f"Credit:          {format_money(result.overpayment, currency)}")

    unpaid = [a for a in result.allocations if a.status != DueStatus.PAID]
    if unpaid:
        click.echo("\nOpen dues:")
        for allocation in unpaid:
            click.echo(
                f"  {allocation.due.due_date} {truncate(allocation.due.description or 'Dues', 24):24s} "
                f"{allocation.status.value:8s} {format_money(allocation.remaining, currency):>16s} left"
            )
    echo_warnings(result.warnings)


def register_commands(cli):
    """Register unit commands with main CLI."""
    cli.add_command(unit_group, name="unit")
