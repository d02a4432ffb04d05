"""Debt management commands."""

from datetime import date

import click

from fintrack.cli.error_handling import display_currency, handle_domain_error
from fintrack.domain.debt import DebtService, next_repayment_date
from fintrack.domain.entities import DebtTransactionType
from fintrack.domain.errors import DomainError
from fintrack.domain.money import format_money
from fintrack.utils.amount_parser import parse_amount
from fintrack.utils.date_parser import parse_date, parse_datetime

TRANSACTION_TYPES = [t.value for t in DebtTransactionType]


@click.group()
def debt_group():
    """Manage debts and their ledgers."""
    pass


@debt_group.command("create")
@click.argument("owe_to")
@click.argument("amount")
@click.option("--currency", required=True, help="Debt currency (e.g., MYR)")
@click.option("--repayment", "repayment_amount", default="0", help="Regular repayment amount")
@click.option("--interest", "interest_rate", default="0", help="Yearly interest rate in percent")
@click.option("--repayment-day", type=click.IntRange(1, 31), default=1, help="Day of month repayments are due")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'today')")
@click.pass_context
def create_debt(
    ctx,
    owe_to: str,
    amount: str,
    currency: str,
    repayment_amount: str,
    interest_rate: str,
    repayment_day: int,
    start_date: str | None,
):
    """Create a debt owed to OWE_TO.

    Examples:
        fintrack debt create "Car loan" 20000 --currency MYR --repayment 600 --interest 3.5 --repayment-day 15
    """
    service = DebtService(ctx.obj["db"])
    try:
        debt_id = service.create_debt(
            owe_to=owe_to,
            amount=parse_amount(amount, currency=currency),
            currency=currency,
            repayment_amount=parse_amount(repayment_amount, currency=currency),
            interest_rate=parse_amount(interest_rate),
            repayment_day=repayment_day,
            start_date=parse_date(start_date) if start_date else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created debt to '{owe_to}' (ID: {debt_id})")


@debt_group.command("list")
@click.pass_context
def list_debts(ctx):
    """List all debts with their balances."""
    debts = DebtService(ctx.obj["db"]).list_debts()
    if not debts:
        click.echo("No debts found.")
        return

    click.echo(f"{'ID':<5} {'Owe to':<25} {'Balance':>20} {'Repayment':>18} {'Next due':>12}")
    click.echo("-" * 84)
    for debt in debts:
        click.echo(
            f"{debt.id:<5} {debt.owe_to[:25]:<25} "
            f"{format_money(debt.principal_amount, debt.currency):>20} "
            f"{format_money(debt.repayment_amount, debt.currency):>18} "
            f"{next_repayment_date(debt.repayment_day_of_month).isoformat():>12}"
        )


@debt_group.command("show")
@click.argument("debt_id", type=int)
@click.pass_context
def show_debt(ctx, debt_id: int):
    """Show a debt and its ledger in date order."""
    service = DebtService(ctx.obj["db"])
    try:
        debt = service.require_debt(debt_id)
        transactions = service.list_transactions(debt_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Debt {debt.id}: {debt.owe_to}")
    click.echo(f"  Original amount: {format_money(debt.original_amount, debt.currency)}")
    click.echo(f"  Balance:         {format_money(debt.principal_amount, debt.currency)}")
    click.echo(f"  Repayment:       {format_money(debt.repayment_amount, debt.currency)} on day {debt.repayment_day_of_month}")
    click.echo(f"  Interest:        {debt.interest_rate_percent_yearly}% yearly")
    click.echo(f"  Started:         {debt.start_date.isoformat()}")
    click.echo(f"  Next repayment:  {next_repayment_date(debt.repayment_day_of_month).isoformat()}")

    if not transactions:
        click.echo("\nNo transactions.")
        return
    click.echo(f"\n{'ID':<5} {'Date':<17} {'Type':<10} {'Amount':>20}")
    for txn in transactions:
        click.echo(
            f"{txn.id:<5} {txn.date:%Y-%m-%d %H:%M} {txn.type.value:<10} "
            f"{format_money(txn.amount, debt.currency):>20}"
        )


def _record(ctx, debt_id: int, record):
    service = DebtService(ctx.obj["db"])
    try:
        transaction_id = record(service)
        debt = service.require_debt(debt_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(
        f"Recorded transaction {transaction_id}; balance is now "
        f"{format_money(debt.principal_amount, debt.currency)}"
    )


def _debt_currency(ctx, debt_id: int) -> str | None:
    debt = DebtService(ctx.obj["db"]).get_debt(debt_id)
    return debt.currency if debt else None


@debt_group.command("pay")
@click.argument("debt_id", type=int)
@click.argument("amount")
@click.option("--date", "when", help="Payment date (defaults to now)")
@click.pass_context
def pay(ctx, debt_id: int, amount: str, when: str | None):
    """Record a partial payment against a debt."""
    try:
        value = parse_amount(amount, currency=_debt_currency(ctx, debt_id))
        timestamp = parse_datetime(when) if when else None
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _record(ctx, debt_id, lambda service: service.record_payment(debt_id, value, timestamp))


@debt_group.command("repay")
@click.argument("debt_id", type=int)
@click.option("--amount", help="Repayment amount (defaults to the debt's repayment amount)")
@click.option("--date", "when", help="Repayment date (defaults to now)")
@click.pass_context
def repay(ctx, debt_id: int, amount: str | None, when: str | None):
    """Record a scheduled repayment."""
    try:
        value = parse_amount(amount, currency=_debt_currency(ctx, debt_id)) if amount else None
        timestamp = parse_datetime(when) if when else None
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _record(ctx, debt_id, lambda service: service.record_repayment(debt_id, value, timestamp))


@debt_group.command("interest")
@click.argument("debt_id", type=int)
@click.option("--date", "when", help="Accrual date (defaults to now)")
@click.pass_context
def interest(ctx, debt_id: int, when: str | None):
    """Accrue one period of interest on the current balance."""
    try:
        timestamp = parse_datetime(when) if when else None
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _record(ctx, debt_id, lambda service: service.add_interest(debt_id, timestamp))


@debt_group.command("add-txn")
@click.argument("debt_id", type=int)
@click.argument("type", type=click.Choice(TRANSACTION_TYPES, case_sensitive=False))
@click.argument("amount")
@click.option("--date", "when", help="Transaction date (defaults to now)")
@click.pass_context
def add_transaction(ctx, debt_id: int, type: str, amount: str, when: str | None):
    """Add a ledger entry of any type, e.g. a backdated payment."""
    try:
        value = parse_amount(amount, currency=_debt_currency(ctx, debt_id))
        timestamp = parse_datetime(when) if when else None
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _record(ctx, debt_id, lambda service: service.add_transaction(debt_id, type, value, timestamp))


@debt_group.command("edit-txn")
@click.argument("transaction_id", type=int)
@click.option("--type", "txn_type", type=click.Choice(TRANSACTION_TYPES, case_sensitive=False))
@click.option("--amount", help="New amount")
@click.option("--date", "when", help="New date")
@click.pass_context
def edit_transaction(ctx, transaction_id: int, txn_type: str | None, amount: str | None, when: str | None):
    """Edit a ledger entry and recalculate its debt."""
    service = DebtService(ctx.obj["db"])
    try:
        value = None
        if amount:
            txn = service.require_transaction(transaction_id)
            value = parse_amount(amount, currency=service.require_debt(txn.debt_id).currency)
        debt = service.update_transaction(
            transaction_id,
            type=txn_type,
            amount=value,
            when=parse_datetime(when) if when else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(
        f"Updated transaction {transaction_id}; balance is now "
        f"{format_money(debt.principal_amount, debt.currency)}"
    )


@debt_group.command("delete-txn")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int):
    """Delete a ledger entry and recalculate its debt."""
    service = DebtService(ctx.obj["db"])
    try:
        debt = service.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(
        f"Deleted transaction {transaction_id}; balance is now "
        f"{format_money(debt.principal_amount, debt.currency)}"
    )


@debt_group.command("recalc")
@click.argument("debt_id", type=int)
@click.pass_context
def recalc(ctx, debt_id: int):
    """Replay a debt's ledger from its original amount."""
    service = DebtService(ctx.obj["db"])
    try:
        debt = service.recalculate(debt_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Debt {debt_id} balance: {format_money(debt.principal_amount, debt.currency)}")


@debt_group.command("delete")
@click.argument("debt_id", type=int)
@click.option("--cascade", is_flag=True, help="Also delete the debt's transactions")
@click.pass_context
def delete_debt(ctx, debt_id: int, cascade: bool):
    """Delete a debt."""
    service = DebtService(ctx.obj["db"])
    try:
        service.delete_debt(debt_id, cascade=cascade)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted debt {debt_id}")


@debt_group.command("report")
@click.option("--currency", help="Display currency (defaults to the main currency)")
@click.pass_context
def debt_report(ctx, currency: str | None):
    """Show all debt balances and their total in one currency."""
    service = DebtService(ctx.obj["db"])
    try:
        target = display_currency(currency)
        total, rows = service.total_outstanding(target, ctx.obj["converter"])
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not rows:
        click.echo("No debts found.")
        return
    today = date.today()
    for debt, converted in rows:
        due = next_repayment_date(debt.repayment_day_of_month, today)
        click.echo(
            f"{debt.owe_to[:25]:<25} {format_money(debt.principal_amount, debt.currency):>20} "
            f"{converted.display():>32}  due {due.isoformat()}"
        )
    click.echo("-" * 92)
    click.echo(f"{'Total outstanding':<25} {format_money(total, target):>53}")
    unavailable = sum(1 for _, converted in rows if not converted.available)
    if unavailable:
        click.echo(f"{unavailable} debt(s) could not be converted and are not in the total.")


def register_commands(cli):
    """Register debt commands with main CLI."""
    cli.add_command(debt_group, name="debt")
