"""Expense management commands."""

import click

from fintrack.cli.error_handling import display_currency, handle_domain_error
from fintrack.domain.entities import Cash, CreditCard, DebitCard, EWallet, PaymentMethod
from fintrack.domain.errors import DomainError, ValidationError
from fintrack.domain.expense import CategoryService, ExpenseService
from fintrack.domain.money import format_money
from fintrack.utils.amount_parser import parse_amount
from fintrack.utils.date_parser import parse_date, parse_datetime

PAYMENT_METHODS = ["cash", "credit", "debit", "ewallet"]


def build_payment_method(
    method: str,
    bank: str | None,
    last4: str | None,
    name: str | None,
    linked_card: str | None,
) -> PaymentMethod:
    """Build a payment method from CLI options.

    Raises:
        ValidationError: If a field the method needs is missing
    """
    method = method.lower()
    if method == "cash":
        return Cash()
    if method in ("credit", "debit"):
        if not bank or not last4:
            raise ValidationError(f"--bank and --last4 are required for {method} card payments")
        if len(last4) != 4 or not last4.isdigit():
            raise ValidationError(f"--last4 must be 4 digits, got '{last4}'")
        if method == "credit":
            return CreditCard(bank=bank, last4=last4, name=name)
        return DebitCard(bank=bank, last4=last4)
    if not name:
        raise ValidationError("--name is required for e-wallet payments")
    return EWallet(name=name, linked_card=linked_card)


@click.group()
def expense_group():
    """Record and list expenses."""
    pass


@expense_group.command("add")
@click.argument("amount")
@click.argument("currency")
@click.option("--category", help="Category name or ID")
@click.option("--method", type=click.Choice(PAYMENT_METHODS, case_sensitive=False), default="cash", help="Payment method (default: cash)")
@click.option("--bank", help="Card issuer (credit and debit cards)")
@click.option("--last4", help="Last four card digits (credit and debit cards)")
@click.option("--name", help="Card name or e-wallet name")
@click.option("--linked-card", help="Card linked to the e-wallet")
@click.option("--date", "when", help="Expense date (defaults to now)")
@click.option("--description", help="Expense description")
@click.option("--to-currency", help="Currency to record the converted amount in (defaults to the main currency)")
@click.pass_context
def add_expense(
    ctx,
    amount: str,
    currency: str,
    category: str | None,
    method: str,
    bank: str | None,
    last4: str | None,
    name: str | None,
    linked_card: str | None,
    when: str | None,
    description: str | None,
    to_currency: str | None,
):
    """Add an expense of AMOUNT paid in CURRENCY.

    Examples:
        fintrack expense add 12.50 MYR --category Food
        fintrack expense add 3000 JPY --method credit --bank Maybank --last4 1234
    """
    service = ExpenseService(ctx.obj["db"], ctx.obj["converter"])
    try:
        category_id = None
        if category:
            category_id = CategoryService(ctx.obj["db"]).require_category(category).id
        expense_id = service.create_expense(
            amount=parse_amount(amount, currency=currency),
            from_currency=currency,
            to_currency=display_currency(to_currency),
            payment_method=build_payment_method(method, bank, last4, name, linked_card),
            category_id=category_id,
            when=parse_datetime(when) if when else None,
            description=description,
        )
        expense = service.get_expense(expense_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(
        f"Added expense {expense_id}: {format_money(expense.amount, expense.from_currency)} "
        f"({format_money(expense.converted_amount, expense.to_currency)})"
    )


@expense_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'this month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--category", help="Category name or ID")
@click.pass_context
def list_expenses(ctx, start_date: str | None, end_date: str | None, category: str | None):
    """List expenses, newest first."""
    db = ctx.obj["db"]
    service = ExpenseService(db, ctx.obj["converter"])
    category_service = CategoryService(db)
    try:
        category_id = category_service.require_category(category).id if category else None
        expenses = service.list_expenses(
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            category_id=category_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not expenses:
        click.echo("No expenses found.")
        return

    names = {cat.id: cat.name for cat in category_service.list_categories()}
    click.echo(f"{'ID':<5} {'Date':<12} {'Amount':>18} {'Converted':>18} {'Category':<18} {'Method':<20} Description")
    click.echo("-" * 110)
    for exp in expenses:
        category_name = names.get(exp.category_id, "") if exp.category_id is not None else ""
        click.echo(
            f"{exp.id:<5} {exp.date:%Y-%m-%d}   {format_money(exp.amount, exp.from_currency):>18} "
            f"{format_money(exp.converted_amount, exp.to_currency):>18} {category_name[:18]:<18} "
            f"{exp.payment_method.label[:20]:<20} {exp.description or ''}"
        )


@expense_group.command("delete")
@click.argument("expense_id", type=int)
@click.pass_context
def delete_expense(ctx, expense_id: int):
    """Delete an expense."""
    service = ExpenseService(ctx.obj["db"], ctx.obj["converter"])
    try:
        service.delete_expense(expense_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted expense {expense_id}")


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
