"""Investment management commands."""

import click

from fintrack.cli.error_handling import display_currency, handle_domain_error
from fintrack.domain.errors import DomainError
from fintrack.domain.investment import SORT_KEYS, InvestmentService
from fintrack.domain.money import format_money
from fintrack.utils.amount_parser import parse_amount
from fintrack.utils.date_parser import parse_date, parse_datetime


@click.group()
def investment_group():
    """Manage investments."""
    pass


@investment_group.command("create")
@click.argument("title")
@click.option("--type", "investment_type", required=True, help="Investment type (e.g., Stock, Gold, Crypto)")
@click.option("--platform", required=True, help="Platform or broker")
@click.option("--quantity", required=True, help="Quantity bought")
@click.option("--unit", required=True, help="Unit of quantity (e.g., shares, grams)")
@click.option("--amount", required=True, help="Total purchase amount")
@click.option("--currency", required=True, help="Purchase currency")
@click.option("--date", "purchase_date", help="Purchase date (defaults to today)")
@click.option("--style", help="Investment style (e.g., Long Term)")
@click.pass_context
def create_investment(
    ctx,
    title: str,
    investment_type: str,
    platform: str,
    quantity: str,
    unit: str,
    amount: str,
    currency: str,
    purchase_date: str | None,
    style: str | None,
):
    """Create an investment.

    Examples:
        fintrack investment create "Gold bar" --type Gold --platform Maybank --quantity 10 --unit g --amount 3500 --currency MYR
    """
    service = InvestmentService(ctx.obj["db"])
    try:
        investment_id = service.create_investment(
            title=title,
            type=investment_type,
            platform=platform,
            quantity=parse_amount(quantity),
            unit=unit,
            total_amount=parse_amount(amount, currency=currency),
            currency=currency,
            purchase_date=parse_date(purchase_date) if purchase_date else None,
            style=style,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created investment '{title}' (ID: {investment_id})")


@investment_group.command("list")
@click.option("--currency", help="Only investments in this currency")
@click.option("--platform", help="Only investments on this platform")
@click.option("--type", "investment_type", help="Only investments of this type")
@click.option("--sort", "sort_by", type=click.Choice(SORT_KEYS), default="date", help="Sort order")
@click.pass_context
def list_investments(ctx, currency: str | None, platform: str | None, investment_type: str | None, sort_by: str):
    """List investments."""
    service = InvestmentService(ctx.obj["db"])
    try:
        investments = service.list_investments(
            currency=currency, platform=platform, type=investment_type, sort_by=sort_by
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not investments:
        click.echo("No investments found.")
        return

    click.echo(f"{'ID':<5} {'Date':<12} {'Title':<25} {'Platform':<15} {'Amount':>20} {'Status':<15}")
    click.echo("-" * 97)
    for inv in investments:
        click.echo(
            f"{inv.id:<5} {inv.purchase_date.isoformat():<12} {inv.title[:25]:<25} "
            f"{inv.platform[:15]:<15} {format_money(inv.total_amount, inv.currency):>20} {inv.status:<15}"
        )


@investment_group.command("show")
@click.argument("investment_id", type=int)
@click.option("--currency", help="Also show amounts in this currency (defaults to the main currency)")
@click.pass_context
def show_investment(ctx, investment_id: int, currency: str | None):
    """Show an investment with converted amounts."""
    service = InvestmentService(ctx.obj["db"])
    try:
        view = service.converted_view(investment_id, display_currency(currency), ctx.obj["converter"])
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    inv = view.investment
    click.echo(f"Investment {inv.id}: {inv.title}")
    click.echo(f"  Type:       {inv.type}" + (f" ({inv.style})" if inv.style else ""))
    click.echo(f"  Platform:   {inv.platform}")
    click.echo(f"  Purchased:  {inv.purchase_date.isoformat()}, {inv.quantity} {inv.unit}")
    click.echo(f"  Amount:     {format_money(inv.total_amount, inv.currency)} = {view.total_amount.display()}")
    if inv.unit_price is not None:
        click.echo(f"  Unit price: {format_money(inv.unit_price, inv.currency)}")
    click.echo(f"  Status:     {inv.status}")
    if inv.is_sold:
        click.echo(f"  Sold:       {inv.sold_date:%Y-%m-%d} for {format_money(inv.sold_amount, inv.currency)} = {view.sold_amount.display()}")
        click.echo(f"  Profit:     {format_money(inv.profit, inv.currency)} = {view.profit.display()}")


@investment_group.command("sell")
@click.argument("investment_id", type=int)
@click.argument("amount")
@click.option("--date", "when", help="Sale date (defaults to now)")
@click.pass_context
def sell_investment(ctx, investment_id: int, amount: str, when: str | None):
    """Sell an investment for AMOUNT in its own currency."""
    service = InvestmentService(ctx.obj["db"])
    try:
        investment = service.require_investment(investment_id)
        result = service.sell_investment(
            investment_id,
            parse_amount(amount, currency=investment.currency),
            parse_datetime(when) if when else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    outcome = "gain" if result.profit >= 0 else "loss"
    click.echo(
        f"Sold investment {investment_id} with a {outcome} of "
        f"{format_money(result.profit, investment.currency)}"
    )


@investment_group.command("edit")
@click.argument("investment_id", type=int)
@click.option("--title", help="New title")
@click.option("--type", "investment_type", help="New type")
@click.option("--platform", help="New platform")
@click.option("--quantity", help="New quantity")
@click.option("--unit", help="New unit")
@click.option("--amount", help="New total purchase amount")
@click.option("--currency", help="New currency")
@click.option("--date", "purchase_date", help="New purchase date")
@click.option("--style", help="New style")
@click.option("--sold-amount", help="Correct the sale amount of a sold investment")
@click.option("--recompute-profit", is_flag=True, help="Recompute profit after editing a sold investment")
@click.pass_context
def edit_investment(
    ctx,
    investment_id: int,
    title: str | None,
    investment_type: str | None,
    platform: str | None,
    quantity: str | None,
    unit: str | None,
    amount: str | None,
    currency: str | None,
    purchase_date: str | None,
    style: str | None,
    sold_amount: str | None,
    recompute_profit: bool,
):
    """Edit an investment.

    Editing does not change stored profit unless --recompute-profit is given.
    """
    service = InvestmentService(ctx.obj["db"])
    try:
        amount_currency = currency or service.require_investment(investment_id).currency
        investment = service.update_investment(
            investment_id,
            title=title,
            type=investment_type,
            platform=platform,
            quantity=parse_amount(quantity) if quantity else None,
            unit=unit,
            total_amount=parse_amount(amount, currency=amount_currency) if amount else None,
            currency=currency,
            purchase_date=parse_date(purchase_date) if purchase_date else None,
            style=style,
            sold_amount=parse_amount(sold_amount, currency=amount_currency) if sold_amount else None,
        )
        if recompute_profit:
            investment = service.recompute_profit(investment_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated investment {investment_id}")
    if investment.is_sold:
        click.echo(f"Profit: {format_money(investment.profit, investment.currency)}")


@investment_group.command("report")
@click.option("--currency", help="Display currency (defaults to the main currency)")
@click.pass_context
def investment_report(ctx, currency: str | None):
    """Show realised profit and loss in one currency."""
    service = InvestmentService(ctx.obj["db"])
    try:
        target = display_currency(currency)
        total, views = service.total_profit(target, ctx.obj["converter"])
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    sold = [view for view in views if view.investment.is_sold]
    ongoing = [view for view in views if not view.investment.is_sold]
    click.echo(f"Ongoing investments: {len(ongoing)}")
    for view in ongoing:
        click.echo(f"  {view.investment.title[:30]:<30} {view.total_amount.display():>32}")
    click.echo(f"\nSold investments: {len(sold)}")
    for view in sold:
        click.echo(f"  {view.investment.title[:30]:<30} {view.profit.display():>32}  ({view.investment.status})")
    click.echo(f"\nTotal profit/loss: {format_money(total, target)}")
    unavailable = sum(1 for view in sold if not view.profit.available)
    if unavailable:
        click.echo(f"{unavailable} investment(s) could not be converted and are not in the total.")


def register_commands(cli):
    """Register investment commands with main CLI."""
    cli.add_command(investment_group, name="investment")
