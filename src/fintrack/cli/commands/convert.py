"""Currency conversion command."""

import click

from fintrack.cli.error_handling import display_currency, handle_domain_error
from fintrack.domain.errors import DomainError
from fintrack.domain.money import currency_decimal_places, normalize_currency, round_money
from fintrack.utils.amount_parser import parse_amount


@click.command("convert")
@click.argument("amount")
@click.argument("from_currency")
@click.argument("to_currency", required=False)
@click.pass_context
def convert(ctx, amount: str, from_currency: str, to_currency: str | None):
    """Convert AMOUNT from FROM_CURRENCY to TO_CURRENCY.

    TO_CURRENCY defaults to the main currency.

    Examples:
        fintrack convert 100 EUR JPY
        fintrack convert 25.50 MYR
    """
    converter = ctx.obj["converter"]
    try:
        source = normalize_currency(from_currency)
        target = display_currency(to_currency)
        value = parse_amount(amount, currency=source)
        converted = converter.convert(value, source, target)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    places = currency_decimal_places(target)
    click.echo(f"{value} {source} = {round_money(converted, places)} {target}")


def register_commands(cli):
    """Register convert command with main CLI."""
    cli.add_command(convert)
