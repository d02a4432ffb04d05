"""Exchange rate commands."""

import click

from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.currency import compare_rates
from fintrack.domain.errors import DomainError, NotFoundError


def _require_provider(ctx):
    provider = ctx.obj["provider"]
    if provider is None:
        click.echo(
            "Error: No rate provider configured. Set FINTRACK_RATES_APP_ID to fetch live rates.",
            err=True,
        )
        ctx.exit(1)
    return provider


@click.group()
def rates_group():
    """Manage stored exchange rates."""
    pass


@rates_group.command("show")
@click.option("--currency", "currencies", multiple=True, help="Only show these currencies (repeatable)")
@click.pass_context
def show_rates(ctx, currencies: tuple[str, ...]):
    """Show the stored rate table."""
    store = ctx.obj["store"]
    try:
        table = store.load()
    except NotFoundError:
        click.echo("No stored rates. Run 'fintrack rates refresh' to fetch them.")
        return
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    wanted = {code.strip().upper() for code in currencies}
    click.echo(f"Rates per 1 {table.base_currency} (last updated {table.last_updated:%Y-%m-%d %H:%M} UTC)")
    for code in sorted(table.rates):
        if wanted and code not in wanted:
            continue
        click.echo(f"  {code:<5} {table.rates[code]}")


@rates_group.command("refresh")
@click.pass_context
def refresh_rates(ctx):
    """Fetch the latest rates and overwrite the stored table."""
    provider = _require_provider(ctx)
    try:
        table = provider.fetch_latest()
        ctx.obj["store"].save(table)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Saved {len(table.rates)} rates (last updated {table.last_updated:%Y-%m-%d %H:%M} UTC)")


@rates_group.command("compare")
@click.option("--save", is_flag=True, help="Save the fetched rates after comparing")
@click.pass_context
def compare(ctx, save: bool):
    """Compare stored rates with the latest rates."""
    provider = _require_provider(ctx)
    store = ctx.obj["store"]
    try:
        stored = store.load()
        fresh = provider.fetch_latest()
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    changes = compare_rates(stored, fresh)
    if not changes:
        click.echo("No currencies in common between stored and latest rates.")
    else:
        click.echo(f"{'Currency':<10} {'Stored':>14} {'Latest':>14} {'Change':>9}")
        for code in sorted(changes):
            click.echo(
                f"{code:<10} {stored.rates[code]:>14} {fresh.rates[code]:>14} {changes[code]:>8}%"
            )

    if save:
        try:
            store.save(fresh)
        except DomainError as e:
            handle_domain_error(ctx, e)
            return
        click.echo("Saved latest rates.")


def register_commands(cli):
    """Register rate commands with main CLI."""
    cli.add_command(rates_group, name="rates")
