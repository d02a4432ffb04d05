"""Main CLI entry point."""

import logging

import click

from fintrack.cli.commands import (
    category,
    convert,
    debt,
    expense,
    investment,
    rates,
    report,
)
from fintrack.cli.error_handling import handle_domain_error
from fintrack.config import Settings
from fintrack.database.factories import create_sqlite_database
from fintrack.domain.currency import CurrencyConverter
from fintrack.domain.errors import DomainError
from fintrack.domain.preferences import UserPreferences, end_session, start_session
from fintrack.rates.provider import OpenExchangeRatesProvider
from fintrack.rates.store import RateStore


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINTRACK_DB_PATH environment variable)",
    envvar="FINTRACK_DB_PATH",
)
@click.option(
    "--currency",
    "main_currency",
    help="Main display currency (overrides FINTRACK_MAIN_CURRENCY environment variable)",
    envvar="FINTRACK_MAIN_CURRENCY",
)
@click.option("--verbose", "-v", is_flag=True, help="Log rate fetches, saves and recalculations")
@click.pass_context
def cli(ctx, db_path: str | None, main_currency: str | None, verbose: bool):
    """Fintrack - personal finance tracking.

    Track debts, investments and expenses in any currency and report on
    them in your main currency using stored exchange rates.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is None:
        return

    try:
        settings = Settings.from_env()
        preferences = UserPreferences(main_currency=main_currency or settings.main_currency)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    db = create_sqlite_database(database_path=db_path or settings.db_path)
    db.connect()
    db.initialize_schema()
    ctx.call_on_close(db.disconnect)

    store = RateStore(db)
    # A provider may be supplied by the caller through ctx.obj.
    provider = ctx.obj.get("provider")
    if provider is None and settings.rates_app_id:
        provider = OpenExchangeRatesProvider(
            settings.rates_app_id,
            api_url=settings.rates_api_url,
            timeout=settings.rates_timeout,
        )

    start_session(preferences)
    ctx.call_on_close(end_session)

    ctx.obj["settings"] = settings
    ctx.obj["db"] = db
    ctx.obj["store"] = store
    ctx.obj["provider"] = provider
    ctx.obj["converter"] = CurrencyConverter(store, provider)


# Register all commands
rates.register_commands(cli)
convert.register_commands(cli)
debt.register_commands(cli)
investment.register_commands(cli)
expense.register_commands(cli)
category.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
