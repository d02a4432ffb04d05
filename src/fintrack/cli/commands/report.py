"""Report commands."""

import click

from fintrack.cli.error_handling import display_currency, handle_domain_error
from fintrack.domain.errors import DomainError
from fintrack.domain.money import format_money
from fintrack.domain.report import ReportPeriod, ReportService


def _print_buckets(title: str, buckets: dict, currency: str | None = None) -> None:
    click.echo(f"\n{title}:")
    if not buckets:
        click.echo("  (none)")
        return
    for key, amount in sorted(buckets.items(), key=lambda item: (-item[1], item[0])):
        click.echo(f"  {key:<40} {format_money(amount, currency or key):>22}")


@click.group()
def report_group():
    """Show reports."""
    pass


@report_group.command("expenses")
@click.option("--period", default="this-month", show_default=True, help="all, this-month, last-month or YYYY-MM")
@click.option("--currency", help="Display currency (defaults to the main currency)")
@click.option("--daily", is_flag=True, help="Also show the daily series")
@click.option("--monthly", is_flag=True, help="Also show totals for every month")
@click.pass_context
def expenses_report(ctx, period: str, currency: str | None, daily: bool, monthly: bool):
    """Summarize expenses by currency, category and payment method."""
    service = ReportService(ctx.obj["db"])
    converter = ctx.obj["converter"]
    try:
        target = display_currency(currency)
        report_period = ReportPeriod.parse(period)
        report = service.expense_report(report_period, target, converter)
        months = service.monthly_totals(target, converter) if monthly else []
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Expenses for {report_period.label()} ({report.expense_count} expense(s))")
    _print_buckets("By currency (native)", report.by_currency)
    _print_buckets(f"By category ({target})", report.by_category, target)
    _print_buckets(f"By payment method ({target})", report.by_payment_method, target)
    click.echo(f"\nTotal:         {format_money(report.total, target)}")
    click.echo(f"Daily average: {format_money(report.daily_average, target)} over {report.day_count} day(s)")
    if report.failed_conversions:
        click.echo(
            f"{report.failed_conversions} expense(s) could not be converted to {target} "
            "and are only counted by currency."
        )

    if daily:
        click.echo("\nDaily:")
        for day, amount in report.daily_series:
            click.echo(f"  {day.isoformat()} {format_money(amount, target):>22}")
    if monthly:
        click.echo("\nMonthly:")
        for month, amount in months:
            click.echo(f"  {month}    {format_money(amount, target):>22}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
