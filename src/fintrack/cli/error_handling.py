"""CLI error handling helpers."""

from typing import Optional

import click

from fintrack.domain.errors import DomainError
from fintrack.domain.money import normalize_currency
from fintrack.domain.preferences import current_preferences


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def display_currency(override: Optional[str]) -> str:
    """Return the currency a command should display amounts in."""
    if override:
        return normalize_currency(override)
    return current_preferences().main_currency
