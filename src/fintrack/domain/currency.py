"""Currency conversion and rate comparison.

Rates are always relative to ``BASE_CURRENCY``. The converter resolves a
rate table from the store first and falls back to the live provider only
when nothing has ever been stored.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from fintrack.domain.entities import RateTable
from fintrack.domain.errors import (
    NotFoundError,
    RateProviderError,
    RateStoreError,
    RateUnavailableError,
)
from fintrack.domain.money import (
    BASE_CURRENCY,
    format_money,
    normalize_currency,
    round_money,
)

logger = logging.getLogger(__name__)


class RateTableSource(Protocol):
    """Anything that can load the last saved rate table."""

    def load(self) -> RateTable:
        ...


class RateTableProvider(Protocol):
    """Anything that can fetch a fresh rate table."""

    def fetch_latest(self, base_currency: str = BASE_CURRENCY) -> RateTable:
        ...


def convert_with_table(
    table: RateTable, amount: Decimal, from_currency: str, to_currency: str
) -> Decimal:
    """Convert an amount using an already resolved rate table.

    Args:
        table: Rate table relative to the base currency
        amount: Amount in ``from_currency``
        from_currency: Source currency code
        to_currency: Target currency code

    Returns:
        Converted amount, unrounded. Identity conversions return ``amount``
        unchanged.

    Raises:
        RateUnavailableError: If a required rate is missing from the table.
            The original amount is never returned as a fallback here.
    """
    source = normalize_currency(from_currency)
    target = normalize_currency(to_currency)
    if source == target:
        return amount

    base = table.base_currency
    if source == base:
        return amount * _require_rate(table, target)
    if target == base:
        return amount / _require_rate(table, source)
    return (amount / _require_rate(table, source)) * _require_rate(table, target)


def _require_rate(table: RateTable, currency: str) -> Decimal:
    rate = table.rate_for(currency)
    if rate is None or rate == 0:
        raise RateUnavailableError(currency)
    return rate


class CurrencyConverter:
    """Convert amounts using the best available rate table."""

    def __init__(self, store: RateTableSource, provider: Optional[RateTableProvider] = None):
        """Initialize converter.

        Args:
            store: Source of the last saved rate table
            provider: Live provider used when the store has never been populated
        """
        self.store = store
        self.provider = provider

    def resolve_table(self) -> RateTable:
        """Load the stored table, falling back to a fresh fetch.

        Provider errors propagate to the caller.
        """
        try:
            return self.store.load()
        except NotFoundError:
            if self.provider is None:
                raise
            logger.info("No stored rate table, fetching latest rates from provider")
            return self.provider.fetch_latest(BASE_CURRENCY)

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        """Convert an amount between two currencies.

        Identity conversions short-circuit without touching the store.
        Callers converting many amounts should call ``resolve_table`` once
        and use ``convert_with_table``.
        """
        if normalize_currency(from_currency) == normalize_currency(to_currency):
            return amount
        return convert_with_table(self.resolve_table(), amount, from_currency, to_currency)


@dataclass(frozen=True)
class ConvertedAmount:
    """A conversion outcome that may be unavailable.

    When ``value`` is None the conversion failed and ``original`` holds the
    native amount, in ``source_currency``, for display as a last resort.
    """

    original: Decimal
    source_currency: str
    currency: str
    value: Optional[Decimal] = None
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.value is not None

    def display(self) -> str:
        """Render for display, degrading to the native amount on failure."""
        if self.available:
            return format_money(self.value, self.currency)
        return f"{format_money(self.original, self.source_currency)} (conversion unavailable)"


def try_convert(
    table: Optional[RateTable],
    amount: Decimal,
    from_currency: str,
    to_currency: str,
) -> ConvertedAmount:
    """Convert for display, capturing rate failures instead of raising."""
    source = normalize_currency(from_currency)
    target = normalize_currency(to_currency)
    if table is None:
        if source == target:
            return ConvertedAmount(original=amount, source_currency=source, currency=target, value=amount)
        return ConvertedAmount(original=amount, source_currency=source, currency=target, error="No rate table available")
    try:
        value = convert_with_table(table, amount, from_currency, to_currency)
    except RateUnavailableError as e:
        return ConvertedAmount(original=amount, source_currency=source, currency=target, error=str(e))
    return ConvertedAmount(original=amount, source_currency=source, currency=target, value=value)


def compare_rates(stored: RateTable, fresh: RateTable) -> dict[str, Decimal]:
    """Compute percentage change from stored to fresh rates.

    Only currencies present in both tables are reported; the result is
    rounded to two decimal places.
    """
    comparisons: dict[str, Decimal] = {}
    for currency, stored_rate in stored.rates.items():
        fresh_rate = fresh.rates.get(currency)
        if fresh_rate is None or stored_rate == 0:
            continue
        delta = (fresh_rate - stored_rate) / stored_rate * 100
        comparisons[currency] = round_money(delta)
    return comparisons


def resolve_table_or_none(converter: CurrencyConverter) -> Optional[RateTable]:
    """Resolve a rate table, or None so display code can degrade instead of failing."""
    try:
        return converter.resolve_table()
    except (NotFoundError, RateStoreError, RateProviderError) as e:
        logger.warning("No rate table available for conversion: %s", e)
        return None
