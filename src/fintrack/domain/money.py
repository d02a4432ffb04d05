"""Currency code and decimal helpers shared by the domain layer."""

from decimal import Decimal, ROUND_HALF_UP

from fintrack.domain.errors import ValidationError

# All stored rates are expressed relative to this currency.
BASE_CURRENCY = "USD"

# Codes the original currency picker used that are not ISO 4217.
CURRENCY_ALIASES = {
    "RMB": "CNY",
}

# Currencies whose minor unit has no decimals.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "IDR", "ISK", "JPY", "KHR", "KMF", "KRW",
     "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)

CENT = Decimal("0.01")


def normalize_currency(value: str) -> str:
    """Normalize a currency code to upper-case ISO form.

    Raises:
        ValidationError: If the value is not a three-letter code
    """
    if value is None:
        raise ValidationError("Currency code is required")
    normalized = value.strip().upper()
    normalized = CURRENCY_ALIASES.get(normalized, normalized)
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValidationError(f"Invalid currency code '{value}': expected a 3-letter ISO 4217 code")
    return normalized


def currency_decimal_places(currency: str) -> int:
    """Return the number of decimal places allowed for a currency."""
    return 0 if normalize_currency(currency) in ZERO_DECIMAL_CURRENCIES else 2


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round an amount half-up to a number of decimal places."""
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, currency: str) -> str:
    """Format an amount with its currency's precision and a thousands separator."""
    places = currency_decimal_places(currency)
    return f"{round_money(amount, places):,.{places}f} {currency}"
