"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from fintrack.domain.errors import InvalidNumericInputError
from fintrack.domain.money import currency_decimal_places


def parse_amount(amount_str: str, currency: Optional[str] = None) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string
        currency: If given, reject more decimal places than the currency allows

    Returns:
        Decimal amount

    Raises:
        InvalidNumericInputError: If the string is not a finite number or
            has too many decimal places for ``currency``
    """
    if amount_str is None or not amount_str.strip():
        raise InvalidNumericInputError("Empty amount string")

    text = amount_str.strip()

    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    text = re.sub(r"[$€£¥]", "", text).replace(",", "").strip()

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise InvalidNumericInputError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise InvalidNumericInputError(f"Amount must be a finite number, got '{amount_str}'")

    if currency is not None:
        places = currency_decimal_places(currency)
        if -amount.as_tuple().exponent > places:
            raise InvalidNumericInputError(
                f"{currency.upper()} amounts allow at most {places} decimal place(s), got '{amount_str}'"
            )

    return -amount if is_negative else amount
