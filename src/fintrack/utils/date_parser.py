"""Date parsing utilities."""

from datetime import date, datetime, timedelta

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from fintrack.domain.errors import ValidationError


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    ones: "today", "yesterday", "tomorrow" and "last/this/next month".

    Raises:
        ValidationError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this month": today.replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
    }
    if text in relative_dates:
        return relative_dates[text]

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Could not parse date '{date_str}': {e}") from e


def parse_datetime(value: str) -> datetime:
    """Parse a timestamp; bare or relative dates resolve to midnight.

    "now" returns the current local time.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    text = value.strip().lower()
    if text == "now":
        return datetime.now()
    if ":" in text:
        try:
            return date_parser.parse(text)
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Could not parse timestamp '{value}': {e}") from e
    return datetime.combine(parse_date(text), datetime.min.time())
