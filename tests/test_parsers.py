"""Tests for amount and date parsing."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from fintrack.domain.errors import InvalidNumericInputError, ValidationError
from fintrack.utils.amount_parser import parse_amount
from fintrack.utils.date_parser import parse_date, parse_datetime


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123.45", Decimal("123.45")),
        ("$1,234.56", Decimal("1234.56")),
        ("-20", Decimal("-20")),
        ("(12.50)", Decimal("-12.50")),
        ("  7 ", Decimal("7")),
    ],
)
def test_parse_amount(text, expected):
    """Test common amount formats."""
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "12.3.4", "NaN", "Infinity"])
def test_parse_amount_rejects_non_numeric(text):
    """Test non-numeric input raises InvalidNumericInputError."""
    with pytest.raises(InvalidNumericInputError):
        parse_amount(text)


def test_parse_amount_checks_currency_precision():
    """Test amounts may not have more decimals than the currency allows."""
    assert parse_amount("12.34", currency="MYR") == Decimal("12.34")
    assert parse_amount("1500", currency="JPY") == Decimal("1500")
    with pytest.raises(InvalidNumericInputError):
        parse_amount("12.345", currency="MYR")
    with pytest.raises(InvalidNumericInputError):
        parse_amount("1500.5", currency="jpy")


def test_invalid_amount_is_a_validation_error():
    """Test numeric input errors can be handled as validation errors."""
    with pytest.raises(ValidationError):
        parse_amount("twelve")


def test_parse_date():
    """Test absolute and relative dates."""
    today = date.today()
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("today") == today
    assert parse_date("Yesterday") == today - timedelta(days=1)
    assert parse_date("this month") == today.replace(day=1)


def test_parse_date_rejects_garbage():
    """Test unparseable dates raise ValidationError."""
    with pytest.raises(ValidationError):
        parse_date("blorp")


def test_parse_datetime():
    """Test timestamps keep their time and bare dates resolve to midnight."""
    assert parse_datetime("2024-01-15 10:30") == datetime(2024, 1, 15, 10, 30)
    assert parse_datetime("2024-01-15") == datetime(2024, 1, 15)
    with pytest.raises(ValidationError):
        parse_datetime("25:99 tomorrow")
