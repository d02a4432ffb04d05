"""Utility functions for fintrack."""

from fintrack.utils.amount_parser import parse_amount
from fintrack.utils.date_parser import parse_date, parse_datetime

__all__ = ["parse_amount", "parse_date", "parse_datetime"]
