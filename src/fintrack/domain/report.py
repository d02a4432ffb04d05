"""Expense report aggregation and report domain service."""

import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from dateutil.relativedelta import relativedelta

from fintrack.database.base import Database
from fintrack.domain.currency import (
    CurrencyConverter,
    convert_with_table,
    resolve_table_or_none,
)
from fintrack.domain.entities import Expense, RateTable
from fintrack.domain.errors import RateUnavailableError, ValidationError
from fintrack.domain.money import normalize_currency

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class ReportPeriod:
    """A calendar month, or all time when year and month are None."""

    year: Optional[int] = None
    month: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.year is None) != (self.month is None):
            raise ValidationError("Report period needs both year and month, or neither")
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValidationError(f"Invalid month {self.month}")

    @classmethod
    def all_time(cls) -> "ReportPeriod":
        return cls()

    @classmethod
    def for_month(cls, year: int, month: int) -> "ReportPeriod":
        return cls(year=year, month=month)

    @classmethod
    def parse(cls, value: str, today: Optional[date] = None) -> "ReportPeriod":
        """Parse 'all', 'this-month', 'last-month' or 'YYYY-MM'."""
        text = value.strip().lower()
        today = today or date.today()
        if text in ("all", "all-time"):
            return cls.all_time()
        if text == "this-month":
            return cls.for_month(today.year, today.month)
        if text == "last-month":
            previous = today.replace(day=1) - relativedelta(months=1)
            return cls.for_month(previous.year, previous.month)
        try:
            parsed = datetime.strptime(text, "%Y-%m")
        except ValueError as e:
            raise ValidationError(
                f"Unknown period '{value}'. Use all, this-month, last-month or YYYY-MM."
            ) from e
        return cls.for_month(parsed.year, parsed.month)

    @property
    def is_all_time(self) -> bool:
        return self.year is None

    def contains(self, moment: datetime) -> bool:
        """Return True if a local timestamp falls in this period."""
        if self.is_all_time:
            return True
        return moment.year == self.year and moment.month == self.month

    def label(self) -> str:
        if self.is_all_time:
            return "All time"
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class ExpenseReport:
    """Aggregated expense totals for one period.

    ``by_currency`` holds native amounts; every other amount is in
    ``display_currency``.
    """

    period: ReportPeriod
    display_currency: str
    by_currency: dict[str, Decimal]
    by_category: dict[str, Decimal]
    by_payment_method: dict[str, Decimal]
    total: Decimal
    daily_average: Decimal
    day_count: int
    daily_series: tuple[tuple[date, Decimal], ...]
    expense_count: int
    failed_conversions: int = 0


def filter_by_period(expenses: Sequence[Expense], period: ReportPeriod) -> list[Expense]:
    """Keep expenses whose date falls in the period."""
    return [expense for expense in expenses if period.contains(expense.date)]


def report_day_count(period: ReportPeriod, expenses: Sequence[Expense], now: datetime) -> int:
    """Return the number of days to average over.

    The current month counts days elapsed so far, other months count all
    their days, and all time counts calendar dates from the earliest
    expense to today inclusive. That is not the elapsed-time formula
    ``ceil(now - earliest) + 1``: it ignores time of day, so an expense at
    23:00 yesterday and one at 01:00 yesterday both give 2 days.
    """
    if period.is_all_time:
        if not expenses:
            return 1
        earliest = min(expense.date for expense in expenses).date()
        return max((now.date() - earliest).days + 1, 1)
    if period.year == now.year and period.month == now.month:
        return now.day
    return calendar.monthrange(period.year, period.month)[1]


def display_amount(
    expense: Expense, display_currency: str, table: Optional[RateTable]
) -> Decimal:
    """Return an expense amount in the display currency.

    The write-time snapshot is used when it is already in the display
    currency; otherwise the native amount is converted with ``table``.

    Raises:
        RateUnavailableError: If conversion needs a rate that is missing
    """
    if normalize_currency(expense.to_currency) == display_currency:
        return expense.converted_amount
    if normalize_currency(expense.from_currency) == display_currency:
        return expense.amount
    if table is None:
        raise RateUnavailableError(expense.from_currency)
    return convert_with_table(table, expense.amount, expense.from_currency, display_currency)


def aggregate_expenses(
    expenses: Sequence[Expense],
    period: ReportPeriod,
    display_currency: str,
    table: Optional[RateTable],
    now: Optional[datetime] = None,
    category_names: Optional[Mapping[int, str]] = None,
) -> ExpenseReport:
    """Bucket expenses by currency, category and payment method.

    Args:
        expenses: Expenses to aggregate (any order)
        period: Month or all time to report on
        display_currency: Currency for category, payment-method and total buckets
        table: Rate table resolved once for the whole report
        now: Current local time (defaults to now)
        category_names: Optional map of category IDs to display names

    Returns:
        ExpenseReport. Expenses that cannot be converted still count in
        ``by_currency`` but are left out of converted buckets and counted in
        ``failed_conversions``.
    """
    now = now or datetime.now()
    target = normalize_currency(display_currency)
    names = category_names or {}
    selected = filter_by_period(expenses, period)

    by_currency: dict[str, Decimal] = defaultdict(Decimal)
    by_category: dict[str, Decimal] = defaultdict(Decimal)
    by_payment_method: dict[str, Decimal] = defaultdict(Decimal)
    by_day: dict[date, Decimal] = defaultdict(Decimal)
    total = Decimal("0")
    failed = 0

    for expense in selected:
        by_currency[normalize_currency(expense.from_currency)] += expense.amount
        try:
            amount = display_amount(expense, target, table)
        except RateUnavailableError as e:
            logger.warning("Expense %s left out of converted totals: %s", expense.id, e)
            failed += 1
            continue

        if expense.category_id is None:
            category = UNCATEGORIZED
        else:
            category = names.get(expense.category_id, f"Category {expense.category_id}")
        by_category[category] += amount
        by_payment_method[expense.payment_method.label] += amount
        by_day[expense.date.date()] += amount
        total += amount

    day_count = report_day_count(period, selected, now)
    return ExpenseReport(
        period=period,
        display_currency=target,
        by_currency=dict(by_currency),
        by_category=dict(by_category),
        by_payment_method=dict(by_payment_method),
        total=total,
        daily_average=total / day_count,
        day_count=day_count,
        daily_series=tuple(sorted(by_day.items())),
        expense_count=len(selected),
        failed_conversions=failed,
    )


def monthly_totals(
    expenses: Sequence[Expense], display_currency: str, table: Optional[RateTable]
) -> list[tuple[str, Decimal]]:
    """Total expenses per 'YYYY-MM' in the display currency, newest first."""
    target = normalize_currency(display_currency)
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for expense in expenses:
        try:
            amount = display_amount(expense, target, table)
        except RateUnavailableError:
            continue
        totals[expense.date.strftime("%Y-%m")] += amount
    return sorted(totals.items(), reverse=True)


class ReportService:
    """Service for building expense reports from stored expenses."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db

    def expense_report(
        self,
        period: ReportPeriod,
        display_currency: str,
        converter: CurrencyConverter,
        now: Optional[datetime] = None,
    ) -> ExpenseReport:
        """Build an expense report for a period."""
        expenses = self.db.list_expenses()
        needs_table = any(
            normalize_currency(exp.to_currency) != normalize_currency(display_currency)
            for exp in expenses
        )
        table = resolve_table_or_none(converter) if needs_table else None
        category_names = {cat.id: cat.name for cat in self.db.list_categories()}
        return aggregate_expenses(
            expenses,
            period,
            display_currency,
            table,
            now=now,
            category_names=category_names,
        )

    def monthly_totals(
        self, display_currency: str, converter: CurrencyConverter
    ) -> list[tuple[str, Decimal]]:
        """Total stored expenses per month, newest first."""
        expenses = self.db.list_expenses()
        table = resolve_table_or_none(converter) if expenses else None
        return monthly_totals(expenses, display_currency, table)
