"""Expense and category domain services."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fintrack.database.base import Database
from fintrack.domain.currency import CurrencyConverter
from fintrack.domain.entities import Category, Expense, PaymentMethod, payment_method_to_document
from fintrack.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    expense_not_found,
)
from fintrack.domain.money import currency_decimal_places, normalize_currency, round_money

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for managing expense categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(self, name: str) -> int:
        """Create a category.

        Args:
            name: Category name

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a category with that name already exists
        """
        if not name or not name.strip():
            raise ValidationError("Category name is required")
        name = name.strip()
        if self.db.get_category_by_name(name) is not None:
            raise ConflictError(f"Category '{name}' already exists")
        return self.db.create_category(name=name)

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.db.get_category(category_id)

    def require_category(self, category: int | str) -> Category:
        """Get a category by ID or name.

        Raises:
            NotFoundError: If no such category exists
        """
        if isinstance(category, int):
            found = self.db.get_category(category)
        else:
            found = self.db.get_category_by_name(category.strip())
            if found is None and category.strip().isdigit():
                found = self.db.get_category(int(category))
        if found is None:
            raise NotFoundError(category_not_found(category))
        return found

    def list_categories(self) -> list[Category]:
        """List categories by name."""
        return self.db.list_categories()


class ExpenseService:
    """Service for recording expenses.

    The converted amount is a snapshot taken at write time with the rates
    in effect then; reads never recompute it.
    """

    def __init__(self, db: Database, converter: CurrencyConverter):
        """Initialize expense service.

        Args:
            db: Database instance
            converter: Converter used for write-time snapshots
        """
        self.db = db
        self.converter = converter

    def create_expense(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        payment_method: PaymentMethod,
        category_id: Optional[int] = None,
        when: Optional[datetime] = None,
        description: Optional[str] = None,
        receipt_image: Optional[str] = None,
        product_image: Optional[str] = None,
        is_public: bool = False,
    ) -> int:
        """Record an expense and its converted snapshot.

        Args:
            amount: Amount in ``from_currency``
            from_currency: Currency the expense was paid in
            to_currency: Main currency to snapshot the conversion into
            payment_method: How the expense was paid
            category_id: Optional category ID
            when: Expense timestamp (defaults to now)
            description: Optional description

        Returns:
            Expense ID

        Raises:
            ValidationError: If the amount is negative
            NotFoundError: If the category does not exist
            RateUnavailableError: If no rate exists for the conversion
        """
        if amount < 0:
            raise ValidationError(f"Expense amount must be non-negative, got {amount}")
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        if category_id is not None and self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id))

        expense_id = self.db.create_expense(
            amount=amount,
            from_currency=source,
            converted_amount=self._snapshot(amount, source, target),
            to_currency=target,
            category_id=category_id,
            payment_method=payment_method_to_document(payment_method),
            date=when or datetime.now(),
            description=description,
            receipt_image=receipt_image,
            product_image=product_image,
            is_public=is_public,
        )
        logger.info("Recorded expense %s of %s %s", expense_id, amount, source)
        return expense_id

    def get_expense(self, expense_id: int) -> Expense:
        """Get expense by ID.

        Raises:
            NotFoundError: If the expense does not exist
        """
        expense = self.db.get_expense(expense_id)
        if expense is None:
            raise NotFoundError(expense_not_found(expense_id))
        return expense

    def list_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[int] = None,
    ) -> list[Expense]:
        """List expenses, newest first."""
        return self.db.list_expenses(start_date=start_date, end_date=end_date, category_id=category_id)

    def update_expense(
        self,
        expense_id: int,
        amount: Optional[Decimal] = None,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
        category_id: Optional[int] = None,
        when: Optional[datetime] = None,
        description: Optional[str] = None,
    ) -> Expense:
        """Edit an expense.

        The snapshot is re-converted with current rates only when the amount
        or either currency changes.
        """
        expense = self.get_expense(expense_id)
        fields = {}
        if amount is not None:
            if amount < 0:
                raise ValidationError(f"Expense amount must be non-negative, got {amount}")
            fields["amount"] = amount
        if from_currency is not None:
            fields["from_currency"] = normalize_currency(from_currency)
        if to_currency is not None:
            fields["to_currency"] = normalize_currency(to_currency)
        if payment_method is not None:
            fields["payment_method"] = payment_method_to_document(payment_method)
        if category_id is not None:
            if self.db.get_category(category_id) is None:
                raise NotFoundError(category_not_found(category_id))
            fields["category_id"] = category_id
        if when is not None:
            fields["date"] = when
        if description is not None:
            fields["description"] = description

        if {"amount", "from_currency", "to_currency"} & fields.keys():
            fields["converted_amount"] = self._snapshot(
                fields.get("amount", expense.amount),
                fields.get("from_currency", expense.from_currency),
                fields.get("to_currency", expense.to_currency),
            )
        if fields:
            self.db.update_expense(expense_id, **fields)
        return self.get_expense(expense_id)

    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense."""
        self.get_expense(expense_id)
        self.db.delete_expense(expense_id)

    def _snapshot(self, amount: Decimal, source: str, target: str) -> Decimal:
        converted = self.converter.convert(amount, source, target)
        return round_money(converted, currency_decimal_places(target))
