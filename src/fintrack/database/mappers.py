"""Mapper functions to convert between domain models and SQLAlchemy models.

Stored values are validated here, at the loading boundary, so the pure
calculations never see malformed numbers.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from fintrack.domain import entities as domain
from fintrack.domain.errors import InvalidNumericInputError
from fintrack.database.models import (
    Category as ORMCategory,
    ConversionRates as ORMConversionRates,
    Debt as ORMDebt,
    DebtTransaction as ORMDebtTransaction,
    Expense as ORMExpense,
    Investment as ORMInvestment,
)


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce a stored numeric value to Decimal, rejecting malformed data."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)) and not isinstance(value, bool):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidNumericInputError(f"Stored field '{field_name}' is not numeric: {value!r}") from e
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise InvalidNumericInputError(f"Stored field '{field_name}' is not numeric: {value!r}")
    if not result.is_finite():
        raise InvalidNumericInputError(f"Stored field '{field_name}' is not finite: {value!r}")
    return result


def _optional_decimal(value: Any, field_name: str) -> Decimal | None:
    if value is None:
        return None
    return to_decimal(value, field_name)


def debt_to_domain(orm_debt: ORMDebt) -> domain.DebtRecord:
    """Convert SQLAlchemy Debt model to domain DebtRecord entity."""
    return domain.DebtRecord(
        id=orm_debt.id,
        owe_to=orm_debt.owe_to,
        principal_amount=to_decimal(orm_debt.principal_amount, "principal_amount"),
        original_amount=to_decimal(orm_debt.original_amount, "original_amount"),
        currency=orm_debt.currency,
        repayment_amount=to_decimal(orm_debt.repayment_amount, "repayment_amount"),
        interest_rate_percent_yearly=to_decimal(orm_debt.interest_rate, "interest_rate"),
        repayment_day_of_month=orm_debt.repayment_day,
        start_date=orm_debt.start_date,
        created_at=orm_debt.created_at,
    )


def debt_transaction_to_domain(orm_txn: ORMDebtTransaction) -> domain.DebtTransaction:
    """Convert SQLAlchemy DebtTransaction model to domain entity."""
    return domain.DebtTransaction(
        id=orm_txn.id,
        debt_id=orm_txn.debt_id,
        type=domain.DebtTransactionType(orm_txn.type),
        amount=to_decimal(orm_txn.amount, "amount"),
        date=orm_txn.date,
        created_at=orm_txn.created_at,
    )


def investment_to_domain(orm_investment: ORMInvestment) -> domain.Investment:
    """Convert SQLAlchemy Investment model to domain Investment entity."""
    return domain.Investment(
        id=orm_investment.id,
        title=orm_investment.title,
        type=orm_investment.type,
        platform=orm_investment.platform,
        purchase_date=orm_investment.purchase_date,
        quantity=to_decimal(orm_investment.quantity, "quantity"),
        unit=orm_investment.unit,
        total_amount=to_decimal(orm_investment.total_amount, "total_amount"),
        currency=orm_investment.currency,
        style=orm_investment.style,
        sold_amount=_optional_decimal(orm_investment.sold_amount, "sold_amount"),
        sold_date=orm_investment.sold_date,
        profit=_optional_decimal(orm_investment.profit, "profit"),
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        created_at=orm_category.created_at,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        amount=to_decimal(orm_expense.amount, "amount"),
        from_currency=orm_expense.from_currency,
        converted_amount=to_decimal(orm_expense.converted_amount, "converted_amount"),
        to_currency=orm_expense.to_currency,
        category_id=orm_expense.category_id,
        payment_method=domain.payment_method_from_document(orm_expense.payment_method),
        date=orm_expense.date,
        description=orm_expense.description,
        receipt_image=orm_expense.receipt_image,
        product_image=orm_expense.product_image,
        is_public=orm_expense.is_public,
    )


def rate_table_to_domain(orm_rates: ORMConversionRates) -> domain.RateTable:
    """Convert the stored rate slot to a domain RateTable."""
    rates = {
        code: to_decimal(value, f"rates.{code}")
        for code, value in (orm_rates.rates or {}).items()
    }
    return domain.RateTable(
        rates=rates,
        last_updated=orm_rates.last_updated,
        base_currency=orm_rates.base_currency,
    )


def rate_table_to_document(table: domain.RateTable) -> dict[str, str]:
    """Serialize rates as strings so they survive JSON storage exactly."""
    return {code: str(rate) for code, rate in table.rates.items()}
