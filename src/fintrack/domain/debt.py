"""Debt ledger recalculation and debt domain service."""

import calendar
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from dateutil.relativedelta import relativedelta

from fintrack.database.base import Database
from fintrack.domain.currency import (
    ConvertedAmount,
    CurrencyConverter,
    resolve_table_or_none,
    try_convert,
)
from fintrack.domain.entities import DebtRecord, DebtTransaction, DebtTransactionType
from fintrack.domain.errors import (
    DependencyError,
    NotFoundError,
    ValidationError,
    debt_delete_blocked,
    debt_not_found,
    debt_transaction_not_found,
)
from fintrack.domain.money import normalize_currency

logger = logging.getLogger(__name__)


def sort_chronologically(transactions: Iterable[DebtTransaction]) -> list[DebtTransaction]:
    """Order ledger entries by date.

    The sort is stable: entries with the same date keep the order they were
    given in, which for stored entries is insertion order.
    """
    return sorted(transactions, key=lambda txn: txn.date)


def recompute_balance(
    original_principal: Decimal, transactions: Iterable[DebtTransaction]
) -> Decimal:
    """Replay a debt's full ledger from its original principal.

    Entries are folded in date order regardless of the order passed in:
    payments and repayments reduce the balance, interest increases it.
    """
    balance = original_principal
    for txn in sort_chronologically(transactions):
        if txn.type.reduces_balance:
            balance -= txn.amount
        else:
            balance += txn.amount
    return balance


def calculate_interest(balance: Decimal, yearly_rate_percent: Decimal) -> Decimal:
    """Return one interest accrual on the current balance."""
    return balance * yearly_rate_percent / 100


def next_repayment_date(repayment_day_of_month: int, today: Optional[date] = None) -> date:
    """Return the next repayment date on or after today.

    When today's day of month is past the repayment day the date rolls to
    next month. Months shorter than the repayment day use their last day.
    """
    if not 1 <= repayment_day_of_month <= 31:
        raise ValidationError(f"Repayment day must be between 1 and 31, got {repayment_day_of_month}")
    today = today or date.today()

    def in_month(year: int, month: int) -> date:
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, min(repayment_day_of_month, last_day))

    candidate = in_month(today.year, today.month)
    if candidate >= today:
        return candidate
    following = today.replace(day=1) + relativedelta(months=1)
    return in_month(following.year, following.month)


class DebtService:
    """Service for managing debts and their ledgers."""

    def __init__(self, db: Database):
        """Initialize debt service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_debt(
        self,
        owe_to: str,
        amount: Decimal,
        currency: str,
        repayment_amount: Decimal = Decimal("0"),
        interest_rate: Decimal = Decimal("0"),
        repayment_day: int = 1,
        start_date: Optional[date] = None,
    ) -> int:
        """Create a debt.

        Args:
            owe_to: Who the money is owed to
            amount: Principal, which also seeds ledger replay
            currency: Debt currency
            repayment_amount: Regular repayment amount
            interest_rate: Yearly interest rate in percent
            repayment_day: Day of month repayments fall due (1-31)
            start_date: Debt start date (defaults to today)

        Returns:
            Debt ID

        Raises:
            ValidationError: If any field is out of range
        """
        if not owe_to or not owe_to.strip():
            raise ValidationError("Debt creditor name is required")
        if amount < 0 or repayment_amount < 0 or interest_rate < 0:
            raise ValidationError("Debt amount, repayment amount and interest rate must be non-negative")
        if not 1 <= repayment_day <= 31:
            raise ValidationError(f"Repayment day must be between 1 and 31, got {repayment_day}")

        debt_id = self.db.create_debt(
            owe_to=owe_to.strip(),
            principal_amount=amount,
            original_amount=amount,
            currency=normalize_currency(currency),
            repayment_amount=repayment_amount,
            interest_rate=interest_rate,
            repayment_day=repayment_day,
            start_date=start_date or date.today(),
        )
        logger.info("Created debt %s owed to %s", debt_id, owe_to)
        return debt_id

    def get_debt(self, debt_id: int) -> Optional[DebtRecord]:
        """Get debt by ID, or None if not found."""
        return self.db.get_debt(debt_id)

    def require_debt(self, debt_id: int) -> DebtRecord:
        """Get debt by ID.

        Raises:
            NotFoundError: If the debt does not exist
        """
        debt = self.db.get_debt(debt_id)
        if debt is None:
            raise NotFoundError(debt_not_found(debt_id))
        return debt

    def list_debts(self) -> list[DebtRecord]:
        """List all debts."""
        return self.db.list_debts()

    def update_debt(
        self,
        debt_id: int,
        owe_to: Optional[str] = None,
        currency: Optional[str] = None,
        repayment_amount: Optional[Decimal] = None,
        interest_rate: Optional[Decimal] = None,
        repayment_day: Optional[int] = None,
        original_amount: Optional[Decimal] = None,
    ) -> DebtRecord:
        """Update debt terms.

        Changing ``original_amount`` replays the ledger so the balance
        reflects the new seed.
        """
        self.require_debt(debt_id)
        fields: dict[str, Any] = {}
        if owe_to is not None:
            fields["owe_to"] = owe_to.strip()
        if currency is not None:
            fields["currency"] = normalize_currency(currency)
        if repayment_amount is not None:
            if repayment_amount < 0:
                raise ValidationError("Repayment amount must be non-negative")
            fields["repayment_amount"] = repayment_amount
        if interest_rate is not None:
            if interest_rate < 0:
                raise ValidationError("Interest rate must be non-negative")
            fields["interest_rate"] = interest_rate
        if repayment_day is not None:
            if not 1 <= repayment_day <= 31:
                raise ValidationError(f"Repayment day must be between 1 and 31, got {repayment_day}")
            fields["repayment_day"] = repayment_day
        if original_amount is not None:
            if original_amount < 0:
                raise ValidationError("Debt amount must be non-negative")
            fields["original_amount"] = original_amount

        if fields:
            self.db.update_debt(debt_id, **fields)
        if original_amount is not None:
            return self.recalculate(debt_id)
        return self.require_debt(debt_id)

    def list_transactions(self, debt_id: int) -> list[DebtTransaction]:
        """List a debt's ledger in chronological order."""
        self.require_debt(debt_id)
        return sort_chronologically(self.db.list_debt_transactions(debt_id))

    def recalculate(self, debt_id: int) -> DebtRecord:
        """Replay the whole ledger and persist the resulting balance."""
        debt = self.require_debt(debt_id)
        transactions = self.db.list_debt_transactions(debt_id)
        balance = recompute_balance(debt.original_amount, transactions)
        if balance != debt.principal_amount:
            logger.info(
                "Debt %s balance recalculated from %s to %s over %d transaction(s)",
                debt_id,
                debt.principal_amount,
                balance,
                len(transactions),
            )
        self.db.update_debt(debt_id, principal_amount=balance)
        return self.require_debt(debt_id)

    def add_transaction(
        self,
        debt_id: int,
        type: DebtTransactionType | str,
        amount: Decimal,
        when: Optional[datetime] = None,
    ) -> int:
        """Record a ledger entry and recalculate the balance.

        Returns:
            Debt transaction ID
        """
        self.require_debt(debt_id)
        txn_type = self._coerce_type(type)
        if amount < 0:
            raise ValidationError(f"Debt transaction amount must be non-negative, got {amount}")
        transaction_id = self.db.create_debt_transaction(
            debt_id=debt_id,
            type=txn_type.value,
            amount=amount,
            date=when or datetime.now(),
        )
        self.recalculate(debt_id)
        return transaction_id

    def record_payment(self, debt_id: int, amount: Decimal, when: Optional[datetime] = None) -> int:
        """Record a partial payment against a debt."""
        return self.add_transaction(debt_id, DebtTransactionType.PAYMENT, amount, when)

    def record_repayment(
        self, debt_id: int, amount: Optional[Decimal] = None, when: Optional[datetime] = None
    ) -> int:
        """Record a scheduled repayment (defaults to the debt's repayment amount)."""
        if amount is None:
            amount = self.require_debt(debt_id).repayment_amount
        return self.add_transaction(debt_id, DebtTransactionType.REPAYMENT, amount, when)

    def add_interest(self, debt_id: int, when: Optional[datetime] = None) -> int:
        """Accrue one period of interest on the current balance.

        Each call generates exactly one interest entry; nothing is scheduled.
        """
        debt = self.require_debt(debt_id)
        if debt.principal_amount <= 0:
            raise ValidationError(f"Debt {debt_id} has no outstanding balance to accrue interest on")
        interest = calculate_interest(debt.principal_amount, debt.interest_rate_percent_yearly)
        return self.add_transaction(debt_id, DebtTransactionType.INTEREST, interest, when)

    def update_transaction(
        self,
        transaction_id: int,
        type: Optional[DebtTransactionType | str] = None,
        amount: Optional[Decimal] = None,
        when: Optional[datetime] = None,
    ) -> DebtRecord:
        """Edit a ledger entry and recalculate its debt."""
        txn = self.require_transaction(transaction_id)
        fields: dict[str, Any] = {}
        if type is not None:
            fields["type"] = self._coerce_type(type).value
        if amount is not None:
            if amount < 0:
                raise ValidationError(f"Debt transaction amount must be non-negative, got {amount}")
            fields["amount"] = amount
        if when is not None:
            fields["date"] = when
        if fields:
            self.db.update_debt_transaction(transaction_id, **fields)
        return self.recalculate(txn.debt_id)

    def delete_transaction(self, transaction_id: int) -> DebtRecord:
        """Delete a ledger entry and recalculate its debt."""
        txn = self.require_transaction(transaction_id)
        self.db.delete_debt_transaction(transaction_id)
        return self.recalculate(txn.debt_id)

    def delete_debt(self, debt_id: int, cascade: bool = False) -> None:
        """Delete a debt.

        Args:
            debt_id: Debt ID to delete
            cascade: If True, delete the debt's ledger entries first

        Raises:
            DependencyError: If the debt has ledger entries and cascade is False
        """
        self.require_debt(debt_id)
        transactions = self.db.list_debt_transactions(debt_id)
        if transactions and not cascade:
            raise DependencyError(debt_delete_blocked(debt_id, len(transactions)))
        for txn in transactions:
            self.db.delete_debt_transaction(txn.id)
        self.db.delete_debt(debt_id)
        logger.info("Deleted debt %s and %d transaction(s)", debt_id, len(transactions))

    def total_outstanding(
        self, display_currency: str, converter: CurrencyConverter
    ) -> tuple[Decimal, list[tuple[DebtRecord, ConvertedAmount]]]:
        """Sum all debt balances in a display currency.

        Debts whose conversion fails are listed with an unavailable amount
        and left out of the total.
        """
        debts = self.list_debts()
        table = resolve_table_or_none(converter) if debts else None
        total = Decimal("0")
        rows = []
        for debt in debts:
            converted = try_convert(table, debt.principal_amount, debt.currency, display_currency)
            if converted.available:
                total += converted.value
            rows.append((debt, converted))
        return total, rows

    def require_transaction(self, transaction_id: int) -> DebtTransaction:
        """Get a ledger entry by ID.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        txn = self.db.get_debt_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(debt_transaction_not_found(transaction_id))
        return txn

    @staticmethod
    def _coerce_type(value: DebtTransactionType | str) -> DebtTransactionType:
        if isinstance(value, DebtTransactionType):
            return value
        try:
            return DebtTransactionType(value.strip().lower())
        except ValueError as e:
            raise ValidationError(
                f"Unknown debt transaction type '{value}'. Use payment, repayment or interest."
            ) from e
