"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date, datetime

# Import entities directly to avoid circular import through domain/__init__.py
from fintrack.domain.entities import (
    Category,
    DebtRecord,
    DebtTransaction,
    Expense,
    Investment,
    RateTable,
)


class Database(ABC):
    """Abstract document-store interface for fintrack.

    Implementations only need fetch-by-field, fetch-by-id, insert, update
    and delete for each collection.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Debt operations
    @abstractmethod
    def create_debt(self, **fields: Any) -> int:
        """Create a debt. Returns debt ID."""
        pass

    @abstractmethod
    def get_debt(self, debt_id: int) -> Optional[DebtRecord]:
        """Get debt by ID."""
        pass

    @abstractmethod
    def list_debts(self) -> list[DebtRecord]:
        """List all debts."""
        pass

    @abstractmethod
    def update_debt(self, debt_id: int, **fields: Any) -> None:
        """Update debt fields."""
        pass

    @abstractmethod
    def delete_debt(self, debt_id: int) -> None:
        """Delete a debt."""
        pass

    # Debt transaction operations
    @abstractmethod
    def create_debt_transaction(
        self, debt_id: int, type: str, amount: Any, date: datetime
    ) -> int:
        """Create a debt ledger entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_debt_transaction(self, transaction_id: int) -> Optional[DebtTransaction]:
        """Get debt ledger entry by ID."""
        pass

    @abstractmethod
    def list_debt_transactions(self, debt_id: int) -> list[DebtTransaction]:
        """List ledger entries where debt_id equals the given ID, in insertion order."""
        pass

    @abstractmethod
    def update_debt_transaction(self, transaction_id: int, **fields: Any) -> None:
        """Update ledger entry fields."""
        pass

    @abstractmethod
    def delete_debt_transaction(self, transaction_id: int) -> None:
        """Delete a ledger entry."""
        pass

    # Investment operations
    @abstractmethod
    def create_investment(self, **fields: Any) -> int:
        """Create an investment. Returns investment ID."""
        pass

    @abstractmethod
    def get_investment(self, investment_id: int) -> Optional[Investment]:
        """Get investment by ID."""
        pass

    @abstractmethod
    def list_investments(
        self,
        currency: Optional[str] = None,
        platform: Optional[str] = None,
        type: Optional[str] = None,
    ) -> list[Investment]:
        """List investments with optional field filters."""
        pass

    @abstractmethod
    def update_investment(self, investment_id: int, **fields: Any) -> None:
        """Update investment fields."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, name: str) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, name: str) -> Optional[Category]:
        """Get category by name."""
        pass

    @abstractmethod
    def list_categories(self) -> list[Category]:
        """List all categories."""
        pass

    # Expense operations
    @abstractmethod
    def create_expense(self, **fields: Any) -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def list_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[int] = None,
    ) -> list[Expense]:
        """List expenses, newest first, with optional filters."""
        pass

    @abstractmethod
    def update_expense(self, expense_id: int, **fields: Any) -> None:
        """Update expense fields."""
        pass

    @abstractmethod
    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense."""
        pass

    # Conversion rate operations
    @abstractmethod
    def get_conversion_rates(self) -> Optional[RateTable]:
        """Get the stored rate table, or None if never saved."""
        pass

    @abstractmethod
    def save_conversion_rates(self, table: RateTable) -> None:
        """Overwrite the stored rate table."""
        pass
