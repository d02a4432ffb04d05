"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidNumericInputError(ValidationError):
    """Malformed amount input (non-numeric or too many decimal places)."""


class NotFoundError(DomainError):
    """Requested domain entity or record does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as selling an investment twice."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class RateUnavailableError(DomainError):
    """A required currency is missing from the resolved rate table."""

    def __init__(self, currency: str):
        super().__init__(f"No exchange rate available for {currency}")
        self.currency = currency


class RateStoreError(DomainError):
    """The stored rate table could not be read or written."""


class RateProviderError(DomainError):
    """Fetching rates from the external provider failed."""


class NetworkFailureError(RateProviderError):
    """The provider could not be reached or returned an HTTP error."""


class ApiQuotaExceededError(RateProviderError):
    """The provider rejected the request because of quota or access limits."""


class RateParseError(RateProviderError):
    """The provider response could not be parsed into a rate table."""


def debt_not_found(debt_id: int) -> str:
    """Return message for missing debt."""
    return f"Debt {debt_id} not found"


def debt_transaction_not_found(transaction_id: int) -> str:
    """Return message for missing debt transaction."""
    return f"Debt transaction {transaction_id} not found"


def investment_not_found(investment_id: int) -> str:
    """Return message for missing investment."""
    return f"Investment {investment_id} not found"


def expense_not_found(expense_id: int) -> str:
    """Return message for missing expense."""
    return f"Expense {expense_id} not found"


def category_not_found(category: int | str) -> str:
    """Return message for missing category by ID or name."""
    if isinstance(category, int):
        return f"Category {category} not found"
    return f"Category '{category}' not found"


def investment_already_sold(investment_id: int) -> str:
    """Return message when selling an investment that is already sold."""
    return f"Investment {investment_id} has already been sold"


def debt_delete_blocked(debt_id: int, transaction_count: int) -> str:
    """Return message when a debt still has ledger entries."""
    return (
        f"Cannot delete debt {debt_id}: it has {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        "Delete them first or use --cascade."
    )
