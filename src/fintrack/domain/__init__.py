"""Domain layer for fintrack application.

Services are exported lazily: the database layer imports
``fintrack.domain.entities``, and services import the database layer.
"""

_SERVICES = {
    "CurrencyConverter": "fintrack.domain.currency",
    "DebtService": "fintrack.domain.debt",
    "CategoryService": "fintrack.domain.expense",
    "ExpenseService": "fintrack.domain.expense",
    "InvestmentService": "fintrack.domain.investment",
    "ReportService": "fintrack.domain.report",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
