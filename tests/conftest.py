"""Shared pytest fixtures for fintrack tests."""

import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

from fintrack.database.factories import create_sqlite_database
from fintrack.domain.currency import CurrencyConverter
from fintrack.domain.debt import DebtService
from fintrack.domain.entities import RateTable
from fintrack.domain.expense import CategoryService, ExpenseService
from fintrack.domain.investment import InvestmentService
from fintrack.domain.report import ReportService
from fintrack.rates.provider import StaticRateProvider
from fintrack.rates.store import RateStore

# Units of each currency per 1 USD.
SAMPLE_RATES = {
    "MYR": Decimal("4.0"),
    "EUR": Decimal("0.9"),
    "JPY": Decimal("150"),
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's FINTRACK_* settings out of tests."""
    for name in list(os.environ):
        if name.startswith("FINTRACK_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def rate_table():
    """A rate table with USD as base."""
    return RateTable(rates=SAMPLE_RATES, last_updated=datetime(2024, 5, 1, 12, 0))


@pytest.fixture
def rate_store(temp_db):
    """Create a RateStore with a temporary database."""
    return RateStore(temp_db)


@pytest.fixture
def stored_rates(rate_store, rate_table):
    """Save the sample rate table and return it."""
    rate_store.save(rate_table)
    return rate_table


@pytest.fixture
def static_provider():
    """A provider that serves the sample rates without network access."""
    return StaticRateProvider(rates=SAMPLE_RATES)


@pytest.fixture
def converter(rate_store, stored_rates):
    """Create a converter backed by stored sample rates."""
    return CurrencyConverter(rate_store)


@pytest.fixture
def debt_service(temp_db):
    """Create a DebtService with a temporary database."""
    return DebtService(temp_db)


@pytest.fixture
def investment_service(temp_db):
    """Create an InvestmentService with a temporary database."""
    return InvestmentService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def expense_service(temp_db, converter):
    """Create an ExpenseService with a temporary database and sample rates."""
    return ExpenseService(temp_db, converter)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
