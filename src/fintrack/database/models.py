"""SQLAlchemy models for fintrack database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

# Wide enough for converted amounts and exchange rates such as IDR per USD.
MONEY = Numeric(20, 8)


class Debt(Base):
    """Debt model."""

    __tablename__ = "debts"

    id = Column(Integer, primary_key=True)
    owe_to = Column(String, nullable=False)
    principal_amount = Column(MONEY, nullable=False)
    original_amount = Column(MONEY, nullable=False)
    currency = Column(String(3), nullable=False)
    repayment_amount = Column(MONEY, nullable=False, default=0)
    interest_rate = Column(MONEY, nullable=False, default=0)
    repayment_day = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class DebtTransaction(Base):
    """Debt ledger entry model.

    ``debt_id`` is a lookup key only; deleting a debt does not cascade here,
    the domain layer decides what happens to the entries.
    """

    __tablename__ = "debt_transactions"

    id = Column(Integer, primary_key=True)
    debt_id = Column(Integer, ForeignKey("debts.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Investment(Base):
    """Investment model."""

    __tablename__ = "investments"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False)
    platform = Column(String, nullable=False)
    purchase_date = Column(Date, nullable=False)
    quantity = Column(MONEY, nullable=False)
    unit = Column(String, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    currency = Column(String(3), nullable=False)
    style = Column(String, nullable=True)
    sold_amount = Column(MONEY, nullable=True)
    sold_date = Column(DateTime, nullable=True)
    profit = Column(MONEY, nullable=True)


class Category(Base):
    """Expense category model."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    expenses = relationship("Expense", back_populates="category")


class Expense(Base):
    """Expense model."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    amount = Column(MONEY, nullable=False)
    from_currency = Column(String(3), nullable=False)
    converted_amount = Column(MONEY, nullable=False)
    to_currency = Column(String(3), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    payment_method = Column(JSON, nullable=False)
    date = Column(DateTime, nullable=False)
    description = Column(String, nullable=True)
    receipt_image = Column(String, nullable=True)
    product_image = Column(String, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="expenses")


class ConversionRates(Base):
    """Single-slot stored rate table.

    Rates are kept as strings in JSON so Decimal values round-trip exactly.
    """

    __tablename__ = "conversion_rates"

    slot = Column(String, primary_key=True, default="rates")
    base_currency = Column(String(3), nullable=False, default="USD")
    rates = Column(JSON, nullable=False)
    last_updated = Column(DateTime, nullable=False)


def create_database_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine for a database URL."""
    return create_engine(database_url, echo=False)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory bound to an engine."""
    return sessionmaker(bind=engine)


def create_schema(engine: Engine) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(engine)
