"""Domain model entities for fintrack.

These are pure data classes representing business concepts, independent of
database schema. Money is always carried as Decimal.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union

from fintrack.domain.errors import ValidationError
from fintrack.domain.money import BASE_CURRENCY, normalize_currency


@dataclass(frozen=True)
class RateTable:
    """Snapshot of exchange rates relative to the base currency.

    The base currency's own rate is implicit and always 1. The mapping is
    copied into a read-only view on construction, so a table is never
    mutated in place; a refresh builds a new table.
    """

    rates: Mapping[str, Decimal]
    last_updated: datetime
    base_currency: str = BASE_CURRENCY

    def __post_init__(self) -> None:
        normalized = {}
        for code, rate in self.rates.items():
            if not isinstance(rate, Decimal):
                rate = Decimal(str(rate))
            normalized[normalize_currency(code)] = rate
        object.__setattr__(self, "rates", MappingProxyType(normalized))
        object.__setattr__(self, "base_currency", normalize_currency(self.base_currency))

    def rate_for(self, currency: str) -> Optional[Decimal]:
        """Return the rate for a currency, or None when it is not in the table."""
        code = normalize_currency(currency)
        if code == self.base_currency:
            return Decimal("1")
        return self.rates.get(code)

    def currencies(self) -> set[str]:
        """Return all currency codes the table can answer for."""
        return set(self.rates) | {self.base_currency}


class DebtTransactionType(str, Enum):
    """Kind of ledger entry recorded against a debt."""

    PAYMENT = "payment"
    REPAYMENT = "repayment"
    INTEREST = "interest"

    @property
    def reduces_balance(self) -> bool:
        return self is not DebtTransactionType.INTEREST


@dataclass(frozen=True)
class DebtRecord:
    """Outstanding obligation domain entity.

    ``principal_amount`` is the current balance as last persisted;
    ``original_amount`` is the seed the ledger is replayed from.
    """

    id: int
    owe_to: str
    principal_amount: Decimal
    original_amount: Decimal
    currency: str
    repayment_amount: Decimal
    interest_rate_percent_yearly: Decimal
    repayment_day_of_month: int
    start_date: date
    created_at: datetime

    def __post_init__(self) -> None:
        if not 1 <= self.repayment_day_of_month <= 31:
            raise ValidationError(
                f"Repayment day must be between 1 and 31, got {self.repayment_day_of_month}"
            )


@dataclass(frozen=True)
class DebtTransaction:
    """One ledger entry against a debt. The sign comes from ``type``."""

    id: int
    debt_id: int
    type: DebtTransactionType
    amount: Decimal
    date: datetime
    created_at: datetime

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValidationError(f"Debt transaction amount must be non-negative, got {self.amount}")


@dataclass(frozen=True)
class Investment:
    """Investment domain entity.

    Sold-state fields are all-or-nothing: an active investment has none of
    them, a sold one has all three.
    """

    id: int
    title: str
    type: str
    platform: str
    purchase_date: date
    quantity: Decimal
    unit: str
    total_amount: Decimal
    currency: str
    style: Optional[str] = None
    sold_amount: Optional[Decimal] = None
    sold_date: Optional[datetime] = None
    profit: Optional[Decimal] = None

    def __post_init__(self) -> None:
        sold_fields = (self.sold_amount, self.sold_date, self.profit)
        present = sum(1 for value in sold_fields if value is not None)
        if present not in (0, len(sold_fields)):
            raise ValidationError(
                f"Investment {self.id} has a partial sale: sold_amount, sold_date "
                "and profit must be set together"
            )

    @property
    def is_sold(self) -> bool:
        return self.sold_amount is not None

    @property
    def unit_price(self) -> Optional[Decimal]:
        if not self.quantity:
            return None
        return self.total_amount / self.quantity

    @property
    def status(self) -> str:
        """Return 'ongoing', 'completed_gain' or 'completed_loss'."""
        if not self.is_sold:
            return "ongoing"
        return "completed_gain" if self.profit > 0 else "completed_loss"


@dataclass(frozen=True)
class Cash:
    """Cash payment."""

    type: str = field(default="Cash", init=False)

    @property
    def label(self) -> str:
        return "Cash"


@dataclass(frozen=True)
class CreditCard:
    """Credit card payment."""

    bank: str
    last4: str
    name: Optional[str] = None
    type: str = field(default="Credit Card", init=False)

    @property
    def label(self) -> str:
        return f"Credit Card: {self.last4}"


@dataclass(frozen=True)
class DebitCard:
    """Debit card payment."""

    bank: str
    last4: str
    type: str = field(default="Debit Card", init=False)

    @property
    def label(self) -> str:
        return f"Debit Card: {self.last4}"


@dataclass(frozen=True)
class EWallet:
    """E-wallet payment, optionally topped up from a linked card."""

    name: str
    linked_card: Optional[str] = None
    type: str = field(default="E-Wallet", init=False)

    @property
    def label(self) -> str:
        return self.name


PaymentMethod = Union[Cash, CreditCard, DebitCard, EWallet]


def payment_method_to_document(method: PaymentMethod) -> dict[str, Optional[str]]:
    """Serialize a payment method into a plain dictionary."""
    if isinstance(method, Cash):
        return {"type": method.type}
    if isinstance(method, CreditCard):
        return {"type": method.type, "bank": method.bank, "last4": method.last4, "name": method.name}
    if isinstance(method, DebitCard):
        return {"type": method.type, "bank": method.bank, "last4": method.last4}
    if isinstance(method, EWallet):
        return {"type": method.type, "name": method.name, "linkedCard": method.linked_card}
    raise ValidationError(f"Unknown payment method: {method!r}")


def payment_method_from_document(document: Mapping[str, Optional[str]]) -> PaymentMethod:
    """Build a payment method from its stored dictionary form.

    Raises:
        ValidationError: If the type is unknown or required fields are missing
    """
    method_type = (document or {}).get("type")
    try:
        if method_type == "Cash":
            return Cash()
        if method_type == "Credit Card":
            return CreditCard(bank=document["bank"], last4=document["last4"], name=document.get("name"))
        if method_type == "Debit Card":
            return DebitCard(bank=document["bank"], last4=document["last4"])
        if method_type == "E-Wallet":
            return EWallet(name=document["name"], linked_card=document.get("linkedCard"))
    except KeyError as e:
        raise ValidationError(f"Payment method '{method_type}' is missing field {e}") from e
    raise ValidationError(f"Unknown payment method type: {method_type!r}")


@dataclass(frozen=True)
class Category:
    """Expense category domain entity."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Expense:
    """Expense domain entity.

    ``converted_amount`` is a snapshot taken when the expense was written
    and is not re-verified later.
    """

    id: int
    amount: Decimal
    from_currency: str
    converted_amount: Decimal
    to_currency: str
    category_id: Optional[int]
    payment_method: PaymentMethod
    date: datetime
    description: Optional[str] = None
    receipt_image: Optional[str] = None
    product_image: Optional[str] = None
    is_public: bool = False
