"""Tests for domain entities and money helpers."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from fintrack.domain.entities import (
    Cash,
    CreditCard,
    DebitCard,
    DebtRecord,
    DebtTransaction,
    DebtTransactionType,
    EWallet,
    payment_method_from_document,
    payment_method_to_document,
)
from fintrack.domain.errors import ValidationError
from fintrack.domain.money import currency_decimal_places, normalize_currency, round_money


@pytest.mark.parametrize(
    "method",
    [
        Cash(),
        CreditCard(bank="Maybank", last4="1234", name="Visa Platinum"),
        DebitCard(bank="CIMB", last4="9876"),
        EWallet(name="Touch 'n Go", linked_card="1234"),
    ],
)
def test_payment_method_document(method):
    """Test payment methods survive their stored document form."""
    assert payment_method_from_document(payment_method_to_document(method)) == method


def test_payment_method_labels():
    """Test display labels for each payment method."""
    assert Cash().label == "Cash"
    assert CreditCard(bank="Maybank", last4="1234").label == "Credit Card: 1234"
    assert DebitCard(bank="CIMB", last4="9876").label == "Debit Card: 9876"
    assert EWallet(name="GrabPay").label == "GrabPay"


def test_ewallet_document_uses_linked_card_key():
    """Test the stored e-wallet document keeps its original key name."""
    document = payment_method_to_document(EWallet(name="GrabPay", linked_card="1111"))
    assert document == {"type": "E-Wallet", "name": "GrabPay", "linkedCard": "1111"}


@pytest.mark.parametrize(
    "document",
    [
        {"type": "Cheque"},
        {},
        None,
        {"type": "Credit Card", "bank": "Maybank"},
        {"type": "E-Wallet"},
    ],
)
def test_payment_method_rejects_bad_documents(document):
    """Test unknown types and missing fields are rejected."""
    with pytest.raises(ValidationError):
        payment_method_from_document(document)


def test_debt_record_rejects_bad_repayment_day():
    """Test a debt's repayment day must be a day of month."""
    with pytest.raises(ValidationError):
        DebtRecord(
            id=1, owe_to="Bank", principal_amount=Decimal("1"), original_amount=Decimal("1"),
            currency="USD", repayment_amount=Decimal("0"), interest_rate_percent_yearly=Decimal("0"),
            repayment_day_of_month=0, start_date=date(2024, 1, 1), created_at=datetime(2024, 1, 1),
        )


def test_debt_transaction_rejects_negative_amount():
    """Test ledger entries carry non-negative amounts."""
    with pytest.raises(ValidationError):
        DebtTransaction(
            id=1, debt_id=1, type=DebtTransactionType.PAYMENT, amount=Decimal("-5"),
            date=datetime(2024, 1, 1), created_at=datetime(2024, 1, 1),
        )


def test_transaction_type_direction():
    """Test only interest increases a balance."""
    assert DebtTransactionType.PAYMENT.reduces_balance
    assert DebtTransactionType.REPAYMENT.reduces_balance
    assert not DebtTransactionType.INTEREST.reduces_balance


def test_normalize_currency():
    """Test currency codes are upper-cased and aliases resolved."""
    assert normalize_currency(" myr ") == "MYR"
    assert normalize_currency("rmb") == "CNY"
    for bad in ("", "US", "USDX", "12A"):
        with pytest.raises(ValidationError):
            normalize_currency(bad)


def test_currency_decimal_places():
    """Test zero-decimal currencies."""
    assert currency_decimal_places("JPY") == 0
    assert currency_decimal_places("krw") == 0
    assert currency_decimal_places("MYR") == 2


def test_round_money_half_up():
    """Test rounding is half-up."""
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(Decimal("1501.5"), 0) == Decimal("1502")
