"""Tests for debt ledgers."""

import random
from datetime import date, datetime
from decimal import Decimal

import pytest

from fintrack.database.factories import create_sqlite_database
from fintrack.domain.debt import (
    DebtService,
    calculate_interest,
    next_repayment_date,
    recompute_balance,
    sort_chronologically,
)
from fintrack.domain.entities import DebtTransaction, DebtTransactionType
from fintrack.domain.errors import DependencyError, NotFoundError, ValidationError


def _txn(txn_id, txn_type, amount, when):
    return DebtTransaction(
        id=txn_id,
        debt_id=1,
        type=DebtTransactionType(txn_type),
        amount=Decimal(amount),
        date=when,
        created_at=datetime(2024, 1, 1),
    )


@pytest.fixture
def debt_id(debt_service):
    """Create a 1000 MYR debt at 12% yearly interest."""
    return debt_service.create_debt(
        owe_to="Bank",
        amount=Decimal("1000"),
        currency="myr",
        repayment_amount=Decimal("150"),
        interest_rate=Decimal("12"),
        repayment_day=15,
        start_date=date(2024, 1, 1),
    )


def test_recompute_balance_is_order_independent():
    """Test the fold result does not depend on the order entries are given in."""
    transactions = [
        _txn(1, "payment", "100", datetime(2024, 1, 5)),
        _txn(2, "interest", "12.50", datetime(2024, 1, 31)),
        _txn(3, "repayment", "150", datetime(2024, 2, 15)),
        _txn(4, "payment", "25.25", datetime(2024, 1, 20)),
    ]
    expected = recompute_balance(Decimal("1000"), transactions)
    assert expected == Decimal("737.25")

    shuffled = list(transactions)
    random.Random(7).shuffle(shuffled)
    assert recompute_balance(Decimal("1000"), shuffled) == expected
    assert recompute_balance(Decimal("1000"), reversed(transactions)) == expected


def test_recompute_balance_without_entries():
    """Test an empty ledger leaves the original principal."""
    assert recompute_balance(Decimal("500"), []) == Decimal("500")


def test_sort_keeps_insertion_order_for_ties():
    """Test entries sharing a timestamp keep their given order."""
    same_day = datetime(2024, 3, 1)
    transactions = [
        _txn(5, "interest", "10", same_day),
        _txn(2, "payment", "10", datetime(2024, 2, 1)),
        _txn(3, "payment", "20", same_day),
        _txn(4, "repayment", "30", same_day),
    ]
    assert [txn.id for txn in sort_chronologically(transactions)] == [2, 5, 3, 4]


def test_calculate_interest():
    """Test one accrual is balance times the yearly percent."""
    assert calculate_interest(Decimal("1000"), Decimal("3.5")) == Decimal("35")


@pytest.mark.parametrize(
    "day, today, expected",
    [
        (15, date(2024, 3, 10), date(2024, 3, 15)),
        (15, date(2024, 3, 15), date(2024, 3, 15)),
        (10, date(2024, 3, 15), date(2024, 4, 10)),
        (31, date(2024, 2, 10), date(2024, 2, 29)),
        (31, date(2023, 4, 30), date(2023, 4, 30)),
        (5, date(2024, 12, 20), date(2025, 1, 5)),
    ],
)
def test_next_repayment_date(day, today, expected):
    """Test the next due date clamps to short months and rolls over years."""
    assert next_repayment_date(day, today) == expected


def test_next_repayment_date_rejects_invalid_day():
    """Test repayment days outside 1-31 are rejected."""
    with pytest.raises(ValidationError):
        next_repayment_date(32, date(2024, 1, 1))


def test_create_debt(debt_service, debt_id):
    """Test a new debt's balance equals its original amount."""
    debt = debt_service.require_debt(debt_id)
    assert debt.owe_to == "Bank"
    assert debt.currency == "MYR"
    assert debt.principal_amount == Decimal("1000")
    assert debt.original_amount == Decimal("1000")
    assert debt.repayment_day_of_month == 15


@pytest.mark.parametrize(
    "changes",
    [
        {"amount": Decimal("-1")},
        {"repayment_day": 0},
        {"repayment_day": 32},
        {"owe_to": "  "},
        {"interest_rate": Decimal("-2")},
    ],
)
def test_create_debt_validation(debt_service, changes):
    """Test invalid debt terms are rejected."""
    fields = {"owe_to": "Bank", "amount": Decimal("100"), "currency": "USD"}
    fields.update(changes)
    with pytest.raises(ValidationError):
        debt_service.create_debt(**fields)


def test_payment_reduces_balance(debt_service, debt_id):
    """Test a payment is subtracted from the balance."""
    debt_service.record_payment(debt_id, Decimal("100"), datetime(2024, 1, 10))
    assert debt_service.require_debt(debt_id).principal_amount == Decimal("900")


def test_repayment_defaults_to_scheduled_amount(debt_service, debt_id):
    """Test a repayment without an amount uses the debt's repayment amount."""
    debt_service.record_repayment(debt_id, when=datetime(2024, 1, 15))
    transactions = debt_service.list_transactions(debt_id)
    assert transactions[0].type == DebtTransactionType.REPAYMENT
    assert transactions[0].amount == Decimal("150")
    assert debt_service.require_debt(debt_id).principal_amount == Decimal("850")


def test_add_interest_uses_current_balance(debt_service, debt_id):
    """Test interest accrues once on the current balance."""
    debt_service.record_payment(debt_id, Decimal("500"), datetime(2024, 1, 10))
    debt_service.add_interest(debt_id, datetime(2024, 1, 31))

    transactions = debt_service.list_transactions(debt_id)
    assert len(transactions) == 2
    assert transactions[1].type == DebtTransactionType.INTEREST
    assert transactions[1].amount == Decimal("60")
    assert debt_service.require_debt(debt_id).principal_amount == Decimal("560")


def test_add_interest_on_overpaid_debt(debt_service, debt_id):
    """Test interest is refused once the balance is paid off or overpaid."""
    debt_service.record_payment(debt_id, Decimal("1050"), datetime(2024, 1, 10))

    with pytest.raises(ValidationError, match="no outstanding balance"):
        debt_service.add_interest(debt_id, datetime(2024, 1, 31))
    assert len(debt_service.list_transactions(debt_id)) == 1


def test_backdated_entry_is_listed_in_date_order(debt_service, debt_id):
    """Test a backdated entry is folded and listed by date, not insertion."""
    debt_service.record_payment(debt_id, Decimal("100"), datetime(2024, 3, 1))
    debt_service.record_payment(debt_id, Decimal("50"), datetime(2024, 2, 1))

    transactions = debt_service.list_transactions(debt_id)
    assert [txn.amount for txn in transactions] == [Decimal("50"), Decimal("100")]
    assert debt_service.require_debt(debt_id).principal_amount == Decimal("850")


def test_add_then_delete_restores_balance(debt_service, debt_id):
    """Test deleting an entry returns the balance to its prior value."""
    debt_service.record_payment(debt_id, Decimal("200"), datetime(2024, 1, 10))
    before = debt_service.require_debt(debt_id).principal_amount

    transaction_id = debt_service.add_transaction(debt_id, "interest", Decimal("33.33"), datetime(2024, 1, 20))
    assert debt_service.require_debt(debt_id).principal_amount == before + Decimal("33.33")

    debt = debt_service.delete_transaction(transaction_id)
    assert debt.principal_amount == before


def test_update_transaction_recalculates(debt_service, debt_id):
    """Test editing an entry replays the ledger."""
    transaction_id = debt_service.record_payment(debt_id, Decimal("100"), datetime(2024, 1, 10))
    debt = debt_service.update_transaction(transaction_id, type="interest", amount=Decimal("40"))
    assert debt.principal_amount == Decimal("1040")


def test_update_original_amount_recalculates(debt_service, debt_id):
    """Test changing the original amount replays the ledger from the new seed."""
    debt_service.record_payment(debt_id, Decimal("100"), datetime(2024, 1, 10))
    debt = debt_service.update_debt(debt_id, original_amount=Decimal("2000"))
    assert debt.original_amount == Decimal("2000")
    assert debt.principal_amount == Decimal("1900")


def test_recalculate_repairs_drifted_balance(temp_db, debt_service, debt_id):
    """Test a full replay corrects a stored balance that drifted."""
    debt_service.record_payment(debt_id, Decimal("100"), datetime(2024, 1, 10))
    temp_db.update_debt(debt_id, principal_amount=Decimal("1"))

    assert debt_service.recalculate(debt_id).principal_amount == Decimal("900")


def test_unknown_transaction_type(debt_service, debt_id):
    """Test unknown ledger types are rejected."""
    with pytest.raises(ValidationError):
        debt_service.add_transaction(debt_id, "refund", Decimal("10"))


def test_negative_transaction_amount(debt_service, debt_id):
    """Test negative ledger amounts are rejected."""
    with pytest.raises(ValidationError):
        debt_service.record_payment(debt_id, Decimal("-10"))


def test_missing_debt(debt_service):
    """Test operations on a missing debt raise NotFoundError."""
    assert debt_service.get_debt(99) is None
    with pytest.raises(NotFoundError):
        debt_service.record_payment(99, Decimal("10"))
    with pytest.raises(NotFoundError):
        debt_service.delete_transaction(99)


def test_delete_debt_with_transactions_is_blocked(debt_service, debt_id):
    """Test a debt with ledger entries cannot be deleted without cascade."""
    debt_service.record_payment(debt_id, Decimal("10"), datetime(2024, 1, 10))
    with pytest.raises(DependencyError) as exc_info:
        debt_service.delete_debt(debt_id)
    assert "--cascade" in str(exc_info.value)
    assert debt_service.get_debt(debt_id) is not None


def test_delete_debt_cascade(temp_db, debt_service, debt_id):
    """Test cascade deletes the ledger entries and the debt."""
    transaction_id = debt_service.record_payment(debt_id, Decimal("10"), datetime(2024, 1, 10))
    debt_service.delete_debt(debt_id, cascade=True)
    assert debt_service.get_debt(debt_id) is None
    assert temp_db.get_debt_transaction(transaction_id) is None


def test_delete_debt_without_transactions(debt_service, debt_id):
    """Test a debt without entries deletes without cascade."""
    debt_service.delete_debt(debt_id)
    assert debt_service.list_debts() == []


def test_total_outstanding(debt_service, debt_id, converter):
    """Test balances are summed in the display currency."""
    debt_service.create_debt(owe_to="Friend", amount=Decimal("50"), currency="USD")
    total, rows = debt_service.total_outstanding("USD", converter)
    assert total == Decimal("300")
    assert [converted.value for _, converted in rows] == [Decimal("250"), Decimal("50")]


def test_total_outstanding_skips_unconvertible(debt_service, debt_id, converter):
    """Test a debt without a rate is shown unavailable and left out of the total."""
    debt_service.create_debt(owe_to="Landlord", amount=Decimal("80"), currency="GBP", start_date=date(2024, 2, 1))
    total, rows = debt_service.total_outstanding("USD", converter)
    assert total == Decimal("250")
    assert not rows[1][1].available
    assert "conversion unavailable" in rows[1][1].display()


def test_ledger_survives_reconnect(temp_db, debt_service, debt_id):
    """Test the balance and ledger persist across database connections."""
    debt_service.record_payment(debt_id, Decimal("100"), datetime(2024, 1, 10))

    other = create_sqlite_database(database_path=temp_db.database_path)
    try:
        service = DebtService(other)
        assert service.require_debt(debt_id).principal_amount == Decimal("900")
        assert len(service.list_transactions(debt_id)) == 1
    finally:
        other.disconnect()
