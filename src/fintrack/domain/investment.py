"""Investment profit/loss calculations and investment domain service."""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from fintrack.database.base import Database
from fintrack.domain.currency import (
    ConvertedAmount,
    CurrencyConverter,
    resolve_table_or_none,
    try_convert,
)
from fintrack.domain.entities import Investment, RateTable
from fintrack.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    investment_already_sold,
    investment_not_found,
)
from fintrack.domain.money import normalize_currency

logger = logging.getLogger(__name__)

SORT_KEYS = ("date", "amount", "title")


@dataclass(frozen=True)
class SaleResult:
    """Outcome of selling an investment."""

    investment: Investment
    profit: Decimal


@dataclass(frozen=True)
class InvestmentView:
    """Investment amounts converted to a display currency.

    Each field converts independently; a failed one is marked unavailable
    without hiding the others.
    """

    investment: Investment
    display_currency: str
    total_amount: ConvertedAmount
    sold_amount: Optional[ConvertedAmount] = None
    profit: Optional[ConvertedAmount] = None


def sell(investment: Investment, sold_amount: Decimal, sold_date: datetime) -> SaleResult:
    """Move an active investment to the sold state.

    Raises:
        ConflictError: If the investment is already sold (sold is terminal)
        ValidationError: If the sale amount is negative
    """
    if investment.is_sold:
        raise ConflictError(investment_already_sold(investment.id))
    if sold_amount < 0:
        raise ValidationError(f"Sale amount must be non-negative, got {sold_amount}")
    profit = sold_amount - investment.total_amount
    sold = replace(investment, sold_amount=sold_amount, sold_date=sold_date, profit=profit)
    return SaleResult(investment=sold, profit=profit)


def recompute_profit(investment: Investment) -> Optional[Decimal]:
    """Return profit from the current amounts, or None if not sold."""
    if not investment.is_sold:
        return None
    return investment.sold_amount - investment.total_amount


def converted_view(
    investment: Investment, display_currency: str, table: Optional[RateTable]
) -> InvestmentView:
    """Convert each native amount of an investment for display."""
    target = normalize_currency(display_currency)
    total = try_convert(table, investment.total_amount, investment.currency, target)
    sold_amount = None
    profit = None
    if investment.is_sold:
        sold_amount = try_convert(table, investment.sold_amount, investment.currency, target)
        profit = try_convert(table, investment.profit, investment.currency, target)
    return InvestmentView(
        investment=investment,
        display_currency=target,
        total_amount=total,
        sold_amount=sold_amount,
        profit=profit,
    )


class InvestmentService:
    """Service for managing investments."""

    def __init__(self, db: Database):
        """Initialize investment service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_investment(
        self,
        title: str,
        type: str,
        platform: str,
        quantity: Decimal,
        unit: str,
        total_amount: Decimal,
        currency: str,
        purchase_date: Optional[date] = None,
        style: Optional[str] = None,
    ) -> int:
        """Create an active investment.

        Returns:
            Investment ID

        Raises:
            ValidationError: If the title is empty or amounts are negative
        """
        if not title or not title.strip():
            raise ValidationError("Investment title is required")
        if quantity < 0 or total_amount < 0:
            raise ValidationError("Investment quantity and total amount must be non-negative")
        return self.db.create_investment(
            title=title.strip(),
            type=type,
            platform=platform,
            purchase_date=purchase_date or date.today(),
            quantity=quantity,
            unit=unit,
            total_amount=total_amount,
            currency=normalize_currency(currency),
            style=style,
        )

    def get_investment(self, investment_id: int) -> Optional[Investment]:
        """Get investment by ID, or None if not found."""
        return self.db.get_investment(investment_id)

    def require_investment(self, investment_id: int) -> Investment:
        """Get investment by ID.

        Raises:
            NotFoundError: If the investment does not exist
        """
        investment = self.db.get_investment(investment_id)
        if investment is None:
            raise NotFoundError(investment_not_found(investment_id))
        return investment

    def list_investments(
        self,
        currency: Optional[str] = None,
        platform: Optional[str] = None,
        type: Optional[str] = None,
        sort_by: str = "date",
    ) -> list[Investment]:
        """List investments with filters.

        Args:
            currency: Optional currency filter
            platform: Optional platform filter
            type: Optional investment type filter
            sort_by: 'date' (newest first), 'amount' (largest first) or 'title'
        """
        if sort_by not in SORT_KEYS:
            raise ValidationError(f"Unknown sort key '{sort_by}'. Use one of: {', '.join(SORT_KEYS)}")
        investments = self.db.list_investments(
            currency=normalize_currency(currency) if currency else None,
            platform=platform,
            type=type,
        )
        if sort_by == "amount":
            return sorted(investments, key=lambda inv: inv.total_amount, reverse=True)
        if sort_by == "title":
            return sorted(investments, key=lambda inv: inv.title.lower())
        return investments

    def update_investment(self, investment_id: int, **changes: Any) -> Investment:
        """Edit investment fields.

        Editing a sold investment is allowed but does not recompute profit;
        call ``recompute_profit`` for that.
        """
        self.require_investment(investment_id)
        allowed = {
            "title", "type", "platform", "purchase_date", "quantity",
            "unit", "total_amount", "currency", "style", "sold_amount",
        }
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Cannot edit investment field(s): {', '.join(sorted(unknown))}")
        fields = {name: value for name, value in changes.items() if value is not None}
        if "currency" in fields:
            fields["currency"] = normalize_currency(fields["currency"])
        if "sold_amount" in fields and not self.require_investment(investment_id).is_sold:
            raise ValidationError("Cannot set a sale amount on an investment that has not been sold")
        if fields:
            self.db.update_investment(investment_id, **fields)
        return self.require_investment(investment_id)

    def sell_investment(
        self, investment_id: int, sold_amount: Decimal, sold_date: Optional[datetime] = None
    ) -> SaleResult:
        """Sell an investment and persist its sold state."""
        investment = self.require_investment(investment_id)
        result = sell(investment, sold_amount, sold_date or datetime.now())
        self.db.update_investment(
            investment_id,
            sold_amount=result.investment.sold_amount,
            sold_date=result.investment.sold_date,
            profit=result.profit,
        )
        logger.info("Sold investment %s with profit %s %s", investment_id, result.profit, investment.currency)
        return result

    def recompute_profit(self, investment_id: int) -> Investment:
        """Recompute and persist profit after an edit to a sold investment."""
        investment = self.require_investment(investment_id)
        profit = recompute_profit(investment)
        if profit is None:
            raise ValidationError(f"Investment {investment_id} has not been sold")
        self.db.update_investment(investment_id, profit=profit)
        return self.require_investment(investment_id)

    def converted_view(
        self, investment_id: int, display_currency: str, converter: CurrencyConverter
    ) -> InvestmentView:
        """Build the display-currency view of one investment."""
        investment = self.require_investment(investment_id)
        return converted_view(investment, display_currency, resolve_table_or_none(converter))

    def total_profit(
        self, display_currency: str, converter: CurrencyConverter
    ) -> tuple[Decimal, list[InvestmentView]]:
        """Sum realised profit/loss of sold investments in a display currency.

        Investments whose profit cannot be converted are returned with an
        unavailable profit and left out of the total.
        """
        investments = self.list_investments()
        table = resolve_table_or_none(converter) if investments else None
        views = [converted_view(inv, display_currency, table) for inv in investments]
        total = sum(
            (view.profit.value for view in views if view.profit is not None and view.profit.available),
            Decimal("0"),
        )
        return total, views
