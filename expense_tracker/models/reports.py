"""
Reporting Models

Derived values computed from records by the aggregation engine.
None of these are ever persisted: they are rebuilt on every read.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.records import Budget, OverallBudget


class DateRange(BaseModel):
    """An inclusive range of calendar dates."""
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    def contains(self, day: date) -> bool:
        """Check whether `day` falls inside the range (both ends inclusive)."""
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        """Whole days between start and end."""
        return (self.end - self.start).days


class BudgetStatus(BaseModel):
    """How much of a budget has been used."""
    model_config = ConfigDict(frozen=True)

    spent: Decimal = Field(
        ...,
        description="Amount spent inside the budget's window"
    )
    amount: Decimal = Field(
        ...,
        description="Budgeted amount"
    )
    percentage: float = Field(
        ...,
        description="spent / amount * 100, or 0 when amount <= 0"
    )
    is_over_budget: bool

    @property
    def progress(self) -> float:
        """Percentage capped at 100 for progress bars."""
        return min(self.percentage, 100.0)

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.spent


class CategoryBudgetView(BaseModel):
    """A category budget joined with its category name and spending."""

    budget: Budget
    category_name: str
    status: BudgetStatus


class OverallBudgetView(BaseModel):
    """An overall budget joined with its active window and spending."""

    budget: OverallBudget
    window: DateRange
    status: BudgetStatus


class CategorySpending(BaseModel):
    """Spending in one category over the analysed range."""
    model_config = ConfigDict(frozen=True)

    name: str
    total_amount: Decimal
    transaction_count: int
    color: str


class MonthlyTrend(BaseModel):
    """Spending in one calendar month."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="Year-month key, YYYY-MM"
    )
    total_amount: Decimal
    transaction_count: int


class AnalyticsSummary(BaseModel):
    """Everything the analytics screen shows for one date range."""

    date_range: DateRange
    total_spent: Decimal = Decimal("0")
    transaction_count: int = 0
    average_per_day: Decimal = Decimal("0")
    categories: list[CategorySpending] = Field(
        default_factory=list,
        description="Category breakdown, largest first"
    )
    monthly: list[MonthlyTrend] = Field(
        default_factory=list,
        description="Monthly trend, oldest first"
    )

    @property
    def top_category(self) -> Optional[CategorySpending]:
        return self.categories[0] if self.categories else None


class DashboardStats(BaseModel):
    """Headline numbers on the dashboard."""
    model_config = ConfigDict(frozen=True)

    total_expenses: Decimal = Decimal("0")
    monthly_expenses: Decimal = Decimal("0")
    total_budget: Decimal = Decimal("0")
    expense_count: int = 0
