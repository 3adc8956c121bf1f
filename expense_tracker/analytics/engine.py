"""
Financial Aggregation Engine

DESIGN DECISION: Aggregation is PURE.
Every function here takes records that were already fetched from the
store and returns derived values. Nothing here performs I/O, keeps
state between calls, or mutates its input.

GUARANTEES:
- Empty input gives zero / empty output, never an exception
- Same input always gives the same output
- Amounts accumulate as Decimal; rounding happens only in format_currency

KNOWN LIMITATIONS (kept on purpose, see DESIGN.md):
- Currencies are never converted. Summing records in different
  currencies adds the raw numbers.
- A category budget's spent always covers the current calendar month,
  whatever the budget's own period is.
"""

import calendar
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

from expense_tracker.models.records import (
    CURRENCY_SYMBOLS,
    UNCATEGORIZED,
    Budget,
    Category,
    Expense,
    IncomeFrequency,
    IncomeSource,
    OverallBudget,
    OverallBudgetPeriod,
)
from expense_tracker.models.reports import (
    AnalyticsSummary,
    BudgetStatus,
    CategorySpending,
    DashboardStats,
    DateRange,
    MonthlyTrend,
)

Number = Union[Decimal, int, float]

# Average number of weeks in a month
WEEKS_PER_MONTH = Decimal("4.33")
MONTHS_PER_YEAR = Decimal(12)

# Colours for categories that have none of their own, by insertion order
FALLBACK_PALETTE: tuple[str, ...] = (
    "#8884d8",
    "#82ca9d",
    "#ffc658",
    "#ff7300",
    "#8dd1e1",
    "#d084d0",
    "#ffb347",
)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# =============================================================================
# INCOME
# =============================================================================

def monthly_equivalent(amount: Number, frequency: IncomeFrequency) -> Decimal:
    """
    Normalize an income amount to what it pays per month.

    weekly x 4.33, yearly / 12, one-time counts as nothing,
    monthly is unchanged.
    """
    amount = _to_decimal(amount)
    if frequency == IncomeFrequency.WEEKLY:
        return amount * WEEKS_PER_MONTH
    if frequency == IncomeFrequency.YEARLY:
        return amount / MONTHS_PER_YEAR
    if frequency == IncomeFrequency.ONE_TIME:
        return ZERO
    return amount


def monthly_income_total(sources: Iterable[IncomeSource]) -> Decimal:
    """Sum the monthly equivalent of every active income source."""
    return sum(
        (
            monthly_equivalent(source.amount, source.frequency)
            for source in sources
            if source.is_active
        ),
        ZERO,
    )


# =============================================================================
# BUDGETS
# =============================================================================

def budget_utilization(spent: Number, amount: Number) -> float:
    """
    Percentage of a budget used.

    A budget of zero (or less) is reported as 0% used rather than
    dividing by zero.
    """
    if amount <= 0:
        return 0.0
    return float(spent) / float(amount) * 100


def is_over_budget(percentage: float) -> bool:
    return percentage > 100


def budget_status(spent: Number, amount: Number) -> BudgetStatus:
    """Bundle spent, amount and utilization for display."""
    percentage = budget_utilization(spent, amount)
    return BudgetStatus(
        spent=_to_decimal(spent),
        amount=_to_decimal(amount),
        percentage=percentage,
        is_over_budget=is_over_budget(percentage),
    )


def month_bounds(day: date) -> DateRange:
    """First and last day of the calendar month containing `day`."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return DateRange(
        start=day.replace(day=1),
        end=day.replace(day=last_day),
    )


def week_bounds(day: date) -> DateRange:
    """The Sunday-to-Saturday week containing `day`."""
    # date.weekday() is Monday=0 .. Sunday=6; shift to Sunday=0
    days_since_sunday = (day.weekday() + 1) % 7
    week_start = day - timedelta(days=days_since_sunday)
    return DateRange(start=week_start, end=week_start + timedelta(days=6))


def total_spent(expenses: Iterable[Expense]) -> Decimal:
    """Plain sum of expense amounts."""
    return sum((expense.amount for expense in expenses), ZERO)


def filter_by_range(expenses: Iterable[Expense], date_range: DateRange) -> list[Expense]:
    """Expenses dated inside the range (inclusive)."""
    return [e for e in expenses if date_range.contains(e.expense_date)]


def category_budget_spent(
    expenses: Iterable[Expense],
    category_id: UUID,
    reference_month: date,
) -> Decimal:
    """
    Spending in one category during the month of `reference_month`.

    Callers pass today's date. The budget's own period is NOT consulted:
    a yearly budget still measures only the current month.
    """
    window = month_bounds(reference_month)
    return total_spent(
        e for e in expenses
        if e.category_id == category_id and window.contains(e.expense_date)
    )


def category_budget_status(
    budget: Budget,
    expenses: Iterable[Expense],
    reference_month: date,
) -> BudgetStatus:
    spent = category_budget_spent(expenses, budget.category_id, reference_month)
    return budget_status(spent, budget.amount)


def overall_budget_window(anchor_date: date, period: OverallBudgetPeriod) -> DateRange:
    """
    The active window of an overall budget.

    weekly  -> the Sunday-start week containing the anchor date
    monthly -> the calendar month containing the anchor date
    """
    if period == OverallBudgetPeriod.WEEKLY:
        return week_bounds(anchor_date)
    return month_bounds(anchor_date)


def overall_budget_spent(expenses: Iterable[Expense], budget: OverallBudget) -> Decimal:
    """Spending across all categories inside the budget's window."""
    window = overall_budget_window(budget.budget_date, budget.period)
    return total_spent(filter_by_range(expenses, window))


def overall_budget_status(budget: OverallBudget, expenses: Iterable[Expense]) -> BudgetStatus:
    return budget_status(overall_budget_spent(expenses, budget), budget.amount)


# =============================================================================
# ANALYTICS
# =============================================================================

def category_spend_aggregation(
    expenses: Iterable[Expense],
    categories: Iterable[Category] = (),
) -> list[CategorySpending]:
    """
    Group expenses by category name.

    Expenses whose category is missing or no longer exists land in
    "Uncategorized". Each group takes the colour of the first category
    seen for it, or a palette colour picked by the group's position.

    Groups come back in first-seen order; use sort_by_amount for display.
    """
    by_id = {category.id: category for category in categories}
    groups: dict[str, dict] = {}

    for expense in expenses:
        category = by_id.get(expense.category_id) if expense.category_id else None
        name = category.name if category else UNCATEGORIZED

        group = groups.get(name)
        if group is None:
            color = category.color if category and category.color else None
            if color is None:
                color = FALLBACK_PALETTE[len(groups) % len(FALLBACK_PALETTE)]
            group = groups[name] = {"total": ZERO, "count": 0, "color": color}

        group["total"] += expense.amount
        group["count"] += 1

    return [
        CategorySpending(
            name=name,
            total_amount=group["total"],
            transaction_count=group["count"],
            color=group["color"],
        )
        for name, group in groups.items()
    ]


def sort_by_amount(groups: Iterable[CategorySpending]) -> list[CategorySpending]:
    """Largest spending first. Ties keep their original order."""
    return sorted(groups, key=lambda g: g.total_amount, reverse=True)


def monthly_trend_aggregation(expenses: Iterable[Expense]) -> list[MonthlyTrend]:
    """Group expenses by YYYY-MM, oldest month first."""
    months: dict[str, list] = {}

    for expense in expenses:
        key = expense.expense_date.strftime("%Y-%m")
        if key not in months:
            months[key] = [ZERO, 0]
        months[key][0] += expense.amount
        months[key][1] += 1

    return [
        MonthlyTrend(month=key, total_amount=total, transaction_count=count)
        for key, (total, count) in sorted(months.items())
    ]


def _parse_day(value) -> Optional[date]:
    """ISO date or date object; anything unparseable counts as missing."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def resolve_date_range(
    range_kind: str,
    custom_start=None,
    custom_end=None,
    today: Optional[date] = None,
) -> DateRange:
    """
    Turn an analytics range selector into concrete dates.

    week   -> the last 7 days up to today
    month  -> first of this month up to today
    year   -> January 1st up to today
    custom -> the given bounds, when both are present; otherwise month

    Unknown kinds behave like month.
    """
    today = today or date.today()

    if range_kind == "week":
        return DateRange(start=today - timedelta(days=7), end=today)
    if range_kind == "year":
        return DateRange(start=date(today.year, 1, 1), end=today)
    if range_kind == "custom":
        start = _parse_day(custom_start)
        end = _parse_day(custom_end)
        if start and end:
            return DateRange(start=start, end=end)

    return DateRange(start=today.replace(day=1), end=today)


def average_per_day(total: Number, date_range: DateRange) -> Decimal:
    """Total divided by the number of days in the range (at least one)."""
    return _to_decimal(total) / max(1, date_range.days)


def analytics_summary(
    expenses: Iterable[Expense],
    categories: Iterable[Category],
    date_range: DateRange,
) -> AnalyticsSummary:
    """
    Build the full analytics view for a date range.

    Expenses outside the range are ignored, so callers may pass a
    superset of what they fetched.
    """
    in_range = filter_by_range(expenses, date_range)
    total = total_spent(in_range)

    return AnalyticsSummary(
        date_range=date_range,
        total_spent=total,
        transaction_count=len(in_range),
        average_per_day=average_per_day(total, date_range),
        categories=sort_by_amount(category_spend_aggregation(in_range, categories)),
        monthly=monthly_trend_aggregation(in_range),
    )


def dashboard_stats(
    expenses: Iterable[Expense],
    budgets: Iterable[Budget],
    today: Optional[date] = None,
) -> DashboardStats:
    """
    Headline numbers: all-time spending, this month's spending,
    the sum of category budgets and the number of expenses.
    """
    today = today or date.today()
    month_start = today.replace(day=1)
    expenses = list(expenses)

    return DashboardStats(
        total_expenses=total_spent(expenses),
        monthly_expenses=total_spent(e for e in expenses if e.expense_date >= month_start),
        total_budget=sum((budget.amount for budget in budgets), ZERO),
        expense_count=len(expenses),
    )


# =============================================================================
# FORMATTING
# =============================================================================

def currency_symbol(code: Optional[str]) -> str:
    """Display symbol for a currency code; unknown codes show as '$'."""
    return CURRENCY_SYMBOLS.get((code or "").upper(), "$")


def format_currency(amount: Number, code: Optional[str] = None) -> str:
    """Format an amount like '$1,234.50'. Rounds half-up to cents."""
    rounded = _to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{currency_symbol(code)}{abs(rounded):,.2f}"


def format_percentage(value: float) -> str:
    """One decimal place, e.g. '42.5%'."""
    return f"{value:.1f}%"
