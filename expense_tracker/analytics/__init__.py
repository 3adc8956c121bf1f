"""Aggregation engine package."""

from expense_tracker.analytics.engine import (
    FALLBACK_PALETTE,
    analytics_summary,
    average_per_day,
    budget_status,
    budget_utilization,
    category_budget_spent,
    category_budget_status,
    category_spend_aggregation,
    currency_symbol,
    dashboard_stats,
    filter_by_range,
    format_currency,
    format_percentage,
    is_over_budget,
    month_bounds,
    monthly_equivalent,
    monthly_income_total,
    monthly_trend_aggregation,
    overall_budget_spent,
    overall_budget_status,
    overall_budget_window,
    resolve_date_range,
    sort_by_amount,
    total_spent,
    week_bounds,
)

__all__ = [
    "FALLBACK_PALETTE",
    "analytics_summary",
    "average_per_day",
    "budget_status",
    "budget_utilization",
    "category_budget_spent",
    "category_budget_status",
    "category_spend_aggregation",
    "currency_symbol",
    "dashboard_stats",
    "filter_by_range",
    "format_currency",
    "format_percentage",
    "is_over_budget",
    "month_bounds",
    "monthly_equivalent",
    "monthly_income_total",
    "monthly_trend_aggregation",
    "overall_budget_spent",
    "overall_budget_status",
    "overall_budget_window",
    "resolve_date_range",
    "sort_by_amount",
    "total_spent",
    "week_bounds",
]
