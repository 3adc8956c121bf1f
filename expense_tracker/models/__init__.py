"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.records import (
    CATEGORY_COLORS,
    CATEGORY_ICONS,
    CURRENCY_SYMBOLS,
    DEFAULT_COLOR,
    DEFAULT_CURRENCY,
    DEFAULT_ICON,
    UNCATEGORIZED,
    Budget,
    BudgetPeriod,
    Category,
    Expense,
    IncomeFrequency,
    IncomeSource,
    IncomeType,
    OverallBudget,
    OverallBudgetPeriod,
    Theme,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.reports import (
    AnalyticsSummary,
    BudgetStatus,
    CategoryBudgetView,
    CategorySpending,
    DashboardStats,
    DateRange,
    MonthlyTrend,
    OverallBudgetView,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Constants
    "CATEGORY_COLORS",
    "CATEGORY_ICONS",
    "CURRENCY_SYMBOLS",
    "DEFAULT_COLOR",
    "DEFAULT_CURRENCY",
    "DEFAULT_ICON",
    "UNCATEGORIZED",
    # Record models
    "Budget",
    "BudgetPeriod",
    "Category",
    "Expense",
    "IncomeFrequency",
    "IncomeSource",
    "IncomeType",
    "OverallBudget",
    "OverallBudgetPeriod",
    "Theme",
    "ValidationIssue",
    "ValidationResult",
    # Report models
    "AnalyticsSummary",
    "BudgetStatus",
    "CategoryBudgetView",
    "CategorySpending",
    "DashboardStats",
    "DateRange",
    "MonthlyTrend",
    "OverallBudgetView",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
