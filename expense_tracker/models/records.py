"""
Core Data Models for Expense Tracker

These models define the schemas for every record the user owns.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Records carry the owner's id. Every read and write to
the store is scoped by it, so two users never see each other's rows.

Category references from expenses and budgets are weak: deleting a
category leaves the reference in place and it resolves to
"Uncategorized" at read time.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# CONSTANTS - Fixed option sets offered by the forms
# =============================================================================

DEFAULT_CURRENCY = "USD"

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "INR": "₹",
}

CATEGORY_ICONS: tuple[str, ...] = (
    "dollar-sign",
    "car",
    "shopping-bag",
    "utensils",
    "heart",
    "euro",
    "inr",
    "receipt",
    "home",
    "gamepad-2",
    "plane",
    "graduation-cap",
    "stethoscope",
    "shirt",
    "gift",
    "coffee",
    "fuel",
    "bus",
    "credit-card",
    "briefcase",
    "music",
    "camera",
    "dumbbell",
    "map-pin",
)
DEFAULT_ICON = "dollar-sign"

CATEGORY_COLORS: tuple[str, ...] = (
    "#3B82F6",
    "#EF4444",
    "#10B981",
    "#F59E0B",
    "#8B5CF6",
    "#EC4899",
    "#06B6D4",
    "#84CC16",
    "#F97316",
    "#6B7280",
)
DEFAULT_COLOR = "#3B82F6"

UNCATEGORIZED = "Uncategorized"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BudgetPeriod(str, Enum):
    """
    Period a category budget is denominated against.

    NOTE: The period is informational only. Spent is always measured
    over the current calendar month, whatever the period says.
    """
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class OverallBudgetPeriod(str, Enum):
    """Period of an overall budget. Drives the spending window."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class IncomeType(str, Enum):
    """Kind of income source."""
    SALARY = "salary"
    ADDITIONAL = "additional"


class IncomeFrequency(str, Enum):
    """How often an income source pays out."""
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"
    ONE_TIME = "one-time"


class Theme(str, Enum):
    """UI theme preference."""
    LIGHT = "light"
    DARK = "dark"


def _normalize_currency(v: str) -> str:
    v = v.strip().upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError(f"Currency must be a 3-letter code, got: {v!r}")
    return v


# =============================================================================
# RECORDS
# =============================================================================

class OwnedRecord(BaseModel):
    """Fields shared by every record in the store."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="ID of the user who owns this record"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the record was created"
    )


class MonetaryRecord(OwnedRecord):
    """
    A record carrying an amount and a currency label.

    DESIGN DECISION: The currency is a label only. Amounts in different
    currencies are never converted into each other.
    """
    amount: Decimal = Field(
        ...,
        description="Amount in `currency`"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        description="3-letter currency code"
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Currency codes are stored upper-case."""
        return _normalize_currency(v)


class Category(OwnedRecord):
    """
    A user-defined expense category.

    Names are expected to be unique per user, but this is not enforced.
    """
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name"
    )
    color: str = Field(
        default=DEFAULT_COLOR,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex colour used in charts and badges"
    )
    icon: str = Field(
        default=DEFAULT_ICON,
        description="Key into the fixed icon set"
    )

    @field_validator('icon')
    @classmethod
    def validate_icon(cls, v: str) -> str:
        """Unknown icon keys fall back to the default icon."""
        return v if v in CATEGORY_ICONS else DEFAULT_ICON


class Expense(MonetaryRecord):
    """
    A single recorded expense.

    Expenses are created and deleted, never edited in place.
    The amount is expected to be positive but is not enforced here.
    """
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="What the money was spent on"
    )
    expense_date: date = Field(
        default_factory=date.today,
        description="Calendar date of the expense"
    )
    category_id: Optional[UUID] = Field(
        default=None,
        description="Weak reference to a Category; may dangle"
    )


class Budget(MonetaryRecord):
    """A spending limit for one category."""
    category_id: UUID = Field(
        ...,
        description="Weak reference to the budgeted Category"
    )
    period: BudgetPeriod = Field(
        default=BudgetPeriod.MONTHLY,
        description="Period the amount is denominated against"
    )


class OverallBudget(MonetaryRecord):
    """
    A spending limit across all categories.

    The active window is derived from `budget_date` (the anchor) and
    `period`: the Sunday-start week or the calendar month containing it.
    """
    period: OverallBudgetPeriod = Field(
        default=OverallBudgetPeriod.MONTHLY,
    )
    budget_date: date = Field(
        default_factory=date.today,
        description="Anchor date the window is computed from"
    )


class IncomeSource(MonetaryRecord):
    """A recurring (or one-time) source of income."""
    income_type: IncomeType = Field(
        default=IncomeType.SALARY,
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    frequency: IncomeFrequency = Field(
        default=IncomeFrequency.MONTHLY,
    )
    is_active: bool = Field(
        default=True,
        description="Only active sources count towards monthly income"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in submitted form input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of checking a form submission.

    Only errors block the write; warnings are shown alongside the form.
    """

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All issues found"
    )

    @property
    def is_valid(self) -> bool:
        """True when nothing blocks the write."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        """Messages of warning-level issues."""
        return [issue.message for issue in self.issues if issue.severity == "warning"]
