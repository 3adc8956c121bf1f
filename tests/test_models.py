"""
Tests for Expense Tracker models

Test strategy:
1. Unit tests for individual components (models, validators, engine)
2. Integration tests for flows (with the in-memory store)
3. No real API calls in tests (Google Sheets is never contacted)
"""

import pytest
from datetime import date, timezone
from decimal import Decimal
from uuid import uuid4

from expense_tracker.models.records import (
    DEFAULT_COLOR,
    DEFAULT_CURRENCY,
    DEFAULT_ICON,
    Budget,
    BudgetPeriod,
    Category,
    Expense,
    IncomeFrequency,
    IncomeSource,
    OverallBudget,
    OverallBudgetPeriod,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.reports import BudgetStatus, DateRange
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


OWNER = "user-1"


class TestRecordModels:
    """Tests for the stored record models."""

    def test_expense_creation(self):
        """Test Expense model creation with defaults."""
        expense = Expense(owner_id=OWNER, amount=Decimal("12.50"))
        assert expense.amount == Decimal("12.50")
        assert expense.currency == DEFAULT_CURRENCY
        assert expense.expense_date == date.today()
        assert expense.category_id is None
        assert expense.description is None

    def test_created_at_is_utc(self):
        expense = Expense(owner_id=OWNER, amount=1)
        assert expense.created_at.tzinfo == timezone.utc

    def test_expense_parses_strings(self):
        """Form values arrive as strings and are coerced."""
        category_id = uuid4()
        expense = Expense(
            owner_id=OWNER,
            amount="19.99",
            expense_date="2024-06-15",
            category_id=str(category_id),
        )
        assert expense.amount == Decimal("19.99")
        assert expense.expense_date == date(2024, 6, 15)
        assert expense.category_id == category_id

    def test_currency_is_normalized(self):
        """Test that currency codes are upper-cased and stripped."""
        expense = Expense(owner_id=OWNER, amount=1, currency="  eur ")
        assert expense.currency == "EUR"

    def test_currency_rejects_bad_code(self):
        """Test that non 3-letter currency codes are rejected."""
        with pytest.raises(ValueError):
            Expense(owner_id=OWNER, amount=1, currency="DOLLARS")

    def test_owner_is_required(self):
        """Test that every record needs an owner."""
        with pytest.raises(ValueError):
            Expense(owner_id="", amount=1)

    def test_category_defaults(self):
        """Test Category colour and icon defaults."""
        category = Category(owner_id=OWNER, name="  Food  ")
        assert category.name == "Food"
        assert category.color == DEFAULT_COLOR
        assert category.icon == DEFAULT_ICON

    def test_category_unknown_icon_falls_back(self):
        """Test that an unknown icon key is replaced by the default."""
        category = Category(owner_id=OWNER, name="Fun", icon="rocket")
        assert category.icon == DEFAULT_ICON

    def test_category_rejects_bad_color(self):
        """Test that colours must be #RRGGBB."""
        with pytest.raises(ValueError):
            Category(owner_id=OWNER, name="Food", color="red")

    def test_budget_period_default(self):
        """Test that budgets default to monthly."""
        budget = Budget(owner_id=OWNER, category_id=uuid4(), amount=100)
        assert budget.period == BudgetPeriod.MONTHLY

    def test_overall_budget_rejects_yearly(self):
        """Overall budgets only run weekly or monthly."""
        with pytest.raises(ValueError):
            OverallBudget(owner_id=OWNER, amount=100, period="yearly")

    def test_overall_budget_creation(self):
        budget = OverallBudget(
            owner_id=OWNER,
            amount=500,
            period=OverallBudgetPeriod.WEEKLY,
            budget_date="2024-06-12",
        )
        assert budget.budget_date == date(2024, 6, 12)

    def test_income_source_one_time_value(self):
        """Test that the one-time frequency uses its hyphenated value."""
        source = IncomeSource(owner_id=OWNER, amount=500, frequency="one-time")
        assert source.frequency == IncomeFrequency.ONE_TIME
        assert source.is_active is True


class TestReportModels:
    """Tests for derived reporting models."""

    def test_date_range_contains_is_inclusive(self):
        """Both ends of a range count as inside it."""
        june = DateRange(start=date(2024, 6, 1), end=date(2024, 6, 30))
        assert june.contains(date(2024, 6, 1))
        assert june.contains(date(2024, 6, 30))
        assert not june.contains(date(2024, 7, 1))

    def test_date_range_days(self):
        week = DateRange(start=date(2024, 6, 8), end=date(2024, 6, 15))
        assert week.days == 7

    def test_budget_status_progress_is_capped(self):
        """Test that progress never exceeds 100 even when over budget."""
        status = BudgetStatus(
            spent=Decimal("150"),
            amount=Decimal("100"),
            percentage=150.0,
            is_over_budget=True,
        )
        assert status.progress == 100.0
        assert status.remaining == Decimal("-50")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            description="Expense created",
        )
        assert event.event_type == AuditEventType.EXPENSE_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo == timezone.utc

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_CREATED,
            description="Budget created",
            owner_id=OWNER,
            details={"amount": "100"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "budget_created"
        assert log_dict["owner_id"] == OWNER
        assert log_dict["details"]["amount"] == "100"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            description="Category deleted",
            owner_id=OWNER,
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12  # Expected number of columns
        assert row[2] == "category_deleted"  # event_type
        assert row[4] == OWNER  # owner_id
        assert row[11] == "True"  # is_user_action

    def test_audit_event_builder_record_created(self):
        """Test AuditEventBuilder.record_created."""
        correlation_id = uuid4()
        expense_id = uuid4()

        event = AuditEventBuilder.record_created(
            entity_type="expense",
            entity_id=expense_id,
            owner_id=OWNER,
            details={"amount": "10"},
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.EXPENSE_CREATED
        assert event.entity_id == expense_id
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.description == "Expense created"

    def test_audit_event_builder_income_update_is_toggle(self):
        """Updating an income source is recorded as a toggle."""
        event = AuditEventBuilder.record_updated(
            entity_type="income_source",
            entity_id=uuid4(),
            owner_id=OWNER,
            changes={"is_active": False},
        )
        assert event.event_type == AuditEventType.INCOME_SOURCE_TOGGLED
        assert event.details["changes"] == {"is_active": False}

    def test_audit_event_builder_rejects_unknown_entity(self):
        """Expenses have no edit flow, so there is no update event for them."""
        with pytest.raises(ValueError):
            AuditEventBuilder.record_updated(
                entity_type="expense",
                entity_id=uuid4(),
                owner_id=OWNER,
                changes={"amount": "1"},
            )

    def test_audit_event_builder_fetch_failed_is_error(self):
        event = AuditEventBuilder.fetch_failed("expenses", OWNER, "timeout")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"
        assert event.details == {"table": "expenses"}


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="description",
                    issue_type="missing",
                    message="No description",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.is_valid is True
        assert result.error_count == 0
        assert result.warnings == ["No description"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
