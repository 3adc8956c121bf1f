"""
Form Input Validation

DESIGN DECISION: Validation is deliberately basic.
It checks what a form must provide before a write is attempted:
- Required fields are present
- Amounts are numbers greater than zero
- Choices come from the allowed set
- Dates and currency codes are well-formed

There is no business-rule validation beyond that. Invalid input never
reaches the store; the aggregation engine assumes it never sees any.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from expense_tracker.models.records import (
    BudgetPeriod,
    IncomeFrequency,
    IncomeType,
    OverallBudgetPeriod,
    ValidationIssue,
    ValidationResult,
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class FormValidator:
    """
    Checks raw form submissions for each record kind.

    Forms are dicts of field name to whatever the UI produced
    (usually strings, sometimes numbers or dates).
    """

    def _require(
        self,
        form: dict,
        field: str,
        label: str,
        issues: list[ValidationIssue],
    ) -> bool:
        if _is_blank(form.get(field)):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
            ))
            return False
        return True

    def _check_amount(
        self,
        form: dict,
        field: str,
        label: str,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        """Amount must be present, numeric and greater than zero."""
        if not self._require(form, field, label, issues):
            return None

        try:
            amount = Decimal(str(form[field]).strip())
        except InvalidOperation:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{label} must be a number",
                severity="error",
            ))
            return None

        if not amount.is_finite() or amount <= 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{label} must be greater than zero",
                severity="error",
            ))
            return None

        return amount

    def _check_choice(
        self,
        form: dict,
        field: str,
        choices: type[Enum],
        issues: list[ValidationIssue],
    ) -> None:
        """Optional enum field; when present it must be a known value."""
        value = form.get(field)
        if _is_blank(value):
            return
        allowed = [choice.value for choice in choices]
        if getattr(value, "value", value) not in allowed:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field.replace('_', ' ').capitalize()} must be one of: {', '.join(allowed)}",
                severity="error",
            ))

    def _check_date(
        self,
        form: dict,
        field: str,
        label: str,
        issues: list[ValidationIssue],
    ) -> None:
        value = form.get(field)
        if _is_blank(value) or isinstance(value, date):
            return
        try:
            date.fromisoformat(str(value).strip())
        except ValueError:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{label} must be a date (YYYY-MM-DD)",
                severity="error",
            ))

    def _check_currency(self, form: dict, issues: list[ValidationIssue]) -> None:
        value = form.get("currency")
        if _is_blank(value):
            return
        code = str(value).strip()
        if len(code) != 3 or not code.isalpha():
            issues.append(ValidationIssue(
                field="currency",
                issue_type="invalid_format",
                message="Currency must be a 3-letter code",
                severity="error",
            ))

    def validate_expense(self, form: dict) -> ValidationResult:
        """Amount is required; date, category and currency are optional."""
        issues: list[ValidationIssue] = []
        self._check_amount(form, "amount", "Amount", issues)
        self._check_date(form, "expense_date", "Date", issues)
        self._check_currency(form, issues)

        if _is_blank(form.get("description")):
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="No description given",
                severity="info",
            ))

        return ValidationResult(issues=issues)

    def validate_category(self, form: dict) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require(form, "name", "Category name", issues)
        return ValidationResult(issues=issues)

    def validate_budget(self, form: dict) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require(form, "category_id", "Category", issues)
        self._check_amount(form, "amount", "Budget amount", issues)
        self._check_choice(form, "period", BudgetPeriod, issues)
        self._check_currency(form, issues)
        return ValidationResult(issues=issues)

    def validate_overall_budget(self, form: dict) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._check_amount(form, "amount", "Budget amount", issues)
        if self._require(form, "budget_date", "Budget date", issues):
            self._check_date(form, "budget_date", "Budget date", issues)
        self._check_choice(form, "period", OverallBudgetPeriod, issues)
        self._check_currency(form, issues)
        return ValidationResult(issues=issues)

    def validate_income_source(self, form: dict) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._check_amount(form, "amount", "Amount", issues)
        self._check_choice(form, "income_type", IncomeType, issues)
        self._check_choice(form, "frequency", IncomeFrequency, issues)
        self._check_currency(form, issues)
        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line per blocking issue, ready to show next to the form."""
        if result.is_valid:
            return "All required fields are filled in."
        lines = ["Please fix the following:"]
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
        return "\n".join(lines)
