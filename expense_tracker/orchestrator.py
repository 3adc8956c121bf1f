"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines one flow per
screen:
1. Expenses (add → validate → save, delete, recent list)
2. Categories, category budgets, overall budgets, income sources
3. Analytics and dashboard (fetch → aggregate → display)
4. Preferences (currency and theme)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No write reaches the store without passing form validation
- No number is shown that was not recomputed from fetched records
- Every write and every failure is audited

Store failures never escape a flow. They come back as a failed
FlowResult carrying a message the UI can show as a notification, and
whatever the screen already displays stays as it was.

Fetches are not cancelled when the screen changes underneath them.
A slow response can still overwrite newer results; this is a known gap.
"""

import asyncio
from datetime import date
from typing import Any, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from expense_tracker.analytics import (
    analytics_summary,
    category_budget_status,
    dashboard_stats,
    month_bounds,
    monthly_income_total,
    overall_budget_status,
    overall_budget_window,
    resolve_date_range,
)
from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import PreferencesStore, get_settings
from expense_tracker.models.records import (
    UNCATEGORIZED,
    Budget,
    Category,
    Expense,
    IncomeSource,
    OverallBudget,
    ValidationResult,
)
from expense_tracker.models.reports import CategoryBudgetView, OverallBudgetView
from expense_tracker.services.repository import FinanceRepository
from expense_tracker.services.storage import (
    BUDGETS_TABLE,
    CATEGORIES_TABLE,
    EXPENSES_TABLE,
    INCOME_SOURCES_TABLE,
    OVERALL_BUDGETS_TABLE,
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    RecordStoreInterface,
    StorageError,
)
from expense_tracker.validation import FormValidator


logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class FlowResult(BaseModel):
    """
    Outcome of one flow operation.

    `message` is user-facing. `data` holds whatever the screen needs
    (a record, a list of records, a summary); it is None on failure.
    """

    success: bool
    message: str = ""
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "") -> "FlowResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failed(cls, message: str) -> "FlowResult":
        return cls(success=False, message=message)


def _clean_form(form: dict) -> dict:
    """Drop blank values so model defaults apply."""
    cleaned = {}
    for key, value in form.items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        cleaned[key] = value
    return cleaned


class _Flow:
    """Shared plumbing: repository access, validation and failure handling."""

    entity_type = ""
    table = ""

    def __init__(
        self,
        repository: FinanceRepository,
        validator: Optional[FormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._validator = validator or FormValidator()
        self._audit_logger = audit_logger or AuditLogger()

    def _build(self, model: type[RecordT], owner_id: str, form: dict) -> RecordT:
        return model.model_validate({**_clean_form(form), "owner_id": owner_id})

    async def _rejected(
        self,
        owner_id: str,
        result: ValidationResult,
        correlation_id: UUID,
    ) -> FlowResult:
        await self._audit_logger.log_validation_failed(
            entity_type=self.entity_type,
            owner_id=owner_id,
            issues=[
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
                if i.severity == "error"
            ],
            correlation_id=correlation_id,
        )
        return FlowResult.failed(self._validator.get_user_friendly_summary(result))

    async def _invalid_record(
        self,
        owner_id: str,
        error: ValidationError,
        correlation_id: UUID,
    ) -> FlowResult:
        issues = [
            {"field": ".".join(str(p) for p in e["loc"]), "type": e["type"], "message": e["msg"]}
            for e in error.errors()
        ]
        await self._audit_logger.log_validation_failed(
            entity_type=self.entity_type,
            owner_id=owner_id,
            issues=issues,
            correlation_id=correlation_id,
        )
        fields = ", ".join(issue["field"] for issue in issues)
        return FlowResult.failed(f"Please check these fields: {fields}")

    async def _fetch_failed(
        self,
        owner_id: str,
        error: StorageError,
        correlation_id: UUID,
        table: Optional[str] = None,
    ) -> FlowResult:
        await self._audit_logger.log_fetch_failed(
            table=table or self.table,
            owner_id=owner_id,
            error_message=str(error),
            correlation_id=correlation_id,
        )
        return FlowResult.failed(f"Could not load your data: {error}")

    async def _write_failed(
        self,
        owner_id: str,
        error: StorageError,
        correlation_id: UUID,
    ) -> FlowResult:
        await self._audit_logger.log_write_failed(
            table=self.table,
            owner_id=owner_id,
            error_message=str(error),
            correlation_id=correlation_id,
        )
        return FlowResult.failed(f"Could not save your changes: {error}")

    async def _delete(
        self,
        owner_id: str,
        record_id: UUID,
        delete,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()
        label = self.entity_type.replace("_", " ").capitalize()

        try:
            deleted = await delete(owner_id, record_id)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        if not deleted:
            return FlowResult.failed(f"{label} not found")

        await self._audit_logger.log_deleted(
            entity_type=self.entity_type,
            entity_id=record_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )
        return FlowResult.ok(message=f"{label} deleted successfully")


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseFlow(_Flow):
    """
    Add, delete and list expenses.

    Expenses are never edited in place: a wrong entry is deleted and
    entered again.
    """

    entity_type = "expense"
    table = EXPENSES_TABLE

    def __init__(
        self,
        repository: FinanceRepository,
        validator: Optional[FormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        recent_limit: int = 10,
    ):
        super().__init__(repository, validator, audit_logger)
        self._recent_limit = recent_limit

    async def recent(
        self,
        owner_id: str,
        limit: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """The newest expenses by expense date."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            expenses = await self._repository.list_expenses(
                owner_id,
                limit=limit or self._recent_limit,
            )
        except StorageError as e:
            return await self._fetch_failed(owner_id, e, correlation_id)
        return FlowResult.ok(expenses)

    async def add(
        self,
        owner_id: str,
        form: dict,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """
        Validate and save a new expense.

        A missing date means today; a missing category leaves the
        expense uncategorized.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_expense(form)
        if not result.is_valid:
            return await self._rejected(owner_id, result, correlation_id)

        try:
            expense = self._build(Expense, owner_id, form)
        except ValidationError as e:
            return await self._invalid_record(owner_id, e, correlation_id)

        try:
            saved = await self._repository.add_expense(expense)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_created(
            entity_type=self.entity_type,
            entity_id=saved.id,
            owner_id=owner_id,
            details={"amount": str(saved.amount), "currency": saved.currency},
            correlation_id=correlation_id,
        )
        return FlowResult.ok(saved, "Expense added successfully")

    async def delete(
        self,
        owner_id: str,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        return await self._delete(
            owner_id, expense_id, self._repository.delete_expense, correlation_id
        )


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryFlow(_Flow):
    """Create, edit and delete categories. Deletes never cascade."""

    entity_type = "category"
    table = CATEGORIES_TABLE

    EDITABLE_FIELDS = ("name", "color", "icon")

    async def list(
        self,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """Categories ordered by name."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            categories = await self._repository.list_categories(owner_id)
        except StorageError as e:
            return await self._fetch_failed(owner_id, e, correlation_id)
        return FlowResult.ok(categories)

    async def create(
        self,
        owner_id: str,
        form: dict,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_category(form)
        if not result.is_valid:
            return await self._rejected(owner_id, result, correlation_id)

        try:
            category = self._build(Category, owner_id, form)
        except ValidationError as e:
            return await self._invalid_record(owner_id, e, correlation_id)

        try:
            saved = await self._repository.add_category(category)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_created(
            entity_type=self.entity_type,
            entity_id=saved.id,
            owner_id=owner_id,
            details={"name": saved.name},
            correlation_id=correlation_id,
        )
        return FlowResult.ok(saved, "Category created successfully")

    async def update(
        self,
        owner_id: str,
        category_id: UUID,
        form: dict,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """Change a category's name, colour or icon."""
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_category(form)
        if not result.is_valid:
            return await self._rejected(owner_id, result, correlation_id)

        # Run the fields through the model so colour and icon rules apply
        fields = {k: v for k, v in _clean_form(form).items() if k in self.EDITABLE_FIELDS}
        try:
            checked = Category.model_validate({**fields, "owner_id": owner_id})
        except ValidationError as e:
            return await self._invalid_record(owner_id, e, correlation_id)
        patch = checked.model_dump(include=set(fields))

        try:
            saved = await self._repository.update_category(owner_id, category_id, patch)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_updated(
            entity_type=self.entity_type,
            entity_id=category_id,
            owner_id=owner_id,
            changes=patch,
            correlation_id=correlation_id,
        )
        return FlowResult.ok(saved, "Category updated successfully")

    async def delete(
        self,
        owner_id: str,
        category_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """Expenses and budgets pointing at the category become Uncategorized."""
        return await self._delete(
            owner_id, category_id, self._repository.delete_category, correlation_id
        )


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetFlow(_Flow):
    """
    Category budgets with their current spending.

    Spent always covers the current calendar month, whatever period the
    budget was created with.
    """

    entity_type = "budget"
    table = BUDGETS_TABLE

    async def list(
        self,
        owner_id: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()
        today = today or date.today()

        try:
            budgets, categories, expenses = await asyncio.gather(
                self._repository.list_budgets(owner_id),
                self._repository.list_categories(owner_id),
                self._repository.list_expenses(owner_id, date_range=month_bounds(today)),
            )
        except StorageError as e:
            return await self._fetch_failed(owner_id, e, correlation_id)

        names = {category.id: category.name for category in categories}
        views = [
            CategoryBudgetView(
                budget=budget,
                category_name=names.get(budget.category_id, UNCATEGORIZED),
                status=category_budget_status(budget, expenses, today),
            )
            for budget in budgets
        ]
        return FlowResult.ok(views)

    async def create(
        self,
        owner_id: str,
        form: dict,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_budget(form)
        if not result.is_valid:
            return await self._rejected(owner_id, result, correlation_id)

        try:
            budget = self._build(Budget, owner_id, form)
        except ValidationError as e:
            return await self._invalid_record(owner_id, e, correlation_id)

        try:
            saved = await self._repository.add_budget(budget)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_created(
            entity_type=self.entity_type,
            entity_id=saved.id,
            owner_id=owner_id,
            details={
                "category_id": str(saved.category_id),
                "amount": str(saved.amount),
                "period": saved.period.value,
            },
            correlation_id=correlation_id,
        )
        return FlowResult.ok(saved, "Budget created successfully")

    async def delete(
        self,
        owner_id: str,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        return await self._delete(
            owner_id, budget_id, self._repository.delete_budget, correlation_id
        )


class OverallBudgetFlow(_Flow):
    """Overall budgets, each measured over the window around its anchor date."""

    entity_type = "overall_budget"
    table = OVERALL_BUDGETS_TABLE

    EDITABLE_FIELDS = ("amount", "period", "budget_date", "currency")

    async def list(
        self,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()

        try:
            budgets, expenses = await asyncio.gather(
                self._repository.list_overall_budgets(owner_id),
                self._repository.list_expenses(owner_id),
            )
        except StorageError as e:
            return await self._fetch_failed(owner_id, e, correlation_id)

        views = [
            OverallBudgetView(
                budget=budget,
                window=overall_budget_window(budget.budget_date, budget.period),
                status=overall_budget_status(budget, expenses),
            )
            for budget in budgets
        ]
        return FlowResult.ok(views)

    async def create(
        self,
        owner_id: str,
        form: dict,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_overall_budget(form)
        if not result.is_valid:
            return await self._rejected(owner_id, result, correlation_id)

        try:
            budget = self._build(OverallBudget, owner_id, form)
        except ValidationError as e:
            return await self._invalid_record(owner_id, e, correlation_id)

        try:
            saved = await self._repository.add_overall_budget(budget)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_created(
            entity_type=self.entity_type,
            entity_id=saved.id,
            owner_id=owner_id,
            details={
                "amount": str(saved.amount),
                "period": saved.period.value,
                "budget_date": saved.budget_date.isoformat(),
            },
            correlation_id=correlation_id,
        )
        return FlowResult.ok(saved, "Overall budget created successfully")

    async def update(
        self,
        owner_id: str,
        budget_id: UUID,
        form: dict,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_overall_budget(form)
        if not result.is_valid:
            return await self._rejected(owner_id, result, correlation_id)

        fields = {k: v for k, v in _clean_form(form).items() if k in self.EDITABLE_FIELDS}
        try:
            checked = OverallBudget.model_validate({**fields, "owner_id": owner_id})
        except ValidationError as e:
            return await self._invalid_record(owner_id, e, correlation_id)
        patch = checked.model_dump(mode="json", include=set(fields))

        try:
            saved = await self._repository.update_overall_budget(owner_id, budget_id, patch)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_updated(
            entity_type=self.entity_type,
            entity_id=budget_id,
            owner_id=owner_id,
            changes=patch,
            correlation_id=correlation_id,
        )
        return FlowResult.ok(saved, "Overall budget updated successfully")

    async def delete(
        self,
        owner_id: str,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        return await self._delete(
            owner_id, budget_id, self._repository.delete_overall_budget, correlation_id
        )


# =============================================================================
# INCOME
# =============================================================================

class IncomeFlow(_Flow):
    """Income sources and the monthly income they add up to."""

    entity_type = "income_source"
    table = INCOME_SOURCES_TABLE

    async def list(
        self,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()
        try:
            sources = await self._repository.list_income_sources(owner_id)
        except StorageError as e:
            return await self._fetch_failed(owner_id, e, correlation_id)
        return FlowResult.ok(sources)

    async def monthly_total(
        self,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """Monthly equivalent of all active sources, as a Decimal."""
        listed = await self.list(owner_id, correlation_id)
        if not listed.success:
            return listed
        return FlowResult.ok(monthly_income_total(listed.data))

    async def create(
        self,
        owner_id: str,
        form: dict,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_income_source(form)
        if not result.is_valid:
            return await self._rejected(owner_id, result, correlation_id)

        try:
            source = self._build(IncomeSource, owner_id, form)
        except ValidationError as e:
            return await self._invalid_record(owner_id, e, correlation_id)

        try:
            saved = await self._repository.add_income_source(source)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_created(
            entity_type=self.entity_type,
            entity_id=saved.id,
            owner_id=owner_id,
            details={
                "amount": str(saved.amount),
                "frequency": saved.frequency.value,
                "income_type": saved.income_type.value,
            },
            correlation_id=correlation_id,
        )
        return FlowResult.ok(saved, "Income source added successfully")

    async def toggle(
        self,
        owner_id: str,
        source: IncomeSource,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """Flip a source between active and inactive."""
        correlation_id = correlation_id or create_correlation_id()
        is_active = not source.is_active

        try:
            saved = await self._repository.set_income_active(owner_id, source.id, is_active)
        except StorageError as e:
            return await self._write_failed(owner_id, e, correlation_id)

        await self._audit_logger.log_updated(
            entity_type=self.entity_type,
            entity_id=source.id,
            owner_id=owner_id,
            changes={"is_active": is_active},
            correlation_id=correlation_id,
        )
        state = "activated" if is_active else "deactivated"
        return FlowResult.ok(saved, f"Income source {state}")

    async def delete(
        self,
        owner_id: str,
        source_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        return await self._delete(
            owner_id, source_id, self._repository.delete_income_source, correlation_id
        )


# =============================================================================
# ANALYTICS & DASHBOARD
# =============================================================================

class AnalyticsFlow(_Flow):
    """
    Spending breakdown for a selected date range.

    FLOW:
    1. Range selector → concrete DateRange
    2. Fetch expenses in range and categories (concurrently)
    3. Aggregate → AnalyticsSummary
    """

    table = EXPENSES_TABLE

    async def summarize(
        self,
        owner_id: str,
        range_kind: str = "month",
        custom_start=None,
        custom_end=None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        correlation_id = correlation_id or create_correlation_id()
        date_range = resolve_date_range(range_kind, custom_start, custom_end, today)

        try:
            expenses, categories = await asyncio.gather(
                self._repository.list_expenses(owner_id, date_range=date_range),
                self._repository.list_categories(owner_id),
            )
        except StorageError as e:
            return await self._fetch_failed(owner_id, e, correlation_id)

        return FlowResult.ok(analytics_summary(expenses, categories, date_range))


class DashboardFlow(_Flow):
    """Headline numbers for the dashboard."""

    table = EXPENSES_TABLE

    async def stats(
        self,
        owner_id: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> FlowResult:
        """
        Fetch expenses and budgets at the same time; aggregate only once
        both have arrived.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            expenses, budgets = await asyncio.gather(
                self._repository.list_expenses(owner_id),
                self._repository.list_budgets(owner_id),
            )
        except StorageError as e:
            return await self._fetch_failed(owner_id, e, correlation_id)

        return FlowResult.ok(dashboard_stats(expenses, budgets, today))


# =============================================================================
# PREFERENCES
# =============================================================================

class PreferencesFlow:
    """Change currency or theme; every change is written and audited."""

    def __init__(
        self,
        store: PreferencesStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def current(self):
        return self._store.current

    async def _save_failed(self, preference: str, error: OSError) -> FlowResult:
        await self._audit_logger.log_error(
            error_type="preferences_save_failed",
            error_message=str(error),
            details={"preference": preference, "path": str(self._store.path)},
        )
        return FlowResult.failed(f"Could not save preferences: {error}")

    async def set_currency(self, currency: str) -> FlowResult:
        old = self._store.current.currency
        try:
            preferences = self._store.set_currency(currency)
        except ValidationError:
            return FlowResult.failed(f"Unknown currency: {currency}")
        except OSError as e:
            return await self._save_failed("currency", e)

        await self._audit_logger.log_preferences_changed("currency", old, preferences.currency)
        return FlowResult.ok(preferences, f"Currency changed to {preferences.currency}")

    async def set_theme(self, theme: str) -> FlowResult:
        old = self._store.current.theme.value
        try:
            preferences = self._store.set_theme(theme)
        except ValidationError:
            return FlowResult.failed(f"Unknown theme: {theme}")
        except OSError as e:
            return await self._save_failed("theme", e)

        await self._audit_logger.log_preferences_changed("theme", old, preferences.theme.value)
        return FlowResult.ok(preferences, f"Theme changed to {preferences.theme.value}")


# =============================================================================
# FACTORY
# =============================================================================

class AppComponents(BaseModel):
    """Every flow the UI needs, wired to one store and one audit logger."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    expenses: ExpenseFlow
    categories: CategoryFlow
    budgets: BudgetFlow
    overall_budgets: OverallBudgetFlow
    income: IncomeFlow
    analytics: AnalyticsFlow
    dashboard: DashboardFlow
    preferences: PreferencesFlow
    storage_backend: str


def create_app_components(
    use_storage: bool = True,
    store: Optional[RecordStoreInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    preferences_store: Optional[PreferencesStore] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize the configured storage backend.
                    Set to False for testing; everything stays in memory.
        store: Record store to use instead of the configured one.
        audit_storage: Audit storage to use instead of the configured one.
        preferences_store: Preferences store to use instead of the file
                    named in settings.

    Returns:
        AppComponents with one flow per screen
    """
    app_settings = get_settings().app
    backend = "memory"

    if store is None and use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsRecordStore(sheets_client)
            audit_storage = audit_storage or GoogleSheetsAuditStorage(sheets_client)
            backend = "google_sheets"
        except (ValueError, StorageError) as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            store = None

    if store is None:
        store = InMemoryRecordStore()
        audit_storage = audit_storage or InMemoryAuditStorage()
    elif backend == "memory":
        backend = type(store).__name__

    audit_logger = AuditLogger(audit_storage)
    repository = FinanceRepository(store)
    validator = FormValidator()
    preferences_store = preferences_store or PreferencesStore(
        app_settings.preferences_path,
        default_currency=app_settings.default_currency,
    )

    return AppComponents(
        expenses=ExpenseFlow(
            repository,
            validator,
            audit_logger,
            recent_limit=app_settings.recent_expense_limit,
        ),
        categories=CategoryFlow(repository, validator, audit_logger),
        budgets=BudgetFlow(repository, validator, audit_logger),
        overall_budgets=OverallBudgetFlow(repository, validator, audit_logger),
        income=IncomeFlow(repository, validator, audit_logger),
        analytics=AnalyticsFlow(repository, validator, audit_logger),
        dashboard=DashboardFlow(repository, validator, audit_logger),
        preferences=PreferencesFlow(preferences_store, audit_logger),
        storage_backend=backend,
    )
