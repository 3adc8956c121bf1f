"""
Integration tests for the per-screen flows.

Flows run against the in-memory store; audit events are collected in
the in-memory audit storage so every write can be checked for its trail.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from expense_tracker.audit import AuditLogger
from expense_tracker.config import PreferencesStore
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.records import UNCATEGORIZED, Theme
from expense_tracker.orchestrator import (
    AppComponents,
    CategoryFlow,
    create_app_components,
)
from expense_tracker.services.repository import FinanceRepository
from expense_tracker.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
    StorageError,
)


OWNER = "user-1"
TODAY = date(2024, 6, 15)


class FailingRecordStore(InMemoryRecordStore):
    """In-memory store that fails on demand."""

    def __init__(self):
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    async def select(self, table, owner_id, **kwargs):
        if self.fail_reads:
            raise StorageError("Sheets unavailable")
        return await super().select(table, owner_id, **kwargs)

    async def insert(self, table, owner_id, record):
        if self.fail_writes:
            raise StorageError("Sheets unavailable")
        return await super().insert(table, owner_id, record)

    async def delete(self, table, owner_id, record_id):
        if self.fail_writes:
            raise StorageError("Sheets unavailable")
        return await super().delete(table, owner_id, record_id)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def store():
    return FailingRecordStore()


@pytest.fixture
def app(store, audit_storage, tmp_path) -> AppComponents:
    return create_app_components(
        use_storage=False,
        store=store,
        audit_storage=audit_storage,
        preferences_store=PreferencesStore(tmp_path / "preferences.json"),
    )


def event_types(audit_storage):
    events = asyncio.run(audit_storage.get_recent_events())
    return {event.event_type for event in events}


def add_category(app, name="Food", color="#EF4444"):
    result = asyncio.run(app.categories.create(OWNER, {"name": name, "color": color}))
    assert result.success
    return result.data


class TestExpenseFlow:
    """Tests for adding, deleting and listing expenses."""

    def test_add_expense(self, app, audit_storage):
        result = asyncio.run(app.expenses.add(OWNER, {
            "amount": "12.50",
            "description": "Lunch",
            "expense_date": "2024-06-01",
            "currency": "eur",
        }))

        assert result.success
        assert result.message == "Expense added successfully"
        assert result.data.amount == Decimal("12.50")
        assert result.data.currency == "EUR"
        assert AuditEventType.EXPENSE_CREATED in event_types(audit_storage)

    def test_blank_optional_fields_use_defaults(self, app):
        result = asyncio.run(app.expenses.add(OWNER, {
            "amount": "3",
            "description": "",
            "expense_date": None,
            "category_id": None,
        }))
        assert result.success
        assert result.data.description is None
        assert result.data.expense_date == date.today()

    def test_invalid_expense_never_reaches_store(self, app, store, audit_storage):
        result = asyncio.run(app.expenses.add(OWNER, {"amount": "-4"}))

        assert not result.success
        assert "greater than zero" in result.message
        assert asyncio.run(store.select("expenses", OWNER)) == []
        assert AuditEventType.VALIDATION_FAILED in event_types(audit_storage)

    def test_recent_is_newest_ten(self, app):
        for day in range(1, 13):
            asyncio.run(app.expenses.add(OWNER, {
                "amount": "1",
                "expense_date": date(2024, 6, day),
            }))

        result = asyncio.run(app.expenses.recent(OWNER))

        assert result.success
        assert len(result.data) == 10
        assert result.data[0].expense_date == date(2024, 6, 12)
        assert result.data[-1].expense_date == date(2024, 6, 3)

    def test_delete_expense(self, app, audit_storage):
        added = asyncio.run(app.expenses.add(OWNER, {"amount": "5"}))

        result = asyncio.run(app.expenses.delete(OWNER, added.data.id))

        assert result.success
        assert asyncio.run(app.expenses.recent(OWNER)).data == []
        assert AuditEventType.EXPENSE_DELETED in event_types(audit_storage)

    def test_delete_missing_expense(self, app):
        result = asyncio.run(app.expenses.delete(OWNER, uuid4()))
        assert not result.success
        assert result.message == "Expense not found"

    def test_write_failure_is_a_notification(self, app, store, audit_storage):
        store.fail_writes = True

        result = asyncio.run(app.expenses.add(OWNER, {"amount": "5"}))

        assert not result.success
        assert "Sheets unavailable" in result.message
        assert AuditEventType.WRITE_FAILED in event_types(audit_storage)

    def test_read_failure_is_a_notification(self, app, store, audit_storage):
        store.fail_reads = True

        result = asyncio.run(app.expenses.recent(OWNER))

        assert not result.success
        assert result.data is None
        assert AuditEventType.FETCH_FAILED in event_types(audit_storage)


class TestCategoryFlow:
    """Tests for category management."""

    def test_list_by_name(self, app):
        add_category(app, "Travel")
        add_category(app, "Food")
        names = [c.name for c in asyncio.run(app.categories.list(OWNER)).data]
        assert names == ["Food", "Travel"]

    def test_update_category(self, app, audit_storage):
        category = add_category(app)

        result = asyncio.run(app.categories.update(OWNER, category.id, {
            "name": "Groceries",
            "color": "#10B981",
            "icon": "not-an-icon",
        }))

        assert result.success
        assert result.data.name == "Groceries"
        assert result.data.icon == "dollar-sign"
        assert AuditEventType.CATEGORY_UPDATED in event_types(audit_storage)

    def test_update_rejects_bad_color(self, app):
        category = add_category(app)
        result = asyncio.run(app.categories.update(OWNER, category.id, {
            "name": "Food",
            "color": "blue",
        }))
        assert not result.success
        assert "color" in result.message

    def test_update_missing_category(self, app):
        result = asyncio.run(app.categories.update(OWNER, uuid4(), {"name": "Food"}))
        assert not result.success

    def test_delete_leaves_expenses_uncategorized(self, app):
        category = add_category(app)
        asyncio.run(app.expenses.add(OWNER, {
            "amount": "9",
            "category_id": str(category.id),
            "expense_date": TODAY,
        }))

        assert asyncio.run(app.categories.delete(OWNER, category.id)).success

        summary = asyncio.run(app.analytics.summarize(OWNER, "month", today=TODAY)).data
        assert [g.name for g in summary.categories] == [UNCATEGORIZED]

    def test_flow_works_without_audit_logger(self):
        """Flows fall back to a local-only audit logger."""
        flow = CategoryFlow(FinanceRepository(InMemoryRecordStore()))
        result = asyncio.run(flow.create(OWNER, {"name": "Food"}))
        assert result.success


class TestBudgetFlows:
    """Tests for category and overall budgets."""

    def test_category_budget_status(self, app):
        category = add_category(app)
        asyncio.run(app.budgets.create(OWNER, {
            "category_id": category.id,
            "amount": "100",
            "period": "yearly",
        }))
        for day, amount in ((date(2024, 6, 2), "120"), (date(2024, 5, 2), "500")):
            asyncio.run(app.expenses.add(OWNER, {
                "amount": amount,
                "category_id": category.id,
                "expense_date": day,
            }))

        views = asyncio.run(app.budgets.list(OWNER, today=TODAY)).data

        assert len(views) == 1
        assert views[0].category_name == "Food"
        assert views[0].status.spent == Decimal("120")
        assert views[0].status.is_over_budget is True

    def test_budget_for_deleted_category(self, app):
        category = add_category(app)
        asyncio.run(app.budgets.create(OWNER, {"category_id": category.id, "amount": "50"}))
        asyncio.run(app.categories.delete(OWNER, category.id))

        views = asyncio.run(app.budgets.list(OWNER, today=TODAY)).data

        assert views[0].category_name == UNCATEGORIZED

    def test_budget_requires_category(self, app):
        result = asyncio.run(app.budgets.create(OWNER, {"amount": "50"}))
        assert not result.success
        assert "Category is required" in result.message

    def test_delete_budget(self, app, audit_storage):
        category = add_category(app)
        created = asyncio.run(app.budgets.create(OWNER, {"category_id": category.id, "amount": "50"}))
        assert asyncio.run(app.budgets.delete(OWNER, created.data.id)).success
        assert asyncio.run(app.budgets.list(OWNER, today=TODAY)).data == []
        assert AuditEventType.BUDGET_DELETED in event_types(audit_storage)

    def test_overall_budget_window_and_update(self, app, audit_storage):
        created = asyncio.run(app.overall_budgets.create(OWNER, {
            "amount": "100",
            "period": "weekly",
            "budget_date": "2024-06-12",
        }))
        assert created.success
        for day in (date(2024, 6, 8), date(2024, 6, 9), date(2024, 6, 15)):
            asyncio.run(app.expenses.add(OWNER, {"amount": "30", "expense_date": day}))

        view = asyncio.run(app.overall_budgets.list(OWNER)).data[0]
        assert view.window.start == date(2024, 6, 9)
        assert view.status.spent == Decimal("60")

        updated = asyncio.run(app.overall_budgets.update(OWNER, created.data.id, {
            "amount": "50",
            "period": "monthly",
            "budget_date": "2024-06-12",
        }))
        assert updated.success

        view = asyncio.run(app.overall_budgets.list(OWNER)).data[0]
        assert view.window.end == date(2024, 6, 30)
        assert view.status.spent == Decimal("90")
        assert view.status.percentage == pytest.approx(180.0)
        assert AuditEventType.OVERALL_BUDGET_UPDATED in event_types(audit_storage)

    def test_delete_overall_budget(self, app):
        created = asyncio.run(app.overall_budgets.create(OWNER, {
            "amount": "100",
            "budget_date": "2024-06-12",
        }))
        assert asyncio.run(app.overall_budgets.delete(OWNER, created.data.id)).success
        assert asyncio.run(app.overall_budgets.list(OWNER)).data == []


class TestIncomeFlow:
    """Tests for income sources."""

    def test_monthly_total_and_toggle(self, app, audit_storage):
        asyncio.run(app.income.create(OWNER, {"amount": "100", "frequency": "weekly"}))
        yearly = asyncio.run(app.income.create(OWNER, {"amount": "1200", "frequency": "yearly"}))
        asyncio.run(app.income.create(OWNER, {"amount": "500", "frequency": "one-time"}))

        assert asyncio.run(app.income.monthly_total(OWNER)).data == Decimal("533.00")

        toggled = asyncio.run(app.income.toggle(OWNER, yearly.data))
        assert toggled.success
        assert toggled.data.is_active is False
        assert asyncio.run(app.income.monthly_total(OWNER)).data == Decimal("433.00")
        assert AuditEventType.INCOME_SOURCE_TOGGLED in event_types(audit_storage)

    def test_delete_income_source(self, app):
        created = asyncio.run(app.income.create(OWNER, {"amount": "100"}))
        assert asyncio.run(app.income.delete(OWNER, created.data.id)).success
        assert asyncio.run(app.income.list(OWNER)).data == []

    def test_monthly_total_read_failure(self, app, store):
        store.fail_reads = True
        result = asyncio.run(app.income.monthly_total(OWNER))
        assert not result.success


class TestAnalyticsAndDashboard:
    """Tests for the read-only summary flows."""

    def test_analytics_summary(self, app):
        food = add_category(app, "Food")
        travel = add_category(app, "Travel", "#10B981")
        for amount, category in (("10", food), ("20", food), ("5", travel)):
            asyncio.run(app.expenses.add(OWNER, {
                "amount": amount,
                "category_id": category.id,
                "expense_date": TODAY,
            }))
        asyncio.run(app.expenses.add(OWNER, {"amount": "999", "expense_date": "2023-01-01"}))

        result = asyncio.run(app.analytics.summarize(OWNER, "month", today=TODAY))

        summary = result.data
        assert summary.total_spent == Decimal("35")
        assert [(g.name, g.total_amount, g.transaction_count) for g in summary.categories] == [
            ("Food", Decimal("30"), 2),
            ("Travel", Decimal("5"), 1),
        ]

    def test_custom_range_without_bounds_is_month(self, app):
        custom = asyncio.run(app.analytics.summarize(OWNER, "custom", today=TODAY)).data
        month = asyncio.run(app.analytics.summarize(OWNER, "month", today=TODAY)).data
        assert custom.date_range == month.date_range

    def test_malformed_custom_bound_is_month(self, app):
        result = asyncio.run(app.analytics.summarize(
            OWNER, "custom", "2024-06-01", "not-a-date", today=TODAY
        ))
        assert result.success
        assert result.data.date_range.start == date(2024, 6, 1)
        assert result.data.date_range.end == TODAY

    def test_dashboard_stats(self, app):
        category = add_category(app)
        asyncio.run(app.budgets.create(OWNER, {"category_id": category.id, "amount": "200"}))
        asyncio.run(app.expenses.add(OWNER, {"amount": "10", "expense_date": "2024-06-02"}))
        asyncio.run(app.expenses.add(OWNER, {"amount": "40", "expense_date": "2024-05-02"}))

        stats = asyncio.run(app.dashboard.stats(OWNER, today=TODAY)).data

        assert stats.total_expenses == Decimal("50")
        assert stats.monthly_expenses == Decimal("10")
        assert stats.total_budget == Decimal("200")
        assert stats.expense_count == 2

    def test_dashboard_fetch_failure(self, app, store, audit_storage):
        store.fail_reads = True
        result = asyncio.run(app.dashboard.stats(OWNER, today=TODAY))
        assert not result.success
        assert result.message.startswith("Could not load your data")

    def test_owners_are_isolated(self, app):
        asyncio.run(app.expenses.add("someone-else", {"amount": "70"}))
        stats = asyncio.run(app.dashboard.stats(OWNER, today=TODAY)).data
        assert stats.expense_count == 0


class TestPreferencesFlow:
    """Tests for changing currency and theme."""

    def test_set_currency_persists_and_audits(self, app, audit_storage, tmp_path):
        result = asyncio.run(app.preferences.set_currency("inr"))

        assert result.success
        assert app.preferences.current.currency == "INR"
        assert PreferencesStore(tmp_path / "preferences.json").load().currency == "INR"
        assert AuditEventType.PREFERENCES_CHANGED in event_types(audit_storage)

    def test_set_theme(self, app):
        result = asyncio.run(app.preferences.set_theme("dark"))
        assert result.success
        assert app.preferences.current.theme == Theme.DARK

    def test_bad_currency_is_rejected(self, app):
        result = asyncio.run(app.preferences.set_currency("euros"))
        assert not result.success
        assert app.preferences.current.currency == "USD"

    def test_save_failure_is_audited(self, store, audit_storage, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        components = create_app_components(
            use_storage=False,
            store=store,
            audit_storage=audit_storage,
            preferences_store=PreferencesStore(blocker / "preferences.json"),
        )

        result = asyncio.run(components.preferences.set_theme("dark"))

        assert not result.success
        assert result.message.startswith("Could not save preferences")
        assert components.preferences.current.theme == Theme.LIGHT
        assert AuditEventType.SYSTEM_ERROR in event_types(audit_storage)


class TestFactory:
    """Tests for create_app_components."""

    def test_defaults_to_memory(self, tmp_path):
        components = create_app_components(
            use_storage=False,
            preferences_store=PreferencesStore(tmp_path / "p.json"),
        )
        assert components.storage_backend == "memory"
        assert asyncio.run(components.expenses.add(OWNER, {"amount": "1"})).success

    def test_audit_logger_survives_storage_failure(self):
        """A broken audit store is logged, never raised."""

        class BrokenAuditStorage(InMemoryAuditStorage):
            async def append_event(self, event):
                raise StorageError("audit sheet gone")

        logger = AuditLogger(BrokenAuditStorage())
        asyncio.run(logger.log_error("test_error", "boom"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
