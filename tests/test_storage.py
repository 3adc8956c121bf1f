"""
Tests for the record stores and the repository on top of them.

The Google Sheets store is driven through an in-memory stand-in for a
worksheet; no network calls are made.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

from expense_tracker.models.records import (
    Category,
    Expense,
    IncomeFrequency,
    IncomeSource,
    OverallBudget,
)
from expense_tracker.models.reports import DateRange
from expense_tracker.services.repository import FinanceRepository
from expense_tracker.services.storage import (
    CATEGORIES_TABLE,
    EXPENSES_TABLE,
    INCOME_SOURCES_TABLE,
    DuplicateError,
    Filter,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
)
from expense_tracker.services.storage.google_sheets import TABLE_COLUMNS


OWNER = "user-1"
OTHER = "user-2"


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the record store."""

    def __init__(self, columns):
        self.rows = [list(columns)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append(list(values))

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value

    def delete_rows(self, index):
        del self.rows[index - 1]


def sheets_store(table):
    sheet = FakeWorksheet(TABLE_COLUMNS[table])
    client = MagicMock()
    client.get_table_sheet.return_value = sheet
    return GoogleSheetsRecordStore(client), sheet


class TestFilter:
    """Tests for record predicates."""

    def test_eq_and_neq(self):
        record = {"name": "Food"}
        assert Filter(field="name", value="Food").matches(record)
        assert not Filter(field="name", op="neq", value="Food").matches(record)

    def test_range_on_iso_dates(self):
        record = {"expense_date": "2024-06-15"}
        assert Filter(field="expense_date", op="gte", value="2024-06-01").matches(record)
        assert not Filter(field="expense_date", op="lte", value="2024-06-14").matches(record)

    def test_missing_field_never_matches(self):
        assert not Filter(field="amount", op="gte", value="1").matches({})

    def test_unknown_op_rejected(self):
        with pytest.raises(ValueError):
            Filter(field="amount", op="like", value="1")


class TestInMemoryRecordStore:
    """Tests for the dict-backed store."""

    def test_insert_assigns_id_and_owner(self):
        store = InMemoryRecordStore()
        row = asyncio.run(store.insert(EXPENSES_TABLE, OWNER, {"amount": "5"}))
        assert row["id"]
        assert row["owner_id"] == OWNER
        assert "created_at" in row
        assert row["created_at"].endswith("+00:00")

    def test_select_is_owner_scoped(self):
        store = InMemoryRecordStore()
        asyncio.run(store.insert(EXPENSES_TABLE, OWNER, {"amount": "5"}))
        asyncio.run(store.insert(EXPENSES_TABLE, OTHER, {"amount": "7"}))

        rows = asyncio.run(store.select(EXPENSES_TABLE, OWNER))

        assert [r["amount"] for r in rows] == ["5"]

    def test_select_orders_and_limits(self):
        store = InMemoryRecordStore()
        for day in ("2024-06-02", "2024-06-10", "2024-06-05"):
            asyncio.run(store.insert(EXPENSES_TABLE, OWNER, {"expense_date": day}))

        rows = asyncio.run(store.select(
            EXPENSES_TABLE, OWNER, order_by="expense_date", descending=True, limit=2
        ))

        assert [r["expense_date"] for r in rows] == ["2024-06-10", "2024-06-05"]

    def test_returned_rows_are_copies(self):
        store = InMemoryRecordStore()
        row = asyncio.run(store.insert(CATEGORIES_TABLE, OWNER, {"name": "Food"}))
        row["name"] = "Changed"
        rows = asyncio.run(store.select(CATEGORIES_TABLE, OWNER))
        assert rows[0]["name"] == "Food"

    def test_duplicate_id_rejected(self):
        store = InMemoryRecordStore()
        record_id = str(uuid4())
        asyncio.run(store.insert(CATEGORIES_TABLE, OWNER, {"id": record_id}))
        with pytest.raises(DuplicateError):
            asyncio.run(store.insert(CATEGORIES_TABLE, OWNER, {"id": record_id}))

    def test_update_foreign_record_not_found(self):
        """Another user's record is treated as missing."""
        store = InMemoryRecordStore()
        row = asyncio.run(store.insert(CATEGORIES_TABLE, OWNER, {"name": "Food"}))
        with pytest.raises(NotFoundError):
            asyncio.run(store.update(CATEGORIES_TABLE, OTHER, row["id"], {"name": "Mine"}))

    def test_update_cannot_change_owner(self):
        store = InMemoryRecordStore()
        row = asyncio.run(store.insert(CATEGORIES_TABLE, OWNER, {"name": "Food"}))
        updated = asyncio.run(store.update(
            CATEGORIES_TABLE, OWNER, row["id"], {"name": "Groceries", "owner_id": OTHER}
        ))
        assert updated["name"] == "Groceries"
        assert updated["owner_id"] == OWNER

    def test_delete(self):
        store = InMemoryRecordStore()
        row = asyncio.run(store.insert(CATEGORIES_TABLE, OWNER, {"name": "Food"}))
        assert asyncio.run(store.delete(CATEGORIES_TABLE, OTHER, row["id"])) is False
        assert asyncio.run(store.delete(CATEGORIES_TABLE, OWNER, row["id"])) is True
        assert asyncio.run(store.delete(CATEGORIES_TABLE, OWNER, row["id"])) is False


class TestGoogleSheetsRecordStore:
    """Tests for the Sheets store against a fake worksheet."""

    def test_insert_writes_row_in_column_order(self):
        store, sheet = sheets_store(INCOME_SOURCES_TABLE)
        asyncio.run(store.insert(INCOME_SOURCES_TABLE, OWNER, {
            "amount": "100",
            "frequency": "weekly",
            "is_active": True,
            "description": None,
        }))

        header, row = sheet.rows
        record = dict(zip(header, row))
        assert record["owner_id"] == OWNER
        assert record["is_active"] == "true"
        assert record["description"] == ""

    def test_select_reads_empty_cells_as_none(self):
        store, sheet = sheets_store(EXPENSES_TABLE)
        asyncio.run(store.insert(EXPENSES_TABLE, OWNER, {"amount": "5", "expense_date": "2024-06-01"}))
        asyncio.run(store.insert(EXPENSES_TABLE, OTHER, {"amount": "9", "expense_date": "2024-06-01"}))

        rows = asyncio.run(store.select(EXPENSES_TABLE, OWNER))

        assert len(rows) == 1
        assert rows[0]["amount"] == "5"
        assert rows[0]["category_id"] is None

    def test_update_and_delete(self):
        store, sheet = sheets_store(CATEGORIES_TABLE)
        row = asyncio.run(store.insert(CATEGORIES_TABLE, OWNER, {"name": "Food"}))

        updated = asyncio.run(store.update(CATEGORIES_TABLE, OWNER, row["id"], {"name": "Groceries"}))
        assert updated["name"] == "Groceries"

        assert asyncio.run(store.delete(CATEGORIES_TABLE, OWNER, row["id"])) is True
        assert len(sheet.rows) == 1  # Only the header is left

    def test_update_missing_record(self):
        store, _ = sheets_store(CATEGORIES_TABLE)
        with pytest.raises(NotFoundError):
            asyncio.run(store.update(CATEGORIES_TABLE, OWNER, uuid4(), {"name": "x"}))

    def test_repository_round_trip_through_sheets(self):
        """Typed records survive being flattened to string cells."""
        store, _ = sheets_store(INCOME_SOURCES_TABLE)
        repository = FinanceRepository(store)
        asyncio.run(repository.add_income_source(IncomeSource(
            owner_id=OWNER,
            amount=Decimal("250.50"),
            frequency=IncomeFrequency.ONE_TIME,
            is_active=False,
        )))

        sources = asyncio.run(repository.list_income_sources(OWNER))

        assert len(sources) == 1
        assert sources[0].amount == Decimal("250.50")
        assert sources[0].frequency == IncomeFrequency.ONE_TIME
        assert sources[0].is_active is False
        assert sources[0].description == ""


class TestFinanceRepository:
    """Tests for typed access over the in-memory store."""

    def test_list_expenses_newest_first_in_range(self):
        repository = FinanceRepository(InMemoryRecordStore())
        for day in (date(2024, 5, 31), date(2024, 6, 3), date(2024, 6, 20)):
            asyncio.run(repository.add_expense(
                Expense(owner_id=OWNER, amount=Decimal("1"), expense_date=day)
            ))

        june = DateRange(start=date(2024, 6, 1), end=date(2024, 6, 30))
        expenses = asyncio.run(repository.list_expenses(OWNER, date_range=june))

        assert [e.expense_date for e in expenses] == [date(2024, 6, 20), date(2024, 6, 3)]

    def test_list_categories_by_name(self):
        repository = FinanceRepository(InMemoryRecordStore())
        for name in ("Travel", "Food", "Rent"):
            asyncio.run(repository.add_category(Category(owner_id=OWNER, name=name)))

        names = [c.name for c in asyncio.run(repository.list_categories(OWNER))]

        assert names == ["Food", "Rent", "Travel"]

    def test_unreadable_rows_are_skipped(self):
        store = InMemoryRecordStore()
        asyncio.run(store.insert(EXPENSES_TABLE, OWNER, {"amount": "not a number"}))
        repository = FinanceRepository(store)
        asyncio.run(repository.add_expense(Expense(owner_id=OWNER, amount=Decimal("3"))))

        expenses = asyncio.run(repository.list_expenses(OWNER))

        assert [e.amount for e in expenses] == [Decimal("3")]

    def test_update_overall_budget(self):
        repository = FinanceRepository(InMemoryRecordStore())
        budget = asyncio.run(repository.add_overall_budget(
            OverallBudget(owner_id=OWNER, amount=Decimal("100"), budget_date=date(2024, 6, 1))
        ))

        updated = asyncio.run(repository.update_overall_budget(
            OWNER, budget.id, {"amount": Decimal("150"), "budget_date": date(2024, 7, 1)}
        ))

        assert updated.amount == Decimal("150")
        assert updated.budget_date == date(2024, 7, 1)

    def test_set_income_active(self):
        repository = FinanceRepository(InMemoryRecordStore())
        source = asyncio.run(repository.add_income_source(
            IncomeSource(owner_id=OWNER, amount=Decimal("10"))
        ))

        toggled = asyncio.run(repository.set_income_active(OWNER, source.id, False))

        assert toggled.is_active is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
