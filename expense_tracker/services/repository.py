"""
Finance Repository

Typed access to the record store. Converts between the store's flat
records and the Pydantic models in expense_tracker.models.records.

DESIGN DECISION: The repository is a thin translation layer.
It adds no business rules: ordering and limits mirror what each
screen asks for, and everything else is left to the aggregation engine.
"""

from typing import Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError
from pydantic_core import to_jsonable_python

from expense_tracker.models.records import (
    Budget,
    Category,
    Expense,
    IncomeSource,
    OverallBudget,
)
from expense_tracker.models.reports import DateRange
from expense_tracker.services.storage import (
    BUDGETS_TABLE,
    CATEGORIES_TABLE,
    EXPENSES_TABLE,
    INCOME_SOURCES_TABLE,
    OVERALL_BUDGETS_TABLE,
    Filter,
    RecordStoreInterface,
)


logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class FinanceRepository:
    """
    Reads and writes typed records for one store.

    Every method takes the owner's id; the store never returns or
    touches rows belonging to anyone else.
    """

    def __init__(self, store: RecordStoreInterface):
        self._store = store

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def _parse(self, model: type[RecordT], table: str, row: dict) -> Optional[RecordT]:
        # Empty cells come back as None; let model defaults fill them
        data = {k: v for k, v in row.items() if v is not None}
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning("record_unreadable", table=table, record_id=row.get("id"), error=str(e))
            return None

    async def _list(
        self,
        model: type[RecordT],
        table: str,
        owner_id: str,
        filters: tuple[Filter, ...] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[RecordT]:
        rows = await self._store.select(
            table,
            owner_id,
            filters=filters,
            order_by=order_by,
            descending=descending,
            limit=limit,
        )
        records = (self._parse(model, table, row) for row in rows)
        return [record for record in records if record is not None]

    async def _add(self, model: type[RecordT], table: str, record: RecordT) -> RecordT:
        stored = await self._store.insert(
            table,
            record.owner_id,
            record.model_dump(mode="json"),
        )
        return model.model_validate({k: v for k, v in stored.items() if v is not None})

    async def _update(
        self,
        model: type[RecordT],
        table: str,
        owner_id: str,
        record_id: UUID,
        patch: dict,
    ) -> RecordT:
        stored = await self._store.update(
            table,
            owner_id,
            record_id,
            to_jsonable_python(patch),
        )
        return model.model_validate({k: v for k, v in stored.items() if v is not None})

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def list_expenses(
        self,
        owner_id: str,
        date_range: Optional[DateRange] = None,
        limit: Optional[int] = None,
    ) -> list[Expense]:
        """Expenses, newest first, optionally restricted to a date range."""
        filters: tuple[Filter, ...] = ()
        if date_range is not None:
            filters = (
                Filter(field="expense_date", op="gte", value=date_range.start.isoformat()),
                Filter(field="expense_date", op="lte", value=date_range.end.isoformat()),
            )
        return await self._list(
            Expense,
            EXPENSES_TABLE,
            owner_id,
            filters=filters,
            order_by="expense_date",
            descending=True,
            limit=limit,
        )

    async def add_expense(self, expense: Expense) -> Expense:
        return await self._add(Expense, EXPENSES_TABLE, expense)

    async def delete_expense(self, owner_id: str, expense_id: UUID) -> bool:
        return await self._store.delete(EXPENSES_TABLE, owner_id, expense_id)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self, owner_id: str) -> list[Category]:
        """Categories ordered by name."""
        return await self._list(Category, CATEGORIES_TABLE, owner_id, order_by="name")

    async def add_category(self, category: Category) -> Category:
        return await self._add(Category, CATEGORIES_TABLE, category)

    async def update_category(self, owner_id: str, category_id: UUID, patch: dict) -> Category:
        return await self._update(Category, CATEGORIES_TABLE, owner_id, category_id, patch)

    async def delete_category(self, owner_id: str, category_id: UUID) -> bool:
        """Delete a category. Expenses and budgets keep their (now dangling) reference."""
        return await self._store.delete(CATEGORIES_TABLE, owner_id, category_id)

    # ------------------------------------------------------------------
    # Category budgets
    # ------------------------------------------------------------------

    async def list_budgets(self, owner_id: str) -> list[Budget]:
        return await self._list(Budget, BUDGETS_TABLE, owner_id, order_by="created_at")

    async def add_budget(self, budget: Budget) -> Budget:
        return await self._add(Budget, BUDGETS_TABLE, budget)

    async def delete_budget(self, owner_id: str, budget_id: UUID) -> bool:
        return await self._store.delete(BUDGETS_TABLE, owner_id, budget_id)

    # ------------------------------------------------------------------
    # Overall budgets
    # ------------------------------------------------------------------

    async def list_overall_budgets(self, owner_id: str) -> list[OverallBudget]:
        """Overall budgets, newest first."""
        return await self._list(
            OverallBudget,
            OVERALL_BUDGETS_TABLE,
            owner_id,
            order_by="created_at",
            descending=True,
        )

    async def add_overall_budget(self, budget: OverallBudget) -> OverallBudget:
        return await self._add(OverallBudget, OVERALL_BUDGETS_TABLE, budget)

    async def update_overall_budget(
        self,
        owner_id: str,
        budget_id: UUID,
        patch: dict,
    ) -> OverallBudget:
        return await self._update(OverallBudget, OVERALL_BUDGETS_TABLE, owner_id, budget_id, patch)

    async def delete_overall_budget(self, owner_id: str, budget_id: UUID) -> bool:
        return await self._store.delete(OVERALL_BUDGETS_TABLE, owner_id, budget_id)

    # ------------------------------------------------------------------
    # Income
    # ------------------------------------------------------------------

    async def list_income_sources(self, owner_id: str) -> list[IncomeSource]:
        """Income sources, newest first."""
        return await self._list(
            IncomeSource,
            INCOME_SOURCES_TABLE,
            owner_id,
            order_by="created_at",
            descending=True,
        )

    async def add_income_source(self, source: IncomeSource) -> IncomeSource:
        return await self._add(IncomeSource, INCOME_SOURCES_TABLE, source)

    async def set_income_active(
        self,
        owner_id: str,
        source_id: UUID,
        is_active: bool,
    ) -> IncomeSource:
        return await self._update(
            IncomeSource,
            INCOME_SOURCES_TABLE,
            owner_id,
            source_id,
            {"is_active": is_active},
        )

    async def delete_income_source(self, owner_id: str, source_id: UUID) -> bool:
        return await self._store.delete(INCOME_SOURCES_TABLE, owner_id, source_id)
