"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a hosted database later
2. Use in-memory storage for testing
3. Keep aggregation and flows decoupled from storage implementation

The interface is intentionally generic: four operations over named
tables of flat records, every one of them scoped by the owner's id.
Typed conversion happens one layer up, in the repository.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.audit import AuditEvent


# Table names, shared by every backend
EXPENSES_TABLE = "expenses"
CATEGORIES_TABLE = "expense_categories"
BUDGETS_TABLE = "budgets"
OVERALL_BUDGETS_TABLE = "overall_budgets"
INCOME_SOURCES_TABLE = "income_sources"

ALL_TABLES = (
    EXPENSES_TABLE,
    CATEGORIES_TABLE,
    BUDGETS_TABLE,
    OVERALL_BUDGETS_TABLE,
    INCOME_SOURCES_TABLE,
)


class Filter(BaseModel):
    """
    A single predicate on a record field.

    Values are compared as stored (ISO strings for dates), so range
    filters on dates work lexicographically.
    """
    model_config = ConfigDict(frozen=True)

    field: str
    op: str = Field(
        default="eq",
        pattern="^(eq|neq|gte|lte)$",
    )
    value: Any

    def matches(self, record: dict) -> bool:
        """Check the predicate against a record; missing fields never match."""
        if self.field not in record:
            return False
        actual = record[self.field]
        if self.op == "eq":
            return actual == self.value
        if self.op == "neq":
            return actual != self.value
        if actual is None:
            return False
        if self.op == "gte":
            return actual >= self.value
        return actual <= self.value


class RecordStoreInterface(ABC):
    """
    Abstract interface for owner-scoped record storage.

    Records are plain dicts of JSON-friendly values. Every implementation
    (Google Sheets, in-memory, ...) must implement these methods.
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        owner_id: str,
        filters: tuple[Filter, ...] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """
        Read records owned by `owner_id`.

        Args:
            table: Table to read
            owner_id: Only records owned by this user are returned
            filters: Predicates that must all match
            order_by: Field to sort on
            descending: Sort direction
            limit: Maximum number of records

        Returns:
            List of matching records

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def insert(
        self,
        table: str,
        owner_id: str,
        record: dict,
    ) -> dict:
        """
        Insert a record owned by `owner_id`.

        Returns:
            The stored record, including `id` and `owner_id`

        Raises:
            StorageError: If the write fails
            DuplicateError: If a record with the same id exists
        """
        pass

    @abstractmethod
    async def update(
        self,
        table: str,
        owner_id: str,
        record_id: UUID,
        patch: dict,
    ) -> dict:
        """
        Apply `patch` to one record.

        Returns:
            The updated record

        Raises:
            NotFoundError: If no such record is owned by `owner_id`
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(
        self,
        table: str,
        owner_id: str,
        record_id: UUID,
    ) -> bool:
        """
        Delete one record.

        Returns:
            True if a record was deleted, False if none matched
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
