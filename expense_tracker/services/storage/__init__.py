"""
Storage Services Package

Provides the abstract record store interface and concrete implementations.
Google Sheets is the hosted backend; the in-memory store serves tests and
local runs. Both are swappable behind RecordStoreInterface.
"""

from expense_tracker.services.storage.interface import (
    ALL_TABLES,
    BUDGETS_TABLE,
    CATEGORIES_TABLE,
    EXPENSES_TABLE,
    INCOME_SOURCES_TABLE,
    OVERALL_BUDGETS_TABLE,
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    Filter,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from expense_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
)
from expense_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Tables
    "ALL_TABLES",
    "BUDGETS_TABLE",
    "CATEGORIES_TABLE",
    "EXPENSES_TABLE",
    "INCOME_SOURCES_TABLE",
    "OVERALL_BUDGETS_TABLE",
    # Interfaces
    "AuditStorageInterface",
    "Filter",
    "RecordStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
]
