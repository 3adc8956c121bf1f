"""
In-Memory Storage Implementation

Keeps every table in a dict keyed by record id. Used by the test-suite
and for local runs when no Google Sheets backend is configured.

Records are copied on the way in and on the way out, so callers can
never mutate stored state by accident.
"""

import copy
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    Filter,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)


class InMemoryRecordStore(RecordStoreInterface):
    """Dict-backed record store."""

    def __init__(self):
        self._tables: dict[str, dict[str, dict]] = {}

    def _table(self, table: str) -> dict[str, dict]:
        if not table:
            raise StorageError("Table name is required")
        return self._tables.setdefault(table, {})

    async def select(
        self,
        table: str,
        owner_id: str,
        filters: tuple[Filter, ...] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        rows = [
            row for row in self._table(table).values()
            if row.get("owner_id") == owner_id
            and all(f.matches(row) for f in filters)
        ]

        if order_by:
            # None sorts first ascending, last descending
            def sort_key(row: dict) -> tuple:
                value = row.get(order_by)
                return (value is not None, "" if value is None else value)

            rows.sort(key=sort_key, reverse=descending)

        if limit is not None:
            rows = rows[:limit]

        return copy.deepcopy(rows)

    async def insert(
        self,
        table: str,
        owner_id: str,
        record: dict,
    ) -> dict:
        rows = self._table(table)
        row = copy.deepcopy(record)
        row["id"] = str(row.get("id") or uuid4())
        row["owner_id"] = owner_id
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())

        if row["id"] in rows:
            raise DuplicateError(f"Record already exists in {table}: {row['id']}")

        rows[row["id"]] = row
        return copy.deepcopy(row)

    async def update(
        self,
        table: str,
        owner_id: str,
        record_id: UUID,
        patch: dict,
    ) -> dict:
        row = self._table(table).get(str(record_id))
        if row is None or row.get("owner_id") != owner_id:
            raise NotFoundError(f"Record not found in {table}: {record_id}")

        changes = {k: v for k, v in copy.deepcopy(patch).items() if k not in ("id", "owner_id")}
        row.update(changes)
        return copy.deepcopy(row)

    async def delete(
        self,
        table: str,
        owner_id: str,
        record_id: UUID,
    ) -> bool:
        rows = self._table(table)
        row = rows.get(str(record_id))
        if row is None or row.get("owner_id") != owner_id:
            return False
        del rows[str(record_id)]
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed append-only audit log."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
