"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted storage backend because:
1. Users can view and export their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Each table lives in its own worksheet with a header row. Every cell is a
string; empty cells read back as None. Ownership is a plain column, so
every read filters on it before anything else.
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from expense_tracker.services.storage.interface import (
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


logger = structlog.get_logger(__name__)


# Column layout of each table's worksheet
TABLE_COLUMNS: dict[str, list[str]] = {
    EXPENSES_TABLE: [
        "id",
        "owner_id",
        "created_at",
        "amount",
        "description",
        "expense_date",
        "category_id",
        "currency",
    ],
    CATEGORIES_TABLE: [
        "id",
        "owner_id",
        "created_at",
        "name",
        "color",
        "icon",
    ],
    BUDGETS_TABLE: [
        "id",
        "owner_id",
        "created_at",
        "category_id",
        "amount",
        "period",
        "currency",
    ],
    OVERALL_BUDGETS_TABLE: [
        "id",
        "owner_id",
        "created_at",
        "amount",
        "period",
        "currency",
        "budget_date",
    ],
    INCOME_SOURCES_TABLE: [
        "id",
        "owner_id",
        "created_at",
        "income_type",
        "amount",
        "description",
        "frequency",
        "is_active",
        "currency",
    ],
}

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "owner_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_table_sheet(self, table: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a table."""
        if table not in TABLE_COLUMNS:
            raise StorageError(f"Unknown table: {table}")
        return self.get_worksheet(table, TABLE_COLUMNS[table])

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS)


class GoogleSheetsRecordStore(RecordStoreInterface):
    """
    Google Sheets implementation of the record store.

    One record per row; columns follow TABLE_COLUMNS.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, table: str, record: dict) -> list:
        """Convert a record to a spreadsheet row."""
        return [_cell(record.get(column)) for column in TABLE_COLUMNS[table]]

    def _row_to_record(self, table: str, row: list) -> dict:
        """Convert a spreadsheet row to a record. Empty cells become None."""
        def safe_get(index: int) -> Optional[str]:
            try:
                return row[index] or None
            except IndexError:
                return None

        return {
            column: safe_get(index)
            for index, column in enumerate(TABLE_COLUMNS[table])
        }

    def _find_row(self, sheet: gspread.Worksheet, owner_id: str, record_id: UUID):
        """Return (sheet_row_number, row) of an owned record, or (None, None)."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == str(record_id) and len(row) > 1 and row[1] == owner_id:
                return idx, row
        return None, None

    async def select(
        self,
        table: str,
        owner_id: str,
        filters: tuple[Filter, ...] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Read owned records, filtering and sorting in Python."""
        try:
            sheet = self._client.get_table_sheet(table)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {table}: {e}")

        records = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            record = self._row_to_record(table, row)
            if record["owner_id"] != owner_id:
                continue
            if all(f.matches(record) for f in filters):
                records.append(record)

        if order_by:
            records.sort(key=lambda r: r.get(order_by) or "", reverse=descending)

        if limit is not None:
            records = records[:limit]

        return records

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
        retry=retry_if_not_exception_type(DuplicateError),
    )
    async def insert(
        self,
        table: str,
        owner_id: str,
        record: dict,
    ) -> dict:
        """Append a record as a new row."""
        stored = dict(record)
        stored["id"] = str(stored.get("id") or uuid4())
        stored["owner_id"] = owner_id
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())

        try:
            sheet = self._client.get_table_sheet(table)
            existing, _ = self._find_row(sheet, owner_id, stored["id"])
            if existing is not None:
                raise DuplicateError(f"Record already exists in {table}: {stored['id']}")
            sheet.append_row(self._record_to_row(table, stored), value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write to {table}: {e}")

        return self._row_to_record(table, self._record_to_row(table, stored))

    async def update(
        self,
        table: str,
        owner_id: str,
        record_id: UUID,
        patch: dict,
    ) -> dict:
        """Rewrite the cells of one row."""
        try:
            sheet = self._client.get_table_sheet(table)
            idx, row = self._find_row(sheet, owner_id, record_id)
            if idx is None:
                raise NotFoundError(f"Record not found in {table}: {record_id}")

            record = self._row_to_record(table, row)
            record.update({k: v for k, v in patch.items() if k not in ("id", "owner_id")})
            new_row = self._record_to_row(table, record)

            # Update each cell in the row
            for col_idx, value in enumerate(new_row, start=1):
                sheet.update_cell(idx, col_idx, value)

            return self._row_to_record(table, new_row)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {table}: {e}")

    async def delete(
        self,
        table: str,
        owner_id: str,
        record_id: UUID,
    ) -> bool:
        """Delete the row holding one record."""
        try:
            sheet = self._client.get_table_sheet(table)
            idx, _ = self._find_row(sheet, owner_id, record_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete from {table}: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            owner_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=UUID(safe_get(6)) if safe_get(6) else None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_sheet_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    logger.warning("audit_row_unreadable", event_id=row[0])

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
