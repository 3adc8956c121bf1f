"""
Audit Models for Expense Tracker

Every write and every failed store call is logged for audit purposes.
This provides:
1. A history of what the user changed
2. Debugging information when the store misbehaves
3. Ability to reconstruct how a number came to be

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every write on every record kind has its own event type.
    """
    # Expenses
    EXPENSE_CREATED = "expense_created"
    EXPENSE_DELETED = "expense_deleted"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Category budgets
    BUDGET_CREATED = "budget_created"
    BUDGET_DELETED = "budget_deleted"

    # Overall budgets
    OVERALL_BUDGET_CREATED = "overall_budget_created"
    OVERALL_BUDGET_UPDATED = "overall_budget_updated"
    OVERALL_BUDGET_DELETED = "overall_budget_deleted"

    # Income
    INCOME_SOURCE_CREATED = "income_source_created"
    INCOME_SOURCE_TOGGLED = "income_source_toggled"
    INCOME_SOURCE_DELETED = "income_source_deleted"

    # Preferences
    PREFERENCES_CHANGED = "preferences_changed"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    FETCH_FAILED = "fetch_failed"
    WRITE_FAILED = "write_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - whose data, and which record?
    owner_id: Optional[str] = Field(
        default=None,
        description="User the affected records belong to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'budget')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one dashboard load)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, owner_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.owner_id or "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


# Which event type a write on each entity kind produces
_CREATED = {
    "expense": AuditEventType.EXPENSE_CREATED,
    "category": AuditEventType.CATEGORY_CREATED,
    "budget": AuditEventType.BUDGET_CREATED,
    "overall_budget": AuditEventType.OVERALL_BUDGET_CREATED,
    "income_source": AuditEventType.INCOME_SOURCE_CREATED,
}
_UPDATED = {
    "category": AuditEventType.CATEGORY_UPDATED,
    "overall_budget": AuditEventType.OVERALL_BUDGET_UPDATED,
    "income_source": AuditEventType.INCOME_SOURCE_TOGGLED,
}
_DELETED = {
    "expense": AuditEventType.EXPENSE_DELETED,
    "category": AuditEventType.CATEGORY_DELETED,
    "budget": AuditEventType.BUDGET_DELETED,
    "overall_budget": AuditEventType.OVERALL_BUDGET_DELETED,
    "income_source": AuditEventType.INCOME_SOURCE_DELETED,
}


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("expense", expense.id, owner_id, details)
        event = AuditEventBuilder.write_failed("expenses", owner_id, str(e))
    """

    @staticmethod
    def record_created(
        entity_type: str,
        entity_id: UUID,
        owner_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if entity_type not in _CREATED:
            raise ValueError(f"Unknown entity type: {entity_type}")
        return AuditEvent(
            event_type=_CREATED[entity_type],
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} created",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        entity_type: str,
        entity_id: UUID,
        owner_id: str,
        changes: dict,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if entity_type not in _UPDATED:
            raise ValueError(f"Entity type cannot be updated: {entity_type}")
        return AuditEvent(
            event_type=_UPDATED[entity_type],
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=(
                f"{entity_type.replace('_', ' ').capitalize()} updated: "
                f"{', '.join(sorted(changes))}"
            ),
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        entity_type: str,
        entity_id: UUID,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if entity_type not in _DELETED:
            raise ValueError(f"Unknown entity type: {entity_type}")
        return AuditEvent(
            event_type=_DELETED[entity_type],
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} deleted",
            is_user_action=True,
        )

    @staticmethod
    def preferences_changed(
        setting: str,
        old_value: str,
        new_value: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_CHANGED,
            description=f"Preference '{setting}' changed to {new_value}",
            details={
                "setting": setting,
                "old_value": old_value,
                "new_value": new_value,
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        owner_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} form rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def fetch_failed(
        table: str,
        owner_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Failed to load {table}",
            error_message=error_message,
            details={"table": table},
        )

    @staticmethod
    def write_failed(
        table: str,
        owner_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Failed to write to {table}",
            error_message=error_message,
            details={"table": table},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
