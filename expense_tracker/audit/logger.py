"""
Audit Logger

DESIGN DECISION: Every write, and every failed read or write, is logged.
This provides:
1. A history of what the user changed
2. Debugging capability when the store misbehaves
3. Something to show when a number looks wrong

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder
from expense_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Route stdlib logging (and therefore structlog) to stderr."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_created(
        self,
        entity_type: str,
        entity_id: UUID,
        owner_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a record creation."""
        await self.log(AuditEventBuilder.record_created(
            entity_type=entity_type,
            entity_id=entity_id,
            owner_id=owner_id,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_updated(
        self,
        entity_type: str,
        entity_id: UUID,
        owner_id: str,
        changes: dict,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a record update."""
        await self.log(AuditEventBuilder.record_updated(
            entity_type=entity_type,
            entity_id=entity_id,
            owner_id=owner_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_deleted(
        self,
        entity_type: str,
        entity_id: UUID,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a record deletion."""
        await self.log(AuditEventBuilder.record_deleted(
            entity_type=entity_type,
            entity_id=entity_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
        ))

    async def log_preferences_changed(
        self,
        setting: str,
        old_value: str,
        new_value: str,
    ) -> None:
        await self.log(AuditEventBuilder.preferences_changed(
            setting=setting,
            old_value=old_value,
            new_value=new_value,
        ))

    async def log_validation_failed(
        self,
        entity_type: str,
        owner_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected form submission."""
        await self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            owner_id=owner_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_fetch_failed(
        self,
        table: str,
        owner_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.fetch_failed(
            table=table,
            owner_id=owner_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_write_failed(
        self,
        table: str,
        owner_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.write_failed(
            table=table,
            owner_id=owner_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a dashboard load).
    Pass it through all subsequent operations.
    """
    return uuid4()
