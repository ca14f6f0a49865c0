"""
Audit Logger

Every change to the bill collection and every sync is logged:
- always locally, as structured JSON through structlog
- additionally to the remote activity sheet, when one is configured

Failures of the remote activity sheet never break the main flow.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from liquid_bills.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from liquid_bills.services.storage import AuditStorageInterface


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


class AuditLogger:
    """Central audit logging service."""

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Remote activity log. If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("liquid_bills.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_bill_created(
        self,
        bill_id: str,
        name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.bill_created(bill_id, name, amount, correlation_id))

    async def log_series_created(
        self,
        series_id: str,
        name: str,
        occurrences: int,
        frequency: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.series_created(series_id, name, occurrences, frequency, correlation_id)
        )

    async def log_duplicate_rejected(
        self,
        name: str,
        year: int,
        month: int,
        existing_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.duplicate_rejected(name, year, month, existing_id, correlation_id)
        )

    async def log_bill_updated(
        self,
        bill_id: str,
        intent: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.bill_updated(bill_id, intent, correlation_id))

    async def log_series_stopped(
        self,
        bill_id: str,
        removed: int,
        confirmed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.series_stopped(bill_id, removed, confirmed, correlation_id))

    async def log_series_regenerated(
        self,
        series_id: str,
        removed: int,
        created: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.series_regenerated(series_id, removed, created, correlation_id)
        )

    async def log_payment_status_updated(
        self,
        bill_id: str,
        is_paid: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.payment_status_updated(bill_id, is_paid, correlation_id))

    async def log_bill_deleted(
        self,
        bill_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.bill_deleted(bill_id, correlation_id))

    async def log_save_failed(
        self,
        operation: str,
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.save_failed(operation, error_message, entity_id, correlation_id)
        )

    async def log_rollback_applied(
        self,
        operation: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.rollback_applied(operation, entity_id, correlation_id))

    async def log_sync_completed(self, bill_count: int, changed: bool) -> None:
        await self.log(AuditEventBuilder.sync_completed(bill_count, changed))

    async def log_sync_failed(self, error_kind: str, error_message: str, blocking: bool) -> None:
        await self.log(AuditEventBuilder.sync_failed(error_kind, error_message, blocking))

    async def log_export_generated(self, bill_count: int, filename: str) -> None:
        await self.log(AuditEventBuilder.export_generated(bill_count, filename))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action and pass it through all
    subsequent operations.
    """
    return uuid4()
