"""
Audit Models for Liquid Bills

Every change to the bill collection and every sync with the remote store is
recorded as an AuditEvent. Events are logged locally through structlog and,
when a remote activity sheet is configured, appended there as well.

Audit logs are append-only.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Creation
    BILL_CREATED = "bill_created"
    SERIES_CREATED = "series_created"
    DUPLICATE_REJECTED = "duplicate_rejected"

    # Edits
    BILL_UPDATED = "bill_updated"
    SERIES_STOPPED = "series_stopped"
    SERIES_REGENERATED = "series_regenerated"
    PAYMENT_STATUS_UPDATED = "payment_status_updated"
    BILL_DELETED = "bill_deleted"

    # Failures on write
    SAVE_FAILED = "save_failed"
    ROLLBACK_APPLIED = "rollback_applied"

    # Sync with the remote store
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"

    # Export
    EXPORT_GENERATED = "export_generated"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('bill', 'series', 'collection')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Bill id or series id the event relates to"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one user action"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list[str]:
        """
        Convert to a row for the activity worksheet.

        Columns: event_id, timestamp, event_type, severity, entity_type,
        entity_id, correlation_id, description, details_json, error_message,
        is_user_action
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.bill_created(bill_id, name, amount)
        event = AuditEventBuilder.sync_failed("network", message)
    """

    @staticmethod
    def bill_created(
        bill_id: str,
        name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_CREATED,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Bill created: {name}",
            details={"name": name, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def series_created(
        series_id: str,
        name: str,
        occurrences: int,
        frequency: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERIES_CREATED,
            entity_type="series",
            entity_id=series_id,
            correlation_id=correlation_id,
            description=f"Recurring series created: {name} x{occurrences}",
            details={
                "name": name,
                "occurrences": occurrences,
                "frequency_months": frequency,
            },
            is_user_action=True,
        )

    @staticmethod
    def duplicate_rejected(
        name: str,
        year: int,
        month: int,
        existing_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=existing_id,
            correlation_id=correlation_id,
            description=f"Duplicate bill rejected: {name} ({month:02d}/{year})",
            details={"name": name, "year": year, "month": month},
            is_user_action=True,
        )

    @staticmethod
    def bill_updated(
        bill_id: str,
        intent: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_UPDATED,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Bill updated ({intent})",
            details={"intent": intent},
            is_user_action=True,
        )

    @staticmethod
    def series_stopped(
        bill_id: str,
        removed: int,
        confirmed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERIES_STOPPED,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Recurrence turned off, {removed} future bills removed",
            details={"removed": removed, "confirmed": confirmed},
            is_user_action=True,
        )

    @staticmethod
    def series_regenerated(
        series_id: str,
        removed: int,
        created: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERIES_REGENERATED,
            entity_type="series",
            entity_id=series_id,
            correlation_id=correlation_id,
            description=f"Series regenerated: {removed} removed, {created} created",
            details={"removed": removed, "created": created},
            is_user_action=True,
        )

    @staticmethod
    def payment_status_updated(
        bill_id: str,
        is_paid: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_STATUS_UPDATED,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description="Marked as paid" if is_paid else "Marked as unpaid",
            details={"is_paid": is_paid},
            is_user_action=True,
        )

    @staticmethod
    def bill_deleted(
        bill_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_DELETED,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description="Bill deleted",
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        operation: str,
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="bill",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Remote write failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def rollback_applied(
        operation: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLBACK_APPLIED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Local change reverted after failed {operation}",
            details={"operation": operation},
        )

    @staticmethod
    def sync_completed(
        bill_count: int,
        changed: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_COMPLETED,
            severity=AuditSeverity.DEBUG,
            entity_type="collection",
            description=f"Synced {bill_count} bills",
            details={"bill_count": bill_count, "changed": changed},
        )

    @staticmethod
    def sync_failed(
        error_kind: str,
        error_message: str,
        blocking: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR if blocking else AuditSeverity.WARNING,
            entity_type="collection",
            description=f"Sync failed ({error_kind})",
            details={"error_kind": error_kind, "blocking": blocking},
            error_message=error_message,
        )

    @staticmethod
    def export_generated(
        bill_count: int,
        filename: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            entity_type="collection",
            description=f"CSV export generated: {filename}",
            details={"bill_count": bill_count, "filename": filename},
            is_user_action=True,
        )
