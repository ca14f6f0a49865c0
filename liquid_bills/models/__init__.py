"""
Data Models Package

This package contains all Pydantic models used in Liquid Bills.
"""

from liquid_bills.models.bill import (
    CATEGORY_ICONS,
    CATEGORY_LABELS,
    FREQUENCY_LABELS,
    Bill,
    BillCategory,
    BillFrequency,
    CategoryShare,
    MonthlyStats,
    SyncResult,
    YearlySummary,
)
from liquid_bills.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Bill models
    "CATEGORY_ICONS",
    "CATEGORY_LABELS",
    "FREQUENCY_LABELS",
    "Bill",
    "BillCategory",
    "BillFrequency",
    "CategoryShare",
    "MonthlyStats",
    "SyncResult",
    "YearlySummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
