"""
Storage Services Package

Provides the abstract remote-table interface, the wire translation and the
concrete backends (Google Sheets, in-memory).
"""

from liquid_bills.services.storage.interface import (
    AuditStorageInterface,
    BillTableStore,
    MissingConfigurationError,
    NetworkFailureError,
    NotFoundError,
    RemoteOperationError,
    Row,
    RowFilter,
    StorageError,
)
from liquid_bills.services.storage.memory import InMemoryBillStore
from liquid_bills.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsBillStore,
    GoogleSheetsClient,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BillTableStore",
    "Row",
    "RowFilter",
    # Exceptions
    "MissingConfigurationError",
    "NetworkFailureError",
    "NotFoundError",
    "RemoteOperationError",
    "StorageError",
    # Backends
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBillStore",
    "GoogleSheetsClient",
    "InMemoryBillStore",
]
