"""Services package."""

from liquid_bills.services.storage import (
    AuditStorageInterface,
    BillTableStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsBillStore,
    GoogleSheetsClient,
    InMemoryBillStore,
    MissingConfigurationError,
    NetworkFailureError,
    NotFoundError,
    RemoteOperationError,
    RowFilter,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "BillTableStore",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBillStore",
    "GoogleSheetsClient",
    "InMemoryBillStore",
    "MissingConfigurationError",
    "NetworkFailureError",
    "NotFoundError",
    "RemoteOperationError",
    "RowFilter",
    "StorageError",
]
