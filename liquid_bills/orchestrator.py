"""
Component factory for Liquid Bills

Ties together configuration, the local cache, the remote store and the
activity log, and hands back a ready-to-use BillController.

DESIGN DECISION: A missing or broken remote configuration is not fatal.
The controller is built without a store, the UI still paints from the
local cache, and every remote operation reports MissingConfigurationError
to the user instead of crashing the app.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from pydantic import ValidationError

from liquid_bills.audit import AuditLogger
from liquid_bills.cache import FileBlobStore, LocalCacheMirror
from liquid_bills.config import AppSettings, get_settings
from liquid_bills.reconciliation import BillController
from liquid_bills.services.storage import (
    BillTableStore,
    GoogleSheetsAuditStorage,
    GoogleSheetsBillStore,
    GoogleSheetsClient,
    InMemoryBillStore,
    MissingConfigurationError,
)


logger = structlog.get_logger(__name__)


@dataclass
class AppComponents:
    """Everything the presentation layer needs."""
    controller: BillController
    audit_logger: AuditLogger
    app_settings: AppSettings
    sheets_client: Optional[GoogleSheetsClient] = None


def create_app_components(
    use_storage: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize the remote store.
                    Set to False to run from the local cache only.

    Returns:
        AppComponents with the controller wired to the configured backend
    """
    app_settings = get_settings().app

    blob_store = FileBlobStore(app_settings.cache_path)
    mirror = LocalCacheMirror(blob_store, app_settings.cache_key)

    sheets_client = None
    store: Optional[BillTableStore] = None
    audit_logger = AuditLogger()  # Local-only logging until a sheet is available

    if use_storage and app_settings.storage_backend == "memory":
        store = InMemoryBillStore()
    elif use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsBillStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except (ValidationError, MissingConfigurationError) as e:
            # Storage not configured - continue from the local cache
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = None

    controller = BillController(
        store=store,
        mirror=mirror,
        audit_logger=audit_logger,
        horizon_months=app_settings.series_horizon_months,
    )

    return AppComponents(
        controller=controller,
        audit_logger=audit_logger,
        app_settings=app_settings,
        sheets_client=sheets_client,
    )
