"""
Reconciliation Controller

Owns the bill collection the UI shows and keeps three copies of it in step:
- the in-memory list (`BillController.bills`)
- the local cache mirror (one serialized blob)
- the remote bills table

DESIGN DECISION: Two write strategies, chosen per operation:
- Create and edit are pessimistic. The remote store is written first and the
  local copies only change after it confirms, so a failed write leaves
  nothing to undo.
- Toggle-paid and delete are optimistic. The local copies change first and
  are restored byte-for-byte from the previous blob if the remote call fails.

Reads follow stale-while-revalidate: the cached collection is painted
immediately and replaced only when a remote fetch serializes differently.

Nothing here is retried and nothing is fatal. Failed writes are logged and
re-raised so the UI can alert the user; failed reads come back as a
SyncResult.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from uuid import UUID

import structlog

from liquid_bills.audit import AuditLogger, create_correlation_id
from liquid_bills.cache.mirror import LocalCacheMirror
from liquid_bills.models.bill import Bill, SyncResult
from liquid_bills.reconciliation.intent import EditIntent, classify_edit
from liquid_bills.reconciliation.optimistic import commit_with_compensation
from liquid_bills.series import DEFAULT_HORIZON_MONTHS, expand, matcher_for
from liquid_bills.services.storage import (
    BillTableStore,
    MissingConfigurationError,
    NotFoundError,
    RowFilter,
    StorageError,
)
from liquid_bills.services.storage.wire import bill_to_row, row_to_bill, rows_to_bills
from liquid_bills.validation import DuplicateBillError, ensure_not_duplicate


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _Edit:
    """Everything an edit handler needs."""
    store: BillTableStore
    original: Bill
    edited: Bill
    confirm_stop_series: bool
    correlation_id: UUID


def _by_due_date(bills: list[Bill]) -> list[Bill]:
    return sorted(bills, key=lambda b: b.due_date)


class BillController:
    """
    Client-side state of the bill collection.

    Usage:
        controller = BillController(store, mirror, audit_logger)
        controller.load_cached()          # paint from cache
        result = await controller.refresh()
        await controller.create_bill(bill)
    """

    def __init__(
        self,
        store: Optional[BillTableStore],
        mirror: LocalCacheMirror,
        audit_logger: Optional[AuditLogger] = None,
        horizon_months: int = DEFAULT_HORIZON_MONTHS,
    ):
        """
        Args:
            store: Remote bills table. None when it is not configured; every
                remote operation then raises MissingConfigurationError.
            mirror: Local cache of the collection.
            audit_logger: Activity logger (local-only if omitted).
            horizon_months: How far ahead recurring series are generated.
        """
        self._store = store
        self._mirror = mirror
        self._audit_logger = audit_logger or AuditLogger()
        self._horizon_months = horizon_months
        self._bills: list[Bill] = []
        self._last_sync: Optional[SyncResult] = None

        self._edit_handlers: dict[EditIntent, Callable[[_Edit], Awaitable[list[Bill]]]] = {
            EditIntent.PLAIN_UPDATE: self._plain_update,
            EditIntent.UPDATE_OCCURRENCE: self._update_occurrence,
            EditIntent.STOP_SERIES: self._stop_series,
            EditIntent.REGENERATE_SERIES: self._regenerate_series,
        }

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def bills(self) -> list[Bill]:
        return list(self._bills)

    @property
    def last_sync(self) -> Optional[SyncResult]:
        """Result of the most recent refresh, including forced ones."""
        return self._last_sync

    @property
    def is_configured(self) -> bool:
        return self._store is not None

    def find(self, bill_id: str) -> Optional[Bill]:
        for bill in self._bills:
            if bill.id == bill_id:
                return bill
        return None

    def _require_store(self) -> BillTableStore:
        if self._store is None:
            raise MissingConfigurationError("Remote bill store is not configured")
        return self._store

    def _get(self, bill_id: str) -> Bill:
        bill = self.find(bill_id)
        if bill is None:
            raise NotFoundError(f"Bill not found: {bill_id}")
        return bill

    def _commit(self, bills: list[Bill]) -> None:
        """Replace the collection and persist it to the mirror."""
        self._bills = _by_due_date(bills)
        self._mirror.save(self._bills)

    def _replace_local(self, updated: Bill) -> None:
        self._commit([updated if b.id == updated.id else b for b in self._bills])

    # =========================================================================
    # READS
    # =========================================================================

    def load_cached(self) -> list[Bill]:
        """Paint from the local cache. Leaves the collection alone on a miss."""
        cached = self._mirror.load()
        if cached is not None:
            self._bills = cached
            logger.info("cache_loaded", bill_count=len(cached))
        return self.bills

    async def refresh(self) -> SyncResult:
        """
        Fetch the whole collection and adopt it if it differs from the cache.

        Never raises. On failure the current collection stays authoritative;
        the result is blocking only when there is nothing to show.
        """
        try:
            rows = await self._require_store().select_all()
        except Exception as e:
            kind = getattr(e, "kind", "unexpected")
            blocking = not self._bills
            await self._audit_logger.log_sync_failed(kind, str(e), blocking)
            self._last_sync = SyncResult(
                success=False,
                bill_count=len(self._bills),
                error_kind=kind,
                error_message=str(e),
                blocking=blocking,
            )
            return self._last_sync

        fetched = rows_to_bills(rows)
        changed = not self._mirror.is_current(fetched)
        if changed:
            self._mirror.save(fetched)
        self._bills = fetched

        await self._audit_logger.log_sync_completed(len(fetched), changed)
        self._last_sync = SyncResult(success=True, changed=changed, bill_count=len(fetched))
        return self._last_sync

    # =========================================================================
    # CREATE
    # =========================================================================

    async def _guard_duplicate(
        self,
        bill: Bill,
        correlation_id: UUID,
        exclude_id: Optional[str] = None,
    ) -> None:
        try:
            ensure_not_duplicate(self._bills, bill.name, bill.due_date, exclude_id=exclude_id)
        except DuplicateBillError as e:
            await self._audit_logger.log_duplicate_rejected(
                name=e.name,
                year=e.due_date.year,
                month=e.due_date.month,
                existing_id=e.existing.id,
                correlation_id=correlation_id,
            )
            raise

    async def create_bill(self, bill: Bill) -> list[Bill]:
        """
        Create a bill, or a whole series when `bill.is_recurring`.

        The series is the template plus its occurrences over the horizon,
        inserted in one batch under a fresh series id. Only the template is
        checked for duplicates.

        Returns:
            The stored bills with their assigned ids.

        Raises:
            DuplicateBillError: Same name already exists in that month
            MissingConfigurationError: No remote store
            StorageError: The insert failed (nothing changed locally)
        """
        correlation_id = create_correlation_id()
        store = self._require_store()
        await self._guard_duplicate(bill, correlation_id)

        if bill.is_recurring:
            batch = expand(
                bill.model_copy(update={"id": None, "series_id": None}),
                horizon_months=self._horizon_months,
            )
        else:
            batch = [bill.model_copy(update={"id": None})]

        try:
            rows = await store.insert([bill_to_row(b) for b in batch])
        except StorageError as e:
            await self._audit_logger.log_save_failed("create_bill", str(e), correlation_id=correlation_id)
            raise

        created = rows_to_bills(rows)
        self._commit(self._bills + created)

        first = created[0]
        if bill.is_recurring:
            await self._audit_logger.log_series_created(
                series_id=first.series_id,
                name=first.name,
                occurrences=len(created),
                frequency=int(first.effective_frequency),
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_bill_created(
                bill_id=first.id,
                name=first.name,
                amount=str(first.amount),
                correlation_id=correlation_id,
            )
        return created

    # =========================================================================
    # EDIT
    # =========================================================================

    async def save_bill(
        self,
        bill: Bill,
        *,
        update_future: bool = False,
        confirm_stop_series: bool = False,
    ) -> list[Bill]:
        """
        Save an edited bill.

        Args:
            bill: The edited bill; its id must exist in the collection.
            update_future: Carry the change over to the rest of the series
                (regenerates every later occurrence).
            confirm_stop_series: When recurrence was switched off, also
                delete the later occurrences of the series.

        Returns:
            The bills as stored after the edit (the edited bill first).

        Raises:
            DuplicateBillError: Another bill has this name in that month
            NotFoundError: The bill is not in the collection
            StorageError: A remote step failed
        """
        if not bill.id:
            raise ValueError("Cannot save a bill that has not been created yet")

        correlation_id = create_correlation_id()
        original = self._get(bill.id)
        store = self._require_store()
        await self._guard_duplicate(bill, correlation_id, exclude_id=bill.id)

        intent = classify_edit(original, bill, update_future)
        edit = _Edit(
            store=store,
            original=original,
            edited=bill,
            confirm_stop_series=confirm_stop_series,
            correlation_id=correlation_id,
        )
        logger.debug("edit_classified", bill_id=bill.id, intent=intent.value)

        try:
            saved = await self._edit_handlers[intent](edit)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                intent.value, str(e), entity_id=bill.id, correlation_id=correlation_id
            )
            raise

        await self._audit_logger.log_bill_updated(bill.id, intent.value, correlation_id)
        return saved

    async def _write(self, store: BillTableStore, bill: Bill) -> Bill:
        row = await store.update(bill.id, bill_to_row(bill))
        return row_to_bill(row)

    async def _plain_update(self, edit: _Edit) -> list[Bill]:
        updated = await self._write(edit.store, edit.edited)
        self._replace_local(updated)
        return [updated]

    async def _update_occurrence(self, edit: _Edit) -> list[Bill]:
        # Siblings are untouched; the occurrence stays in its series.
        edited = edit.edited.model_copy(update={"series_id": edit.original.series_id})
        updated = await self._write(edit.store, edited)
        self._replace_local(updated)
        return [updated]

    async def _stop_series(self, edit: _Edit) -> list[Bill]:
        stopped = edit.edited.model_copy(
            update={"is_recurring": False, "frequency": None, "series_id": None}
        )

        removed = 0
        remaining = self._bills
        if edit.confirm_stop_series:
            matcher = matcher_for(edit.original)
            removed = await edit.store.delete_where(matcher.describe(edit.original, stopped.due_date))
            remaining = [
                b for b in self._bills
                if b.id == edit.original.id or not matcher.matches(b, edit.original, stopped.due_date)
            ]

        updated = await self._write(edit.store, stopped)
        self._commit([updated if b.id == updated.id else b for b in remaining])

        await self._audit_logger.log_series_stopped(
            bill_id=updated.id,
            removed=removed,
            confirmed=edit.confirm_stop_series,
            correlation_id=edit.correlation_id,
        )
        return [updated]

    async def _regenerate_series(self, edit: _Edit) -> list[Bill]:
        series_id = edit.original.series_id
        anchor = edit.edited.model_copy(update={"series_id": series_id})

        # Independent remote steps; a failure part-way leaves the mirror at
        # its pre-edit state until the next successful refresh.
        updated = await self._write(edit.store, anchor)
        removed = await edit.store.delete_where(
            RowFilter(equals={"series_id": series_id}, due_after=updated.due_date)
        )
        tail = expand(updated, horizon_months=self._horizon_months, start_offset=1)
        inserted = rows_to_bills(await edit.store.insert([bill_to_row(b) for b in tail]))

        await self._audit_logger.log_series_regenerated(
            series_id=series_id,
            removed=removed,
            created=len(inserted),
            correlation_id=edit.correlation_id,
        )

        result = await self.refresh()
        if not result.success:
            logger.warning(
                "series_refresh_failed",
                series_id=series_id,
                error_kind=result.error_kind,
            )
        return [updated] + inserted

    # =========================================================================
    # OPTIMISTIC OPERATIONS
    # =========================================================================

    async def toggle_paid(self, bill_id: str) -> Bill:
        """
        Flip the paid flag of one bill.

        Applied locally first; rolled back to the previous cache blob if the
        remote update fails.
        """
        correlation_id = create_correlation_id()
        store = self._require_store()
        bill = self._get(bill_id)
        toggled = bill.model_copy(update={"is_paid": not bill.is_paid})

        snapshot = list(self._bills)
        blob = self._mirror.read_blob()

        def apply() -> None:
            self._replace_local(toggled)

        def compensate() -> None:
            self._restore(snapshot, blob)

        try:
            row = await commit_with_compensation(
                apply,
                lambda: store.update(bill_id, {"is_paid": toggled.is_paid}),
                compensate,
            )
        except StorageError as e:
            await self._audit_logger.log_save_failed("toggle_paid", str(e), bill_id, correlation_id)
            await self._audit_logger.log_rollback_applied("toggle_paid", bill_id, correlation_id)
            raise

        await self._audit_logger.log_payment_status_updated(bill_id, toggled.is_paid, correlation_id)
        return row_to_bill(row)

    async def delete_bill(self, bill_id: str) -> None:
        """
        Delete one bill (never its siblings).

        Applied locally first; rolled back to the previous cache blob if the
        remote delete fails.
        """
        correlation_id = create_correlation_id()
        store = self._require_store()
        self._get(bill_id)

        snapshot = list(self._bills)
        blob = self._mirror.read_blob()

        def apply() -> None:
            self._commit([b for b in self._bills if b.id != bill_id])

        def compensate() -> None:
            self._restore(snapshot, blob)

        try:
            await commit_with_compensation(apply, lambda: store.delete(bill_id), compensate)
        except StorageError as e:
            await self._audit_logger.log_save_failed("delete_bill", str(e), bill_id, correlation_id)
            await self._audit_logger.log_rollback_applied("delete_bill", bill_id, correlation_id)
            raise

        await self._audit_logger.log_bill_deleted(bill_id, correlation_id)

    def _restore(self, snapshot: list[Bill], blob: Optional[str]) -> None:
        self._bills = snapshot
        if blob is not None:
            self._mirror.restore(blob)
        else:
            self._mirror.save(snapshot)
