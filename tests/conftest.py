"""Shared fixtures: in-memory backends and a store that fails on demand."""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from liquid_bills.audit import AuditLogger
from liquid_bills.cache import InMemoryBlobStore, LocalCacheMirror
from liquid_bills.models.bill import Bill, BillCategory, BillFrequency
from liquid_bills.reconciliation import BillController
from liquid_bills.services.storage import (
    InMemoryBillStore,
    NetworkFailureError,
    Row,
    RowFilter,
)


CACHE_KEY = "liquid_bills_local_cache"


class FailingStore(InMemoryBillStore):
    """InMemoryBillStore whose listed operations raise NetworkFailureError."""

    def __init__(self, rows: Optional[list[Row]] = None):
        super().__init__(rows)
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise NetworkFailureError(f"{operation} failed: connection reset")

    async def select_all(self) -> list[Row]:
        self._maybe_fail("select_all")
        return await super().select_all()

    async def insert(self, rows: list[Row]) -> list[Row]:
        self._maybe_fail("insert")
        return await super().insert(rows)

    async def update(self, row_id: str, fields: Row) -> Row:
        self._maybe_fail("update")
        return await super().update(row_id, fields)

    async def delete(self, row_id: str) -> bool:
        self._maybe_fail("delete")
        return await super().delete(row_id)

    async def delete_where(self, row_filter: RowFilter) -> int:
        self._maybe_fail("delete_where")
        return await super().delete_where(row_filter)


def make_bill(
    name: str = "Czynsz",
    amount: str = "1200.00",
    due_date: date = date(2024, 1, 10),
    **kwargs,
) -> Bill:
    return Bill(name=name, amount=Decimal(amount), due_date=due_date, **kwargs)


def make_recurring(
    name: str = "Netflix",
    amount: str = "43.00",
    due_date: date = date(2024, 1, 15),
    frequency: BillFrequency = BillFrequency.MONTHLY,
    **kwargs,
) -> Bill:
    kwargs.setdefault("category", BillCategory.SUBSCRIPTION)
    return make_bill(
        name=name,
        amount=amount,
        due_date=due_date,
        is_recurring=True,
        frequency=frequency,
        **kwargs,
    )


@pytest.fixture
def store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def mirror(blob_store: InMemoryBlobStore) -> LocalCacheMirror:
    return LocalCacheMirror(blob_store, CACHE_KEY)


@pytest.fixture
def controller(store: FailingStore, mirror: LocalCacheMirror) -> BillController:
    return BillController(store=store, mirror=mirror, audit_logger=AuditLogger())
