"""
In-process bills table.

Implements BillTableStore on a plain dict. Used when
`storage_backend=memory` (local development without a spreadsheet) and by
the test suite.
"""

from copy import deepcopy
from typing import Optional
from uuid import uuid4

from liquid_bills.services.storage.interface import (
    BillTableStore,
    NotFoundError,
    Row,
    RowFilter,
)


class InMemoryBillStore(BillTableStore):
    """BillTableStore backed by a dict of rows keyed by id."""

    def __init__(self, rows: Optional[list[Row]] = None):
        self._rows: dict[str, Row] = {}
        for row in rows or []:
            stored = deepcopy(row)
            stored.setdefault("id", uuid4().hex)
            self._rows[stored["id"]] = stored

    @property
    def rows(self) -> list[Row]:
        """Snapshot of the stored rows ordered by due date."""
        return sorted(
            (deepcopy(row) for row in self._rows.values()),
            key=lambda r: r["due_date"],
        )

    async def select_all(self) -> list[Row]:
        return self.rows

    async def insert(self, rows: list[Row]) -> list[Row]:
        inserted = []
        for row in rows:
            stored = deepcopy(row)
            stored["id"] = uuid4().hex
            self._rows[stored["id"]] = stored
            inserted.append(deepcopy(stored))
        return inserted

    async def update(self, row_id: str, fields: Row) -> Row:
        if row_id not in self._rows:
            raise NotFoundError(f"Bill not found: {row_id}")
        changes = {k: v for k, v in fields.items() if k != "id"}
        self._rows[row_id].update(deepcopy(changes))
        return deepcopy(self._rows[row_id])

    async def delete(self, row_id: str) -> bool:
        return self._rows.pop(row_id, None) is not None

    async def delete_where(self, row_filter: RowFilter) -> int:
        doomed = [row_id for row_id, row in self._rows.items() if row_filter.matches(row)]
        for row_id in doomed:
            del self._rows[row_id]
        return len(doomed)
