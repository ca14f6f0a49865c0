"""
Abstract Storage Interface

The remote store is treated as a plain table of bill rows. Rows are dicts
keyed by wire column names (snake_case, see `wire.WIRE_COLUMNS`); the
reconciliation controller translates to and from `Bill` at every call.

The interface is intentionally small - just the operations the bill
collection needs:
- select everything ordered by due date
- insert one or many rows and learn their ids
- update / delete a row by id
- delete every row matching a simple predicate (series tail deletion)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from liquid_bills.models.audit import AuditEvent


Row = dict[str, Any]


@dataclass(frozen=True)
class RowFilter:
    """
    Predicate for `delete_where`.

    Matches rows whose columns equal every entry of `equals` and whose
    `due_date` is strictly greater than `due_after`.
    """
    equals: dict[str, Any] = field(default_factory=dict)
    due_after: Optional[date] = None

    def matches(self, row: Row) -> bool:
        for column, value in self.equals.items():
            if row.get(column) != value:
                return False
        if self.due_after is not None:
            due = row.get("due_date")
            if due is None or due <= self.due_after:
                return False
        return True


class BillTableStore(ABC):
    """
    Abstract interface for the remote bills table.

    Any backend (Google Sheets, in-memory, a SQL table...) must implement
    these coroutines. Implementations raise the StorageError subclasses
    below; nothing is retried here.
    """

    @abstractmethod
    async def select_all(self) -> list[Row]:
        """
        Fetch every row.

        Returns:
            All rows ordered by due date ascending

        Raises:
            NetworkFailureError: Store unreachable
            RemoteOperationError: Store rejected the read
        """
        pass

    @abstractmethod
    async def insert(self, rows: list[Row]) -> list[Row]:
        """
        Insert one or many rows.

        Args:
            rows: Rows without ids

        Returns:
            The stored rows, in input order, with their assigned `id`
        """
        pass

    @abstractmethod
    async def update(self, row_id: str, fields: Row) -> Row:
        """
        Update some columns of one row.

        Returns:
            The full row after the update

        Raises:
            NotFoundError: No row with this id
        """
        pass

    @abstractmethod
    async def delete(self, row_id: str) -> bool:
        """
        Delete one row.

        Returns:
            True if a row was deleted, False if none had this id
        """
        pass

    @abstractmethod
    async def delete_where(self, row_filter: RowFilter) -> int:
        """
        Delete every row matching `row_filter`.

        Returns:
            Number of rows deleted
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event; returns True if it was stored."""
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for remote store operations."""

    kind = "storage"


class MissingConfigurationError(StorageError):
    """The remote store cannot be used because its configuration is absent."""

    kind = "missing_configuration"


class NetworkFailureError(StorageError):
    """Transient connectivity problem while talking to the store."""

    kind = "network"


class RemoteOperationError(StorageError):
    """The store rejected an operation."""

    kind = "remote_operation"


class NotFoundError(RemoteOperationError):
    """Row not found in the store."""

    kind = "not_found"
