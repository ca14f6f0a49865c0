"""
Google Sheets Storage Implementation

The bills table lives in one worksheet: a header row with the wire column
names followed by one bill per row. A second worksheet holds the append-only
activity log.

TRADEOFFS:
- Not suitable for high-volume data (fine for one person's bills)
- No transactions; every method is one or a few independent API calls
- Limited query capabilities (we filter in Python)

gspread is blocking, so every call runs in a worker thread to keep the
event loop free.
"""

import asyncio
import json
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterator, Optional, TypeVar
from uuid import UUID, uuid4

import google.auth.exceptions
import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from liquid_bills.config import get_settings
from liquid_bills.models.audit import AuditEvent, AuditEventType, AuditSeverity
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


logger = structlog.get_logger(__name__)

T = TypeVar("T")


# Column layout of the Bills sheet (wire column names)
BILL_COLUMNS = [
    "id",
    "name",
    "amount",
    "due_date",
    "is_paid",
    "is_recurring",
    "frequency",
    "category",
    "series_id",
]

# Column layout of the activity sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise gspread / transport failures as StorageError subclasses."""
    try:
        yield
    except StorageError:
        raise
    except gspread.exceptions.GSpreadException as e:
        raise RemoteOperationError(f"Failed to {operation}: {e}") from e
    except google.auth.exceptions.TransportError as e:
        # Token refresh could not reach the auth server
        raise NetworkFailureError(f"Failed to {operation}: {e}") from e
    except google.auth.exceptions.GoogleAuthError as e:
        raise RemoteOperationError(f"Failed to {operation}: {e}") from e
    except OSError as e:
        # requests' exceptions derive from OSError
        raise NetworkFailureError(f"Failed to {operation}: {e}") from e


def contiguous_ranges(numbers: list[int]) -> list[tuple[int, int]]:
    """Group row numbers into ascending inclusive (start, end) runs."""
    ranges: list[tuple[int, int]] = []
    for number in sorted(set(numbers)):
        if ranges and number == ranges[-1][1] + 1:
            ranges[-1] = (ranges[-1][0], number)
        else:
            ranges.append((number, number))
    return ranges


def encode_cell(value: Any) -> str:
    """Encode a wire value as the text stored in a cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def decode_cell(column: str, text: str) -> Any:
    """
    Decode a cell back to its wire value.

    Raises ValueError on cells that cannot be parsed for their column.
    """
    text = (text or "").strip()
    if column in ("is_paid", "is_recurring"):
        return text.upper() in ("TRUE", "1", "YES")
    if not text:
        return None
    if column == "amount":
        try:
            return Decimal(text.replace(",", "."))
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {text}") from e
    if column == "due_date":
        # Older rows carry full ISO timestamps; only the date part matters
        return date.fromisoformat(text[:10])
    if column == "frequency":
        return int(text)
    return text


class GoogleSheetsClient:
    """
    Manages the connection to Google Sheets.

    Handles authentication and worksheet lookup. Only the connection
    handshake is retried; table operations are not.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        retry=retry_if_exception_type(NetworkFailureError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """Authorize with the service account credentials."""
        if self._client is None:
            scopes = [
                "https://www.googleapis.com/auth/spreadsheets",
                "https://www.googleapis.com/auth/drive",
            ]
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
            except FileNotFoundError as e:
                raise MissingConfigurationError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except ValueError as e:
                raise MissingConfigurationError(f"Invalid Google credentials: {e}") from e
            with translate_errors("connect to Google Sheets"):
                self._client = gspread.authorize(credentials)

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound as e:
                raise MissingConfigurationError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
            logger.info("worksheet_created", title=title)
        return sheet

    def get_bills_sheet(self) -> gspread.Worksheet:
        """Get or create the Bills worksheet."""
        return self._get_or_create_sheet(self._settings.bills_sheet_name, BILL_COLUMNS, 1000)

    def get_activity_sheet(self) -> gspread.Worksheet:
        """Get or create the activity log worksheet."""
        return self._get_or_create_sheet(self._settings.activity_sheet_name, AUDIT_COLUMNS, 5000)


class GoogleSheetsBillStore(BillTableStore):
    """
    Google Sheets implementation of the bills table.

    Ids are UUID4 hex strings minted on insert. Columns are located through
    the header row, so extra columns added by hand are left untouched.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def _run(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        with translate_errors(operation):
            return await asyncio.to_thread(func, *args)

    # -- sheet helpers (blocking) -------------------------------------------

    def _read(self) -> tuple[gspread.Worksheet, list[str], list[list[str]]]:
        sheet = self._client.get_bills_sheet()
        values = sheet.get_all_values()
        if not values:
            # Worksheet created by hand; bills must never land in row 1
            sheet.append_row(BILL_COLUMNS, value_input_option="RAW")
            logger.info("bills_header_written")
            return sheet, list(BILL_COLUMNS), []
        return sheet, values[0], values[1:]

    @staticmethod
    def _decode_row(header: list[str], cells: list[str]) -> Row:
        row = {}
        for index, column in enumerate(header):
            if column not in BILL_COLUMNS:
                continue
            text = cells[index] if index < len(cells) else ""
            row[column] = decode_cell(column, text)
        return row

    @staticmethod
    def _encode_row(header: list[str], row: Row, existing: Optional[list[str]] = None) -> list[str]:
        cells = []
        for index, column in enumerate(header):
            if column in row:
                cells.append(encode_cell(row[column]))
            elif existing is not None and index < len(existing):
                cells.append(existing[index])
            else:
                cells.append("")
        return cells

    def _indexed_rows(self, header: list[str], body: list[list[str]]) -> Iterator[tuple[int, list[str], Row]]:
        """Yield (sheet row number, raw cells, decoded row) for every bill row."""
        for number, cells in enumerate(body, start=2):  # row 1 is the header
            if not cells or not cells[0]:
                continue
            try:
                yield number, cells, self._decode_row(header, cells)
            except ValueError as e:
                logger.warning("malformed_sheet_row_skipped", row_number=number, error=str(e))

    def _find(self, header: list[str], body: list[list[str]], row_id: str) -> Optional[tuple[int, list[str], Row]]:
        for number, cells, row in self._indexed_rows(header, body):
            if row.get("id") == row_id:
                return number, cells, row
        return None

    def _select_all_sync(self) -> list[Row]:
        _, header, body = self._read()
        rows = [row for _, _, row in self._indexed_rows(header, body) if row.get("due_date")]
        rows.sort(key=lambda r: r["due_date"])
        return rows

    def _insert_sync(self, rows: list[Row]) -> list[Row]:
        sheet, header, _ = self._read()
        stored = [{**row, "id": uuid4().hex} for row in rows]
        sheet.append_rows(
            [self._encode_row(header, row) for row in stored],
            value_input_option="RAW",
        )
        return stored

    def _update_sync(self, row_id: str, fields: Row) -> Row:
        sheet, header, body = self._read()
        found = self._find(header, body, row_id)
        if found is None:
            raise NotFoundError(f"Bill not found: {row_id}")
        number, cells, row = found
        merged = {**row, **{k: v for k, v in fields.items() if k != "id"}}
        sheet.update(
            range_name=f"A{number}",
            values=[self._encode_row(header, merged, existing=cells)],
            value_input_option="RAW",
        )
        return merged

    def _delete_sync(self, row_id: str) -> bool:
        sheet, header, body = self._read()
        found = self._find(header, body, row_id)
        if found is None:
            return False
        sheet.delete_rows(found[0])
        return True

    def _delete_where_sync(self, row_filter: RowFilter) -> int:
        sheet, header, body = self._read()
        numbers = [
            number
            for number, _, row in self._indexed_rows(header, body)
            if row_filter.matches(row)
        ]
        # Bottom-up so earlier row numbers stay valid
        for start, end in reversed(contiguous_ranges(numbers)):
            sheet.delete_rows(start, end)
        return len(numbers)

    # -- BillTableStore -----------------------------------------------------

    async def select_all(self) -> list[Row]:
        return await self._run("load bills", self._select_all_sync)

    async def insert(self, rows: list[Row]) -> list[Row]:
        if not rows:
            return []
        return await self._run("insert bills", self._insert_sync, rows)

    async def update(self, row_id: str, fields: Row) -> Row:
        return await self._run("update bill", self._update_sync, row_id, fields)

    async def delete(self, row_id: str) -> bool:
        return await self._run("delete bill", self._delete_sync, row_id)

    async def delete_where(self, row_filter: RowFilter) -> int:
        return await self._run("delete bills", self._delete_where_sync, row_filter)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of the activity log.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list[str]) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _append_sync(self, event: AuditEvent) -> None:
        sheet = self._client.get_activity_sheet()
        sheet.append_row(event.to_sheets_row(), value_input_option="RAW")

    def _recent_sync(self, limit: int) -> list[AuditEvent]:
        sheet = self._client.get_activity_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event; failures are logged, never raised."""
        try:
            with translate_errors("append activity event"):
                await asyncio.to_thread(self._append_sync, event)
            return True
        except StorageError as e:
            logger.warning("activity_append_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        with translate_errors("read activity log"):
            return await asyncio.to_thread(self._recent_sync, limit)
