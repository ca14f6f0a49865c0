"""
Wire format of the remote bills table.

In memory (and in the local cache blob) bill fields use camelCase aliases;
the remote table uses snake_case columns. This module owns the 1:1 mapping
and the value conversions in both directions:

    id          <-> id
    name        <-> name
    amount      <-> amount        (Decimal)
    dueDate     <-> due_date      (date)
    isPaid      <-> is_paid       (bool)
    isRecurring <-> is_recurring  (bool)
    frequency   <-> frequency     (int months or None)
    category    <-> category      (category value string)
    seriesId    <-> series_id     (str or None)
"""

from enum import Enum
from typing import Any, Iterable

import structlog
from pydantic import ValidationError

from liquid_bills.models.bill import Bill
from liquid_bills.services.storage.interface import Row


logger = structlog.get_logger(__name__)


WIRE_COLUMNS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "amount": "amount",
    "dueDate": "due_date",
    "isPaid": "is_paid",
    "isRecurring": "is_recurring",
    "frequency": "frequency",
    "category": "category",
    "seriesId": "series_id",
}

ALIAS_FOR_COLUMN: dict[str, str] = {column: alias for alias, column in WIRE_COLUMNS.items()}


def column_for(field_name: str) -> str:
    """Wire column for a Bill field, given either its alias or its Python name."""
    if field_name in WIRE_COLUMNS:
        return WIRE_COLUMNS[field_name]
    model_field = Bill.model_fields.get(field_name)
    if model_field is None or model_field.alias not in WIRE_COLUMNS:
        raise KeyError(f"Unknown bill field: {field_name}")
    return WIRE_COLUMNS[model_field.alias]


def _to_wire_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def bill_to_row(bill: Bill, include_id: bool = False) -> Row:
    """Convert a Bill to a wire row. The id is left out unless asked for."""
    data = bill.model_dump(by_alias=True)
    row = {WIRE_COLUMNS[alias]: _to_wire_value(value) for alias, value in data.items()}
    if not include_id:
        row.pop("id", None)
    return row


def fields_to_row(changes: dict[str, Any]) -> Row:
    """Convert a partial set of Bill field changes to wire columns."""
    return {column_for(name): _to_wire_value(value) for name, value in changes.items()}


def row_to_bill(row: Row) -> Bill:
    """Convert a wire row to a Bill. Unknown columns are ignored."""
    data = {
        ALIAS_FOR_COLUMN[column]: value
        for column, value in row.items()
        if column in ALIAS_FOR_COLUMN
    }
    return Bill.model_validate(data)


def rows_to_bills(rows: Iterable[Row]) -> list[Bill]:
    """Convert rows to Bills, skipping (and logging) rows that do not validate."""
    bills = []
    for row in rows:
        try:
            bills.append(row_to_bill(row))
        except ValidationError as e:
            logger.warning(
                "malformed_bill_row_skipped",
                row_id=row.get("id"),
                error=str(e),
            )
    return bills
