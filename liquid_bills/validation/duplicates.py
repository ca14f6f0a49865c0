"""
Duplicate bill guard.

A bill is a duplicate when another bill with the same name (trimmed,
case-insensitive) falls in the same calendar month of the same year. The
check runs on the client before writes; the remote store does not enforce
it, so two clients racing can still both write.
"""

from datetime import date
from typing import Iterable, Optional

from liquid_bills.models.bill import Bill


class DuplicateBillError(ValueError):
    """A bill with the same name already exists in that month."""

    def __init__(self, name: str, due_date: date, existing: Bill):
        self.name = name
        self.due_date = due_date
        self.existing = existing
        super().__init__(
            f'Bill "{name}" already exists in {due_date.month:02d}/{due_date.year}'
        )


def normalize_name(name: str) -> str:
    return name.strip().casefold()


def find_duplicate(
    bills: Iterable[Bill],
    name: str,
    due_date: date,
    exclude_id: Optional[str] = None,
) -> Optional[Bill]:
    """
    First bill clashing with (name, month, year), or None.

    `exclude_id` skips the bill being edited.
    """
    wanted = normalize_name(name)
    for bill in bills:
        if exclude_id and bill.id == exclude_id:
            continue
        if (
            bill.due_date.year == due_date.year
            and bill.due_date.month == due_date.month
            and normalize_name(bill.name) == wanted
        ):
            return bill
    return None


def ensure_not_duplicate(
    bills: Iterable[Bill],
    name: str,
    due_date: date,
    exclude_id: Optional[str] = None,
) -> None:
    """Raise DuplicateBillError if `find_duplicate` finds a clash."""
    existing = find_duplicate(bills, name, due_date, exclude_id=exclude_id)
    if existing is not None:
        raise DuplicateBillError(name.strip(), due_date, existing)
