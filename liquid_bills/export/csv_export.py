"""
CSV backup of the bill collection.

Column headers and cell values are the Polish labels the UI shows, so the
file opens as a readable backup in any spreadsheet.
"""

import csv
import re
from datetime import date
from io import StringIO
from typing import Sequence

from liquid_bills.models.bill import Bill


CSV_HEADERS = ["Nazwa", "Kwota", "Data", "Kategoria", "Status", "Powtarzalny"]

PAID_LABEL = "Zapłacone"
PENDING_LABEL = "Do zapłaty"
YES_LABEL = "Tak"
NO_LABEL = "Nie"

DEFAULT_FILENAME_PREFIX = "backup_rachunki"

_FORMULA_TRIGGERS = ("=", "+", "-", "@", "\t", "\r")

_DANGEROUS_PATTERNS = [
    r"^cmd\s*",
    r"^powershell\s*",
    r"^bash\s*",
    r"^sh\s*",
    r"^\.",
    r"^http[s]?://",
]


def sanitize_csv_value(value: str) -> str:
    """Prefix values a spreadsheet would evaluate as formulas with a tab."""
    if not value or value.strip() == "":
        return ""

    value = value.strip()
    if value.startswith(_FORMULA_TRIGGERS):
        return "\t" + value

    for pattern in _DANGEROUS_PATTERNS:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def format_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def export_bills_csv(bills: Sequence[Bill]) -> str:
    """
    Render `bills` as CSV text.

    Raises:
        ValueError: There is nothing to export.
    """
    if not bills:
        raise ValueError("No bills to export")

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    for bill in bills:
        writer.writerow(
            [
                sanitize_csv_value(bill.name),
                f"{bill.amount:.2f}",
                format_date(bill.due_date),
                bill.category.label,
                PAID_LABEL if bill.is_paid else PENDING_LABEL,
                YES_LABEL if bill.is_recurring else NO_LABEL,
            ]
        )
    return output.getvalue()


def export_filename(today: date, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    """`<prefix>_<YYYY-MM-DD>.csv`"""
    return f"{prefix}_{today.isoformat()}.csv"
