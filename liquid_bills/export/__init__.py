"""CSV export."""

from liquid_bills.export.csv_export import (
    CSV_HEADERS,
    export_bills_csv,
    export_filename,
    sanitize_csv_value,
)

__all__ = [
    "CSV_HEADERS",
    "export_bills_csv",
    "export_filename",
    "sanitize_csv_value",
]
