"""Write-time validation of bills."""

from liquid_bills.validation.duplicates import (
    DuplicateBillError,
    ensure_not_duplicate,
    find_duplicate,
    normalize_name,
)

__all__ = [
    "DuplicateBillError",
    "ensure_not_duplicate",
    "find_duplicate",
    "normalize_name",
]
