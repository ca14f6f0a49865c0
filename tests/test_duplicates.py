"""Tests for the duplicate bill guard."""

from datetime import date

import pytest

from conftest import make_bill
from liquid_bills.validation import (
    DuplicateBillError,
    ensure_not_duplicate,
    find_duplicate,
    normalize_name,
)


@pytest.fixture
def bills():
    return [
        make_bill(id="n1", name="Netflix", due_date=date(2024, 1, 15)),
        make_bill(id="p1", name="Prąd", due_date=date(2024, 1, 20)),
    ]


class TestDuplicateGuard:
    """Same trimmed, case-insensitive name in the same month and year."""

    def test_normalize_name(self):
        assert normalize_name("  NetFlix ") == "netflix"

    def test_same_month_clashes(self, bills):
        with pytest.raises(DuplicateBillError) as exc_info:
            ensure_not_duplicate(bills, " netflix ", date(2024, 1, 28))
        assert exc_info.value.existing.id == "n1"
        assert exc_info.value.name == "netflix"

    def test_next_month_is_fine(self, bills):
        ensure_not_duplicate(bills, "Netflix", date(2024, 2, 1))

    def test_same_month_other_year_is_fine(self, bills):
        assert find_duplicate(bills, "Netflix", date(2025, 1, 15)) is None

    def test_edited_bill_is_excluded(self, bills):
        assert find_duplicate(bills, "Netflix", date(2024, 1, 3), exclude_id="n1") is None

    def test_other_bill_still_clashes_when_editing(self, bills):
        assert find_duplicate(bills, "prąd", date(2024, 1, 1), exclude_id="n1").id == "p1"

    def test_error_message(self, bills):
        with pytest.raises(DuplicateBillError, match="01/2024"):
            ensure_not_duplicate(bills, "Netflix", date(2024, 1, 2))
