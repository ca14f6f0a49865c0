"""Tests for month and year views."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_bill
from liquid_bills.models.bill import BillCategory
from liquid_bills.queries import bills_for_month, monthly_stats, shift_period, yearly_summary


@pytest.fixture
def bills():
    return [
        make_bill(name="Netflix", amount="43.00", due_date=date(2024, 1, 15),
                  category=BillCategory.SUBSCRIPTION, is_paid=True),
        make_bill(name="Czynsz", amount="1200.00", due_date=date(2024, 1, 10),
                  category=BillCategory.HOUSE),
        make_bill(name="Woda", amount="80.00", due_date=date(2024, 1, 5),
                  category=BillCategory.HOUSE, is_paid=True),
        make_bill(name="Kredyt", amount="900.00", due_date=date(2024, 3, 1),
                  category=BillCategory.CREDIT),
        make_bill(name="Netflix", amount="43.00", due_date=date(2023, 12, 15),
                  category=BillCategory.SUBSCRIPTION),
    ]


class TestBillsForMonth:
    def test_filters_by_month_and_year(self, bills):
        january = bills_for_month(bills, 2024, 1)
        assert {b.name for b in january} == {"Netflix", "Czynsz", "Woda"}

    def test_sorted_by_category_then_date(self, bills):
        january = bills_for_month(bills, 2024, 1)
        assert [b.name for b in january] == ["Woda", "Czynsz", "Netflix"]


class TestMonthlyStats:
    def test_totals(self, bills):
        stats = monthly_stats(bills_for_month(bills, 2024, 1))
        assert stats.total == Decimal("1323.00")
        assert stats.paid == Decimal("123.00")
        assert stats.pending == Decimal("1200.00")
        assert stats.percentage_paid == 9

    def test_empty_month(self):
        stats = monthly_stats([])
        assert stats.total == Decimal("0")
        assert stats.percentage_paid == 0


class TestYearlySummary:
    def test_monthly_totals(self, bills):
        summary = yearly_summary(bills, 2024)
        assert summary.monthly_totals[0] == Decimal("1323.00")
        assert summary.monthly_totals[1] == Decimal("0")
        assert summary.monthly_totals[2] == Decimal("900.00")
        assert summary.total == Decimal("2223.00")

    def test_category_shares_sorted_by_amount(self, bills):
        summary = yearly_summary(bills, 2024)
        assert [s.category for s in summary.categories] == [
            BillCategory.HOUSE,
            BillCategory.CREDIT,
            BillCategory.SUBSCRIPTION,
        ]
        assert summary.categories[0].amount == Decimal("1280.00")
        assert sum(s.percentage for s in summary.categories) == pytest.approx(100.0)

    def test_empty_year(self, bills):
        summary = yearly_summary(bills, 2030)
        assert summary.total == Decimal("0")
        assert summary.categories == []


class TestShiftPeriod:
    @pytest.mark.parametrize(
        "year, month, view, step, expected",
        [
            (2024, 1, "month", -1, (2023, 12)),
            (2024, 12, "month", 1, (2025, 1)),
            (2024, 5, "month", 14, (2025, 7)),
            (2024, 5, "year", -1, (2023, 5)),
        ],
    )
    def test_shift(self, year, month, view, step, expected):
        assert shift_period(year, month, view, step) == expected

    def test_unknown_view(self):
        with pytest.raises(ValueError):
            shift_period(2024, 1, "week", 1)
