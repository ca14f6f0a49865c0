"""
Month and year views over the bill collection.

Everything here is DETERMINISTIC and works on the in-memory collection the
controller holds; nothing reads the remote store.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Literal

from liquid_bills.models.bill import (
    Bill,
    BillCategory,
    CategoryShare,
    MonthlyStats,
    YearlySummary,
)


ViewMode = Literal["month", "year"]


def bills_for_month(bills: Iterable[Bill], year: int, month: int) -> list[Bill]:
    """
    Bills due in the given month.

    Ordered by category label, then by due date.
    """
    return sorted(
        (b for b in bills if b.in_month(year, month)),
        key=lambda b: (b.category.label, b.due_date),
    )


def monthly_stats(bills: Iterable[Bill]) -> MonthlyStats:
    """Total, paid and pending amounts of `bills` (usually one month's)."""
    total = paid = Decimal("0")
    for bill in bills:
        total += bill.amount
        if bill.is_paid:
            paid += bill.amount
    return MonthlyStats(total=total, paid=paid, pending=total - paid)


def yearly_summary(bills: Iterable[Bill], year: int) -> YearlySummary:
    """
    Spending summary for `year`.

    Monthly totals cover January..December; category shares are sorted by
    amount, largest first.
    """
    monthly = [Decimal("0")] * 12
    by_category: dict[BillCategory, Decimal] = defaultdict(Decimal)

    for bill in bills:
        if bill.due_date.year != year:
            continue
        monthly[bill.due_date.month - 1] += bill.amount
        by_category[bill.category] += bill.amount

    total = sum(monthly, Decimal("0"))
    shares = [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=float(amount / total * 100) if total else 0.0,
        )
        for category, amount in by_category.items()
    ]
    shares.sort(key=lambda s: s.amount, reverse=True)

    return YearlySummary(
        year=year,
        total=total,
        monthly_totals=monthly,
        categories=shares,
    )


def shift_period(year: int, month: int, view: ViewMode, step: int) -> tuple[int, int]:
    """
    Move the selected period `step` months (month view) or years (year view).

    Returns:
        (year, month) of the new period
    """
    if view == "year":
        return year + step, month
    if view != "month":
        raise ValueError(f"Unknown view: {view}")

    index = year * 12 + (month - 1) + step
    return index // 12, index % 12 + 1
