"""Month/year filtering and aggregates."""

from liquid_bills.queries.summary import (
    ViewMode,
    bills_for_month,
    monthly_stats,
    shift_period,
    yearly_summary,
)

__all__ = [
    "ViewMode",
    "bills_for_month",
    "monthly_stats",
    "shift_period",
    "yearly_summary",
]
