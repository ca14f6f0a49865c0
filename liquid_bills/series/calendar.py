"""Calendar month arithmetic for recurring bills."""

import calendar
from datetime import date


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(base: date, months: int) -> date:
    """
    Advance `base` by a whole number of calendar months.

    When the target month is shorter than `base.day`, the result is clamped
    to the target month's last day: Jan 31 + 1 month is Feb 29 in a leap
    year, Feb 28 otherwise. Negative `months` step backwards.
    """
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1
    day = min(base.day, days_in_month(year, month))
    return date(year, month, day)
