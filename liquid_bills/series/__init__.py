"""Recurring series: month arithmetic, expansion and membership."""

from liquid_bills.series.calendar import add_months, days_in_month
from liquid_bills.series.expansion import (
    DEFAULT_HORIZON_MONTHS,
    InvalidFrequencyError,
    coerce_frequency,
    expand,
    new_series_id,
    occurrence_count,
)
from liquid_bills.series.matching import (
    LegacyNameAmountMatcher,
    SeriesIdMatcher,
    SeriesMatcher,
    matcher_for,
)

__all__ = [
    "DEFAULT_HORIZON_MONTHS",
    "InvalidFrequencyError",
    "LegacyNameAmountMatcher",
    "SeriesIdMatcher",
    "SeriesMatcher",
    "add_months",
    "coerce_frequency",
    "days_in_month",
    "expand",
    "matcher_for",
    "new_series_id",
    "occurrence_count",
]
