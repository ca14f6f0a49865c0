"""
Series membership strategies.

Decides which bills belong to the same recurring series as a given bill,
both as a store-level predicate (`RowFilter`, for `delete_where`) and as an
in-memory check (for patching the local collection).

Bills created with series tracking share a `series_id`. Older recurring
bills have none; for those, bills with the same name and amount are taken
to be the same series. That heuristic cannot tell two unrelated bills with
the same name and amount apart, so it lives behind its own strategy.
"""

from abc import ABC, abstractmethod
from datetime import date

from liquid_bills.models.bill import Bill
from liquid_bills.services.storage.interface import RowFilter


class SeriesMatcher(ABC):
    """Identifies the later siblings of a bill."""

    @abstractmethod
    def describe(self, original: Bill, after: date) -> RowFilter:
        """Store predicate for siblings of `original` due strictly after `after`."""

    @abstractmethod
    def is_sibling(self, bill: Bill, original: Bill) -> bool:
        """Whether `bill` belongs to the same series as `original`."""

    def matches(self, bill: Bill, original: Bill, after: date) -> bool:
        return bill.due_date > after and self.is_sibling(bill, original)


class SeriesIdMatcher(SeriesMatcher):
    """Siblings share the series id."""

    def describe(self, original: Bill, after: date) -> RowFilter:
        if not original.series_id:
            raise ValueError("SeriesIdMatcher needs a bill with a series id")
        return RowFilter(equals={"series_id": original.series_id}, due_after=after)

    def is_sibling(self, bill: Bill, original: Bill) -> bool:
        return bill.series_id is not None and bill.series_id == original.series_id


class LegacyNameAmountMatcher(SeriesMatcher):
    """Siblings have the same name and amount (bills without a series id)."""

    def describe(self, original: Bill, after: date) -> RowFilter:
        return RowFilter(
            equals={"name": original.name, "amount": original.amount},
            due_after=after,
        )

    def is_sibling(self, bill: Bill, original: Bill) -> bool:
        return bill.name == original.name and bill.amount == original.amount


def matcher_for(original: Bill) -> SeriesMatcher:
    """Series-id matching when the bill has one, the legacy heuristic otherwise."""
    if original.series_id:
        return SeriesIdMatcher()
    return LegacyNameAmountMatcher()
