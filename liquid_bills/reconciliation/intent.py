"""
Edit intent classification.

Saving an edited bill can mean four different things depending on whether
the bill was and still is recurring, and whether the user asked to carry
the change over to the rest of the series.
"""

from enum import Enum

from liquid_bills.models.bill import Bill


class EditIntent(str, Enum):
    """What saving an edited bill does to its series."""
    PLAIN_UPDATE = "plain_update"
    STOP_SERIES = "stop_series"
    UPDATE_OCCURRENCE = "update_occurrence"
    REGENERATE_SERIES = "regenerate_series"


def classify_edit(original: Bill, edited: Bill, update_future: bool = False) -> EditIntent:
    """
    Decide how an edit of `original` into `edited` is applied.

    Turning recurrence on for an existing bill is a plain update; series are
    only generated when a bill is created. Legacy recurring bills without a
    series id cannot be regenerated, so `update_future` is ignored for them.
    """
    if not original.is_recurring:
        return EditIntent.PLAIN_UPDATE
    if not edited.is_recurring:
        return EditIntent.STOP_SERIES
    if update_future and original.series_id:
        return EditIntent.REGENERATE_SERIES
    return EditIntent.UPDATE_OCCURRENCE
