"""
Series Expansion Engine

Turns one template bill into the bounded list of occurrences of its
recurring series. Used when a recurring bill is created (the template itself
is occurrence 0) and when a series tail is regenerated after an edit (only
the occurrences strictly after the template are produced).

The engine is a pure function: it never talks to the remote store and never
assigns bill ids.
"""

import math
from typing import Optional, Union
from uuid import uuid4

from liquid_bills.models.bill import Bill, BillFrequency
from liquid_bills.series.calendar import add_months


DEFAULT_HORIZON_MONTHS = 12


class InvalidFrequencyError(ValueError):
    """Frequency is not one of the supported month intervals."""

    def __init__(self, frequency: object):
        self.frequency = frequency
        allowed = ", ".join(str(f.value) for f in BillFrequency)
        super().__init__(f"Invalid frequency {frequency!r}; expected one of {allowed}")


def new_series_id() -> str:
    return uuid4().hex


def coerce_frequency(frequency: Union[BillFrequency, int]) -> BillFrequency:
    """Map a raw month interval onto BillFrequency or raise InvalidFrequencyError."""
    if isinstance(frequency, bool):
        raise InvalidFrequencyError(frequency)
    try:
        return BillFrequency(frequency)
    except ValueError as e:
        raise InvalidFrequencyError(frequency) from e


def occurrence_count(
    frequency: Union[BillFrequency, int],
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
    start_offset: int = 0,
) -> int:
    """
    Number of bills `expand` produces.

    ceil(horizon / frequency) future occurrences, plus the template itself
    when `start_offset` is 0.
    """
    freq = coerce_frequency(frequency)
    future = math.ceil(horizon_months / int(freq))
    return future + (1 if start_offset == 0 else 0)


def expand(
    anchor: Bill,
    frequency: Optional[Union[BillFrequency, int]] = None,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
    start_offset: int = 0,
) -> list[Bill]:
    """
    Expand `anchor` into the occurrences of its series.

    Args:
        anchor: Fully populated template; its due date is occurrence 0.
        frequency: Months between occurrences. Defaults to the anchor's own
            frequency (monthly for legacy bills without one).
        horizon_months: How far ahead occurrences are generated.
        start_offset: 0 to include the anchor itself, 1 for strictly-future
            occurrences only.

    Returns:
        Unsaved bills (no ids) ordered by due date. They all share the
        anchor's series id, or a newly minted one if the anchor has none.
        Only occurrence 0 keeps the anchor's paid flag.

    Raises:
        InvalidFrequencyError: frequency is not 1, 3, 6 or 12.
        ValueError: start_offset is not 0/1 or horizon_months is not positive.
    """
    freq = coerce_frequency(frequency if frequency is not None else anchor.effective_frequency)
    if start_offset not in (0, 1):
        raise ValueError(f"start_offset must be 0 or 1, got {start_offset}")
    if horizon_months < 1:
        raise ValueError(f"horizon_months must be positive, got {horizon_months}")

    series_id = anchor.series_id or new_series_id()
    last_index = math.ceil(horizon_months / int(freq))

    occurrences = []
    for i in range(start_offset, last_index + 1):
        occurrences.append(
            anchor.model_copy(
                update={
                    "id": None,
                    "due_date": add_months(anchor.due_date, int(freq) * i),
                    "is_paid": anchor.is_paid if i == 0 else False,
                    "is_recurring": True,
                    "frequency": freq,
                    "series_id": series_id,
                }
            )
        )
    return occurrences
