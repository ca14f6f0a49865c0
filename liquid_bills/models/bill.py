"""
Core Data Models for Liquid Bills

These models define the schemas for all bill data flowing through the system:
- `Bill` is one obligation instance, either a one-off bill or one occurrence
  of a recurring series.
- The remaining models are read-only aggregates derived from a bill
  collection (monthly stats, yearly summary) and the outcome of a sync.

In memory and in the local cache, bills use camelCase field aliases
(`dueDate`, `isPaid`, ...). The remote store uses snake_case column names;
see `liquid_bills.services.storage.wire` for the mapping.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BillFrequency(IntEnum):
    """Months between two occurrences of a recurring bill."""
    MONTHLY = 1
    QUARTERLY = 3
    SEMIANNUAL = 6
    ANNUAL = 12


class BillCategory(str, Enum):
    """Supported bill categories."""
    HOUSE = "house"
    MEDIA = "media"
    SUBSCRIPTION = "subscription"
    CREDIT = "credit"
    OTHER = "other"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS[self]


CATEGORY_LABELS: dict[BillCategory, str] = {
    BillCategory.HOUSE: "Dom",
    BillCategory.MEDIA: "Media",
    BillCategory.SUBSCRIPTION: "Subskrypcje",
    BillCategory.CREDIT: "Kredyt",
    BillCategory.OTHER: "Inne",
}

CATEGORY_ICONS: dict[BillCategory, str] = {
    BillCategory.HOUSE: "🏠",
    BillCategory.MEDIA: "⚡",
    BillCategory.SUBSCRIPTION: "🎬",
    BillCategory.CREDIT: "🏦",
    BillCategory.OTHER: "📦",
}

FREQUENCY_LABELS: dict[BillFrequency, str] = {
    BillFrequency.MONTHLY: "Co miesiąc",
    BillFrequency.QUARTERLY: "Co kwartał",
    BillFrequency.SEMIANNUAL: "Co pół roku",
    BillFrequency.ANNUAL: "Co rok",
}


# =============================================================================
# CORE BILL MODEL
# =============================================================================

class Bill(BaseModel):
    """
    A single bill.

    `id` is assigned by the remote store; a bill that has not been persisted
    yet has no id and must not be treated as durable.

    A bill with `series_id` belongs to a recurring series generated by
    `liquid_bills.series.expand`. Recurring bills created before series
    tracking existed have `is_recurring=True` but no `series_id`.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: Optional[str] = Field(
        default=None,
        description="Identifier assigned by the remote store"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount due"
    )
    due_date: date = Field(
        ...,
        description="When the bill is owed"
    )
    is_paid: bool = False
    is_recurring: bool = False
    frequency: Optional[BillFrequency] = Field(
        default=None,
        description="Months between occurrences (recurring bills only)"
    )
    category: BillCategory = BillCategory.OTHER
    series_id: Optional[str] = Field(
        default=None,
        description="Shared by every occurrence generated from one template"
    )

    @model_validator(mode='after')
    def validate_recurrence(self) -> 'Bill':
        """Series membership and frequency only make sense for recurring bills."""
        if not self.is_recurring:
            if self.series_id:
                raise ValueError("Only recurring bills can belong to a series")
            if self.frequency is not None:
                raise ValueError("Only recurring bills can have a frequency")
        return self

    @property
    def effective_frequency(self) -> BillFrequency:
        """Frequency used for series expansion; legacy bills default to monthly."""
        return self.frequency or BillFrequency.MONTHLY

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)

    def in_month(self, year: int, month: int) -> bool:
        return self.due_date.year == year and self.due_date.month == month


# =============================================================================
# AGGREGATE MODELS
# =============================================================================

class MonthlyStats(BaseModel):
    """Totals for the bills of one month."""

    total: Decimal = Decimal("0")
    paid: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")

    @property
    def percentage_paid(self) -> int:
        """Share of the total already paid, rounded to a whole percent."""
        if self.total == 0:
            return 0
        return int((self.paid / self.total * 100).quantize(Decimal("1")))


class CategoryShare(BaseModel):
    """One category's part of a yearly total."""

    category: BillCategory
    amount: Decimal
    percentage: float = Field(ge=0.0, le=100.0)


class YearlySummary(BaseModel):
    """Spending summary for one calendar year."""

    year: int
    total: Decimal
    monthly_totals: list[Decimal] = Field(
        ...,
        min_length=12,
        max_length=12,
        description="Totals for January..December"
    )
    categories: list[CategoryShare] = Field(default_factory=list)

    @property
    def average_per_month(self) -> Decimal:
        return (self.total / 12).quantize(Decimal("0.01"))


# =============================================================================
# SYNC MODELS
# =============================================================================

class SyncResult(BaseModel):
    """
    Outcome of one remote refresh.

    `blocking` is set when the refresh failed and there is nothing cached to
    show instead, i.e. the UI should render a full-screen error.
    """

    success: bool
    changed: bool = False
    bill_count: int = Field(default=0, ge=0)
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    blocking: bool = False
    synced_at: datetime = Field(default_factory=datetime.utcnow)
