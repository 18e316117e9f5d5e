"""Domain models for reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class DateRange:
    """Half-open `[start, end)` query range."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class RecordFilters:
    """Filters shared by the listing endpoints."""

    date_range: DateRange
    user_id: UUID | None = None
    location_id: UUID | None = None
    search: str | None = None


@dataclass(frozen=True)
class Page:
    """A page slice with totals."""

    rows: list[dict[str, object]]
    total_count: int
    num_of_pages: int
    totals: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class GroupTotals:
    """Count and sum for one group key."""

    key: str
    label: str
    count: int
    total: float


@dataclass(frozen=True)
class GroupSummary:
    """Per-group rows plus the overall count and sum."""

    groups: list[GroupTotals]
    count: int
    total: float
