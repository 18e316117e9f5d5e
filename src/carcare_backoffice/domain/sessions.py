"""Domain models for work sessions."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class BreakRecord:
    """A break interval inside a work session."""

    id: UUID
    start_break: datetime
    end_break: datetime | None = None
    active: bool = True


@dataclass(frozen=True)
class WorkSessionRecord:
    """Represents one employee's check-in to check-out period for a day."""

    id: UUID
    user_id: UUID
    work_day: date
    start_time: datetime
    end_time: datetime | None = None
    closed: bool = False
    active: bool = True
    breaks: tuple[BreakRecord, ...] = field(default_factory=tuple)
    work_minutes: int | None = None
    daily_salary: float | None = None
    suspect: bool = True
    paid: bool = False
    description: str | None = None
    start_location: dict[str, object] | None = None
    end_location: dict[str, object] | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None

    @property
    def open_break(self) -> BreakRecord | None:
        for item in self.breaks:
            if item.active:
                return item
        return None
