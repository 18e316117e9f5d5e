"""Domain model for the shared daily staff plan."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class TodayPlanRecord:
    """Who works where today, as last saved by an admin or manager."""

    id: UUID
    created_by: UUID
    users: dict[str, object] | list[object] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
