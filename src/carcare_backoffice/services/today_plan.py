"""Shared staff plan for the current day."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from carcare_backoffice.domain.models import Principal, UserRecord
from carcare_backoffice.domain.today_plan import TodayPlanRecord
from carcare_backoffice.errors import NotFoundError, ValidationError
from carcare_backoffice.services.reports import DELETED_USER_LABEL

logger = logging.getLogger(__name__)

LAST_MODIFIED_FORMAT = "%d %B, %I:%M"

PlanUsers = dict[str, object] | list[object]


class TodayPlanRepository(Protocol):
    """Persistence interface for the daily plan."""

    def create_plan(self, payload: dict[str, object]) -> TodayPlanRecord:
        """Create a plan and return it."""

    def get_plan(self, plan_id: UUID) -> TodayPlanRecord | None:
        """Return a plan by id, if present."""

    def get_current_plan(self) -> TodayPlanRecord | None:
        """Return the most recently created plan, if any."""

    def update_plan(self, plan_id: UUID, payload: dict[str, object]) -> TodayPlanRecord:
        """Update plan fields and return the stored plan."""


class UserLookup(Protocol):
    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return a user by id, if present."""


@dataclass
class TodayPlanService:
    """Creates, shows and edits the shared daily plan."""

    repository: TodayPlanRepository
    users: UserLookup
    timezone: ZoneInfo

    def create_plan(
        self, principal: Principal, users: PlanUsers | None
    ) -> TodayPlanRecord:
        """Store a new plan authored by the caller."""
        if users is None:
            raise ValidationError("Please provide all values")
        now = datetime.now(tz=UTC)
        plan = self.repository.create_plan(
            {
                "users": users,
                "created_by": principal.id,
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Today plan created", extra={"plan_id": str(plan.id)})
        return plan

    def update_plan(
        self, principal: Principal, plan_id: UUID, users: PlanUsers | None
    ) -> TodayPlanRecord:
        """Replace a plan's assignments; the editor becomes its author."""
        if users is None:
            raise ValidationError("Please provide all values")
        if self.repository.get_plan(plan_id) is None:
            raise NotFoundError("Not found today plan.")
        return self.repository.update_plan(
            plan_id,
            {
                "users": users,
                "created_by": principal.id,
                "updated_at": datetime.now(tz=UTC),
            },
        )

    def current_plan(self) -> dict[str, object]:
        """Return the current plan with its author name and edit time."""
        plan = self.repository.get_current_plan()
        if plan is None:
            raise NotFoundError("Not found today plan.")
        author = self.users.get_user(plan.created_by)
        modified = plan.updated_at or plan.created_at
        return {
            "id": str(plan.id),
            "users": plan.users,
            "created_by": author.display_name if author else DELETED_USER_LABEL,
            "last_modified": modified.astimezone(self.timezone).strftime(
                LAST_MODIFIED_FORMAT
            )
            if modified
            else None,
        }
