"""Supabase-backed daily plan repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from carcare_backoffice.adapters.row_parsing import parse_datetime, to_json_value
from carcare_backoffice.domain.today_plan import TodayPlanRecord
from carcare_backoffice.services.today_plan import TodayPlanRepository

_TABLE = "today_plans"


@dataclass
class SupabaseTodayPlanRepository(TodayPlanRepository):
    """Supabase implementation for the shared daily plan."""

    client: Client

    def create_plan(self, payload: dict[str, object]) -> TodayPlanRecord:
        """Insert a plan row and return it."""
        response = self.client.table(_TABLE).insert(_to_row(payload)).execute()
        if not response.data:
            raise RuntimeError("Failed to create today plan")
        return _parse_plan(response.data[0])

    def get_plan(self, plan_id: UUID) -> TodayPlanRecord | None:
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(plan_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def get_current_plan(self) -> TodayPlanRecord | None:
        """Return the newest plan row."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def update_plan(self, plan_id: UUID, payload: dict[str, object]) -> TodayPlanRecord:
        response = (
            self.client.table(_TABLE)
            .update(_to_row(payload))
            .eq("id", str(plan_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update today plan")
        return _parse_plan(response.data[0])


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    row = {key: to_json_value(value) for key, value in payload.items()}
    if "users" in row:
        row["users_json"] = row.pop("users")
    return row


def _parse_plan(row: dict[str, object]) -> TodayPlanRecord:
    return TodayPlanRecord(
        id=UUID(str(row["id"])),
        created_by=UUID(str(row["created_by"])),
        users=row.get("users_json") or {},
        created_at=parse_datetime(row.get("created_at")),
        updated_at=parse_datetime(row.get("updated_at")),
    )
