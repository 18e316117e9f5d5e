"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from carcare_backoffice.adapters.row_parsing import (
    parse_datetime,
    parse_float,
    parse_uuid,
    to_json_value,
)
from carcare_backoffice.domain.models import Lifecycle, Role, UserRecord
from carcare_backoffice.errors import NotFoundError
from carcare_backoffice.services.users import UserQuery, UserRepository

_COLUMNS = (
    "id, first_name, last_name, email, role, hourly_pay, phone, street, "
    "postal_code, place, ahv, description, location_id, active, lifecycle, "
    "deleted_at, created_at, updated_at"
)


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for users."""

    client: Client

    def create_user(self, payload: dict[str, object]) -> UserRecord:
        """Insert a user row and return it."""
        response = self.client.table("users").insert(_to_row(payload)).execute()
        if not response.data:
            raise RuntimeError("Failed to create user")
        return _parse_user(response.data[0])

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return a user by id, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_user(response.data[0])

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return a user by email, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("email", email)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_user(response.data[0])

    def get_users_by_ids(self, user_ids: list[UUID]) -> list[UserRecord]:
        """Return users for a set of ids."""
        if not user_ids:
            return []
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .in_("id", [str(user_id) for user_id in user_ids])
            .execute()
        )
        return [_parse_user(row) for row in response.data or []]

    def list_users(
        self, query: UserQuery, offset: int, limit: int
    ) -> tuple[list[UserRecord], int]:
        """Return a filtered page of users."""
        request = self.client.table("users").select(_COLUMNS, count="exact")
        if query.deleted:
            request = request.eq("lifecycle", Lifecycle.DELETED.value)
        else:
            request = request.eq("lifecycle", Lifecycle.ACTIVE.value)
            if query.active is not None:
                request = request.eq("active", query.active)
        if query.roles:
            request = request.in_("role", [role.value for role in query.roles])
        if query.search:
            term = query.search.replace(",", " ").strip()
            request = request.or_(f"first_name.ilike.%{term}%,last_name.ilike.%{term}%")
        response = (
            request.order("updated_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        users = [_parse_user(row) for row in response.data or []]
        return users, response.count or 0

    def update_user(self, user_id: UUID, payload: dict[str, object]) -> UserRecord:
        """Update user columns and return the stored row."""
        row = _to_row(payload)
        row["updated_at"] = datetime.now(tz=UTC).isoformat()
        response = (
            self.client.table("users").update(row).eq("id", str(user_id)).execute()
        )
        if not response.data:
            raise NotFoundError("Not found user.")
        return _parse_user(response.data[0])

    def delete_user(self, user_id: UUID) -> bool:
        """Delete a user row."""
        response = self.client.table("users").delete().eq("id", str(user_id)).execute()
        return bool(response.data)


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    return {key: to_json_value(value) for key, value in payload.items()}


def _parse_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        first_name=str(row.get("first_name") or ""),
        last_name=str(row.get("last_name") or ""),
        email=str(row.get("email") or ""),
        role=Role(row.get("role") or Role.USER.value),
        hourly_pay=parse_float(row.get("hourly_pay")),
        phone=str(row.get("phone") or ""),
        street=row.get("street"),
        postal_code=row.get("postal_code"),
        place=row.get("place"),
        ahv=row.get("ahv"),
        description=str(row.get("description") or "..."),
        location_id=parse_uuid(row.get("location_id")),
        active=bool(row.get("active", True)),
        lifecycle=Lifecycle(row.get("lifecycle") or Lifecycle.ACTIVE.value),
        deleted_at=parse_datetime(row.get("deleted_at")),
        created_at=parse_datetime(row.get("created_at")),
        updated_at=parse_datetime(row.get("updated_at")),
    )
