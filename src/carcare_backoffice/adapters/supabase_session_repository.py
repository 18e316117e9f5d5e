"""Supabase-backed work session repository."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from carcare_backoffice.adapters.row_parsing import (
    parse_date,
    parse_datetime,
    parse_float,
    parse_uuid,
    to_json_value,
)
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.domain.sessions import BreakRecord, WorkSessionRecord
from carcare_backoffice.errors import ConflictError, NotFoundError
from carcare_backoffice.services.sessions import WorkSessionRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseWorkSessionRepository(WorkSessionRepository):
    """Supabase implementation for work sessions.

    The table carries a unique index on `(user_id, work_day)`, so two
    concurrent check-ins for the same day cannot both be stored.
    """

    client: Client

    def create_session(
        self, user_id: UUID, payload: dict[str, object]
    ) -> WorkSessionRecord:
        """Insert a session row and return it."""
        try:
            response = (
                self.client.table("work_sessions")
                .insert({"user_id": str(user_id), **_to_row(payload)})
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise ConflictError(
                    "You can't create check-in twice for the same day."
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create work session")
        return _parse_session(response.data[0])

    def get_session(self, session_id: UUID) -> WorkSessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("work_sessions")
            .select("*")
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def find_for_day(self, user_id: UUID, work_day: date) -> WorkSessionRecord | None:
        """Return the user's session for a calendar day, if present."""
        response = (
            self.client.table("work_sessions")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("work_day", work_day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def update_session(
        self, session_id: UUID, payload: dict[str, object]
    ) -> WorkSessionRecord:
        """Update session columns and return the stored row."""
        try:
            response = (
                self.client.table("work_sessions")
                .update(_to_row(payload))
                .eq("id", str(session_id))
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise ConflictError(
                    "You can't create check-in twice for the same day."
                ) from exc
            raise
        if not response.data:
            raise NotFoundError("Not found check-in")
        return _parse_session(response.data[0])

    def delete_session(self, session_id: UUID) -> bool:
        """Delete a session row."""
        response = (
            self.client.table("work_sessions")
            .delete()
            .eq("id", str(session_id))
            .execute()
        )
        return bool(response.data)

    def list_sessions(
        self, filters: RecordFilters, offset: int, limit: int
    ) -> tuple[list[WorkSessionRecord], int]:
        """Return a page of sessions by start time desc and the total count."""
        response = (
            self._filtered(filters, count="exact")
            .order("start_time", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        sessions = [_parse_session(row) for row in response.data or []]
        return sessions, response.count or 0

    def list_sessions_in_range(
        self, filters: RecordFilters
    ) -> list[WorkSessionRecord]:
        """Return all sessions matching the filters."""
        response = self._filtered(filters).order("start_time", desc=True).execute()
        return [_parse_session(row) for row in response.data or []]

    def _filtered(self, filters: RecordFilters, count: str | None = None):
        request = (
            self.client.table("work_sessions")
            .select("*", count=count)
            .gte("start_time", filters.date_range.start.isoformat())
            .lt("start_time", filters.date_range.end.isoformat())
        )
        if filters.user_id is not None:
            request = request.eq("user_id", str(filters.user_id))
        return request


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    row: dict[str, object] = {}
    for key, value in payload.items():
        if key == "breaks":
            row["breaks_json"] = [_break_to_json(item) for item in value]
        else:
            row[key] = to_json_value(value)
    return row


def _break_to_json(item: BreakRecord) -> dict[str, object]:
    return {
        "id": str(item.id),
        "start_break": item.start_break.isoformat(),
        "end_break": item.end_break.isoformat() if item.end_break else None,
        "active": item.active,
    }


def _parse_break(raw: dict[str, object]) -> BreakRecord:
    return BreakRecord(
        id=UUID(str(raw["id"])),
        start_break=parse_datetime(raw["start_break"]),
        end_break=parse_datetime(raw.get("end_break")),
        active=bool(raw.get("active", raw.get("end_break") is None)),
    )


def _parse_session(row: dict[str, object]) -> WorkSessionRecord:
    work_minutes = row.get("work_minutes")
    return WorkSessionRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        work_day=parse_date(row["work_day"]),
        start_time=parse_datetime(row["start_time"]),
        end_time=parse_datetime(row.get("end_time")),
        closed=bool(row.get("closed", False)),
        active=bool(row.get("active", True)),
        breaks=tuple(_parse_break(item) for item in row.get("breaks_json") or []),
        work_minutes=int(work_minutes) if work_minutes is not None else None,
        daily_salary=parse_float(row.get("daily_salary"), default=None),
        suspect=bool(row.get("suspect", True)),
        paid=bool(row.get("paid", False)),
        description=row.get("description"),
        start_location=row.get("start_location"),
        end_location=row.get("end_location"),
        created_by=parse_uuid(row.get("created_by")),
        created_at=parse_datetime(row.get("created_at")),
    )
