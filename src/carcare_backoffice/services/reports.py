"""Date-windowed listings, rollups and dashboard totals."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal, Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from carcare_backoffice.domain.locations import ServiceKind
from carcare_backoffice.domain.models import Principal, UserRecord
from carcare_backoffice.domain.reports import (
    DateRange,
    GroupSummary,
    GroupTotals,
    Page,
    RecordFilters,
)
from carcare_backoffice.domain.service_records import ServiceRecord
from carcare_backoffice.domain.sessions import WorkSessionRecord
from carcare_backoffice.services.locations import LocationRepository
from carcare_backoffice.services.service_records import ServiceRecordRepository
from carcare_backoffice.services.sessions import (
    WorkSessionRepository,
    nominal_end_time,
)
from carcare_backoffice.time_utils import (
    date_range_window,
    format_hours_minutes,
    pay_period_window,
)

DELETED_USER_LABEL = "User Deleted"


class UserDirectory(Protocol):
    """Display-name lookups used to join rows."""

    def get_users_by_ids(self, user_ids: list[UUID]) -> list[UserRecord]:
        """Return the users with the given ids."""


@dataclass
class ReportService:
    """Builds paginated, grouped and redacted summaries."""

    sessions: WorkSessionRepository
    records: dict[ServiceKind, ServiceRecordRepository]
    users: UserDirectory
    locations: LocationRepository
    timezone: ZoneInfo
    page_size: int = 10
    pay_period_start_day: int = 20

    def build_filters(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        user_id: UUID | None = None,
        location_id: UUID | None = None,
        search: str | None = None,
    ) -> RecordFilters:
        """Return filters over `[from, to]` days, defaulting to today."""
        start, end = date_range_window(date_from, date_to, self.timezone)
        return RecordFilters(
            date_range=DateRange(start=start, end=end),
            user_id=user_id,
            location_id=location_id,
            search=search.strip() if search and search.strip() else None,
        )

    def pay_period_filters(
        self, day: date | None = None, user_id: UUID | None = None
    ) -> RecordFilters:
        """Return filters over the pay period containing `day` (default today)."""
        anchor = day or datetime.now(tz=self.timezone).date()
        start, end = pay_period_window(
            anchor, self.timezone, self.pay_period_start_day
        )
        return RecordFilters(date_range=DateRange(start=start, end=end), user_id=user_id)

    def list_service_records(
        self,
        principal: Principal,
        kind: ServiceKind,
        filters: RecordFilters,
        page: int = 1,
    ) -> Page:
        """Return one page of records with totals over the whole range."""
        repository = self.records[kind]
        offset = (max(page, 1) - 1) * self.page_size
        rows, total = repository.list_records(filters, offset, self.page_size)
        everything = repository.list_records_in_range(filters)
        names, locations = self._names(rows)
        return Page(
            rows=[
                serialize_record(record, principal, names, locations) for record in rows
            ],
            total_count=total,
            num_of_pages=math.ceil(total / self.page_size),
            totals={"total_price": _sum_prices(everything)},
        )

    def list_sessions(
        self, principal: Principal, filters: RecordFilters, page: int = 1
    ) -> Page:
        """Return one page of sessions by start time desc."""
        offset = (max(page, 1) - 1) * self.page_size
        rows, total = self.sessions.list_sessions(filters, offset, self.page_size)
        everything = self.sessions.list_sessions_in_range(filters)
        names, _ = self._names(rows, with_locations=False)
        return Page(
            rows=[
                serialize_session(session, principal, names, self.timezone)
                for session in rows
            ],
            total_count=total,
            num_of_pages=math.ceil(total / self.page_size),
            totals={
                "total_minutes": float(
                    sum(item.work_minutes or 0 for item in everything)
                ),
                "total_salary": round(
                    sum(item.daily_salary or 0.0 for item in everything), 2
                ),
            },
        )

    def group_totals(
        self,
        kind: ServiceKind,
        filters: RecordFilters,
        by: Literal["user", "location"] = "user",
    ) -> GroupSummary:
        """Return count and price sum per user or per location and overall."""
        records = self.records[kind].list_records_in_range(filters)
        names, locations = self._names(records)
        labels = names if by == "user" else locations
        groups: dict[UUID, list[ServiceRecord]] = {}
        for record in records:
            key = record.user_id if by == "user" else record.location_id
            groups.setdefault(key, []).append(record)
        totals = [
            GroupTotals(
                key=str(key),
                label=labels.get(key, DELETED_USER_LABEL if by == "user" else ""),
                count=len(items),
                total=_sum_prices(items),
            )
            for key, items in groups.items()
        ]
        return GroupSummary(
            groups=sorted(totals, key=lambda item: (-item.total, item.label)),
            count=len(records),
            total=_sum_prices(records),
        )

    def session_summary_by_user(self, filters: RecordFilters) -> list[dict]:
        """Return worked minutes and salary per user."""
        sessions = self.sessions.list_sessions_in_range(filters)
        names, _ = self._names(sessions, with_locations=False)
        groups: dict[UUID, list[WorkSessionRecord]] = {}
        for session in sessions:
            groups.setdefault(session.user_id, []).append(session)
        summary = []
        for user_id, items in groups.items():
            minutes = sum(item.work_minutes or 0 for item in items)
            summary.append(
                {
                    "user_id": str(user_id),
                    "user": names.get(user_id, DELETED_USER_LABEL),
                    "sessions": len(items),
                    "suspect_sessions": sum(1 for item in items if item.suspect),
                    "work_minutes": minutes,
                    "hours": format_hours_minutes(minutes),
                    "salary": round(sum(item.daily_salary or 0.0 for item in items), 2),
                }
            )
        return sorted(summary, key=lambda row: row["user"])

    def dashboard_totals(self, filters: RecordFilters) -> dict[str, dict]:
        """Return counts and sums for washes, transfers and sessions."""
        washes = self.records[ServiceKind.WASH].list_records_in_range(filters)
        transfers = self.records[ServiceKind.TRANSFER].list_records_in_range(filters)
        sessions = self.sessions.list_sessions_in_range(filters)
        return {
            "car_wash": {"total_count": len(washes), "total_price": _sum_prices(washes)},
            "car_transfer": {
                "total_count": len(transfers),
                "total_price": _sum_prices(transfers),
            },
            "check_in_out": {
                "total_check_ins": len(sessions),
                "total_salary": round(
                    sum(item.daily_salary or 0.0 for item in sessions), 2
                ),
            },
        }

    def export_service_rows(
        self, principal: Principal, kind: ServiceKind, filters: RecordFilters
    ) -> tuple[list[dict[str, object]], dict[str, float]]:
        """Return every matching row, joined and redacted, plus totals."""
        records = self.records[kind].list_records_in_range(filters)
        records.sort(
            key=lambda item: item.created_at.timestamp() if item.created_at else 0.0,
            reverse=True,
        )
        names, locations = self._names(records)
        rows = [
            serialize_record(record, principal, names, locations) for record in records
        ]
        return rows, {"total_count": len(rows), "total_price": _sum_prices(records)}

    def export_session_rows(
        self, principal: Principal, filters: RecordFilters
    ) -> tuple[list[dict[str, object]], dict[str, float]]:
        """Return every matching session, joined and redacted, plus totals."""
        sessions = self.sessions.list_sessions_in_range(filters)
        sessions.sort(key=lambda item: item.start_time, reverse=True)
        names, _ = self._names(sessions, with_locations=False)
        rows = [
            serialize_session(session, principal, names, self.timezone)
            for session in sessions
        ]
        return rows, {
            "total_count": len(rows),
            "total_minutes": sum(item.work_minutes or 0 for item in sessions),
            "total_salary": round(sum(item.daily_salary or 0.0 for item in sessions), 2),
        }

    def describe_record(
        self, principal: Principal, record: ServiceRecord
    ) -> dict[str, object]:
        """Serialize a single record with its user and location names."""
        names, locations = self._names([record])
        return serialize_record(record, principal, names, locations)

    def describe_session(
        self, principal: Principal, session: WorkSessionRecord
    ) -> dict[str, object]:
        """Serialize a single session with its user name."""
        names, _ = self._names([session], with_locations=False)
        return serialize_session(session, principal, names, self.timezone)

    def _names(
        self,
        rows: Iterable[ServiceRecord | WorkSessionRecord],
        with_locations: bool = True,
    ) -> tuple[dict[UUID, str], dict[UUID, str]]:
        items = list(rows)
        user_ids = sorted({item.user_id for item in items}, key=str)
        users = self.users.get_users_by_ids(user_ids) if user_ids else []
        names = {user.id: user.display_name for user in users}
        locations: dict[UUID, str] = {}
        if with_locations and items:
            locations = {
                location.id: location.name
                for location in self.locations.list_locations()
            }
        return names, locations


def can_see_amounts(principal: Principal, owner_id: UUID) -> bool:
    """Admins see every amount; other roles only their own."""
    return principal.is_admin or principal.id == owner_id


def serialize_record(
    record: ServiceRecord,
    principal: Principal,
    names: dict[UUID, str],
    locations: dict[UUID, str],
) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(record.id),
        "kind": record.kind.value,
        "user_id": str(record.user_id),
        "user": names.get(record.user_id, DELETED_USER_LABEL),
        "location_id": str(record.location_id),
        "location": locations.get(record.location_id),
        "date": record.created_at.isoformat() if record.created_at else None,
        "license_plate": record.license_plate,
        "car_type": record.car_type,
        "subtype": record.subtype,
        "transfer_method": record.transfer_method,
        "transfer_distance": record.transfer_distance,
        "transfer_place": record.transfer_place,
        "suspect": record.suspect,
    }
    if can_see_amounts(principal, record.user_id):
        row["final_price"] = record.final_price
    return row


def serialize_session(
    session: WorkSessionRecord,
    principal: Principal,
    names: dict[UUID, str],
    tz: ZoneInfo,
) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(session.id),
        "user_id": str(session.user_id),
        "user": names.get(session.user_id, DELETED_USER_LABEL),
        "work_day": session.work_day.isoformat(),
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "nominal_end_time": nominal_end_time(session, tz).isoformat(),
        "active": session.active,
        "closed": session.closed,
        "breaks": [
            {
                "id": str(item.id),
                "start_break": item.start_break.isoformat(),
                "end_break": item.end_break.isoformat() if item.end_break else None,
                "active": item.active,
            }
            for item in session.breaks
        ],
        "work_minutes": session.work_minutes,
        "hours": format_hours_minutes(session.work_minutes)
        if session.work_minutes is not None
        else None,
        "suspect": session.suspect,
        "paid": session.paid,
        "description": session.description,
    }
    if can_see_amounts(principal, session.user_id):
        row["daily_salary"] = session.daily_salary
    return row


def _sum_prices(records: Iterable[ServiceRecord]) -> float:
    return round(sum(record.final_price for record in records), 2)
