"""Check-in/check-out state machine with break accounting."""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Protocol
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from carcare_backoffice.domain.models import Principal, UserRecord
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.domain.sessions import BreakRecord, WorkSessionRecord
from carcare_backoffice.errors import ConflictError, NotFoundError, ValidationError
from carcare_backoffice.services.permissions import ensure_self_or_roles
from carcare_backoffice.time_utils import (
    end_of_day,
    is_suspect_end_time,
    local_day,
    minutes_between,
    salary_for_minutes,
)

logger = logging.getLogger(__name__)


class WorkSessionRepository(Protocol):
    """Persistence interface for work sessions."""

    def create_session(
        self, user_id: UUID, payload: dict[str, object]
    ) -> WorkSessionRecord:
        """Create a session and return it.

        Raises ConflictError when `(user_id, work_day)` already exists.
        """

    def get_session(self, session_id: UUID) -> WorkSessionRecord | None:
        """Return a session by id, if present."""

    def find_for_day(self, user_id: UUID, work_day: date) -> WorkSessionRecord | None:
        """Return the user's session for a calendar day, if present."""

    def update_session(
        self, session_id: UUID, payload: dict[str, object]
    ) -> WorkSessionRecord:
        """Update session fields and return the stored session."""

    def delete_session(self, session_id: UUID) -> bool:
        """Hard-delete a session. Return false when nothing was removed."""

    def list_sessions(
        self, filters: RecordFilters, offset: int, limit: int
    ) -> tuple[list[WorkSessionRecord], int]:
        """Return a page of sessions by start time desc and the total count."""

    def list_sessions_in_range(
        self, filters: RecordFilters
    ) -> list[WorkSessionRecord]:
        """Return all sessions matching the filters."""


class UserLookup(Protocol):
    """Read access to employees."""

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return a user by id, if present."""


@dataclass(frozen=True)
class SessionWorkResult:
    """Derived worked time and pay for a closed session."""

    work_minutes: int
    daily_salary: float
    suspect: bool


@dataclass
class SessionService:
    """State machine for one work session per user per day."""

    repository: WorkSessionRepository
    users: UserLookup
    timezone: ZoneInfo

    def check_in(
        self,
        principal: Principal,
        user_id: UUID,
        start_time: datetime,
        start_location: dict[str, object] | None = None,
    ) -> WorkSessionRecord:
        """Open today's session for a user."""
        ensure_self_or_roles(principal, user_id)
        self._require_user(user_id)
        work_day = local_day(start_time, self.timezone)
        if self.repository.find_for_day(user_id, work_day) is not None:
            raise ConflictError("You can't create check-in twice for the same day.")
        session = self.repository.create_session(
            user_id,
            {
                "work_day": work_day,
                "start_time": start_time,
                "end_time": None,
                "closed": False,
                "active": True,
                "breaks": [],
                "suspect": True,
                "start_location": start_location,
                "created_by": principal.id,
            },
        )
        logger.info(
            "Checked in", extra={"user_id": str(user_id), "session_id": str(session.id)}
        )
        return session

    def start_break(
        self, principal: Principal, session_id: UUID, start_break: datetime
    ) -> WorkSessionRecord:
        """Open a break on an active session."""
        session = self._require_session(session_id)
        ensure_self_or_roles(principal, session.user_id)
        if session.closed:
            raise ConflictError("The session is already checked out.")
        if session.open_break is not None:
            raise ConflictError("A break is already active.")
        if start_break < session.start_time:
            raise ValidationError("Break must not start before check-in.")
        breaks = [
            *session.breaks,
            BreakRecord(id=uuid4(), start_break=start_break, end_break=None),
        ]
        return self.repository.update_session(session_id, {"breaks": breaks})

    def end_break(
        self,
        principal: Principal,
        session_id: UUID,
        break_id: UUID,
        end_break: datetime,
    ) -> WorkSessionRecord:
        """Close an open break."""
        session = self._require_session(session_id)
        ensure_self_or_roles(principal, session.user_id)
        target = next(
            (item for item in session.breaks if item.id == break_id and item.active),
            None,
        )
        if target is None:
            raise NotFoundError("Not found active break.")
        if end_break < target.start_break:
            raise ValidationError("Break end must not precede its start.")
        breaks = [
            replace(item, end_break=end_break, active=False)
            if item.id == break_id
            else item
            for item in session.breaks
        ]
        return self.repository.update_session(session_id, {"breaks": breaks})

    def check_out(
        self,
        principal: Principal,
        session_id: UUID,
        end_time: datetime,
        end_location: dict[str, object] | None = None,
    ) -> WorkSessionRecord:
        """Close a session and derive worked minutes and pay.

        A break still open at checkout ends at the checkout time.
        """
        session = self._require_session(session_id)
        ensure_self_or_roles(principal, session.user_id)
        if session.closed:
            raise ConflictError("The session is already checked out.")
        breaks = _close_open_breaks(session.breaks, end_time)
        user = self._require_user(session.user_id)
        result = compute_session_work(
            session.start_time, end_time, breaks, user.hourly_pay, self.timezone
        )
        updated = self.repository.update_session(
            session_id,
            {
                "end_time": end_time,
                "end_location": end_location,
                "breaks": breaks,
                "closed": True,
                "active": False,
                "work_minutes": result.work_minutes,
                "daily_salary": result.daily_salary,
                "suspect": result.suspect,
            },
        )
        logger.info(
            "Checked out",
            extra={"session_id": str(session_id), "minutes": result.work_minutes},
        )
        return updated

    def admin_edit(  # noqa: PLR0913
        self,
        session_id: UUID,
        start_time: datetime,
        end_time: datetime,
        breaks: list[BreakRecord] | None = None,
        description: str | None = None,
    ) -> WorkSessionRecord:
        """Overwrite a session's times and breaks, bypassing the guards."""
        session = self._require_session(session_id)
        resolved_breaks = _close_open_breaks(
            tuple(breaks) if breaks is not None else session.breaks, end_time
        )
        user = self._require_user(session.user_id)
        result = compute_session_work(
            start_time, end_time, resolved_breaks, user.hourly_pay, self.timezone
        )
        payload: dict[str, object] = {
            "work_day": local_day(start_time, self.timezone),
            "start_time": start_time,
            "end_time": end_time,
            "breaks": resolved_breaks,
            "closed": True,
            "active": False,
            "work_minutes": result.work_minutes,
            "daily_salary": result.daily_salary,
            "suspect": result.suspect,
        }
        if description is not None:
            payload["description"] = description
        logger.info("Session edited by admin", extra={"session_id": str(session_id)})
        return self.repository.update_session(session_id, payload)

    def admin_create(
        self,
        principal: Principal,
        user_id: UUID,
        start_time: datetime,
        end_time: datetime,
        description: str,
    ) -> WorkSessionRecord:
        """Record an already closed session on behalf of an employee."""
        user = self._require_user(user_id)
        work_day = local_day(start_time, self.timezone)
        if self.repository.find_for_day(user_id, work_day) is not None:
            raise ConflictError("You can't create check-in twice for the same day.")
        result = compute_session_work(
            start_time, end_time, (), user.hourly_pay, self.timezone
        )
        return self.repository.create_session(
            user_id,
            {
                "work_day": work_day,
                "start_time": start_time,
                "end_time": end_time,
                "closed": True,
                "active": False,
                "breaks": [],
                "work_minutes": result.work_minutes,
                "daily_salary": result.daily_salary,
                "suspect": result.suspect,
                "description": description,
                "created_by": principal.id,
            },
        )

    def set_description(
        self, principal: Principal, session_id: UUID, description: str
    ) -> WorkSessionRecord:
        """Attach a free-text note to a session."""
        session = self._require_session(session_id)
        ensure_self_or_roles(principal, session.user_id)
        return self.repository.update_session(
            session_id, {"description": description}
        )

    def today_status(self, user_id: UUID, now: datetime | None = None) -> dict:
        """Return the user's session state for today."""
        moment = now or datetime.now(tz=self.timezone)
        session = self.repository.find_for_day(
            user_id, local_day(moment, self.timezone)
        )
        if session is None:
            return {"active": False, "attempt": 0}
        open_break = session.open_break
        return {
            "id": str(session.id),
            "active": session.active,
            "attempt": 1,
            "start_time": session.start_time.isoformat(),
            "end_time": session.end_time.isoformat() if session.end_time else None,
            "nominal_end_time": nominal_end_time(session, self.timezone).isoformat(),
            "open_break_id": str(open_break.id) if open_break else None,
            "description": session.description,
        }

    def get_session(self, session_id: UUID) -> WorkSessionRecord:
        """Return a session or raise NotFoundError."""
        return self._require_session(session_id)

    def delete_session(self, session_id: UUID) -> None:
        """Hard-delete a session."""
        if not self.repository.delete_session(session_id):
            raise NotFoundError("Not found check-in")

    def _require_session(self, session_id: UUID) -> WorkSessionRecord:
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFoundError("Not found check-in")
        return session

    def _require_user(self, user_id: UUID) -> UserRecord:
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundError("Not found user.")
        return user


def compute_session_work(
    start_time: datetime,
    end_time: datetime,
    breaks: tuple[BreakRecord, ...] | list[BreakRecord],
    hourly_rate: float,
    tz: ZoneInfo | None = None,
) -> SessionWorkResult:
    """Derive worked minutes, pay and the suspect flag for a closed session."""
    if end_time < start_time:
        raise ValidationError("End time must not precede start time.")
    for item in breaks:
        _validate_break(item, start_time, end_time)
    break_minutes = sum(
        minutes_between(item.start_break, item.end_break)
        for item in breaks
        if item.end_break is not None
    )
    work_minutes = max(minutes_between(start_time, end_time) - break_minutes, 0)
    return SessionWorkResult(
        work_minutes=work_minutes,
        daily_salary=salary_for_minutes(work_minutes, hourly_rate),
        suspect=is_suspect_end_time(end_time, tz),
    )


def nominal_end_time(session: WorkSessionRecord, tz: ZoneInfo) -> datetime:
    """Return the real end time, or 23:59 of the work day while still open."""
    if session.end_time is not None:
        return session.end_time
    return end_of_day(session.work_day, tz)


def _close_open_breaks(
    breaks: tuple[BreakRecord, ...], end_time: datetime
) -> tuple[BreakRecord, ...]:
    return tuple(
        replace(item, end_break=end_time, active=False) if item.active else item
        for item in breaks
    )


def _validate_break(
    item: BreakRecord, start_time: datetime, end_time: datetime
) -> None:
    if item.start_break < start_time or item.start_break > end_time:
        raise ValidationError("Break must lie within the session.")
    if item.end_break is None:
        return
    if item.end_break < item.start_break:
        raise ValidationError("Break end must not precede its start.")
    if item.end_break > end_time:
        raise ValidationError("Break must lie within the session.")
