"""Payroll records, pay-period rollups and payslip delivery."""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from carcare_backoffice.adapters.mail_client import MailAttachment, MailClient
from carcare_backoffice.domain.models import Principal, Role, UserRecord
from carcare_backoffice.domain.payroll import PayPeriodSummary, PayrollRecord
from carcare_backoffice.domain.reports import DateRange, RecordFilters
from carcare_backoffice.errors import NotFoundError, ValidationError
from carcare_backoffice.services.sessions import WorkSessionRepository
from carcare_backoffice.services.users import UserQuery, UserRepository
from carcare_backoffice.time_utils import (
    format_hours_minutes,
    pay_period_bounds,
    pay_period_window,
    salary_for_minutes,
)

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = (
    "user_id",
    "employer",
    "worker",
    "month_year",
    "place_date",
    "canton",
    "total_hours",
    "gross_salary",
    "taxes",
)
_REQUIRED_NUMBERS = (
    "hourly_pay",
    "hourly_pay_gross",
    "hourly_deduction",
    "monthly_deduction",
    "monthly_pay",
)

PAYSLIP_BODY = """<!doctype html>
<html>
  <body>
    <p>Im Anhang finden sie ihre Lohnabrechnung.</p>
  </body>
</html>
"""


class PayrollRepository(Protocol):
    """Persistence interface for payroll records."""

    def create_payroll(self, payload: dict[str, object]) -> PayrollRecord:
        """Create a payroll record and return it."""

    def get_payroll(self, payroll_id: UUID) -> PayrollRecord | None:
        """Return a payroll by id, if present."""

    def list_payrolls(
        self,
        filters: RecordFilters | None,
        user_id: UUID | None,
        offset: int,
        limit: int,
    ) -> tuple[list[PayrollRecord], int]:
        """Return a page of payrolls by creation desc and the total count."""

    def user_ids_for_month(self, month_year: str) -> set[UUID]:
        """Return ids of users that already have a payroll for the month."""

    def delete_payroll(self, payroll_id: UUID) -> bool:
        """Delete a payroll. Return false when nothing was removed."""


@dataclass(frozen=True)
class PayslipDelivery:
    """Outcome of a payslip email."""

    sent: bool
    message: str


@dataclass
class PayrollService:
    """Service for payroll pre-checks, records and delivery."""

    repository: PayrollRepository
    users: UserRepository
    sessions: WorkSessionRepository
    mail_client: MailClient
    timezone: ZoneInfo
    page_size: int = 10
    pay_period_start_day: int = 20
    candidate_batch_size: int = 500

    def users_pending_payroll(
        self, month_year: str, roles: tuple[Role, ...] = (Role.USER,)
    ) -> list[UserRecord]:
        """Return active users of the roles without a payroll for the month."""
        if not month_year:
            raise ValidationError("Please provide all values")
        done = self.repository.user_ids_for_month(month_year)
        query = UserQuery(roles=roles, active=True, deleted=False)
        pending: list[UserRecord] = []
        offset = 0
        while True:
            users, total = self.users.list_users(
                query, offset=offset, limit=self.candidate_batch_size
            )
            pending.extend(user for user in users if user.id not in done)
            offset += len(users)
            if not users or offset >= total:
                return pending

    def pay_period_summary(
        self, user_id: UUID, day: date | None = None
    ) -> PayPeriodSummary:
        """Return worked minutes and pay of closed sessions in the period."""
        day = day or datetime.now(tz=self.timezone).date()
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundError("Not found user.")
        start, end = pay_period_bounds(day, self.pay_period_start_day)
        window_start, window_end = pay_period_window(
            day, self.timezone, self.pay_period_start_day
        )
        filters = RecordFilters(
            date_range=DateRange(start=window_start, end=window_end), user_id=user_id
        )
        sessions = [
            session
            for session in self.sessions.list_sessions_in_range(filters)
            if session.user_id == user_id and session.closed
        ]
        minutes = sum(session.work_minutes or 0 for session in sessions)
        return PayPeriodSummary(
            user_id=user_id,
            period_start=start,
            period_end=end,
            sessions=len(sessions),
            work_minutes=minutes,
            hours=format_hours_minutes(minutes),
            salary=salary_for_minutes(minutes, user.hourly_pay),
        )

    def create_payroll(
        self, principal: Principal, payload: dict[str, object]
    ) -> PayrollRecord:
        """Validate and store a payroll statement."""
        missing = [name for name in _REQUIRED_FIELDS if not payload.get(name)]
        missing += [name for name in _REQUIRED_NUMBERS if payload.get(name) is None]
        if missing:
            raise ValidationError("Please provide all values.")
        if self.users.get_user(payload["user_id"]) is None:
            raise NotFoundError("Not found user.")
        return self.repository.create_payroll({**payload, "created_by": principal.id})

    def get_payroll(self, payroll_id: UUID) -> PayrollRecord:
        payroll = self.repository.get_payroll(payroll_id)
        if payroll is None:
            raise NotFoundError("Not Found Payroll.")
        return payroll

    def list_payrolls(
        self,
        filters: RecordFilters | None = None,
        user_id: UUID | None = None,
        page: int = 1,
    ) -> tuple[list[PayrollRecord], int, int]:
        """Return a page of payrolls, the total and the page count."""
        offset = (max(page, 1) - 1) * self.page_size
        payrolls, total = self.repository.list_payrolls(
            filters, user_id, offset, self.page_size
        )
        return payrolls, total, math.ceil(total / self.page_size)

    def delete_payroll(self, payroll_id: UUID) -> None:
        if not self.repository.delete_payroll(payroll_id):
            raise NotFoundError("Not found payroll.")

    async def send_payslip(
        self, name: str, email: str, pdf_content: bytes
    ) -> PayslipDelivery:
        """Email a payslip PDF. Failures are logged, never raised."""
        if not pdf_content:
            raise ValidationError("Please provide pdf.")
        subject = f"Lohnabrechnung - {name}"
        try:
            await self.mail_client.send(
                to=email,
                subject=subject,
                html_body=PAYSLIP_BODY,
                attachments=[
                    MailAttachment(filename=f"{subject}.pdf", content=pdf_content)
                ],
            )
        except Exception:
            logger.exception("Failed to send payslip", extra={"email": email})
            return PayslipDelivery(sent=False, message="Email could not be sent.")
        return PayslipDelivery(sent=True, message=f"Email sent to {email}.")
