"""Domain models for payroll."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class PayrollRecord:
    """A payroll statement issued to an employee."""

    id: UUID
    user_id: UUID
    month_year: str
    employer: dict[str, object] = field(default_factory=dict)
    worker: dict[str, object] = field(default_factory=dict)
    place_date: str | None = None
    canton: str | None = None
    billing_procedure: str | None = None
    total_hours: float = 0.0
    hourly_pay: float = 0.0
    holiday_bonus: float = 0.0
    hourly_pay_gross: float = 0.0
    gross_salary: float = 0.0
    hourly_deduction: float = 0.0
    monthly_deduction: float = 0.0
    monthly_pay: float = 0.0
    taxes: dict[str, object] = field(default_factory=dict)
    created_by: UUID | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class PayPeriodSummary:
    """Worked time and pay of one employee inside a pay period."""

    user_id: UUID
    period_start: date
    period_end: date
    sessions: int
    work_minutes: int
    hours: str
    salary: float
