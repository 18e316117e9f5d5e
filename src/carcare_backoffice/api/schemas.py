"""Pydantic models for request bodies."""

from uuid import UUID

from pydantic import AwareDatetime, BaseModel, Field


class CheckInRequest(BaseModel):
    """Open today's work session."""

    user_id: UUID
    start_time: AwareDatetime
    start_location: dict[str, object] | None = None


class CheckOutRequest(BaseModel):
    """Close a work session."""

    session_id: UUID
    end_time: AwareDatetime
    end_location: dict[str, object] | None = None


class StartBreakRequest(BaseModel):
    session_id: UUID
    start_break: AwareDatetime


class EndBreakRequest(BaseModel):
    session_id: UUID
    break_id: UUID
    end_break: AwareDatetime


class DescriptionRequest(BaseModel):
    session_id: UUID
    description: str = Field(min_length=1)


class BreakInput(BaseModel):
    """A break as entered by an administrator."""

    id: UUID | None = None
    start_break: AwareDatetime
    end_break: AwareDatetime | None = None


class AdminSessionCreateRequest(BaseModel):
    """A closed session recorded on behalf of an employee."""

    user_id: UUID
    start_time: AwareDatetime
    end_time: AwareDatetime
    description: str = Field(min_length=1)


class AdminSessionEditRequest(BaseModel):
    """Administrative override of a session's times."""

    start_time: AwareDatetime
    end_time: AwareDatetime
    breaks: list[BreakInput] | None = None
    description: str | None = None


class ServiceRecordRequest(BaseModel):
    """A car wash or car transfer submission."""

    user_id: UUID
    location_id: UUID
    license_plate: str
    car_type: str
    subtype: str
    transfer_method: str | None = None
    transfer_distance: float | None = Field(default=None, ge=0)
    transfer_place: str | None = None
    override_price: float | None = None
    accept_suspect: bool = False


class CarTypeInput(BaseModel):
    """One row of a location price table."""

    name: str
    wash: dict[str, float | None] = Field(default_factory=dict)
    transfer: dict[str, float | None] = Field(default_factory=dict)
    transfer_base: float | None = None
    transfer_per_km: float | None = None


class LocationRequest(BaseModel):
    name: str
    location_type: str
    car_types: list[CarTypeInput]


class UserCreateRequest(BaseModel):
    """New employee profile."""

    first_name: str
    last_name: str
    email: str
    role: str | None = None
    hourly_pay: float | None = None
    phone: str | None = None
    street: str | None = None
    postal_code: str | None = None
    place: str | None = None
    ahv: str | None = None
    description: str | None = None
    location_id: UUID | None = None


class UserUpdateRequest(BaseModel):
    """Partial employee profile update."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    role: str | None = None
    hourly_pay: float | None = None
    phone: str | None = None
    street: str | None = None
    postal_code: str | None = None
    place: str | None = None
    ahv: str | None = None
    description: str | None = None
    location_id: UUID | None = None
    active: bool | None = None


class PayrollCreateRequest(BaseModel):
    """Payroll statement as prepared by an accountant."""

    user_id: UUID
    employer: dict[str, object]
    worker: dict[str, object]
    month_year: str
    place_date: str
    canton: str
    billing_procedure: str | None = None
    total_hours: float
    hourly_pay: float
    holiday_bonus: float = 0.0
    hourly_pay_gross: float
    gross_salary: float
    hourly_deduction: float
    monthly_deduction: float
    monthly_pay: float
    taxes: dict[str, object]


class PayslipSendRequest(BaseModel):
    """Payslip PDF to email, base64-encoded."""

    name: str
    email: str
    pdf: str


class TodayPlanRequest(BaseModel):
    users: dict[str, object] | list[object]
