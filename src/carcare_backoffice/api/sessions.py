"""Check-in/check-out endpoints."""

from datetime import date
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response

from carcare_backoffice.adapters.spreadsheet_exporter import build_workbook
from carcare_backoffice.api.auth import get_principal, require_roles
from carcare_backoffice.api.common import (
    get_container,
    page_body,
    report_filters,
    xlsx_response,
)
from carcare_backoffice.api.schemas import (
    AdminSessionCreateRequest,
    AdminSessionEditRequest,
    CheckInRequest,
    CheckOutRequest,
    DescriptionRequest,
    EndBreakRequest,
    StartBreakRequest,
)
from carcare_backoffice.domain.models import Principal
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.domain.sessions import BreakRecord
from carcare_backoffice.services.permissions import (
    ADMIN_ONLY,
    ADMIN_OR_MANAGER,
    ensure_self_or_roles,
)
from carcare_backoffice.time_utils import format_hours_minutes

router = APIRouter(prefix="/check-in-out", tags=["check-in-out"])

_EXPORT_COLUMNS = (
    ("User", "user"),
    ("Day", "work_day"),
    ("Start", "start_time"),
    ("End", "end_time"),
    ("Hours", "hours"),
    ("Salary", "daily_salary"),
    ("Suspect", "suspect"),
    ("Description", "description"),
)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def check_in(
    body: CheckInRequest,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    """Open today's session."""
    container = get_container(request)
    session = container.session_service.check_in(
        principal, body.user_id, body.start_time, body.start_location
    )
    return {"check_in": container.report_service.describe_session(principal, session)}


@router.patch("/")
async def check_out(
    body: CheckOutRequest,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    """Close a session and compute its pay."""
    container = get_container(request)
    session = container.session_service.check_out(
        principal, body.session_id, body.end_time, body.end_location
    )
    return {"check_in": container.report_service.describe_session(principal, session)}


@router.patch("/start-break")
async def start_break(
    body: StartBreakRequest,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    container = get_container(request)
    session = container.session_service.start_break(
        principal, body.session_id, body.start_break
    )
    return {"check_in": container.report_service.describe_session(principal, session)}


@router.patch("/end-break")
async def end_break(
    body: EndBreakRequest,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    container = get_container(request)
    session = container.session_service.end_break(
        principal, body.session_id, body.break_id, body.end_break
    )
    return {"check_in": container.report_service.describe_session(principal, session)}


@router.patch("/description")
async def set_description(
    body: DescriptionRequest,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    container = get_container(request)
    session = container.session_service.set_description(
        principal, body.session_id, body.description
    )
    return {"check_in": container.report_service.describe_session(principal, session)}


@router.get("/summary", dependencies=[Depends(require_roles(ADMIN_OR_MANAGER))])
async def summary(
    request: Request, filters: RecordFilters = Depends(report_filters)
) -> dict[str, object]:
    """Return worked time and pay per employee."""
    container = get_container(request)
    return {"users": container.report_service.session_summary_by_user(filters)}


@router.post("/admin", status_code=status.HTTP_201_CREATED)
async def admin_create(
    body: AdminSessionCreateRequest,
    request: Request,
    principal: Principal = Depends(require_roles(ADMIN_ONLY)),
) -> dict[str, object]:
    """Record a finished session on behalf of an employee."""
    container = get_container(request)
    session = container.session_service.admin_create(
        principal, body.user_id, body.start_time, body.end_time, body.description
    )
    return {"check_in": container.report_service.describe_session(principal, session)}


@router.get("/admin")
async def admin_list(
    request: Request,
    page: int = 1,
    filters: RecordFilters = Depends(report_filters),
    principal: Principal = Depends(require_roles(ADMIN_OR_MANAGER)),
) -> dict[str, object]:
    """Return a page of sessions in the date range."""
    container = get_container(request)
    return page_body(container.report_service.list_sessions(principal, filters, page))


@router.patch("/admin/{session_id}")
async def admin_edit(
    session_id: UUID,
    body: AdminSessionEditRequest,
    request: Request,
    principal: Principal = Depends(require_roles(ADMIN_ONLY)),
) -> dict[str, object]:
    """Overwrite a session's times and breaks."""
    container = get_container(request)
    breaks = (
        [
            BreakRecord(
                id=item.id or uuid4(),
                start_break=item.start_break,
                end_break=item.end_break,
                active=item.end_break is None,
            )
            for item in body.breaks
        ]
        if body.breaks is not None
        else None
    )
    session = container.session_service.admin_edit(
        session_id, body.start_time, body.end_time, breaks, body.description
    )
    return {"check_in": container.report_service.describe_session(principal, session)}


@router.delete(
    "/admin/{session_id}", dependencies=[Depends(require_roles(ADMIN_ONLY))]
)
async def admin_delete(session_id: UUID, request: Request) -> dict[str, str]:
    container = get_container(request)
    container.session_service.delete_session(session_id)
    return {"msg": "Success! Check-in removed."}


@router.get("/excel")
async def export_excel(
    request: Request,
    filters: RecordFilters = Depends(report_filters),
    principal: Principal = Depends(require_roles(ADMIN_OR_MANAGER)),
) -> Response:
    """Download the sessions in the date range as a workbook."""
    container = get_container(request)
    rows, totals = container.report_service.export_session_rows(principal, filters)
    content = build_workbook(
        "Check-in-out",
        _EXPORT_COLUMNS,
        rows,
        {"hours": _total_hours(totals), "daily_salary": totals["total_salary"]},
    )
    return xlsx_response(content, "check-in-out.xlsx")


@router.get("/user/{user_id}")
async def user_sessions(
    user_id: UUID,
    request: Request,
    page: int = 1,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    """Return one employee's sessions, defaulting to the current pay period."""
    ensure_self_or_roles(principal, user_id)
    container = get_container(request)
    report_service = container.report_service
    if date_from is None and date_to is None:
        filters = report_service.pay_period_filters(user_id=user_id)
    else:
        filters = report_service.build_filters(date_from, date_to, user_id=user_id)
    return page_body(report_service.list_sessions(principal, filters, page))


@router.get("/{user_id}/date")
async def today_status(
    user_id: UUID,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    """Return whether the employee has checked in today."""
    ensure_self_or_roles(principal, user_id)
    container = get_container(request)
    return container.session_service.today_status(user_id)


@router.get("/{session_id}")
async def get_session(
    session_id: UUID,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    container = get_container(request)
    session = container.session_service.get_session(session_id)
    ensure_self_or_roles(principal, session.user_id)
    return {"check_in": container.report_service.describe_session(principal, session)}


def _total_hours(totals: dict[str, float]) -> str:
    return format_hours_minutes(int(totals["total_minutes"]))
