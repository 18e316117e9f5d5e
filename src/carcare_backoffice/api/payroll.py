"""Payroll endpoints."""

import base64
import binascii
from dataclasses import asdict
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from carcare_backoffice.api.auth import get_principal, require_roles
from carcare_backoffice.api.common import get_container
from carcare_backoffice.api.schemas import PayrollCreateRequest, PayslipSendRequest
from carcare_backoffice.domain.models import Principal
from carcare_backoffice.errors import ValidationError
from carcare_backoffice.services.permissions import PAYROLL, ensure_self_or_roles
from carcare_backoffice.services.users import serialize_user

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.get("/check", dependencies=[Depends(require_roles(PAYROLL))])
async def check_users(request: Request, month_year: str) -> dict[str, object]:
    """Return active employees that still lack a payroll for the month."""
    container = get_container(request)
    users = container.payroll_service.users_pending_payroll(month_year)
    return {"users": [serialize_user(user) for user in users]}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_payroll(
    body: PayrollCreateRequest,
    request: Request,
    principal: Principal = Depends(require_roles(PAYROLL)),
) -> dict[str, object]:
    container = get_container(request)
    payroll = container.payroll_service.create_payroll(principal, body.model_dump())
    return {"payroll": asdict(payroll)}


@router.get("/", dependencies=[Depends(require_roles(PAYROLL))])
async def list_payrolls(
    request: Request,
    page: int = 1,
    user_id: UUID | None = None,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
) -> dict[str, object]:
    """Return a page of payrolls, optionally limited to a creation range."""
    container = get_container(request)
    filters = None
    if date_from is not None or date_to is not None:
        filters = container.report_service.build_filters(date_from, date_to)
    payrolls, total, pages = container.payroll_service.list_payrolls(
        filters, user_id, page
    )
    return {
        "payrolls": [asdict(payroll) for payroll in payrolls],
        "total_payrolls": total,
        "num_of_pages": pages,
    }


@router.get("/period/{user_id}")
async def pay_period(
    user_id: UUID,
    request: Request,
    day: date | None = None,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    """Return worked time and pay for the pay period containing `day`."""
    ensure_self_or_roles(principal, user_id, PAYROLL)
    container = get_container(request)
    summary = container.payroll_service.pay_period_summary(user_id, day)
    return {"period": asdict(summary)}


@router.post("/send", dependencies=[Depends(require_roles(PAYROLL))])
async def send_payslip(body: PayslipSendRequest, request: Request) -> dict[str, object]:
    """Email a payslip PDF to an employee."""
    try:
        pdf_content = base64.b64decode(body.pdf, validate=True)
    except binascii.Error as exc:
        raise ValidationError("Please provide pdf.") from exc
    container = get_container(request)
    delivery = await container.payroll_service.send_payslip(
        body.name, body.email, pdf_content
    )
    return {"sent": delivery.sent, "msg": delivery.message}


@router.get("/{payroll_id}", dependencies=[Depends(require_roles(PAYROLL))])
async def get_payroll(payroll_id: UUID, request: Request) -> dict[str, object]:
    container = get_container(request)
    return {"payroll": asdict(container.payroll_service.get_payroll(payroll_id))}


@router.delete("/{payroll_id}", dependencies=[Depends(require_roles(PAYROLL))])
async def delete_payroll(payroll_id: UUID, request: Request) -> dict[str, str]:
    container = get_container(request)
    container.payroll_service.delete_payroll(payroll_id)
    return {"msg": "Success! Payroll removed."}
