"""Daily staff plan endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from carcare_backoffice.api.auth import require_roles
from carcare_backoffice.api.common import get_container
from carcare_backoffice.api.schemas import TodayPlanRequest
from carcare_backoffice.domain.models import Principal
from carcare_backoffice.services.permissions import ADMIN_OR_MANAGER

router = APIRouter(prefix="/today-plan", tags=["today-plan"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_today_plan(
    body: TodayPlanRequest,
    request: Request,
    principal: Principal = Depends(require_roles(ADMIN_OR_MANAGER)),
) -> dict[str, object]:
    container = get_container(request)
    plan = container.today_plan_service.create_plan(principal, body.users)
    return {
        "id": str(plan.id),
        "users": plan.users,
        "msg": "Today Plan has been created successfully.",
    }


@router.get("/", dependencies=[Depends(require_roles(ADMIN_OR_MANAGER))])
async def get_today_plan(request: Request) -> dict[str, object]:
    """Return the current plan with author and last edit time."""
    container = get_container(request)
    return {"today_plan": container.today_plan_service.current_plan()}


@router.patch("/{plan_id}")
async def update_today_plan(
    plan_id: UUID,
    body: TodayPlanRequest,
    request: Request,
    principal: Principal = Depends(require_roles(ADMIN_OR_MANAGER)),
) -> dict[str, object]:
    container = get_container(request)
    plan = container.today_plan_service.update_plan(principal, plan_id, body.users)
    return {"users": plan.users, "msg": "Today Plan has been updated successfully."}
