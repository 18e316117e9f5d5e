"""Dashboard endpoints."""

from fastapi import APIRouter, Depends, Request

from carcare_backoffice.api.auth import require_roles
from carcare_backoffice.api.common import get_container, report_filters
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.services.permissions import ADMIN_OR_MANAGER

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/totals", dependencies=[Depends(require_roles(ADMIN_OR_MANAGER))])
async def totals(
    request: Request, filters: RecordFilters = Depends(report_filters)
) -> dict[str, object]:
    """Return wash, transfer and check-in totals for the date range."""
    container = get_container(request)
    return {"total_stats": container.report_service.dashboard_totals(filters)}
