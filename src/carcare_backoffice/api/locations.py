"""Location administration endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from carcare_backoffice.api.auth import get_principal, require_roles
from carcare_backoffice.api.common import get_container
from carcare_backoffice.api.schemas import LocationRequest
from carcare_backoffice.domain.models import Principal
from carcare_backoffice.services.locations import serialize_location
from carcare_backoffice.services.permissions import ADMIN_ONLY, ADMIN_OR_MANAGER

router = APIRouter(prefix="/location", tags=["location"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_location(
    body: LocationRequest,
    request: Request,
    principal: Principal = Depends(require_roles(ADMIN_ONLY)),
) -> dict[str, object]:
    """Create a location with its price table."""
    container = get_container(request)
    location = container.location_service.create_location(
        body.name,
        body.location_type,
        [item.model_dump() for item in body.car_types],
        created_by=principal.id,
    )
    return {"location": serialize_location(location)}


@router.get("/", dependencies=[Depends(require_roles(ADMIN_OR_MANAGER))])
async def list_locations(request: Request) -> dict[str, object]:
    """Return all locations with their assigned user counts."""
    container = get_container(request)
    locations = container.location_service.list_locations()
    return {"locations": locations, "total_locations": len(locations)}


@router.get("/names", dependencies=[Depends(get_principal)])
async def location_names(request: Request) -> dict[str, object]:
    container = get_container(request)
    return {"locations": container.location_service.list_location_names()}


@router.get("/{location_id}", dependencies=[Depends(get_principal)])
async def get_location(location_id: UUID, request: Request) -> dict[str, object]:
    container = get_container(request)
    location = container.location_service.get_location(location_id)
    return {"location": serialize_location(location)}


@router.patch("/{location_id}", dependencies=[Depends(require_roles(ADMIN_ONLY))])
async def update_location(
    location_id: UUID, body: LocationRequest, request: Request
) -> dict[str, object]:
    """Replace a location's name, type and price table."""
    container = get_container(request)
    location = container.location_service.update_location(
        location_id,
        body.name,
        body.location_type,
        [item.model_dump() for item in body.car_types],
    )
    return {"location": serialize_location(location)}


@router.delete("/{location_id}", dependencies=[Depends(require_roles(ADMIN_ONLY))])
async def delete_location(location_id: UUID, request: Request) -> dict[str, str]:
    container = get_container(request)
    container.location_service.delete_location(location_id)
    return {"msg": "Success! Location removed."}
