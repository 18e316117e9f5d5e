"""Employee administration endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from carcare_backoffice.api.auth import get_principal, require_roles
from carcare_backoffice.api.common import get_container
from carcare_backoffice.api.schemas import UserCreateRequest, UserUpdateRequest
from carcare_backoffice.domain.models import Principal, Role
from carcare_backoffice.errors import ValidationError
from carcare_backoffice.services.permissions import (
    ADMIN_ONLY,
    ADMIN_OR_MANAGER,
    ensure_self_or_roles,
)
from carcare_backoffice.services.users import UserQuery, serialize_user

router = APIRouter(prefix="/user", tags=["user"])


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(ADMIN_ONLY))],
)
async def create_user(body: UserCreateRequest, request: Request) -> dict[str, object]:
    container = get_container(request)
    user = container.user_service.create_user(body.model_dump())
    return {"user": serialize_user(user)}


@router.get("/", dependencies=[Depends(require_roles(ADMIN_OR_MANAGER))])
async def list_users(
    request: Request,
    page: int = 1,
    search: str | None = None,
    role: list[str] = Query(default=[]),
    active: bool | None = True,
    deleted: bool = False,
) -> dict[str, object]:
    """Return a page of employees, optionally only soft-deleted ones."""
    try:
        roles = tuple(Role(item) for item in role)
    except ValueError as exc:
        raise ValidationError("The role type is not valid.") from exc
    container = get_container(request)
    users, total, pages = container.user_service.list_users(
        UserQuery(search=search, roles=roles, active=active, deleted=deleted), page
    )
    return {
        "users": [serialize_user(user) for user in users],
        "total_users": total,
        "num_of_pages": pages,
    }


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict[str, object]:
    ensure_self_or_roles(principal, user_id)
    container = get_container(request)
    return {"user": serialize_user(container.user_service.get_user(user_id))}


@router.patch("/{user_id}", dependencies=[Depends(require_roles(ADMIN_ONLY))])
async def update_user(
    user_id: UUID, body: UserUpdateRequest, request: Request
) -> dict[str, object]:
    container = get_container(request)
    user = container.user_service.update_user(user_id, body.model_dump())
    return {"user": serialize_user(user)}


@router.delete("/{user_id}", dependencies=[Depends(require_roles(ADMIN_ONLY))])
async def delete_user(user_id: UUID, request: Request) -> dict[str, str]:
    """Move an employee to the deleted list."""
    container = get_container(request)
    container.user_service.soft_delete(user_id)
    return {"msg": "Success! User removed."}


@router.patch(
    "/{user_id}/restore", dependencies=[Depends(require_roles(ADMIN_ONLY))]
)
async def restore_user(user_id: UUID, request: Request) -> dict[str, object]:
    container = get_container(request)
    user = container.user_service.restore(user_id)
    return {"user": serialize_user(user)}


@router.delete(
    "/{user_id}/permanent", dependencies=[Depends(require_roles(ADMIN_ONLY))]
)
async def delete_user_permanently(user_id: UUID, request: Request) -> dict[str, str]:
    container = get_container(request)
    container.user_service.delete_permanently(user_id)
    return {"msg": "Success! User deleted permanently."}
