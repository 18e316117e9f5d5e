"""Bearer-token authentication gate."""

from __future__ import annotations

from collections.abc import Callable, Collection
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from carcare_backoffice.domain.models import Principal, Role
from carcare_backoffice.errors import UnauthorizedError
from carcare_backoffice.services.permissions import ensure_role

if TYPE_CHECKING:
    from carcare_backoffice.containers import AppContainer

TOKEN_TTL = timedelta(hours=12)

security = HTTPBearer(auto_error=False)


def mint_token(
    secret: str,
    user_id: UUID,
    role: Role,
    hourly_pay: float = 0.0,
    algorithm: str = "HS256",
    ttl: timedelta = TOKEN_TTL,
) -> str:
    """Issue a signed bearer token for a principal."""
    now = datetime.now(tz=UTC)
    return jwt.encode(
        {
            "sub": str(user_id),
            "role": role.value,
            "hourly_pay": hourly_pay,
            "iat": now,
            "exp": now + ttl,
        },
        secret,
        algorithm=algorithm,
    )


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Principal:
    """Verify a bearer token and return its principal."""
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Authentication Invalid") from exc
    try:
        return Principal(
            id=UUID(str(claims["sub"])),
            role=Role(claims.get("role", Role.USER.value)),
            hourly_pay=float(claims.get("hourly_pay") or 0.0),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedError("Authentication Invalid") from exc


async def get_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal:
    """Resolve the authenticated caller or reject with 401."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication Invalid")
    container: AppContainer = request.app.state.container
    return decode_token(
        credentials.credentials,
        container.settings.jwt_secret,
        container.settings.jwt_algorithm,
    )


def require_roles(roles: Collection[Role]) -> Callable[..., object]:
    """Build a dependency that admits only the given roles."""

    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        ensure_role(principal, roles)
        return principal

    return dependency
