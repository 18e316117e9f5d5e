"""Capability checks applied before any side effect."""

from collections.abc import Collection
from uuid import UUID

from carcare_backoffice.domain.models import Principal, Role
from carcare_backoffice.errors import UnauthorizedError

ADMIN_ONLY = frozenset({Role.ADMIN})
ADMIN_OR_MANAGER = frozenset({Role.ADMIN, Role.MANAGER})
PAYROLL = frozenset({Role.ADMIN, Role.ACCOUNTANT})
ANY_ROLE = frozenset(Role)


def ensure_role(principal: Principal, roles: Collection[Role]) -> None:
    """Raise unless the principal holds one of the roles."""
    if principal.role not in roles:
        raise UnauthorizedError("Not authorized to access this route")


def ensure_self_or_roles(
    principal: Principal, user_id: UUID, roles: Collection[Role] = ADMIN_OR_MANAGER
) -> None:
    """Allow acting on one's own records, or on anyone's with an elevated role."""
    if principal.id != user_id:
        ensure_role(principal, roles)
