"""Employee administration."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from carcare_backoffice.domain.models import Lifecycle, Role, UserRecord
from carcare_backoffice.errors import ConflictError, NotFoundError, ValidationError


@dataclass(frozen=True)
class UserQuery:
    """Filters for listing users."""

    search: str | None = None
    roles: tuple[Role, ...] = ()
    active: bool | None = True
    deleted: bool = False


class UserRepository(Protocol):
    """Persistence interface for users."""

    def create_user(self, payload: dict[str, object]) -> UserRecord:
        """Create and return a new user record."""

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return a user by id, if present."""

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return a user by email, if present."""

    def get_users_by_ids(self, user_ids: list[UUID]) -> list[UserRecord]:
        """Return the users with the given ids."""

    def list_users(
        self, query: UserQuery, offset: int, limit: int
    ) -> tuple[list[UserRecord], int]:
        """Return a page of users by last update desc and the total count."""

    def update_user(self, user_id: UUID, payload: dict[str, object]) -> UserRecord:
        """Update user fields and return the stored user."""

    def delete_user(self, user_id: UUID) -> bool:
        """Hard-delete a user. Return false when nothing was removed."""


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository
    page_size: int = 10

    def create_user(self, payload: dict[str, object]) -> UserRecord:
        """Create a user with a unique email."""
        data = _clean_payload(payload, require_all=True)
        if self.repository.get_by_email(str(data["email"])) is not None:
            raise ConflictError("Email already in use")
        data.setdefault("role", Role.USER)
        data["active"] = True
        data["lifecycle"] = Lifecycle.ACTIVE
        return self.repository.create_user(data)

    def get_user(self, user_id: UUID) -> UserRecord:
        user = self.repository.get_user(user_id)
        if user is None:
            raise NotFoundError("Not found user.")
        return user

    def list_users(
        self, query: UserQuery, page: int = 1, limit: int | None = None
    ) -> tuple[list[UserRecord], int, int]:
        """Return a page of users, the total and the page count."""
        size = limit or self.page_size
        offset = (max(page, 1) - 1) * size
        users, total = self.repository.list_users(query, offset, size)
        return users, total, math.ceil(total / size)

    def update_user(self, user_id: UUID, payload: dict[str, object]) -> UserRecord:
        """Update profile, role, pay and assignment of a user."""
        current = self.get_user(user_id)
        data = _clean_payload(payload, require_all=False)
        email = data.get("email")
        if email and email != current.email:
            existing = self.repository.get_by_email(str(email))
            if existing is not None and existing.id != user_id:
                raise ConflictError("Email already in use")
        return self.repository.update_user(user_id, data)

    def soft_delete(self, user_id: UUID) -> UserRecord:
        """Move an active user to the deleted state."""
        user = self.get_user(user_id)
        if user.lifecycle is Lifecycle.DELETED:
            raise NotFoundError("Not found user.")
        return self.repository.update_user(
            user_id,
            {"lifecycle": Lifecycle.DELETED, "deleted_at": datetime.now(tz=UTC)},
        )

    def restore(self, user_id: UUID) -> UserRecord:
        """Bring a soft-deleted user back."""
        user = self.get_user(user_id)
        if user.lifecycle is not Lifecycle.DELETED:
            raise NotFoundError("User Not Found.")
        return self.repository.update_user(
            user_id, {"lifecycle": Lifecycle.ACTIVE, "deleted_at": None}
        )

    def delete_permanently(self, user_id: UUID) -> None:
        """Remove a soft-deleted user for good."""
        user = self.get_user(user_id)
        if user.lifecycle is not Lifecycle.DELETED:
            raise NotFoundError("User Not Found.")
        self.repository.delete_user(user_id)


_REQUIRED_FIELDS = ("first_name", "last_name", "email")
_NAME_LIMITS = (3, 20)


def _clean_payload(payload: dict[str, object], *, require_all: bool) -> dict:
    data = {key: value for key, value in payload.items() if value is not None}
    if require_all:
        missing = [name for name in _REQUIRED_FIELDS if not data.get(name)]
        if missing:
            raise ValidationError("Please provide all values")
    for name in ("first_name", "last_name"):
        if name in data:
            value = str(data[name]).strip()
            if not _NAME_LIMITS[0] <= len(value) <= _NAME_LIMITS[1]:
                raise ValidationError(
                    f"{name.replace('_', ' ').capitalize()} must be "
                    f"{_NAME_LIMITS[0]}-{_NAME_LIMITS[1]} characters."
                )
            data[name] = value
    if "email" in data:
        email = str(data["email"]).strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("Please provide a valid email")
        data["email"] = email
    if "role" in data:
        try:
            data["role"] = Role(data["role"])
        except ValueError as exc:
            raise ValidationError("The role type is not valid.") from exc
    if "hourly_pay" in data:
        hourly_pay = float(data["hourly_pay"])
        if hourly_pay < 0:
            raise ValidationError("Hourly pay must not be negative.")
        data["hourly_pay"] = hourly_pay
    return data


def serialize_user(user: UserRecord) -> dict[str, object]:
    return {
        "id": str(user.id),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role.value,
        "hourly_pay": user.hourly_pay,
        "phone": user.phone,
        "street": user.street,
        "postal_code": user.postal_code,
        "place": user.place,
        "ahv": user.ahv,
        "description": user.description,
        "location_id": str(user.location_id) if user.location_id else None,
        "active": user.active,
        "lifecycle": user.lifecycle.value,
        "deleted_at": user.deleted_at.isoformat() if user.deleted_at else None,
    }
