"""Domain models for principals and users."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class Role(StrEnum):
    """Roles carried by an authenticated principal."""

    USER = "user"
    ACCOUNTANT = "accountant"
    MANAGER = "manager"
    ADMIN = "admin"


class Lifecycle(StrEnum):
    """Explicit soft-delete state."""

    ACTIVE = "active"
    DELETED = "deleted"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller supplied by the auth gate."""

    id: UUID
    role: Role
    hourly_pay: float = 0.0

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class UserRecord:
    """Represents an employee stored in the database."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    role: Role
    hourly_pay: float = 0.0
    phone: str = ""
    street: str | None = None
    postal_code: str | None = None
    place: str | None = None
    ahv: str | None = None
    description: str = "..."
    location_id: UUID | None = None
    active: bool = True
    lifecycle: Lifecycle = Lifecycle.ACTIVE
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
