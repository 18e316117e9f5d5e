"""Domain models for car wash and car transfer transactions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from carcare_backoffice.domain.locations import ServiceKind
from carcare_backoffice.domain.models import Lifecycle


@dataclass(frozen=True)
class ServiceRecord:
    """One physical wash or transfer event."""

    id: UUID
    kind: ServiceKind
    user_id: UUID
    location_id: UUID
    license_plate: str
    car_type: str
    subtype: str
    final_price: float
    suspect: bool = False
    transfer_method: str | None = None
    transfer_distance: float | None = None
    transfer_place: str | None = None
    override_price: float | None = None
    lifecycle: Lifecycle = Lifecycle.ACTIVE
    deleted_at: datetime | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ServiceRequest:
    """Caller input for creating or editing a service record."""

    user_id: UUID
    location_id: UUID
    license_plate: str
    car_type: str
    subtype: str
    transfer_method: str | None = None
    transfer_distance: float | None = None
    transfer_place: str | None = None
    override_price: float | None = None
    accept_suspect: bool = False


@dataclass(frozen=True)
class SubmitOutcome:
    """Either a stored record or a request to confirm a suspected duplicate."""

    record: ServiceRecord | None
    suspected: bool = False
