"""Car wash and car transfer submissions with duplicate confirmation."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from carcare_backoffice.domain.locations import ServiceKind, TransferMethod
from carcare_backoffice.domain.models import Lifecycle, Principal
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.domain.service_records import (
    ServiceRecord,
    ServiceRequest,
    SubmitOutcome,
)
from carcare_backoffice.errors import NotFoundError, ValidationError
from carcare_backoffice.services.locations import LocationRepository
from carcare_backoffice.services.permissions import ensure_self_or_roles
from carcare_backoffice.services.pricing import parse_subtype, resolve_price
from carcare_backoffice.services.sessions import UserLookup

logger = logging.getLogger(__name__)


class ServiceRecordRepository(Protocol):
    """Persistence interface for one kind of service record."""

    def create_record(self, payload: dict[str, object]) -> ServiceRecord:
        """Create a record and return it."""

    def get_record(self, record_id: UUID) -> ServiceRecord | None:
        """Return a record by id, if present."""

    def find_duplicate(
        self,
        license_plate: str,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> ServiceRecord | None:
        """Return an active record for the plate created in `[start, end)`."""

    def update_record(
        self, record_id: UUID, payload: dict[str, object]
    ) -> ServiceRecord:
        """Update record fields and return the stored record."""

    def delete_record(self, record_id: UUID) -> bool:
        """Hard-delete a record. Return false when nothing was removed."""

    def list_records(
        self, filters: RecordFilters, offset: int, limit: int
    ) -> tuple[list[ServiceRecord], int]:
        """Return a page of active records by creation desc and the total count."""

    def list_records_in_range(self, filters: RecordFilters) -> list[ServiceRecord]:
        """Return all active records matching the filters."""


@dataclass
class ServiceRecordService:
    """Creates, edits and retires service records of one kind."""

    kind: ServiceKind
    repository: ServiceRecordRepository
    locations: LocationRepository
    users: UserLookup
    duplicate_window: timedelta = field(default_factory=lambda: timedelta(hours=6))

    def submit(
        self,
        principal: Principal,
        request: ServiceRequest,
        now: datetime | None = None,
    ) -> SubmitOutcome:
        """Create a record unless it looks like an unconfirmed duplicate."""
        ensure_self_or_roles(principal, request.user_id)
        plate = self._validate(request)
        payload = self._payload(request, plate)
        moment = now or datetime.now(tz=UTC)
        duplicate = self.repository.find_duplicate(
            plate, moment - self.duplicate_window, moment
        )
        if duplicate is not None and not request.accept_suspect:
            logger.info(
                "Suspected duplicate submission",
                extra={"kind": self.kind.value, "duplicate_id": str(duplicate.id)},
            )
            return SubmitOutcome(record=None, suspected=True)

        payload["suspect"] = duplicate is not None
        payload["lifecycle"] = Lifecycle.ACTIVE
        payload["created_by"] = principal.id
        payload["created_at"] = moment
        record = self.repository.create_record(payload)
        return SubmitOutcome(record=record, suspected=False)

    def update(
        self, principal: Principal, record_id: UUID, request: ServiceRequest
    ) -> SubmitOutcome:
        """Edit a record, checking duplicates around its own timestamp."""
        current = self.get(record_id)
        ensure_self_or_roles(principal, current.user_id)
        plate = self._validate(request)
        payload = self._payload(request, plate)
        anchor = current.created_at or datetime.now(tz=UTC)
        duplicate = self.repository.find_duplicate(
            plate,
            anchor - self.duplicate_window,
            anchor + self.duplicate_window,
            exclude_id=record_id,
        )
        if duplicate is not None and not request.accept_suspect:
            return SubmitOutcome(record=None, suspected=True)

        payload["suspect"] = duplicate is not None
        record = self.repository.update_record(record_id, payload)
        return SubmitOutcome(record=record, suspected=False)

    def clear_suspect(self, record_id: UUID) -> ServiceRecord:
        """Mark a reviewed record as no longer suspect."""
        self.get(record_id)
        return self.repository.update_record(record_id, {"suspect": False})

    def delete(self, record_id: UUID) -> ServiceRecord:
        """Soft-delete a record."""
        self.get(record_id)
        return self.repository.update_record(
            record_id,
            {"lifecycle": Lifecycle.DELETED, "deleted_at": datetime.now(tz=UTC)},
        )

    def purge(self, record_id: UUID) -> None:
        """Remove a record permanently."""
        if not self.repository.delete_record(record_id):
            raise NotFoundError(f"Not found car {self.kind.value}.")

    def get(self, record_id: UUID) -> ServiceRecord:
        record = self.repository.get_record(record_id)
        if record is None or record.lifecycle is Lifecycle.DELETED:
            raise NotFoundError(f"Not found car {self.kind.value}.")
        return record

    def _validate(self, request: ServiceRequest) -> str:
        plate = normalize_plate(request.license_plate)
        if not plate or not request.car_type or not request.subtype:
            raise ValidationError("Please provide all values")
        parse_subtype(self.kind, request.subtype)
        if self.kind is ServiceKind.TRANSFER:
            try:
                TransferMethod(request.transfer_method or "")
            except ValueError as exc:
                raise ValidationError("The transfer method is not valid.") from exc
        if self.users.get_user(request.user_id) is None:
            raise NotFoundError("Not found user.")
        return plate

    def _payload(self, request: ServiceRequest, plate: str) -> dict[str, object]:
        location = self.locations.get_location(request.location_id)
        if location is None:
            raise NotFoundError("Not found location")
        price = resolve_price(
            location,
            request.car_type,
            self.kind,
            request.subtype,
            distance=request.transfer_distance,
            override_price=request.override_price,
        )
        return {
            "user_id": request.user_id,
            "location_id": request.location_id,
            "license_plate": plate,
            "car_type": request.car_type,
            "subtype": request.subtype,
            "transfer_method": request.transfer_method,
            "transfer_distance": request.transfer_distance,
            "transfer_place": request.transfer_place,
            "override_price": request.override_price,
            "final_price": price,
        }


def normalize_plate(value: str) -> str:
    """Uppercase a license plate and drop whitespace."""
    return "".join(value.split()).upper()
