"""Supabase-backed car wash and car transfer repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from carcare_backoffice.adapters.row_parsing import (
    parse_datetime,
    parse_float,
    parse_uuid,
    to_json_value,
)
from carcare_backoffice.domain.locations import ServiceKind
from carcare_backoffice.domain.models import Lifecycle
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.domain.service_records import ServiceRecord
from carcare_backoffice.errors import NotFoundError
from carcare_backoffice.services.service_records import ServiceRecordRepository

_TABLES = {
    ServiceKind.WASH: "car_washes",
    ServiceKind.TRANSFER: "car_transfers",
}


@dataclass
class SupabaseServiceRecordRepository(ServiceRecordRepository):
    """Supabase implementation for one kind of service record."""

    client: Client
    kind: ServiceKind

    @property
    def table(self) -> str:
        return _TABLES[self.kind]

    def create_record(self, payload: dict[str, object]) -> ServiceRecord:
        """Insert a record row and return it."""
        response = self.client.table(self.table).insert(_to_row(payload)).execute()
        if not response.data:
            raise RuntimeError(f"Failed to create car {self.kind.value}")
        return self._parse(response.data[0])

    def get_record(self, record_id: UUID) -> ServiceRecord | None:
        """Return a record by id, if present."""
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("id", str(record_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self._parse(response.data[0])

    def find_duplicate(
        self,
        license_plate: str,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> ServiceRecord | None:
        """Return an active record for the plate created in `[start, end)`."""
        request = (
            self.client.table(self.table)
            .select("*")
            .eq("license_plate", license_plate)
            .eq("lifecycle", Lifecycle.ACTIVE.value)
            .gte("created_at", start.isoformat())
            .lt("created_at", end.isoformat())
        )
        if exclude_id is not None:
            request = request.neq("id", str(exclude_id))
        response = request.order("created_at", desc=True).limit(1).execute()
        if not response.data:
            return None
        return self._parse(response.data[0])

    def update_record(
        self, record_id: UUID, payload: dict[str, object]
    ) -> ServiceRecord:
        """Update record columns and return the stored row."""
        response = (
            self.client.table(self.table)
            .update(_to_row(payload))
            .eq("id", str(record_id))
            .execute()
        )
        if not response.data:
            raise NotFoundError(f"Not found car {self.kind.value}.")
        return self._parse(response.data[0])

    def delete_record(self, record_id: UUID) -> bool:
        """Delete a record row."""
        response = (
            self.client.table(self.table).delete().eq("id", str(record_id)).execute()
        )
        return bool(response.data)

    def list_records(
        self, filters: RecordFilters, offset: int, limit: int
    ) -> tuple[list[ServiceRecord], int]:
        """Return a page of active records by creation desc and the total count."""
        response = (
            self._filtered(filters, count="exact")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        records = [self._parse(row) for row in response.data or []]
        return records, response.count or 0

    def list_records_in_range(self, filters: RecordFilters) -> list[ServiceRecord]:
        """Return all active records matching the filters."""
        response = self._filtered(filters).order("created_at", desc=True).execute()
        return [self._parse(row) for row in response.data or []]

    def _filtered(self, filters: RecordFilters, count: str | None = None):
        request = (
            self.client.table(self.table)
            .select("*", count=count)
            .eq("lifecycle", Lifecycle.ACTIVE.value)
            .gte("created_at", filters.date_range.start.isoformat())
            .lt("created_at", filters.date_range.end.isoformat())
        )
        if filters.user_id is not None:
            request = request.eq("user_id", str(filters.user_id))
        if filters.location_id is not None:
            request = request.eq("location_id", str(filters.location_id))
        if filters.search:
            request = request.ilike("license_plate", f"%{filters.search.upper()}%")
        return request

    def _parse(self, row: dict[str, object]) -> ServiceRecord:
        return ServiceRecord(
            id=UUID(str(row["id"])),
            kind=self.kind,
            user_id=UUID(str(row["user_id"])),
            location_id=UUID(str(row["location_id"])),
            license_plate=str(row["license_plate"]),
            car_type=str(row["car_type"]),
            subtype=str(row["subtype"]),
            final_price=parse_float(row.get("final_price")),
            suspect=bool(row.get("suspect", False)),
            transfer_method=row.get("transfer_method"),
            transfer_distance=parse_float(row.get("transfer_distance"), default=None),
            transfer_place=row.get("transfer_place"),
            override_price=parse_float(row.get("override_price"), default=None),
            lifecycle=Lifecycle(row.get("lifecycle") or Lifecycle.ACTIVE.value),
            deleted_at=parse_datetime(row.get("deleted_at")),
            created_by=parse_uuid(row.get("created_by")),
            created_at=parse_datetime(row.get("created_at")),
        )


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    return {key: to_json_value(value) for key, value in payload.items()}
