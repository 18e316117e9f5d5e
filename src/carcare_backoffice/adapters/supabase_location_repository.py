"""Supabase-backed location repository."""

from collections import Counter
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from carcare_backoffice.adapters.row_parsing import (
    parse_datetime,
    parse_float,
    parse_uuid,
    to_json_value,
)
from carcare_backoffice.domain.locations import (
    CarTypePrices,
    LocationRecord,
    LocationType,
    TransferType,
    WashType,
)
from carcare_backoffice.domain.models import Lifecycle
from carcare_backoffice.services.locations import (
    LocationRepository,
    serialize_car_type,
)


@dataclass
class SupabaseLocationRepository(LocationRepository):
    """Supabase implementation for locations and their price tables."""

    client: Client

    def create_location(self, payload: dict[str, object]) -> LocationRecord:
        """Insert a location row and return it."""
        response = self.client.table("locations").insert(_to_row(payload)).execute()
        if not response.data:
            raise RuntimeError("Failed to create location")
        return _parse_location(response.data[0])

    def get_location(self, location_id: UUID) -> LocationRecord | None:
        """Return a location by id, if present."""
        response = (
            self.client.table("locations")
            .select("*")
            .eq("id", str(location_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_location(response.data[0])

    def list_locations(self) -> list[LocationRecord]:
        """Return all locations sorted by name."""
        response = self.client.table("locations").select("*").order("name").execute()
        return [_parse_location(row) for row in response.data or []]

    def count_users_by_location(self) -> dict[UUID, int]:
        """Count active users per assigned location."""
        response = (
            self.client.table("users")
            .select("location_id")
            .eq("lifecycle", Lifecycle.ACTIVE.value)
            .execute()
        )
        counts = Counter(
            parse_uuid(row.get("location_id")) for row in response.data or []
        )
        counts.pop(None, None)
        return dict(counts)

    def update_location(
        self, location_id: UUID, payload: dict[str, object]
    ) -> LocationRecord | None:
        """Update a location and return it, or None when absent."""
        response = (
            self.client.table("locations")
            .update(_to_row(payload))
            .eq("id", str(location_id))
            .execute()
        )
        if not response.data:
            return None
        return _parse_location(response.data[0])

    def delete_location(self, location_id: UUID) -> bool:
        """Delete a location row."""
        response = (
            self.client.table("locations").delete().eq("id", str(location_id)).execute()
        )
        return bool(response.data)


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    row: dict[str, object] = {}
    for key, value in payload.items():
        if key == "car_types":
            row["car_types_json"] = [serialize_car_type(entry) for entry in value]
        else:
            row[key] = to_json_value(value)
    return row


def _parse_car_type(raw: dict[str, object]) -> CarTypePrices:
    return CarTypePrices(
        name=str(raw["name"]),
        wash={
            WashType(key): float(value)
            for key, value in (raw.get("wash") or {}).items()
            if value is not None
        },
        transfer={
            TransferType(key): float(value)
            for key, value in (raw.get("transfer") or {}).items()
            if value is not None
        },
        transfer_base=parse_float(raw.get("transfer_base"), default=None),
        transfer_per_km=parse_float(raw.get("transfer_per_km"), default=None),
    )


def _parse_location(row: dict[str, object]) -> LocationRecord:
    return LocationRecord(
        id=UUID(str(row["id"])),
        name=str(row["name"]),
        location_type=LocationType(row["location_type"]),
        car_types=tuple(
            _parse_car_type(item) for item in row.get("car_types_json") or []
        ),
        created_by=parse_uuid(row.get("created_by")),
        created_at=parse_datetime(row.get("created_at")),
    )
