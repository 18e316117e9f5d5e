"""Location administration and price tables."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from carcare_backoffice.domain.locations import (
    CarTypePrices,
    LocationRecord,
    LocationType,
    TransferType,
    WashType,
)
from carcare_backoffice.errors import NotFoundError, ValidationError


class LocationRepository(Protocol):
    """Persistence interface for locations."""

    def create_location(self, payload: dict[str, object]) -> LocationRecord:
        """Create a location and return it."""

    def get_location(self, location_id: UUID) -> LocationRecord | None:
        """Return a location by id, if present."""

    def list_locations(self) -> list[LocationRecord]:
        """Return all locations sorted by name."""

    def count_users_by_location(self) -> dict[UUID, int]:
        """Return the number of users assigned to each location."""

    def update_location(
        self, location_id: UUID, payload: dict[str, object]
    ) -> LocationRecord | None:
        """Update a location and return it, or None when absent."""

    def delete_location(self, location_id: UUID) -> bool:
        """Delete a location. Return false when nothing was removed."""


@dataclass
class LocationService:
    """Admin CRUD over locations."""

    repository: LocationRepository

    def create_location(
        self,
        name: str,
        location_type: str,
        car_types: list[dict[str, object]],
        created_by: UUID | None = None,
    ) -> LocationRecord:
        """Validate and persist a new location."""
        payload = _location_payload(name, location_type, car_types)
        payload["created_by"] = created_by
        return self.repository.create_location(payload)

    def get_location(self, location_id: UUID) -> LocationRecord:
        location = self.repository.get_location(location_id)
        if location is None:
            raise NotFoundError("Not found location")
        return location

    def list_locations(self) -> list[dict[str, object]]:
        """Return locations with their user counts."""
        counts = self.repository.count_users_by_location()
        return [
            {**serialize_location(location), "users_count": counts.get(location.id, 0)}
            for location in self.repository.list_locations()
        ]

    def list_location_names(self) -> list[dict[str, object]]:
        return [
            {
                "id": str(location.id),
                "name": location.name,
                "location_type": location.location_type.value,
            }
            for location in self.repository.list_locations()
        ]

    def update_location(
        self,
        location_id: UUID,
        name: str,
        location_type: str,
        car_types: list[dict[str, object]],
    ) -> LocationRecord:
        payload = _location_payload(name, location_type, car_types)
        location = self.repository.update_location(location_id, payload)
        if location is None:
            raise NotFoundError("Not found location")
        return location

    def delete_location(self, location_id: UUID) -> None:
        if not self.repository.delete_location(location_id):
            raise NotFoundError("Not found location")


def parse_car_types(raw: list[dict[str, object]]) -> tuple[CarTypePrices, ...]:
    """Parse a price table, rejecting unknown subtypes and negative prices."""
    parsed: list[CarTypePrices] = []
    seen: set[str] = set()
    for entry in raw:
        name = str(entry.get("name") or "").strip()
        if not name:
            raise ValidationError("Please provide car type name")
        if name in seen:
            raise ValidationError(f"Car type '{name}' is listed twice.")
        seen.add(name)
        wash = _parse_prices(entry.get("wash"), WashType, name)
        transfer = _parse_prices(entry.get("transfer"), TransferType, name)
        parsed.append(
            CarTypePrices(
                name=name,
                wash=wash,
                transfer=transfer,
                transfer_base=_optional_price(entry.get("transfer_base"), name),
                transfer_per_km=_optional_price(entry.get("transfer_per_km"), name),
            )
        )
    return tuple(parsed)


def serialize_location(location: LocationRecord) -> dict[str, object]:
    return {
        "id": str(location.id),
        "name": location.name,
        "location_type": location.location_type.value,
        "car_types": [serialize_car_type(entry) for entry in location.car_types],
    }


def serialize_car_type(entry: CarTypePrices) -> dict[str, object]:
    return {
        "name": entry.name,
        "wash": {key.value: value for key, value in entry.wash.items()},
        "transfer": {key.value: value for key, value in entry.transfer.items()},
        "transfer_base": entry.transfer_base,
        "transfer_per_km": entry.transfer_per_km,
    }


def _location_payload(
    name: str, location_type: str, car_types: list[dict[str, object]]
) -> dict[str, object]:
    if not name or not name.strip():
        raise ValidationError("Please provide location name")
    try:
        parsed_type = LocationType(location_type)
    except ValueError as exc:
        raise ValidationError(f"Unknown location type '{location_type}'.") from exc
    if not car_types:
        raise ValidationError("Please provide car type")
    return {
        "name": name.strip(),
        "location_type": parsed_type,
        "car_types": parse_car_types(car_types),
    }


def _parse_prices(raw: object, enum_type: type, car_type: str) -> dict:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError(f"Prices for car type '{car_type}' must be a mapping.")
    prices = {}
    for key, value in raw.items():
        if value is None or value == "":
            continue
        try:
            subtype = enum_type(key)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown price key '{key}' for car type '{car_type}'."
            ) from exc
        prices[subtype] = _optional_price(value, car_type)
    return prices


def _optional_price(value: object, car_type: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        price = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid price '{value}' for '{car_type}'.") from exc
    if price < 0:
        raise ValidationError(f"Negative price for car type '{car_type}'.")
    return price
