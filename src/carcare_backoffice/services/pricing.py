"""Server-side price resolution from a location's price table."""

from carcare_backoffice.domain.locations import (
    PRESUMPTIVE_SUBTYPE,
    SPECIAL_SUBTYPE,
    LocationRecord,
    LocationType,
    ServiceKind,
    TransferType,
    WashType,
)
from carcare_backoffice.errors import NotFoundError, ValidationError


def parse_subtype(kind: ServiceKind, subtype: str) -> WashType | TransferType:
    """Validate a subtype against the closed set for its service kind."""
    enum_type = WashType if kind is ServiceKind.WASH else TransferType
    try:
        return enum_type(subtype)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(
            f"Unknown {kind.value} type '{subtype}'. Expected one of: {allowed}."
        ) from exc


def resolve_price(  # noqa: PLR0913
    location: LocationRecord,
    car_type: str,
    kind: ServiceKind,
    subtype: str,
    distance: float | None = None,
    override_price: float | None = None,
) -> float:
    """Return the final price for a service at a location.

    The `special` subtype trusts the caller-supplied override. Every other
    subtype is read from the authoritative table and never defaults to zero.
    """
    parsed = parse_subtype(kind, subtype)
    if kind is ServiceKind.TRANSFER and (
        location.location_type is LocationType.NO_TRANSFER
    ):
        raise ValidationError(f"Location '{location.name}' does not offer transfers.")

    if parsed.value == SPECIAL_SUBTYPE:
        if override_price is None:
            raise ValidationError("Please provide special price")
        if override_price < 0:
            raise ValidationError("Special price must not be negative.")
        return round(float(override_price), 2)

    prices = location.car_type(car_type)
    if prices is None:
        raise NotFoundError(
            f"Car type '{car_type}' is not offered at location '{location.name}'."
        )

    if kind is ServiceKind.TRANSFER and parsed.value == PRESUMPTIVE_SUBTYPE:
        if distance is None:
            raise ValidationError("Please provide transfer distance")
        if distance < 0:
            raise ValidationError("Transfer distance must not be negative.")
        if prices.transfer_base is None or prices.transfer_per_km is None:
            raise ValidationError(
                f"Presumptive transfer is not priced for car type '{car_type}'."
            )
        return round(prices.transfer_base + distance * prices.transfer_per_km, 2)

    table = prices.wash if kind is ServiceKind.WASH else prices.transfer
    price = table.get(parsed)
    if price is None:
        raise ValidationError(
            f"No {kind.value} price for '{parsed.value}' on car type '{car_type}'."
        )
    return round(float(price), 2)
