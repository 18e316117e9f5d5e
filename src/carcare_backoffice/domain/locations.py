"""Domain models for locations and their price tables."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class ServiceKind(StrEnum):
    """Kinds of service transactions."""

    WASH = "wash"
    TRANSFER = "transfer"


class LocationType(StrEnum):
    """Whether a location offers transfers."""

    NO_TRANSFER = "noTransfer"
    WITH_TRANSFER = "withTransfer"


class WashType(StrEnum):
    """Wash subtypes priced per car type."""

    OUTSIDE = "outside"
    INSIDE = "inside"
    OUT_INSIDE = "outInside"
    MOTORRAD = "motorrad"
    TURNAROUND = "turnaround"
    QUICK_TURNAROUND = "quickTurnaround"
    SPECIAL = "special"


class TransferType(StrEnum):
    """Transfer subtypes priced per car type."""

    HZP = "hzp"
    HBP = "hbp"
    APDT = "apdt"
    PRESUMPTIVE = "presumptive"
    SPECIAL = "special"


class TransferMethod(StrEnum):
    """Direction of a car transfer."""

    COLLECTION = "collection"
    DELIVERY = "delivery"


SPECIAL_SUBTYPE = "special"
PRESUMPTIVE_SUBTYPE = "presumptive"


@dataclass(frozen=True)
class CarTypePrices:
    """Price table entry for one car type at a location."""

    name: str
    wash: dict[WashType, float] = field(default_factory=dict)
    transfer: dict[TransferType, float] = field(default_factory=dict)
    transfer_base: float | None = None
    transfer_per_km: float | None = None


@dataclass(frozen=True)
class LocationRecord:
    """Represents a location with its price table."""

    id: UUID
    name: str
    location_type: LocationType
    car_types: tuple[CarTypePrices, ...] = field(default_factory=tuple)
    created_by: UUID | None = None
    created_at: datetime | None = None

    def car_type(self, name: str) -> CarTypePrices | None:
        for entry in self.car_types:
            if entry.name == name:
                return entry
        return None
