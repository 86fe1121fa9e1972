from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


def _clean(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.strip()


@dataclass(frozen=True)
class Address:
    """Member home address as entered in the member record; every field may be missing."""

    street: Optional[str] = None
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class ChurchAddress:
    name: str
    full_address: str
    postal_code: str = ""
    city: str = ""
    state: str = ""
    country: str = "Brasil"


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_pair(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


class GeocodingOutcome(str, Enum):
    STREET_AND_NEIGHBORHOOD = "streetAndNeighborhood"
    ZIP_ONLY = "zipOnly"
    HYBRID_STREET_ZIP = "hybridStreetZip"
    CITY_STATE_FALLBACK = "cityStateFallback"


# Strategies that count as a real match; the city/state fallback only gives a coarse map.
LABELLED_OUTCOMES = frozenset(
    {
        GeocodingOutcome.STREET_AND_NEIGHBORHOOD,
        GeocodingOutcome.ZIP_ONLY,
        GeocodingOutcome.HYBRID_STREET_ZIP,
    }
)


@dataclass(frozen=True)
class NormalizedAddress:
    street: str
    number: str
    neighborhood: str
    city: str
    zip_code: str
    state: str
    country: str

    @classmethod
    def build(cls, address: Address, church: ChurchAddress) -> "NormalizedAddress":
        return cls(
            street=_clean(address.street),
            number=_clean(address.number),
            neighborhood=_clean(address.neighborhood),
            city=_clean(address.city) or church.city,
            zip_code=_clean(address.zip_code),
            state=_clean(address.state) or church.state,
            country=church.country,
        )


@dataclass(frozen=True)
class RouteData:
    distance_meters: float
    duration_seconds: float
    geometry: Tuple[Coordinate, ...]


@dataclass(frozen=True)
class TripEstimate:
    distance_km: float
    car_minutes: int
    moto_minutes: int
    walk_minutes: int
    fare: int
    fare_min: int
    fare_max: int


@dataclass(frozen=True)
class VisitResolution:
    origin: Coordinate
    destination: Coordinate
    geocoding_outcome: Optional[GeocodingOutcome]
    route: Tuple[Coordinate, ...]
    estimate: TripEstimate
    destination_strategy: GeocodingOutcome
    origin_query: str = ""
    destination_query: str = ""

    @property
    def approximate(self) -> bool:
        return self.geocoding_outcome is None


class FailureKind(str, Enum):
    ORIGIN_UNRESOLVED = "origin_unresolved"
    DESTINATION_UNRESOLVED = "destination_unresolved"
    ROUTE_UNRESOLVED = "route_unresolved"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class VisitFailure:
    kind: FailureKind
    message: str
    provider_error: bool = False
    attempted: Tuple[str, ...] = field(default_factory=tuple)


class CancellationToken:
    """Set by the caller when a pending resolution is no longer wanted (modal closed, other member picked)."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
