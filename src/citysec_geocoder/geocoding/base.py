"""Shared types for the geocoding pipeline."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class LocationType(Enum):
    """Precision of a geocoded coordinate, most precise first."""

    ROOFTOP = "ROOFTOP"
    RANGE_INTERPOLATED = "RANGE_INTERPOLATED"
    GEOMETRIC_CENTER = "GEOMETRIC_CENTER"
    APPROXIMATE = "APPROXIMATE"


class GeocodeSource(Enum):
    """Where a geocoded coordinate came from."""

    DATABASE = "database"  # Local address store
    REMOTE_API = "remote_api"  # Nominatim


_PRECISION_RANKS = {
    LocationType.ROOFTOP: 0,
    LocationType.RANGE_INTERPOLATED: 1,
    LocationType.GEOMETRIC_CENTER: 2,
    LocationType.APPROXIMATE: 3,
}

UNKNOWN_PRECISION = 4


def precision_score(location_type: Union[LocationType, str, None]) -> int:
    """Rank a location type; lower is more precise.

    Accepts enum members or their string values. Anything unrecognized gets
    ``UNKNOWN_PRECISION``, the lowest priority.
    """
    if isinstance(location_type, str):
        try:
            location_type = LocationType(location_type)
        except ValueError:
            return UNKNOWN_PRECISION
    return _PRECISION_RANKS.get(location_type, UNKNOWN_PRECISION)


NO_NUMBER = "S/N"

_LEADING_DIGITS = re.compile(r"\d+")


@dataclass
class AddressComponents:
    """Structured pieces of a free-text Peruvian address."""

    street_prefix: Optional[str] = None  # Canonical road type, e.g. "Avenida"
    street_name: str = ""
    full_street: str = ""
    house_number: Optional[str] = None  # "450", "450-A" or "S/N"
    block: Optional[str] = None  # Manzana
    lot: Optional[str] = None  # Lote

    @property
    def numeric_house_number(self) -> Optional[int]:
        """Leading integer of the house number, if there is one."""
        return parse_house_number(self.house_number)


def parse_house_number(value: Optional[str]) -> Optional[int]:
    """Extract the leading integer of a house number ("450-A" -> 450)."""
    if not value:
        return None
    match = _LEADING_DIGITS.match(value.strip())
    if not match:
        return None
    return int(match.group())


@dataclass
class LocalMatch:
    """Approximate coordinate borrowed from a neighbor in the local store."""

    latitude: float
    longitude: float
    reference_id: int
    reference_text: Optional[str]
    source_description: str
    numeric_distance: Optional[int] = None
    location_type: LocationType = LocationType.APPROXIMATE
    source: GeocodeSource = GeocodeSource.DATABASE


@dataclass
class RemoteMatch:
    """Top-ranked candidate returned by the remote geocoding API."""

    latitude: float
    longitude: float
    location_type: LocationType
    display_name: Optional[str]
    strategy: str  # Label of the query that produced this candidate
    source_description: str
    raw_response: dict[str, Any] = field(default_factory=dict)
    source: GeocodeSource = GeocodeSource.REMOTE_API


@dataclass
class GeocodeResult:
    """Normalized outcome of resolving one address."""

    success: bool
    parsed: AddressComponents
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geocoded: bool = False
    location_type: Optional[LocationType] = None
    source: Optional[GeocodeSource] = None
    source_description: Optional[str] = None
    reference_id: Optional[int] = None
    reference_text: Optional[str] = None
    numeric_distance: Optional[int] = None
    display_name: Optional[str] = None
    message: Optional[str] = None

    @property
    def method(self) -> Optional[GeocodeSource]:
        """Resolution method; always mirrors ``source``."""
        return self.source

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation with enums flattened to values."""
        return {
            "success": self.success,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "geocoded": self.geocoded,
            "location_type": self.location_type.value if self.location_type else None,
            "source": self.source.value if self.source else None,
            "method": self.method.value if self.method else None,
            "source_description": self.source_description,
            "reference_id": self.reference_id,
            "reference_text": self.reference_text,
            "numeric_distance": self.numeric_distance,
            "display_name": self.display_name,
            "message": self.message,
            "parsed": {
                "street_prefix": self.parsed.street_prefix,
                "street_name": self.parsed.street_name,
                "full_street": self.parsed.full_street,
                "house_number": self.parsed.house_number,
                "block": self.parsed.block,
                "lot": self.parsed.lot,
            },
        }
