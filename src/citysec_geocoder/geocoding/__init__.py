"""Geocoding pipeline for CitySec.

Local store approximation first, Nominatim as the fallback.
"""

from .base import (
    AddressComponents,
    GeocodeResult,
    GeocodeSource,
    LocalMatch,
    LocationType,
    RemoteMatch,
    precision_score,
)
from .local_matcher import find_local_match

__all__ = [
    "AddressComponents",
    "GeocodeResult",
    "GeocodeSource",
    "LocalMatch",
    "LocationType",
    "RemoteMatch",
    "precision_score",
    "find_local_match",
]
