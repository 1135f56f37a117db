"""Remote geocoding service implementations."""

from .nominatim import NominatimResolver

__all__ = ["NominatimResolver"]
