"""CitySec Geocoder: address resolution for the municipal security backend."""

__version__ = "0.1.0"
