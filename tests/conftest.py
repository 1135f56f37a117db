"""Pytest configuration and fixtures for CitySec Geocoder tests."""

from typing import Optional
from unittest.mock import Mock

import pytest
from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from citysec_geocoder.config import NominatimConfig, Settings
from citysec_geocoder.models import Address, Base, Street


@pytest.fixture(autouse=True)
def reset_loguru():
    """Drop handlers added by a test so later tests never write to closed streams."""
    yield
    logger.remove()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """
    Provide test settings with an in-memory database and no rate limiting.

    Returns:
        Settings instance configured for testing.
    """
    return Settings(
        database_url="sqlite://",
        log_level="DEBUG",
        log_file=str(tmp_path / "logs" / "test.log"),
        geocode_log_file=str(tmp_path / "logs" / "geocoding.jsonl"),
        nominatim=NominatimConfig(rate_limit_delay=0.0, timeout=5.0),
    )


@pytest.fixture
def db_engine(test_settings: Settings):
    """
    Provide a SQLAlchemy engine with the local address store schema.

    Args:
        test_settings: Test settings fixture.

    Returns:
        SQLAlchemy engine instance.
    """
    engine = create_engine(test_settings.database_url)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """
    Provide a SQLAlchemy session for testing with automatic rollback.

    Args:
        db_engine: Database engine fixture.

    Yields:
        SQLAlchemy session instance.
    """
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def make_address(
    id: int,
    street_id: int,
    house_number: Optional[str] = None,
    block: Optional[str] = None,
    lot: Optional[str] = None,
    full_address: Optional[str] = None,
    latitude: Optional[float] = -16.40,
    longitude: Optional[float] = -71.53,
    geocoded: bool = True,
    active: bool = True,
    geocoding_source: Optional[str] = "Nominatim OpenStreetMap API",
) -> Address:
    """Build an Address row with geocoded defaults."""
    return Address(
        id=id,
        street_id=street_id,
        house_number=house_number,
        block=block,
        lot=lot,
        full_address=full_address,
        latitude=latitude,
        longitude=longitude,
        geocoded=geocoded,
        location_type="ROOFTOP" if geocoded else None,
        geocoding_source=geocoding_source,
        active=active,
    )


@pytest.fixture
def seeded_session(db_session: Session) -> Session:
    """
    Local store with a few streets and geocoded neighbors.

    Calle Santa Teresa (1): 110 usable, 112 is a prior local approximation,
    116 inactive, 120 not geocoded, 180 manual, 210 in the next block.
    Jirón Los Olivos (2): Mz B Lt 3.
    Avenida Ejército (3): 1320 only.
    """
    db_session.add_all(
        [
            Street(id=1, via_name="Santa Teresa", full_name="Calle Santa Teresa", active=True),
            Street(id=2, via_name="Los Olivos", full_name="Jirón Los Olivos", active=True),
            Street(id=3, via_name="Ejército", full_name="Avenida Ejército", active=True),
            Street(id=4, via_name="Bolognesi", full_name="Calle Bolognesi", active=False),
        ]
    )
    db_session.add_all(
        [
            make_address(1, 1, "110", full_address="Calle Santa Teresa 110", latitude=-16.3981, longitude=-71.5372),
            make_address(
                2,
                1,
                "112",
                full_address="Calle Santa Teresa 112",
                geocoding_source="Base de datos (dirección aproximada)",
            ),
            make_address(3, 1, "116", full_address="Calle Santa Teresa 116", active=False),
            make_address(
                4,
                1,
                "120",
                full_address="Calle Santa Teresa 120",
                latitude=None,
                longitude=None,
                geocoded=False,
            ),
            make_address(5, 1, "180", full_address="Calle Santa Teresa 180", geocoding_source="Manual"),
            make_address(6, 1, "210-A", full_address="Calle Santa Teresa 210-A", latitude=-16.3990, longitude=-71.5380),
            make_address(
                7,
                2,
                block="B",
                lot="3",
                full_address="Jr. Los Olivos Mz. B Lt. 3",
                latitude=-16.4100,
                longitude=-71.5200,
                geocoding_source=None,
            ),
            make_address(8, 3, "1320", full_address="Av. Ejército 1320"),
            make_address(9, 4, "150", full_address="Calle Bolognesi 150"),
        ]
    )
    db_session.commit()
    return db_session


def nominatim_candidate(
    osm_type: str = "house",
    osm_class: str = "building",
    lat: str = "-16.398765432",
    lon: str = "-71.537012341",
    display_name: str = "115, Calle Santa Teresa, Arequipa, Perú",
) -> dict:
    """A single entry of a Nominatim /search response."""
    return {
        "lat": lat,
        "lon": lon,
        "type": osm_type,
        "class": osm_class,
        "display_name": display_name,
    }


def make_response(payload) -> Mock:
    """Mock httpx response returning ``payload`` from ``json()``."""
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status = Mock()
    return response


def install_mock_client(mock_client_class: Mock, side_effect) -> Mock:
    """
    Wire a patched ``httpx.Client`` class to a mock client.

    Args:
        mock_client_class: The patched class
        side_effect: Responses (or exceptions) returned by successive ``get`` calls

    Returns:
        The mock client instance
    """
    mock_client = Mock()
    mock_client.get.side_effect = side_effect
    mock_client.__enter__ = Mock(return_value=mock_client)
    mock_client.__exit__ = Mock(return_value=False)
    mock_client_class.return_value = mock_client
    return mock_client
