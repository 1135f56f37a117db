"""SQLAlchemy models for the local address store.

The geocoder only reads these tables. Python attribute names are English;
the column names match the municipal schema the store already uses.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Street(Base):
    """Street (via) catalogue entry."""

    __tablename__ = "calles"

    id = Column(Integer, primary_key=True)
    via_name = Column("nombre_via", String(200), nullable=False)  # "Santa Teresa"
    full_name = Column("nombre_completo", String(250), nullable=True)  # "Calle Santa Teresa"
    active = Column("estado", Boolean, nullable=False, default=True)

    addresses = relationship("Address", back_populates="street")

    __table_args__ = (Index("idx_calles_nombre_via", "nombre_via"),)

    def __repr__(self) -> str:
        """String representation of Street model."""
        return f"<Street(id={self.id}, full_name='{self.full_name}')>"


class Address(Base):
    """Normalized address, optionally geocoded.

    Supports both municipal numbering (``house_number``) and the
    Manzana/Lote system used in informal settlements (``block``/``lot``).
    """

    __tablename__ = "direcciones"

    id = Column(Integer, primary_key=True)
    street_id = Column("calle_id", Integer, ForeignKey("calles.id"), nullable=False, index=True)

    # Municipal numbering: "450", "250-A", "S/N"
    house_number = Column("numero_municipal", String(10), nullable=True)

    # Manzana/Lote
    block = Column("manzana", String(10), nullable=True)
    lot = Column("lote", String(10), nullable=True)

    full_address = Column("direccion_completa", String(500), nullable=True)

    # Geocoding
    latitude = Column("latitud", Float, nullable=True)
    longitude = Column("longitud", Float, nullable=True)
    geocoded = Column("geocodificada", Boolean, nullable=False, default=False)
    location_type = Column(String(20), nullable=True)  # ROOFTOP, ..., APPROXIMATE
    geocoding_source = Column("fuente_geocodificacion", String(50), nullable=True)

    active = Column("estado", Boolean, nullable=False, default=True)

    street = relationship("Street", back_populates="addresses")

    __table_args__ = (Index("idx_direcciones_calle_geocodificada", "calle_id", "geocodificada"),)

    def __repr__(self) -> str:
        """String representation of Address model."""
        return (
            f"<Address(id={self.id}, "
            f"full_address='{self.full_address}', "
            f"geocoded={self.geocoded})>"
        )
