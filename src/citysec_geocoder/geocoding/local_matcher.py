"""Approximate geocoding from previously geocoded addresses in the local store.

An address inherits the coordinates of its nearest geocoded neighbor on the
same street, restricted to the same hundred-block ("cuadra"): 115 may borrow
from 110 or 180, never from 210. Records that were themselves approximated
this way are excluded so imprecision does not compound.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from citysec_geocoder.config import Settings
from citysec_geocoder.models import Address, Street

from .base import AddressComponents, LocalMatch, parse_house_number

NUMBER_MATCH_DESCRIPTION = "Base de datos (dirección aproximada)"
BLOCK_MATCH_DESCRIPTION = "Base de datos (manzana aproximada)"


def city_block(number: int) -> int:
    """Hundred-block of a house number (115 -> 1, 1450 -> 14)."""
    return number // 100


def find_candidate_streets(street_name: str, session: Session, settings: Settings) -> list[int]:
    """
    Find active streets whose name contains the given text.

    Args:
        street_name: Parsed street name (without road-type prefix)
        session: Database session
        settings: Application settings

    Returns:
        Street ids, lowest first, capped at the configured candidate limit
    """
    stmt = (
        select(Street.id)
        .where(
            Street.active.is_(True),
            or_(
                Street.via_name.icontains(street_name, autoescape=True),
                Street.full_name.icontains(street_name, autoescape=True),
            ),
        )
        .order_by(Street.id)
        .limit(settings.local_match.street_candidate_limit)
    )
    return list(session.scalars(stmt))


def fetch_reference_addresses(
    street_ids: list[int], session: Session, settings: Settings
) -> list[Address]:
    """
    Fetch geocoded addresses usable as a reference on the given streets.

    Excludes inactive records, records without coordinates and records
    whose geocoding source marks them as a prior local approximation.

    Args:
        street_ids: Candidate street ids
        session: Database session
        settings: Application settings

    Returns:
        Address records ordered by id, capped at the configured fetch limit
    """
    marker = settings.local_match.approximation_marker
    stmt = (
        select(Address)
        .where(
            Address.street_id.in_(street_ids),
            Address.geocoded.is_(True),
            Address.active.is_(True),
            Address.latitude.is_not(None),
            Address.longitude.is_not(None),
            or_(
                Address.geocoding_source.is_(None),
                Address.geocoding_source.not_like(f"%{marker}%"),
            ),
        )
        .order_by(Address.id)
        .limit(settings.local_match.address_fetch_limit)
    )
    return list(session.scalars(stmt))


def closest_in_block(number: int, addresses: list[Address]) -> Optional[tuple[Address, int]]:
    """
    Pick the address numerically closest to ``number`` within its hundred-block.

    Ties go to the lowest record id.

    Args:
        number: Input house number
        addresses: Candidate reference records

    Returns:
        (address, distance) or None when no record shares the block
    """
    target_block = city_block(number)
    best: Optional[tuple[Address, int]] = None

    for address in addresses:
        candidate = parse_house_number(address.house_number)
        if candidate is None or city_block(candidate) != target_block:
            continue

        distance = abs(number - candidate)
        if (
            best is None
            or distance < best[1]
            or (distance == best[1] and address.id < best[0].id)
        ):
            best = (address, distance)

    return best


def match_by_block_code(block: str, addresses: list[Address]) -> Optional[Address]:
    """Return the lowest-id address whose Manzana code equals ``block``."""
    wanted = block.upper()
    matches = [a for a in addresses if a.block and a.block.upper() == wanted]
    if not matches:
        return None
    return min(matches, key=lambda a: a.id)


def find_local_match(
    components: AddressComponents, session: Session, settings: Settings
) -> Optional[LocalMatch]:
    """
    Look for a usable prior geocode on the same street segment.

    Args:
        components: Parsed address
        session: Database session (read-only use)
        settings: Application settings

    Returns:
        LocalMatch, or None to defer to the remote resolver

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the local store query fails
    """
    if not components.street_name:
        return None

    street_ids = find_candidate_streets(components.street_name, session, settings)
    if not street_ids:
        logger.debug("No local streets match '{}'", components.street_name)
        return None

    addresses = fetch_reference_addresses(street_ids, session, settings)
    if not addresses:
        logger.debug("No geocoded reference addresses on streets {}", street_ids)
        return None

    number = components.numeric_house_number
    if number is not None:
        found = closest_in_block(number, addresses)
        if found is None:
            # Another hundred-block is a different street segment
            logger.debug("No reference address in block {} for {}", city_block(number), number)
            return None

        address, distance = found
        logger.info(
            "Local match in block {}: {} (distance={})",
            city_block(number),
            address.full_address,
            distance,
        )
        return LocalMatch(
            latitude=address.latitude,
            longitude=address.longitude,
            reference_id=address.id,
            reference_text=address.full_address,
            source_description=NUMBER_MATCH_DESCRIPTION,
            numeric_distance=distance,
        )

    if components.block:
        address = match_by_block_code(components.block, addresses)
        if address is not None:
            logger.info("Local match by Manzana {}: {}", components.block, address.full_address)
            return LocalMatch(
                latitude=address.latitude,
                longitude=address.longitude,
                reference_id=address.id,
                reference_text=address.full_address,
                source_description=BLOCK_MATCH_DESCRIPTION,
            )

    return None
