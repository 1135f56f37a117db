"""Address resolution entry point: local store first, Nominatim as fallback."""

from typing import Callable, Iterable, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from citysec_geocoder.address_parser import parse_address
from citysec_geocoder.config import Settings
from citysec_geocoder.geocoding.base import GeocodeResult
from citysec_geocoder.geocoding.local_matcher import find_local_match
from citysec_geocoder.geocoding.services.nominatim import NominatimResolver

NOT_FOUND_MESSAGE = "No coordinates found for the given address"


def _log_outcome(raw: str, result: GeocodeResult) -> GeocodeResult:
    """Write the outcome to the audit sink and hand it back."""
    method = result.method.value if result.method else "none"
    logger.bind(geocode={"address": raw, **result.to_dict()}).info(
        "Resolved '{}' via {} (success={})", raw, method, result.success
    )
    return result


def resolve_address(
    raw: str,
    session: Session,
    settings: Settings,
    resolver: Optional[NominatimResolver] = None,
) -> GeocodeResult:
    """
    Resolve a free-text address into coordinates.

    Never raises: local store errors and remote failures are logged and the
    pipeline degrades to the next step, ending in ``success=False``.

    Args:
        raw: Free-text address, e.g. "Ca. Santa Teresa 115"
        session: Session on the local address store (read-only use)
        settings: Application settings
        resolver: Nominatim resolver to reuse; pass the same one for every
            address of a batch to keep the rate limit across addresses

    Returns:
        GeocodeResult with the parsed components always populated
    """
    logger.info("Geocoding: '{}'", raw)

    parsed = parse_address(raw)

    try:
        local = find_local_match(parsed, session, settings)
    except SQLAlchemyError as e:
        logger.error("Local address lookup failed: {}", str(e))
        local = None
        try:
            session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error("Rollback after failed lookup failed: {}", str(rollback_error))

    if local is not None:
        return _log_outcome(
            raw,
            GeocodeResult(
                success=True,
                parsed=parsed,
                latitude=local.latitude,
                longitude=local.longitude,
                geocoded=True,
                location_type=local.location_type,
                source=local.source,
                source_description=local.source_description,
                reference_id=local.reference_id,
                reference_text=local.reference_text,
                numeric_distance=local.numeric_distance,
            ),
        )

    remote = None
    if settings.nominatim.enabled:
        try:
            remote = (resolver or NominatimResolver(settings)).resolve(raw, parsed)
        except Exception:
            logger.exception("Nominatim resolution failed for '{}'", raw)

    if remote is not None:
        return _log_outcome(
            raw,
            GeocodeResult(
                success=True,
                parsed=parsed,
                latitude=remote.latitude,
                longitude=remote.longitude,
                geocoded=True,
                location_type=remote.location_type,
                source=remote.source,
                source_description=remote.source_description,
                display_name=remote.display_name,
            ),
        )

    return _log_outcome(
        raw,
        GeocodeResult(
            success=False,
            parsed=parsed,
            geocoded=False,
            message=NOT_FOUND_MESSAGE,
        ),
    )


def resolve_addresses(
    addresses: Iterable[str],
    session: Session,
    settings: Settings,
    on_result: Optional[Callable[[GeocodeResult], None]] = None,
) -> list[GeocodeResult]:
    """
    Resolve several addresses one after another.

    All addresses share one Nominatim resolver, so ``rate_limit_delay`` is
    kept between the last request for one address and the first for the next.

    Args:
        addresses: Free-text addresses
        session: Session on the local address store
        settings: Application settings
        on_result: Called with each result as soon as it is ready

    Returns:
        One GeocodeResult per address, in input order
    """
    resolver = NominatimResolver(settings)
    results = []
    for address in addresses:
        result = resolve_address(address, session, settings, resolver=resolver)
        results.append(result)
        if on_result is not None:
            on_result(result)

    matched = sum(1 for r in results if r.success)
    logger.info("Resolved {}/{} addresses", matched, len(results))
    return results
