"""Nominatim (OpenStreetMap) geocoding service implementation."""

import time
from functools import reduce
from typing import Any, Iterable, Iterator, Optional

import httpx
from loguru import logger

from citysec_geocoder.address_parser import canonicalize_prefix
from citysec_geocoder.config import Settings

from ..base import AddressComponents, LocationType, RemoteMatch, precision_score

SOURCE_DESCRIPTION = "Nominatim OpenStreetMap API"

ROOFTOP_TYPES = {"house", "building", "apartments", "house_number"}

ROAD_TYPES = {
    "street",
    "road",
    "highway",
    "residential",
    "tertiary",
    "secondary",
    "primary",
    "unclassified",
    "pedestrian",
    "service",
}

# (prefix as typed, lowercase) -> replacement, for each honorific pair
NAME_VARIANT_RULES = [
    (("santa ",), "Sta. "),
    (("sta. ", "sta "), "Santa "),
    (("santo ",), "Sto. "),
    (("sto. ", "sto "), "Santo "),
    (("san ",), "S. "),
    (("s. ",), "San "),
]


def classify_nominatim_result(osm_type: Optional[str], osm_class: Optional[str]) -> LocationType:
    """
    Map Nominatim's type/class taxonomy onto LocationType.

    Nominatim never reports interpolated ranges, so RANGE_INTERPOLATED is
    not produced here.

    Args:
        osm_type: Result ``type`` (e.g. "house", "residential")
        osm_class: Result ``class`` (e.g. "building", "highway")

    Returns:
        LocationType for the candidate
    """
    if osm_type in ROOFTOP_TYPES:
        return LocationType.ROOFTOP
    if osm_type in ROAD_TYPES or osm_class == "highway":
        return LocationType.GEOMETRIC_CENTER
    return LocationType.APPROXIMATE


def generate_name_variants(street_name: str) -> list[str]:
    """
    Alternative spellings of a street name for honorific abbreviations.

    OSM may hold "Sta. Teresa" where the municipality writes "Santa Teresa"
    (and vice versa).

    Args:
        street_name: Parsed street name

    Returns:
        Variants, not including the original name
    """
    variants = []
    lower = street_name.lower()
    for prefixes, replacement in NAME_VARIANT_RULES:
        for prefix in prefixes:
            if lower.startswith(prefix):
                variants.append(replacement + street_name[len(prefix):].lstrip())
                break
    return variants


def select_best(best: Optional[RemoteMatch], candidate: Optional[RemoteMatch]) -> Optional[RemoteMatch]:
    """Keep ``candidate`` only if it is strictly more precise than ``best``."""
    if candidate is None:
        return best
    if best is None or precision_score(candidate.location_type) < precision_score(best.location_type):
        return candidate
    return best


def best_of(candidates: Iterable[Optional[RemoteMatch]]) -> Optional[RemoteMatch]:
    """Most precise candidate; ties keep the earliest."""
    return reduce(select_best, candidates, None)


def build_structured_queries(components: AddressComponents) -> list[tuple[str, str]]:
    """
    Ordered street queries for the structured search strategies.

    Args:
        components: Parsed address

    Returns:
        (label, street value) pairs: canonical prefix, no prefix, then one
        per name variant. Empty when there is no street name.
    """
    if not components.street_name:
        return []

    number = components.house_number or ""
    prefix = canonicalize_prefix(components.street_prefix)
    queries = []

    with_prefix = f"{number} {prefix} {components.street_name}".strip() if prefix else ""
    if with_prefix:
        queries.append(("with prefix", with_prefix))

    without_prefix = f"{number} {components.street_name}".strip()
    if without_prefix != with_prefix:
        queries.append(("without prefix", without_prefix))

    for variant in generate_name_variants(components.street_name):
        queries.append((f"variant: {variant}", f"{number} {variant}".strip()))

    return queries


class NominatimResolver:
    """Resolve addresses against Nominatim with progressively looser queries.

    Strategies run one at a time, cheapest and most targeted first, and
    stop as soon as a ROOFTOP candidate is found:

    1. structured search with the canonical road type ("115 Calle Santa Teresa")
    2. structured search without it ("115 Santa Teresa")
    3. structured search per name variant ("115 Sta. Teresa")
    4. free-form search, only if nothing better than a street centroid
       turned up

    Rate limit: ``rate_limit_delay`` seconds between consecutive requests
    over the resolver's lifetime, so a batch should share one resolver.
    """

    def __init__(self, config: Settings):
        """Initialize Nominatim resolver with configuration.

        Args:
            config: Application settings containing nominatim configuration
        """
        self.config = config
        self.nominatim_config = config.nominatim
        self.locality = config.locality
        self.request_count = 0

    @property
    def headers(self) -> dict[str, str]:
        """Request headers required by the Nominatim usage policy."""
        user_agent = self.nominatim_config.user_agent
        if self.nominatim_config.email:
            user_agent = f"{user_agent} {self.nominatim_config.email}"
        return {
            "User-Agent": user_agent,
            "Accept-Language": self.nominatim_config.accept_language,
        }

    def structured_params(self, street: str) -> dict[str, Any]:
        """Query parameters for a structured search scoped to the default locality."""
        return {
            "street": street,
            "city": self.locality.district,
            "county": self.locality.province,
            "country": self.locality.country,
            "countrycodes": self.locality.country_code.lower(),
            "format": "json",
            "limit": 1,
            "addressdetails": 1,
        }

    def free_form_params(self, raw: str) -> dict[str, Any]:
        """Query parameters for a free-form search."""
        query = ", ".join(
            part
            for part in (raw, self.locality.district, self.locality.province, self.locality.country)
            if part
        )
        return {
            "q": query,
            "countrycodes": self.locality.country_code.lower(),
            "format": "json",
            "limit": 1,
            "addressdetails": 1,
        }

    def parse_response(self, payload: Any, strategy: str) -> Optional[RemoteMatch]:
        """
        Turn a Nominatim search response into a RemoteMatch.

        Only the top-ranked candidate is used.

        Args:
            payload: Decoded JSON list returned by /search
            strategy: Label of the query that produced it

        Returns:
            RemoteMatch, or None when the response has no candidates

        Raises:
            KeyError, ValueError, TypeError, AttributeError: If the
                candidate is malformed
        """
        if not payload:
            return None

        match = payload[0]
        location_type = classify_nominatim_result(match.get("type"), match.get("class"))

        return RemoteMatch(
            latitude=round(float(match["lat"]), 8),
            longitude=round(float(match["lon"]), 8),
            location_type=location_type,
            display_name=match.get("display_name"),
            strategy=strategy,
            source_description=SOURCE_DESCRIPTION,
            raw_response=match,
        )

    def search(self, client: httpx.Client, params: dict[str, Any], strategy: str) -> Optional[RemoteMatch]:
        """
        Issue a single search request.

        Any transport, HTTP status or payload error is logged and treated as
        "no result" so the caller can move on to the next strategy.

        Args:
            client: Open HTTP client
            params: Query parameters
            strategy: Label for logging

        Returns:
            RemoteMatch or None
        """
        try:
            response = client.get(
                f"{self.nominatim_config.base_url}/search",
                params=params,
                headers=self.headers,
            )
            response.raise_for_status()
            result = self.parse_response(response.json(), strategy)

        except httpx.HTTPError as e:
            logger.warning("Nominatim request failed ({}): {}", strategy, e)
            return None

        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Malformed Nominatim response ({}): {}", strategy, e)
            return None

        if result is None:
            logger.debug("Nominatim {}: no results", strategy)
        else:
            logger.debug("Nominatim {}: type={}", strategy, result.location_type.value)
        return result

    def _requests(self, raw: str, components: AddressComponents) -> Iterator[tuple[str, dict[str, Any]]]:
        for label, street in build_structured_queries(components):
            yield label, self.structured_params(street)
        yield "free-form", self.free_form_params(raw)

    def resolve(self, raw: str, components: AddressComponents) -> Optional[RemoteMatch]:
        """
        Geocode an address, returning the most precise candidate found.

        Args:
            raw: Original address text (used for the free-form query)
            components: Parsed address

        Returns:
            RemoteMatch, or None when every strategy failed or came back empty
        """
        best: Optional[RemoteMatch] = None
        delay = self.nominatim_config.rate_limit_delay

        with httpx.Client(timeout=self.nominatim_config.timeout) as client:
            for label, params in self._requests(raw, components):
                if label == "free-form" and best is not None and precision_score(
                    best.location_type
                ) <= precision_score(LocationType.RANGE_INTERPOLATED):
                    break

                if self.request_count > 0 and delay > 0:
                    time.sleep(delay)

                self.request_count += 1
                best = select_best(best, self.search(client, params, label))
                if best is not None and best.location_type is LocationType.ROOFTOP:
                    break

        if best is None:
            logger.info("Nominatim found nothing for '{}'", raw)
        else:
            logger.info(
                "Nominatim result for '{}': lat={} lon={} type={} ({})",
                raw,
                best.latitude,
                best.longitude,
                best.location_type.value,
                best.strategy,
            )
        return best
