"""Parser for free-text Peruvian street addresses.

Handles the usual municipal conventions:

    "Ca. Santa Teresa 115"        -> Calle / Santa Teresa / 115
    "Av. Ejército N° 450-A"       -> Avenida / Ejército / 450-A
    "Jr. Los Olivos Mz B Lt 15"   -> Jirón / Los Olivos / block B, lot 15
    "Pasaje Las Flores S/N"       -> Pasaje / Las Flores / S/N

Parsing never fails; unrecognized input degrades to a bare street name.
"""

import re
from typing import Optional

from loguru import logger

from citysec_geocoder.geocoding.base import NO_NUMBER, AddressComponents

# Longer alternatives first so "Calle" is not read as "Ca" + "lle".
PREFIX_PATTERN = re.compile(
    r"^(Avenida|Av\.?|Calle|Ca\.?|Jir[oó]n|Jr\.?|Pasaje|Psje\.?|Pje\.?|Pj\.?"
    r"|Prolongaci[oó]n|Prol\.?|Malec[oó]n|Alameda)\s+",
    re.IGNORECASE,
)

BLOCK_LOT_PATTERN = re.compile(
    r"\s+(?:Mz\.?|Manzana)\s+(\S+)(?:\s+(?:Lt\.?|Lote)\s+(\S+))?",
    re.IGNORECASE,
)

# At the very start a lot is required, otherwise "Manzana" is the street name.
LEADING_BLOCK_LOT_PATTERN = re.compile(
    r"^(?:Mz\.?|Manzana)\s+(\S+)\s+(?:Lt\.?|Lote)\s+(\S+)",
    re.IGNORECASE,
)

HOUSE_NUMBER_PATTERN = re.compile(
    r"\s+(?:(?:N[º°]|Nro\.?|#)\s*)?(\d+-?\w*|S/N)$",
    re.IGNORECASE,
)

CANONICAL_PREFIXES = {
    "av": "Avenida",
    "avenida": "Avenida",
    "ca": "Calle",
    "calle": "Calle",
    "jr": "Jirón",
    "jiron": "Jirón",
    "jirón": "Jirón",
    "pj": "Pasaje",
    "pje": "Pasaje",
    "psje": "Pasaje",
    "pasaje": "Pasaje",
    "prol": "Prolongación",
    "prolongacion": "Prolongación",
    "prolongación": "Prolongación",
    "malecon": "Malecón",
    "malecón": "Malecón",
    "alameda": "Alameda",
}


def canonicalize_prefix(prefix: Optional[str]) -> str:
    """
    Map a road-type token to its unabbreviated form.

    Args:
        prefix: Token such as "Av.", "jr" or "Calle"

    Returns:
        Long form ("Avenida", "Jirón", "Calle"), the token unchanged when it
        is not a known road type, or an empty string for no prefix.
    """
    if not prefix:
        return ""
    key = prefix.strip().rstrip(".").lower()
    return CANONICAL_PREFIXES.get(key, prefix.strip())


def _clean_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip(",;")
    return code or None


def parse_address(raw: Optional[str]) -> AddressComponents:
    """
    Split a raw address into prefix, street name, number and block/lot.

    Args:
        raw: Free-text address

    Returns:
        AddressComponents with whatever could be recognized
    """
    rest = (raw or "").strip()

    street_prefix = None
    prefix_match = PREFIX_PATTERN.match(rest)
    if prefix_match:
        street_prefix = canonicalize_prefix(prefix_match.group(1))
        rest = rest[prefix_match.end():]

    block = None
    lot = None
    block_match = LEADING_BLOCK_LOT_PATTERN.match(rest) or BLOCK_LOT_PATTERN.search(rest)
    if block_match:
        block = _clean_code(block_match.group(1))
        lot = _clean_code(block_match.group(2))
        rest = rest[: block_match.start()]

    rest = rest.strip().rstrip(",").strip()

    house_number = None
    number_match = HOUSE_NUMBER_PATTERN.search(rest)
    if number_match:
        house_number = number_match.group(1)
        if house_number.upper() == NO_NUMBER:
            house_number = NO_NUMBER
        rest = rest[: number_match.start()]

    street_name = rest.strip().rstrip(",").strip()
    full_street = f"{street_prefix} {street_name}".strip() if street_prefix else street_name

    components = AddressComponents(
        street_prefix=street_prefix,
        street_name=street_name,
        full_street=full_street,
        house_number=house_number,
        block=block,
        lot=lot,
    )
    logger.debug("Parsed address '{}': {}", raw, components)
    return components
