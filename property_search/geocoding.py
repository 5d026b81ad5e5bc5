"""
Static geocoding for listing locations and query place names.

No external API is used: place names resolve through a fixed lookup table,
falling back to central London when nothing matches.
"""

import math
import re
from typing import Dict, Optional

from .models import Coordinates, TargetLocation

EARTH_RADIUS_KM = 6371.0

# London districts first so exact and partial lookups prefer them over the
# generic regions below.
LOCATION_COORDINATES: Dict[str, Coordinates] = {
    "Chelsea": Coordinates(51.4875, -0.1687),
    "Wimbledon": Coordinates(51.4214, -0.2064),
    "Greenwich": Coordinates(51.4826, -0.0077),
    "Canary Wharf": Coordinates(51.5054, -0.0235),
    "Richmond": Coordinates(51.4613, -0.3037),
    "Camden": Coordinates(51.5390, -0.1426),
    "Islington": Coordinates(51.5362, -0.1033),
    "Kensington": Coordinates(51.4991, -0.1938),
    "Hammersmith": Coordinates(51.4927, -0.2240),
    "Brixton": Coordinates(51.4613, -0.1156),
    "Hackney": Coordinates(51.5450, -0.0553),
    "Clapham": Coordinates(51.4620, -0.1380),
    "Fulham": Coordinates(51.4730, -0.2010),
    "Notting Hill": Coordinates(51.5090, -0.1960),
    "Shoreditch": Coordinates(51.5265, -0.0780),
    "Battersea": Coordinates(51.4700, -0.1700),
    "Mayfair": Coordinates(51.5110, -0.1470),
    "Dulwich": Coordinates(51.4450, -0.0860),
    "London": Coordinates(51.5074, -0.1278),
    "Manchester": Coordinates(53.4808, -2.2426),
    "Birmingham": Coordinates(52.4862, -1.8904),
    "Liverpool": Coordinates(53.4084, -2.9916),
    "Edinburgh": Coordinates(55.9533, -3.1883),
    "Glasgow": Coordinates(55.8642, -4.2518),
    "Leeds": Coordinates(53.8008, -1.5491),
    "Sheffield": Coordinates(53.3811, -1.4701),
    "Bristol": Coordinates(51.4545, -2.5879),
    "Newcastle": Coordinates(54.9783, -1.6178),
    "Nottingham": Coordinates(52.9548, -1.1581),
    "Cambridge": Coordinates(52.2053, 0.1218),
    "Oxford": Coordinates(51.7520, -1.2577),
    "Brighton": Coordinates(50.8229, -0.1363),
    "York": Coordinates(53.9600, -1.0873),
    "Bath": Coordinates(51.3751, -2.3617),
    "Cardiff": Coordinates(51.4816, -3.1791),
    "Belfast": Coordinates(54.5973, -5.9301),
    "Leicester": Coordinates(52.6369, -1.1398),
    "Coventry": Coordinates(52.4068, -1.5197),
    "City Centre": Coordinates(51.5074, -0.1278),
    "Suburb": Coordinates(51.5249, -0.2332),
    "Countryside": Coordinates(51.7608, -1.2550),
    "Coastal": Coordinates(50.8229, -0.1363),
    "Downtown": Coordinates(51.5113, -0.1162),
}

DEFAULT_LOCATION = "London"

_PLACE_ALTERNATION = "|".join(
    re.escape(name) for name in sorted(LOCATION_COORDINATES, key=len, reverse=True)
)
LOCATION_PHRASE_RE = re.compile(
    r"\b(?:near|close to|in|by|around|next to)\s+([A-Za-z\s]*?)(" + _PLACE_ALTERNATION + r")\b",
    re.IGNORECASE,
)

# (exclusive upper bound in km, boost)
PROXIMITY_TIERS = (
    (1.0, 0.4),
    (5.0, 0.3),
    (20.0, 0.2),
    (50.0, 0.1),
)


def canonical_place(name: str) -> Optional[str]:
    low = name.strip().lower()
    for key in LOCATION_COORDINATES:
        if key.lower() == low:
            return key
    return None


def get_coordinates(location: str) -> Coordinates:
    """Resolve a location name to coordinates; unknown names map to London."""
    name = (location or "").strip()
    if not name:
        return LOCATION_COORDINATES[DEFAULT_LOCATION]

    exact = canonical_place(name)
    if exact:
        return LOCATION_COORDINATES[exact]

    low = name.lower()
    for key, coords in LOCATION_COORDINATES.items():
        key_low = key.lower()
        if key_low in low or low in key_low:
            return coords

    return LOCATION_COORDINATES[DEFAULT_LOCATION]


def calculate_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in km (haversine)."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def proximity_boost(distance_km: float) -> float:
    for bound, boost in PROXIMITY_TIERS:
        if distance_km < bound:
            return boost
    return 0.0


def parse_location_query(query: str) -> Optional[TargetLocation]:
    """
    Look for phrases like "near London" or "close to Notting Hill".

    Returns the target place under its canonical table name, or None when the
    query names no recognised place.
    """
    m = LOCATION_PHRASE_RE.search(query or "")
    if not m:
        return None
    place = canonical_place(m.group(2)) or m.group(2).strip()
    return TargetLocation(name=place, coordinates=get_coordinates(place))
