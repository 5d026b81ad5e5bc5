"""
Query attribute extraction.

Turns a free-text search such as "3 bed cottage near Bath under £500k" into a
QueryAttributes struct. Each constraint kind has its own matcher returning an
optional result; price matchers are not exclusive and all matches are merged.
"""

import re
from typing import Callable, List, Optional

from .geocoding import parse_location_query
from .models import PriceRange, QueryAttributes

PROPERTY_TYPES = ("House", "Flat", "Apartment", "Studio", "Cottage", "Bungalow", "Penthouse", "Townhouse")

BEDROOM_RE = re.compile(r"(\d+)[\s-]*bed", re.IGNORECASE)
BATHROOM_RE = re.compile(r"(\d+)[\s-]*bath", re.IGNORECASE)

# currency symbol, digits with optional thousands commas/decimals, k/m/million suffix.
# A number followed by bed/bath is a room count, not a price.
_AMOUNT = r"[£$€]?\s*(\d[\d,]*(?:\.\d+)?)(?!\d|[,.]\d|\s*-?\s*(?:bed|bath))(?:\s*(million|m|k)\b)?"

PRICE_UNDER_RE = re.compile(r"\b(?:under|below|less than|max(?:imum)?)\s*" + _AMOUNT, re.IGNORECASE)
PRICE_OVER_RE = re.compile(r"\b(?:over|above|more than|at least|min(?:imum)?)\s*" + _AMOUNT, re.IGNORECASE)
PRICE_AROUND_RE = re.compile(r"\b(?:around|about|approximately|near)\s*" + _AMOUNT, re.IGNORECASE)

AROUND_BAND = 0.2

MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "million": 1_000_000}


def parse_amount(digits: str, suffix: Optional[str]) -> int:
    value = float(digits.replace(",", ""))
    if suffix:
        value *= MULTIPLIERS[suffix.lower()]
    return int(round(value))


def match_bedrooms(query: str) -> Optional[int]:
    m = BEDROOM_RE.search(query)
    return int(m.group(1)) if m else None


def match_bathrooms(query: str) -> Optional[int]:
    m = BATHROOM_RE.search(query)
    return int(m.group(1)) if m else None


def match_types(query: str) -> Optional[List[str]]:
    low = query.lower()
    found = [t for t in PROPERTY_TYPES if t.lower() in low]
    return found or None


def match_price_under(query: str) -> Optional[PriceRange]:
    m = PRICE_UNDER_RE.search(query)
    if not m:
        return None
    return PriceRange(max=parse_amount(m.group(1), m.group(2)))


def match_price_over(query: str) -> Optional[PriceRange]:
    m = PRICE_OVER_RE.search(query)
    if not m:
        return None
    return PriceRange(min=parse_amount(m.group(1), m.group(2)))


def match_price_around(query: str) -> Optional[PriceRange]:
    m = PRICE_AROUND_RE.search(query)
    if not m:
        return None
    target = parse_amount(m.group(1), m.group(2))
    return PriceRange(
        min=int(round(target * (1 - AROUND_BAND))),
        max=int(round(target * (1 + AROUND_BAND))),
        target=target,
    )


PRICE_MATCHERS: List[Callable[[str], Optional[PriceRange]]] = [
    match_price_under,
    match_price_over,
    match_price_around,
]


def merge_price_ranges(a: Optional[PriceRange], b: PriceRange) -> PriceRange:
    """Apply both constraints: keep the tightest bounds and the latest target."""
    if a is None:
        return b
    mins = [v for v in (a.min, b.min) if v is not None]
    maxes = [v for v in (a.max, b.max) if v is not None]
    return PriceRange(
        min=max(mins) if mins else None,
        max=min(maxes) if maxes else None,
        target=b.target if b.target is not None else a.target,
    )


def match_price(query: str) -> Optional[PriceRange]:
    price = None
    for matcher in PRICE_MATCHERS:
        found = matcher(query)
        if found is not None:
            price = merge_price_ranges(price, found)
    return price


def extract_query_attributes(query: str) -> QueryAttributes:
    text = query or ""
    return QueryAttributes(
        bedrooms=match_bedrooms(text),
        bathrooms=match_bathrooms(text),
        types=match_types(text),
        price=match_price(text),
        location=parse_location_query(text),
    )
