"""
Read-only listing table.

Built once at startup, then handed to the request handlers. Nothing writes
to it after construction.
"""

import csv
import logging
import os
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional

from .exceptions import ConfigError
from .geocoding import get_coordinates
from .models import FilterOptions, Listing, NumericRange

logger = logging.getLogger(__name__)

CSV_COLUMNS = ("id", "title", "description", "location", "type", "style",
               "bedrooms", "bathrooms", "price", "view", "furnishing")


def _distinct(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return list(seen)


def _range(values: List[int]) -> NumericRange:
    if not values:
        return NumericRange()
    return NumericRange(min=min(values), max=max(values))


def listing_from_row(row: Dict[str, str]) -> Listing:
    missing = [c for c in CSV_COLUMNS if c not in row]
    if missing:
        raise ConfigError(f"Listing row is missing columns: {', '.join(missing)}")
    location = row["location"].strip()
    try:
        return Listing(
            id=row["id"].strip(),
            title=row["title"].strip(),
            description=row["description"].strip(),
            location=location,
            type=row["type"].strip(),
            style=row["style"].strip(),
            bedrooms=int(row["bedrooms"]),
            bathrooms=int(row["bathrooms"]),
            price=int(float(row["price"])),
            view=row["view"].strip(),
            furnishing=row["furnishing"].strip(),
            coordinates=get_coordinates(location),
        )
    except ValueError as exc:
        raise ConfigError(f"Bad numeric value in listing {row.get('id')!r}: {exc}") from exc


class ListingStore:
    def __init__(self, listings: Iterable[Listing]):
        table: Dict[str, Listing] = {}
        for listing in listings:
            if listing.id in table:
                logger.warning("Duplicate listing id %s; keeping the first", listing.id)
                continue
            table[listing.id] = listing
        self._listings = MappingProxyType(table)

    @classmethod
    def from_csv(cls, path: str) -> "ListingStore":
        with open(path, "r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            listings = [listing_from_row(row) for row in reader if any(isinstance(v, str) and v.strip() for v in row.values())]
        logger.info("Loaded %d listings from %s", len(listings), path)
        return cls(listings)

    @classmethod
    def load(cls, path: str) -> "ListingStore":
        """Load the CSV at ``path``, or generate demo listings when it does not exist."""
        if os.path.exists(path):
            return cls.from_csv(path)
        from .demo_listings import generate_demo_listings

        logger.warning("Listing file %s not found; using generated demo listings", path)
        return cls(generate_demo_listings())

    def __len__(self) -> int:
        return len(self._listings)

    def __contains__(self, listing_id: str) -> bool:
        return listing_id in self._listings

    def get(self, listing_id: str) -> Optional[Listing]:
        return self._listings.get(str(listing_id))

    def get_many(self, ids: Iterable[str]) -> List[Listing]:
        found = (self._listings.get(str(i)) for i in ids)
        return [listing for listing in found if listing is not None]

    def all(self) -> List[Listing]:
        return list(self._listings.values())

    def filter_options(self) -> FilterOptions:
        listings = self.all()
        return FilterOptions(
            types=_distinct(p.type for p in listings),
            styles=_distinct(p.style for p in listings),
            locations=_distinct(p.location for p in listings),
            bedrooms=_range([p.bedrooms for p in listings]),
            bathrooms=_range([p.bathrooms for p in listings]),
            price=_range([p.price for p in listings]),
            views=_distinct(p.view for p in listings),
            furnishings=_distinct(p.furnishing for p in listings),
        )
