import random
from typing import List

from .geocoding import get_coordinates
from .models import Listing

DEMO_LISTING_COUNT = 125
DEMO_SEED = 42

LOCATIONS = ['Chelsea', 'Wimbledon', 'Greenwich', 'Canary Wharf', 'Richmond', 'Camden',
             'Islington', 'Kensington', 'Hammersmith', 'Brixton', 'Hackney', 'Clapham',
             'Fulham', 'Notting Hill', 'Shoreditch', 'Battersea', 'Mayfair', 'Dulwich']

TYPES = ['House', 'Flat', 'Bungalow', 'Penthouse', 'Townhouse', 'Studio', 'Cottage', 'Duplex', 'Mansion']

STYLES = ['Modern', 'Victorian', 'Contemporary', 'Traditional', 'Art Deco', 'Georgian',
          'Minimalist', 'Industrial', 'Scandinavian', 'Rustic', 'Mediterranean', 'Colonial']

VIEWS = ['Park View', 'Garden View', 'River View', 'City View', 'Mountain View', 'No View',
         'Sea View', 'Lake View', 'Forest View']

FURNISHINGS = ['Furnished', 'Unfurnished', 'Part-Furnished']


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'s' if n > 1 else ''}"


def generate_demo_listings(count: int = DEMO_LISTING_COUNT, seed: int = DEMO_SEED) -> List[Listing]:
    """Deterministic stand-in data for when no listing CSV is present."""
    rng = random.Random(seed)
    listings = []
    for i in range(count):
        location = rng.choice(LOCATIONS)
        ptype = rng.choice(TYPES)
        style = rng.choice(STYLES)
        bedrooms = rng.randint(1, 6)
        bathrooms = rng.randint(1, 4)
        price = rng.randint(300_000, 2_299_999)
        view = rng.choice(VIEWS)
        furnishing = rng.choice(FURNISHINGS)

        description = (
            f"A {style.lower()} {ptype.lower()} located in {location}, "
            f"featuring {_plural(bedrooms, 'bedroom')}, {_plural(bathrooms, 'bathroom')}, "
            f"with a {view.lower()}, and is {furnishing.lower()}. This property offers a great "
            f"blend of style and comfort with modern amenities and an ideal location."
        )
        listings.append(Listing(
            id=str(i + 1),
            title=f"{style} {bedrooms}-bedroom {ptype} in {location}",
            description=description,
            location=location,
            type=ptype,
            style=style,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            price=price,
            view=view,
            furnishing=furnishing,
            coordinates=get_coordinates(location),
        ))
    return listings
