from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Listing:
    """A property listing. Loaded once at startup and never mutated."""

    id: str
    title: str
    description: str
    location: str
    type: str
    style: str
    bedrooms: int
    bathrooms: int
    price: int
    view: str
    furnishing: str
    coordinates: Optional[Coordinates] = None

    def embedding_text(self) -> str:
        return (
            f"{self.title}. {self.description}. {self.type} in {self.location}. "
            f"{self.style} style. {self.bedrooms} bedrooms. {self.bathrooms} bathrooms. "
            f"{self.view} view. {self.furnishing}."
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "type": self.type,
            "style": self.style,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "price": self.price,
            "view": self.view,
            "furnishing": self.furnishing,
        }
        if self.coordinates is not None:
            data["coordinates"] = self.coordinates.to_dict()
        return data


@dataclass(frozen=True)
class PriceRange:
    min: Optional[int] = None
    max: Optional[int] = None
    target: Optional[int] = None

    def is_empty(self) -> bool:
        return self.min is None and self.max is None and self.target is None


@dataclass(frozen=True)
class TargetLocation:
    name: str
    coordinates: Coordinates


@dataclass(frozen=True)
class QueryAttributes:
    """Constraints extracted from one query string. Every field is optional."""

    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    types: Optional[List[str]] = None
    price: Optional[PriceRange] = None
    location: Optional[TargetLocation] = None

    def is_empty(self) -> bool:
        return (
            self.bedrooms is None
            and self.bathrooms is None
            and not self.types
            and self.price is None
            and self.location is None
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.bedrooms is not None:
            data["bedrooms"] = self.bedrooms
        if self.bathrooms is not None:
            data["bathrooms"] = self.bathrooms
        if self.types:
            data["types"] = list(self.types)
        if self.price is not None:
            data["price"] = {k: v for k, v in (("min", self.price.min), ("max", self.price.max), ("target", self.price.target)) if v is not None}
        if self.location is not None:
            data["location"] = {"name": self.location.name, **self.location.coordinates.to_dict()}
        return data


@dataclass(frozen=True)
class Candidate:
    """A vector-search hit: listing id plus raw similarity score."""

    id: str
    score: float


@dataclass
class ScoredResult:
    listing: Listing
    score: float
    exact_match: bool = False
    distance: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.listing.to_dict()
        data["score"] = self.score
        data["exactMatch"] = self.exact_match
        if self.distance is not None:
            data["distance"] = round(self.distance, 2)
        return data


@dataclass(frozen=True)
class NumericRange:
    min: int = 0
    max: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class FilterOptions:
    types: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    bedrooms: NumericRange = field(default_factory=NumericRange)
    bathrooms: NumericRange = field(default_factory=NumericRange)
    price: NumericRange = field(default_factory=NumericRange)
    views: List[str] = field(default_factory=list)
    furnishings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": list(self.types),
            "styles": list(self.styles),
            "locations": list(self.locations),
            "bedrooms": self.bedrooms.to_dict(),
            "bathrooms": self.bathrooms.to_dict(),
            "price": self.price.to_dict(),
            "views": list(self.views),
            "furnishings": list(self.furnishings),
        }
