"""
Plain text matching used when the embedding or vector search provider fails.

Results go through the same attribute boosting and renormalization as
vector-search results.
"""

import re
from typing import Iterable, List, Tuple

from .listing_store import ListingStore
from .models import Listing, QueryAttributes, ScoredResult
from .ranking import MAX_RESULTS, rank_listings

BASE_SCORE = 0.5

SUBSTRING_FIELDS = ("title", "description", "location", "type", "style", "view", "furnishing")
# boost when the whole query appears in the field
FIELD_BOOSTS = {"title": 0.25, "type": 0.20, "style": 0.15, "view": 0.15}
# boost per query term found as a whole word in the field
TERM_BOOSTS = {"title": 0.15, "type": 0.15, "style": 0.10, "view": 0.10}
MIN_TERM_LENGTH = 4

_TERM_PUNCTUATION = ".,;:!?\"'()[]"


def query_terms(query: str) -> List[str]:
    terms = []
    for raw in query.lower().split():
        term = raw.strip(_TERM_PUNCTUATION)
        if len(term) >= MIN_TERM_LENGTH:
            terms.append(term)
    return terms


def text_score(listing: Listing, query: str, terms: List[str]):
    """Return the fallback score for one listing, or None when nothing matches."""
    q = query.lower()
    score = BASE_SCORE
    matched = False

    for field in SUBSTRING_FIELDS:
        if q in getattr(listing, field).lower():
            matched = True
            score += FIELD_BOOSTS.get(field, 0.0)

    for term in terms:
        pattern = re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE)
        for field, boost in TERM_BOOSTS.items():
            if pattern.search(getattr(listing, field)):
                matched = True
                score += boost

    return score if matched else None


def text_match_listings(listings: Iterable[Listing], query: str) -> List[Tuple[Listing, float]]:
    query = (query or "").strip()
    if not query:
        return [(listing, BASE_SCORE) for listing in listings]

    terms = query_terms(query)
    matches = []
    for listing in listings:
        score = text_score(listing, query, terms)
        if score is not None:
            matches.append((listing, score))
    matches.sort(key=lambda pair: pair[1], reverse=True)
    return matches


def fallback_search(
    store: ListingStore,
    query: str,
    attrs: QueryAttributes,
    limit: int = MAX_RESULTS,
) -> List[ScoredResult]:
    return rank_listings(text_match_listings(store.all(), query), attrs, limit=limit)
