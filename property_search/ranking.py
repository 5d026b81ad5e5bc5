"""
Candidate ranking.

Blends vector-similarity scores with attribute-match boosts, moves exact
matches ahead of everything else, caps the list and rescales scores to 0-100.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .geocoding import calculate_distance, proximity_boost
from .listing_store import ListingStore
from .models import Candidate, Listing, QueryAttributes, ScoredResult

logger = logging.getLogger(__name__)

MAX_RESULTS = 20

TYPE_BOOST = 0.2
PRICE_BOUND_BOOST = 0.2
# (max relative distance from target price, boost)
PRICE_TARGET_TIERS = ((0.05, 0.35), (0.10, 0.25), (0.20, 0.15))
NEAR_DISTANCE_KM = 2.0
NEAR_BOOST = 0.2
LOCATION_NAME_BOOST = 0.15
ROOM_BOOST = 0.3
EXACT_MATCH_BONUS = 0.5


def join_candidates(candidates: Iterable[Candidate], store: ListingStore) -> List[Tuple[Listing, float]]:
    """Pair each search hit with its listing, dropping ids the store does not know."""
    joined = []
    for cand in candidates:
        listing = store.get(cand.id)
        if listing is None:
            logger.debug("Dropping candidate %s: no such listing", cand.id)
            continue
        joined.append((listing, cand.score))
    return joined


def _price_target_boost(price: int, target: int):
    if target <= 0:
        return None
    ratio = abs(price - target) / target
    for bound, boost in PRICE_TARGET_TIERS:
        if ratio <= bound:
            return boost
    return None


def score_listing(listing: Listing, raw_score: float, attrs: QueryAttributes) -> ScoredResult:
    boost = 0.0
    exact = True
    distance = None

    if attrs.types:
        if listing.type.lower() in (t.lower() for t in attrs.types):
            boost += TYPE_BOOST
        else:
            exact = False

    price = attrs.price
    if price is not None:
        if price.min is not None:
            if listing.price >= price.min:
                boost += PRICE_BOUND_BOOST
            else:
                exact = False
        if price.max is not None:
            if listing.price <= price.max:
                boost += PRICE_BOUND_BOOST
            else:
                exact = False
        if price.target is not None:
            target_boost = _price_target_boost(listing.price, price.target)
            if target_boost is None:
                exact = False
            else:
                boost += target_boost

    target = attrs.location
    if target is not None:
        if listing.coordinates is not None:
            distance = calculate_distance(listing.coordinates, target.coordinates)
            boost += proximity_boost(distance)
            if distance <= NEAR_DISTANCE_KM:
                boost += NEAR_BOOST
            else:
                exact = False
        else:
            place = target.name.lower()
            loc = listing.location.lower()
            if place in loc or (loc and loc in place):
                boost += LOCATION_NAME_BOOST
            else:
                exact = False

    if attrs.bedrooms is not None:
        if listing.bedrooms == attrs.bedrooms:
            boost += ROOM_BOOST
        else:
            exact = False

    if attrs.bathrooms is not None:
        if listing.bathrooms == attrs.bathrooms:
            boost += ROOM_BOOST
        else:
            exact = False

    if exact:
        boost += EXACT_MATCH_BONUS

    return ScoredResult(listing=listing, score=raw_score + boost, exact_match=exact, distance=distance)


def renormalize(results: List[ScoredResult]) -> List[ScoredResult]:
    """Rescale scores in place to 0-100 (2 decimals); all 100 when every score is equal."""
    if not results:
        return results
    scores = np.array([r.score for r in results], dtype=float)
    lo, hi = scores.min(), scores.max()
    if hi == lo:
        scaled = np.full(len(results), 100.0)
    else:
        scaled = np.round((scores - lo) / (hi - lo) * 100.0, 2)
    for result, value in zip(results, scaled):
        result.score = float(value)
    return results


def rank_listings(
    scored: Sequence[Tuple[Listing, float]],
    attrs: QueryAttributes,
    limit: int = MAX_RESULTS,
) -> List[ScoredResult]:
    if attrs.is_empty():
        results = [ScoredResult(listing=listing, score=score) for listing, score in scored]
        ordered = sorted(results, key=lambda r: r.score, reverse=True)
    else:
        results = [score_listing(listing, score, attrs) for listing, score in scored]
        exact = sorted((r for r in results if r.exact_match), key=lambda r: r.score, reverse=True)
        rest = sorted((r for r in results if not r.exact_match), key=lambda r: r.score, reverse=True)
        ordered = exact + rest

    return renormalize(ordered[:limit])


def rank_candidates(
    candidates: Iterable[Candidate],
    store: ListingStore,
    attrs: QueryAttributes,
    limit: int = MAX_RESULTS,
) -> List[ScoredResult]:
    return rank_listings(join_candidates(candidates, store), attrs, limit=limit)
