import unittest

from property_search.geocoding import LOCATION_COORDINATES, calculate_distance, proximity_boost
from property_search.listing_store import ListingStore
from property_search.models import (
    Candidate,
    Coordinates,
    Listing,
    PriceRange,
    QueryAttributes,
    ScoredResult,
    TargetLocation,
)
from property_search.ranking import (
    _price_target_boost,
    join_candidates,
    rank_candidates,
    rank_listings,
    renormalize,
    score_listing,
)

CHELSEA = LOCATION_COORDINATES["Chelsea"]


def make_listing(lid, **overrides):
    data = dict(
        id=str(lid), title=f"Listing {lid}", description="A home", location="Chelsea",
        type="Flat", style="Modern", bedrooms=2, bathrooms=1, price=500000,
        view="City View", furnishing="Furnished", coordinates=CHELSEA,
    )
    data.update(overrides)
    return Listing(**data)


class TestScoreListing(unittest.TestCase):

    def test_proximity_prefers_closer_listing(self):
        near = make_listing(1)
        far = make_listing(2, coordinates=Coordinates(CHELSEA.lat + 0.6, CHELSEA.lng))
        attrs = QueryAttributes(location=TargetLocation("Chelsea", CHELSEA))

        far_km = calculate_distance(far.coordinates, CHELSEA)
        self.assertGreater(far_km, 50)
        self.assertGreater(proximity_boost(0.0), proximity_boost(far_km))

        results = rank_listings([(far, 0.8), (near, 0.8)], attrs)
        self.assertEqual([r.listing.id for r in results], ["1", "2"])
        self.assertTrue(results[0].exact_match)
        self.assertFalse(results[1].exact_match)
        self.assertAlmostEqual(results[0].distance, 0.0)

    def test_location_boost_values(self):
        attrs = QueryAttributes(location=TargetLocation("Chelsea", CHELSEA))
        result = score_listing(make_listing(1), 0.5, attrs)
        # 0.4 proximity + 0.2 within 2km + 0.5 exact
        self.assertAlmostEqual(result.score, 0.5 + 0.4 + 0.2 + 0.5)

    def test_location_name_without_coordinates(self):
        attrs = QueryAttributes(location=TargetLocation("Chelsea", CHELSEA))
        hit = score_listing(make_listing(1, location="Chelsea Harbour", coordinates=None), 0.5, attrs)
        miss = score_listing(make_listing(2, location="Camden", coordinates=None), 0.5, attrs)
        self.assertAlmostEqual(hit.score, 0.5 + 0.15 + 0.5)
        self.assertTrue(hit.exact_match)
        self.assertAlmostEqual(miss.score, 0.5)
        self.assertFalse(miss.exact_match)
        self.assertIsNone(miss.distance)

    def test_type_mismatch_clears_exact(self):
        result = score_listing(make_listing(1, type="House"), 0.7, QueryAttributes(types=["Flat"]))
        self.assertFalse(result.exact_match)
        self.assertAlmostEqual(result.score, 0.7)

    def test_type_match(self):
        result = score_listing(make_listing(1), 0.7, QueryAttributes(types=["flat"]))
        self.assertTrue(result.exact_match)
        self.assertAlmostEqual(result.score, 0.7 + 0.2 + 0.5)

    def test_price_bounds(self):
        attrs = QueryAttributes(price=PriceRange(min=400000, max=600000))
        inside = score_listing(make_listing(1, price=500000), 0.0, attrs)
        above = score_listing(make_listing(2, price=700000), 0.0, attrs)
        self.assertAlmostEqual(inside.score, 0.2 + 0.2 + 0.5)
        self.assertTrue(inside.exact_match)
        self.assertAlmostEqual(above.score, 0.2)
        self.assertFalse(above.exact_match)

    def test_price_target_tiers(self):
        self.assertEqual(_price_target_boost(104000, 100000), 0.35)
        self.assertEqual(_price_target_boost(91000, 100000), 0.25)
        self.assertEqual(_price_target_boost(118000, 100000), 0.15)
        self.assertIsNone(_price_target_boost(130000, 100000))

    def test_price_target_outside_band_clears_exact(self):
        attrs = QueryAttributes(price=PriceRange(target=100000))
        self.assertFalse(score_listing(make_listing(1, price=200000), 0.1, attrs).exact_match)

    def test_room_counts(self):
        attrs = QueryAttributes(bedrooms=2, bathrooms=2)
        result = score_listing(make_listing(1, bedrooms=2, bathrooms=1), 0.0, attrs)
        self.assertAlmostEqual(result.score, 0.3)
        self.assertFalse(result.exact_match)


class TestOrdering(unittest.TestCase):

    def test_exact_matches_first(self):
        listings = [
            (make_listing(1, bedrooms=3), 0.1),
            (make_listing(2, bedrooms=2), 0.95),
            (make_listing(3, bedrooms=3), 0.3),
            (make_listing(4, bedrooms=2), 0.5),
        ]
        results = rank_listings(listings, QueryAttributes(bedrooms=3))
        self.assertEqual([r.listing.id for r in results], ["3", "1", "2", "4"])
        self.assertEqual([r.exact_match for r in results], [True, True, False, False])
        self.assertEqual(results[0].score, 100.0)
        self.assertEqual(results[-1].score, 0.0)

    def test_no_attributes_sorts_by_similarity(self):
        listings = [(make_listing(1), 0.2), (make_listing(2), 0.9), (make_listing(3), 0.5)]
        results = rank_listings(listings, QueryAttributes())
        self.assertEqual([r.listing.id for r in results], ["2", "3", "1"])
        self.assertFalse(any(r.exact_match for r in results))

    def test_capped_at_twenty(self):
        listings = [(make_listing(i), i / 100) for i in range(30)]
        results = rank_listings(listings, QueryAttributes())
        self.assertEqual(len(results), 20)
        self.assertEqual(results[0].listing.id, "29")


class TestRenormalize(unittest.TestCase):

    def test_distinct_scores(self):
        results = [ScoredResult(make_listing(i), s) for i, s in enumerate([0.9, 0.5, 0.7])]
        renormalize(results)
        self.assertEqual([r.score for r in results], [100.0, 0.0, 50.0])

    def test_equal_scores(self):
        results = [ScoredResult(make_listing(i), 0.42) for i in range(3)]
        renormalize(results)
        self.assertEqual([r.score for r in results], [100.0, 100.0, 100.0])

    def test_rounds_to_two_decimals(self):
        results = [ScoredResult(make_listing(i), s) for i, s in enumerate([0.0, 1.0, 3.0])]
        renormalize(results)
        self.assertEqual(results[1].score, 33.33)

    def test_empty(self):
        self.assertEqual(renormalize([]), [])


class TestJoin(unittest.TestCase):

    def test_unknown_ids_dropped(self):
        store = ListingStore([make_listing(1), make_listing(2)])
        joined = join_candidates([Candidate("2", 0.9), Candidate("99", 0.8), Candidate("1", 0.7)], store)
        self.assertEqual([(l.id, s) for l, s in joined], [("2", 0.9), ("1", 0.7)])

    def test_rank_candidates(self):
        store = ListingStore([make_listing(1, type="House"), make_listing(2)])
        results = rank_candidates([Candidate("1", 0.9), Candidate("2", 0.6)], store, QueryAttributes(types=["Flat"]))
        self.assertEqual(results[0].listing.id, "2")
        self.assertTrue(results[0].exact_match)


if __name__ == '__main__':
    unittest.main()
