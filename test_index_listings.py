import unittest
from unittest.mock import MagicMock

from property_search.exceptions import ProviderAuthError, ProviderError
from property_search.index_listings import run_ingest
from property_search.demo_listings import generate_demo_listings
from property_search.listing_store import ListingStore


class TestRunIngest(unittest.TestCase):

    def setUp(self):
        self.store = ListingStore(generate_demo_listings(5))
        self.embedder = MagicMock()
        self.vectors = MagicMock()
        self.vectors.upsert.side_effect = lambda vectors, batch_size: len(vectors)

    def test_embeds_and_upserts(self):
        self.embedder.embed.return_value = [0.5]
        summary = run_ingest(self.store, self.embedder, self.vectors)
        self.assertEqual(summary, {"listings": 5, "upserted": 5, "failed": 0})
        first_text = self.embedder.embed.call_args_list[0].args[0]
        self.assertIn("bedrooms.", first_text)
        self.assertIn(" style.", first_text)

    def test_failed_embeddings_are_skipped(self):
        self.embedder.embed.side_effect = [[0.1], ProviderError("boom"), [0.2], [0.3], [0.4]]
        summary = run_ingest(self.store, self.embedder, self.vectors)
        self.assertEqual(summary["failed"], 1)
        vectors = self.vectors.upsert.call_args.args[0]
        self.assertEqual([vid for vid, _ in vectors], ["1", "3", "4", "5"])

    def test_auth_error_aborts(self):
        self.embedder.embed.side_effect = ProviderAuthError("401", provider="openai", key="OPENAI_API_KEY")
        with self.assertRaises(ProviderAuthError):
            run_ingest(self.store, self.embedder, self.vectors)
        self.vectors.upsert.assert_not_called()


if __name__ == '__main__':
    unittest.main()
