"""
Embed every listing and upsert the vectors into the Pinecone index.

    python -m property_search.index_listings --csv semantic_property_listings.csv
"""

import argparse
import logging
import time
from typing import Optional, Sequence

from .config import configure_logging, load_settings
from .embeddings import EmbeddingClient
from .exceptions import ProviderAuthError, ProviderError
from .listing_store import ListingStore
from .vector_store import UPSERT_BATCH_SIZE, VectorStore

logger = logging.getLogger(__name__)


def run_ingest(
    store: ListingStore,
    embedder: EmbeddingClient,
    vector_store: VectorStore,
    batch_size: int = UPSERT_BATCH_SIZE,
    batch_wait: float = 0.0,
) -> dict:
    listings = store.all()
    logger.info("Embedding %d listings", len(listings))
    vectors = []
    failed = 0
    for i, listing in enumerate(listings, start=1):
        try:
            vectors.append((listing.id, embedder.embed(listing.embedding_text())))
        except ProviderAuthError:
            raise
        except ProviderError as e:
            failed += 1
            logger.error("Embedding error for listing %s: %s", listing.id, e)
            continue
        if i % 25 == 0:
            logger.info("[%d/%d] embedded", i, len(listings))
        if batch_wait:
            time.sleep(batch_wait)  # throttle to stay under provider rate limits

    upserted = vector_store.upsert(vectors, batch_size=batch_size) if vectors else 0
    logger.info("Upserted %d vectors (%d listings skipped)", upserted, failed)
    return {"listings": len(listings), "upserted": upserted, "failed": failed}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Embed property listings and upsert them into the vector index.")
    parser.add_argument("--csv", help="Listing CSV (defaults to PROPERTY_CSV_PATH).")
    parser.add_argument("--batch-size", type=int, default=UPSERT_BATCH_SIZE, help="Vectors per upsert request.")
    parser.add_argument("--wait", type=float, default=0.0, help="Seconds to sleep between embedding calls.")
    args = parser.parse_args(argv)

    configure_logging()
    settings = load_settings()
    store = ListingStore.load(args.csv or settings.csv_path)
    embedder = EmbeddingClient(
        model=settings.embedding_model,
        max_attempts=settings.embedding_max_attempts,
        max_backoff=settings.embedding_max_backoff,
        timeout=settings.request_timeout,
    )
    vector_store = VectorStore(settings.index_name, settings.index_host, timeout=settings.request_timeout)

    summary = run_ingest(store, embedder, vector_store, batch_size=args.batch_size, batch_wait=args.wait)
    return 0 if summary["failed"] == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
