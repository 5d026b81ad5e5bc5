import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import OPENAI_KEY_NAME, PINECONE_KEY_NAME, Settings, require_credential
from .embeddings import EmbeddingClient
from .exceptions import ProviderAuthError, ProviderError, ValidationError
from .fallback import fallback_search
from .listing_store import ListingStore
from .models import QueryAttributes, ScoredResult
from .query_attributes import extract_query_attributes
from .ranking import MAX_RESULTS, rank_candidates
from .tracing import add_step, finish_trace, start_trace
from .vector_store import VectorStore

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 1000

SOURCE_VECTOR = "vector"
SOURCE_FALLBACK = "fallback"


def validate_search_request(data: Any) -> str:
    """Return the stripped query from a request body or raise ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    query = data.get("query")
    if not isinstance(query, str):
        raise ValidationError("query must be a string")
    query = query.strip()
    if not query:
        raise ValidationError("query must not be empty")
    if len(query) > MAX_QUERY_LENGTH:
        raise ValidationError(f"query must be at most {MAX_QUERY_LENGTH} characters")
    return query


@dataclass
class SearchOutcome:
    results: List[ScoredResult]
    attributes: QueryAttributes
    source: str
    fallback_reason: Optional[str] = None

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.results]


class SearchService:
    """
    Runs one search request end to end.

    Both provider keys are checked before any network call. The embedding
    client owns the only retry loop; once it gives up, or the vector search
    fails for any reason other than a rejected key, the request is answered
    by the text fallback instead.
    """

    def __init__(
        self,
        store: ListingStore,
        embedder: EmbeddingClient,
        vector_store: VectorStore,
        top_k: int = MAX_RESULTS,
        trace_path: Optional[str] = None,
    ):
        self.store = store
        self.embedder = embedder
        self.vector_store = vector_store
        self.top_k = top_k
        self.trace_path = trace_path

    @classmethod
    def from_settings(cls, settings: Settings, store: ListingStore) -> "SearchService":
        embedder = EmbeddingClient(
            model=settings.embedding_model,
            max_attempts=settings.embedding_max_attempts,
            max_backoff=settings.embedding_max_backoff,
            timeout=settings.request_timeout,
        )
        vector_store = VectorStore(
            index_name=settings.index_name,
            index_host=settings.index_host,
            timeout=settings.request_timeout,
        )
        return cls(store, embedder, vector_store, top_k=settings.top_k, trace_path=settings.trace_path)

    @staticmethod
    def check_credentials():
        require_credential(OPENAI_KEY_NAME)
        require_credential(PINECONE_KEY_NAME)

    def search(self, query: str) -> SearchOutcome:
        self.check_credentials()

        attrs = extract_query_attributes(query)
        trace = start_trace(query, attrs.to_dict())

        try:
            vector = self.embedder.embed(query)
            add_step(trace, {"step": "embed", "dimensions": len(vector)})
            candidates = self.vector_store.query(vector, top_k=self.top_k)
            add_step(trace, {"step": "vector_query", "matches": len(candidates)})
        except ProviderAuthError:
            raise
        except ProviderError as exc:
            logger.warning("Vector search unavailable (%s: %s); using text fallback", exc.provider, exc)
            add_step(trace, {"step": "fallback", "reason": str(exc)[:200]})
            results = fallback_search(self.store, query, attrs, limit=MAX_RESULTS)
            outcome = SearchOutcome(results, attrs, SOURCE_FALLBACK, fallback_reason=str(exc))
        else:
            results = rank_candidates(candidates, self.store, attrs, limit=MAX_RESULTS)
            outcome = SearchOutcome(results, attrs, SOURCE_VECTOR)

        finish_trace(trace, {
            "source": outcome.source,
            "count": len(outcome.results),
            "exact_matches": sum(1 for r in outcome.results if r.exact_match),
            "fallback_reason": outcome.fallback_reason,
        }, path=self.trace_path)
        logger.info("Search %r -> %d results via %s", query[:80], len(outcome.results), outcome.source)
        return outcome
