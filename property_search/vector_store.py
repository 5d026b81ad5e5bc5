"""
Minimal Pinecone data-plane client over plain HTTP.

Only what the search path and the indexing CLI need: query by vector (ids and
scores, no metadata) and batched upsert.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import requests

from .config import PINECONE_KEY_NAME, DEFAULT_INDEX_NAME, require_credential
from .exceptions import ProviderAuthError, ProviderError, RateLimitError
from .models import Candidate

logger = logging.getLogger(__name__)

PROVIDER = "pinecone"
CONTROL_PLANE_URL = "https://api.pinecone.io"
API_VERSION = "2024-07"
UPSERT_BATCH_SIZE = 100


def _raise_for_resp(resp: requests.Response):
    if resp.ok:
        return
    # include snippet of body for debugging
    text = (resp.text or "").strip()[:2000]
    message = f"Pinecone error {resp.status_code}: {text}"
    if resp.status_code in (401, 403):
        raise ProviderAuthError(message, provider=PROVIDER, key=PINECONE_KEY_NAME)
    if resp.status_code == 429:
        raise RateLimitError(message, provider=PROVIDER)
    raise ProviderError(message, provider=PROVIDER)


def _json_body(resp: requests.Response) -> dict:
    try:
        data = resp.json()
    except ValueError as exc:
        raise ProviderError(f"Pinecone returned a non-JSON body: {exc}", provider=PROVIDER) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ProviderError(f"Pinecone returned unexpected JSON: {type(data).__name__}", provider=PROVIDER)
    return data


class VectorStore:
    def __init__(
        self,
        index_name: str = DEFAULT_INDEX_NAME,
        index_host: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.index_name = index_name
        self.timeout = timeout
        self._host = self._normalise_host(index_host) if index_host else None
        self._session = session or requests.Session()

    @staticmethod
    def _normalise_host(host: str) -> str:
        host = host.strip().rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = "https://" + host
        return host

    def _headers(self) -> dict:
        return {
            "Api-Key": require_credential(PINECONE_KEY_NAME),
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Pinecone-API-Version": API_VERSION,
        }

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            resp = self._session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ProviderError(f"Pinecone request failed: {exc}", provider=PROVIDER) from exc
        _raise_for_resp(resp)
        return resp

    def host(self) -> str:
        """Data-plane host for the index, looked up from the control plane on first use."""
        if self._host is None:
            resp = self._request("GET", f"{CONTROL_PLANE_URL}/indexes/{self.index_name}")
            host = _json_body(resp).get("host")
            if not host:
                raise ProviderError(f"Pinecone index {self.index_name!r} has no host", provider=PROVIDER)
            self._host = self._normalise_host(host)
            logger.info("Resolved Pinecone index %s to %s", self.index_name, self._host)
        return self._host

    def query(self, vector: Sequence[float], top_k: int = 20) -> List[Candidate]:
        body = {
            "vector": list(vector),
            "topK": top_k,
            "includeMetadata": False,
            "includeValues": False,
        }
        resp = self._request("POST", f"{self.host()}/query", json=body)
        matches = _json_body(resp).get("matches") or []
        results = []
        try:
            for match in matches:
                score = match.get("score")
                results.append(Candidate(
                    id=str(match["id"]),
                    score=float(score) if isinstance(score, (int, float)) else 0.0,
                ))
        except (AttributeError, KeyError, TypeError) as exc:
            raise ProviderError(f"Malformed Pinecone match: {exc!r}", provider=PROVIDER) from exc
        return results

    def upsert(self, vectors: Sequence[Tuple[str, Sequence[float]]], batch_size: int = UPSERT_BATCH_SIZE) -> int:
        """Upsert ``(id, values)`` pairs in batches; returns the number written."""
        written = 0
        for start in range(0, len(vectors), batch_size):
            batch = vectors[start:start + batch_size]
            body = {"vectors": [{"id": str(vid), "values": list(values)} for vid, values in batch]}
            resp = self._request("POST", f"{self.host()}/vectors/upsert", json=body)
            count = _json_body(resp).get("upsertedCount", len(batch))
            try:
                written += int(count)
            except (TypeError, ValueError) as exc:
                raise ProviderError(f"Malformed Pinecone upsert count: {count!r}", provider=PROVIDER) from exc
        return written
