"""k-NN retrieval over the enriched index.

Handles:
- Query embedding generation
- k-NN request assembly against the body chunk vectors
- Hit decoding into SearchResult records
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

import httpx
import structlog

from esrag import config
from esrag.errors import BackendStatusError, ResponseParseError, SearchError
from esrag.interfaces import CollectionStore
from esrag.rag.encoder import Encoder

logger = structlog.get_logger()

BODY_VECTOR_FIELD = "bodyChunks.predictedValue"
RESULT_FIELDS = ("title", "url", "body")


@dataclass(frozen=True)
class SearchResult:
    """A single retrieved document."""

    id: str
    title: str
    url: str
    body: str
    score: float


def build_knn_query(
    query_vector: Sequence[float],
    k: int = None,
    num_candidates: int = None,
    field: str = BODY_VECTOR_FIELD,
) -> Dict[str, Any]:
    """Build a k-NN search request body.

    Only the title, url and body fields are returned, not the source
    with its vectors.
    """
    return {
        "_source": False,
        "fields": list(RESULT_FIELDS),
        "knn": {
            "field": field,
            "k": k or config.SEARCH_K,
            "num_candidates": num_candidates or config.SEARCH_NUM_CANDIDATES,
            "query_vector": list(query_vector),
        },
    }


def _first_value(fields: Mapping[str, Any], name: str):
    values = fields.get(name)
    if isinstance(values, list):
        return values[0] if values else None
    return values


def parse_search_response(response: Mapping[str, Any]) -> List[SearchResult]:
    """Decode search hits into results, keeping the backend's order.

    Raises:
        ResponseParseError: If hits are missing or a hit lacks _id, _score,
            title or url
    """
    hits = response.get("hits")
    if not isinstance(hits, Mapping) or not isinstance(hits.get("hits"), list):
        raise ResponseParseError("Search response has no 'hits.hits' list")

    results = []
    for hit in hits["hits"]:
        fields = hit.get("fields") or {}

        doc_id = hit.get("_id")
        score = hit.get("_score")
        title = _first_value(fields, "title")
        url = _first_value(fields, "url")

        missing = [
            name for name, value in (("_id", doc_id), ("_score", score), ("title", title), ("url", url))
            if value is None
        ]
        if missing:
            raise ResponseParseError(
                f"Search hit is missing required fields: {', '.join(missing)}",
                details={"doc_id": doc_id, "missing": missing},
            )

        body = _first_value(fields, "body")

        results.append(SearchResult(
            id=str(doc_id),
            title=str(title),
            url=str(url),
            body="" if body is None else str(body),
            score=float(score),
        ))

    return results


class KnnSearcher:
    """Semantic searcher over body chunk embeddings."""

    def __init__(
        self,
        encoder: Encoder,
        store: CollectionStore,
        k: int = None,
        num_candidates: int = None,
        vector_field: str = BODY_VECTOR_FIELD,
    ):
        """Initialize the searcher.

        Args:
            encoder: Encoder for query text
            store: Document store to query
            k: Number of results to return (default from config)
            num_candidates: Candidate pool per shard (default from config)
            vector_field: Vector field to search
        """
        self.encoder = encoder
        self.store = store
        self.k = k or config.SEARCH_K
        self.num_candidates = num_candidates or config.SEARCH_NUM_CANDIDATES
        self.vector_field = vector_field

    async def search(self, index_name: str, query: str) -> List[SearchResult]:
        """Retrieve the documents nearest to a query.

        Args:
            index_name: Enriched index to search
            query: User query text

        Returns:
            List of SearchResult in the backend's score order

        Raises:
            EncodingError: If the query cannot be embedded
            SearchError: If the search round trip fails
            ResponseParseError: If a hit cannot be decoded
        """
        query_vector = await self.encoder.encode(query)

        request_body = build_knn_query(
            query_vector,
            k=self.k,
            num_candidates=self.num_candidates,
            field=self.vector_field,
        )

        logger.info(
            "knn_search_started",
            index=index_name,
            k=self.k,
            num_candidates=self.num_candidates,
            query_length=len(query),
        )

        try:
            response = await self.store.search_with_custom_query(index_name, request_body)
        except (httpx.HTTPError, BackendStatusError) as e:
            logger.error(
                "knn_search_failed",
                index=index_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise SearchError(
                f"Search failed: {e}",
                details={"index": index_name},
            ) from e

        results = parse_search_response(response)

        logger.info(
            "knn_search_completed",
            index=index_name,
            results_returned=len(results),
            top_score=results[0].score if results else None,
        )

        return results
