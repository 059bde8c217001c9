"""Enrichment pipeline re-indexing crawled documents with embeddings.

Orchestrates:
- Target index creation from the merged source mapping
- Paging through the source index
- Title and per-passage body embeddings
- Bulk writes of each enriched page
"""
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from esrag import config
from esrag.errors import EncodingError, ResponseParseError
from esrag.interfaces import CollectionStore
from esrag.rag.chunker import PassageChunker
from esrag.rag.encoder import Encoder
from esrag.rag.mapping import merge_mapping, vector_fields_mapping

logger = structlog.get_logger()

TITLE_EMBEDDING_FIELD = "titleEmbedding"
BODY_CHUNKS_FIELD = "bodyChunks"


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    return str(value)


class DocumentEnricher:
    """Copies a source index into a target index, adding embeddings."""

    def __init__(
        self,
        encoder: Encoder,
        store: CollectionStore,
        chunker: Optional[PassageChunker] = None,
        page_size: int = None,
        max_pages: Optional[int] = None,
        embedding_dims: int = None,
    ):
        """Initialize the enricher.

        Args:
            encoder: Encoder used for titles and passages
            store: Document store holding both indices
            chunker: Passage chunker (default: config word limit)
            page_size: Documents per page and per bulk write (default from config)
            max_pages: Optional bound on pages processed; None keeps paging
                until the store returns an empty page
            embedding_dims: Vector dimensionality in the target mapping
        """
        self.encoder = encoder
        self.store = store
        self.chunker = chunker or PassageChunker()
        self.page_size = page_size or config.PAGE_SIZE
        self.max_pages = max_pages
        self.embedding_dims = embedding_dims or config.EMBEDDING_DIMS

        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            "total_hits": 0,
            "pages_processed": 0,
            "documents_processed": 0,
            "titles_embedded": 0,
            "passages_embedded": 0,
        }

    async def create_target_index(self, source_index: str, target_index: str) -> Dict[str, Any]:
        """Create the target index from the source mapping plus vector fields.

        Returns:
            The merged mapping the index was created with
        """
        source_mapping = await self.store.get_index_mapping(source_index)
        merged_mapping = merge_mapping(source_mapping, vector_fields_mapping(self.embedding_dims))

        await self.store.create_index(target_index, merged_mapping)

        logger.info(
            "target_index_created",
            source_index=source_index,
            target_index=target_index,
            field_count=len(merged_mapping["mappings"]["properties"]),
        )
        return merged_mapping

    async def _embed(self, text: str) -> List[float]:
        vector = await self.encoder.encode(text)
        if len(vector) != self.embedding_dims:
            raise EncodingError(
                f"Embedding has {len(vector)} dimensions, index expects {self.embedding_dims}",
                details={"dims": len(vector), "expected_dims": self.embedding_dims},
            )
        return vector

    async def enrich_document(self, hit: Mapping[str, Any]) -> Dict[str, Any]:
        """Build the enriched source of one search hit.

        All source fields are copied as-is; titleEmbedding is set only for a
        non-blank title and bodyChunks is always set.
        """
        source = hit.get("_source") or {}
        enriched = dict(source)

        title = _as_text(source.get("title"))
        if title.strip():
            enriched[TITLE_EMBEDDING_FIELD] = await self._embed(title)
            self.stats["titles_embedded"] += 1
        else:
            enriched.pop(TITLE_EMBEDDING_FIELD, None)

        body = _as_text(source.get("body"))
        body_chunks: List[Dict[str, Any]] = []

        if body.strip():
            passages = self.chunker.split_into_passages(body)
            logger.info(
                "processing_passages",
                doc_id=hit.get("_id"),
                url=_as_text(source.get("url")),
                passage_count=len(passages),
            )

            for passage in passages:
                body_chunks.append({
                    "passage": passage,
                    "predictedValue": await self._embed(passage),
                })
            self.stats["passages_embedded"] += len(passages)

        enriched[BODY_CHUNKS_FIELD] = body_chunks
        return enriched

    async def process_documents(
        self,
        source_index: str,
        target_index: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Dict[str, int]:
        """Re-index every document of source_index into target_index.

        Pages are fetched with offset and limit until a page comes back
        empty. Each page is written with one bulk request keyed by the
        source document id, so a re-run overwrites earlier results.

        Args:
            source_index: Index with crawled documents
            target_index: Index to create and fill
            progress_callback: Optional callback(documents_processed, total_hits)

        Returns:
            Dictionary with enrichment statistics

        Raises:
            BackendStatusError: If the store rejects a request
            EncodingError: If an embedding cannot be computed
        """
        self.stats = self._empty_stats()

        logger.info(
            "enrichment_started",
            source_index=source_index,
            target_index=target_index,
            page_size=self.page_size,
        )

        await self.create_target_index(source_index, target_index)

        offset = 0
        while self.max_pages is None or self.stats["pages_processed"] < self.max_pages:
            response = await self.store.search(source_index, offset, self.page_size)
            hits = self._page_hits(response)

            if self.stats["pages_processed"] == 0:
                self.stats["total_hits"] = self._total_hits(response)
                logger.info("documents_to_process", total_hits=self.stats["total_hits"])

            if not hits:
                break

            enriched_docs = {}
            for hit in hits:
                if "_id" not in hit:
                    raise ResponseParseError("Search hit has no '_id'", details={"offset": offset})
                enriched_docs[str(hit["_id"])] = await self.enrich_document(hit)

            await self.store.bulk_index(target_index, enriched_docs)

            self.stats["pages_processed"] += 1
            self.stats["documents_processed"] += len(enriched_docs)

            logger.info(
                "page_indexed",
                offset=offset,
                documents=len(enriched_docs),
                processed=self.stats["documents_processed"],
                total_hits=self.stats["total_hits"],
            )

            if progress_callback:
                progress_callback(self.stats["documents_processed"], self.stats["total_hits"])

            offset += self.page_size
        else:
            logger.warning("page_limit_reached", max_pages=self.max_pages, offset=offset)

        logger.info("enrichment_completed", stats=self.stats)

        return self.stats

    @staticmethod
    def _page_hits(response: Mapping[str, Any]) -> List[Mapping[str, Any]]:
        hits = response.get("hits")
        if not isinstance(hits, Mapping) or not isinstance(hits.get("hits"), list):
            raise ResponseParseError("Search response has no 'hits.hits' list")
        return hits["hits"]

    @staticmethod
    def _total_hits(response: Mapping[str, Any]) -> int:
        total = response["hits"].get("total", 0)
        if isinstance(total, Mapping):
            total = total.get("value", 0)
        return int(total or 0)
