"""Capability interfaces for the backends the pipeline talks to.

The concrete implementations are ElasticsearchConnector and OllamaClient;
tests substitute in-memory fakes.
"""
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Protocol

from esrag.llm_client import GenerationChunk


class CollectionStore(Protocol):
    """Document store holding the source and target indices."""

    async def create_index(self, index_name: str, mapping: Mapping[str, Any]) -> None: ...

    async def get_index_mapping(self, index_name: str) -> Dict[str, Any]: ...

    async def search(self, index_name: str, offset: int, size: int) -> Dict[str, Any]: ...

    async def search_with_custom_query(
        self, index_name: str, query: Mapping[str, Any]
    ) -> Dict[str, Any]: ...

    async def bulk_index(
        self, index_name: str, documents: Mapping[str, Mapping[str, Any]]
    ) -> Dict[str, Any]: ...


class EmbeddingService(Protocol):
    """Text to vector backend."""

    async def embeddings(self, prompt: str, model: str = None) -> Dict: ...


class TextGenerationService(Protocol):
    """Text to streamed text backend."""

    def generate(
        self, prompt: str, options: Optional[Mapping[str, Any]] = None
    ) -> AsyncIterator[GenerationChunk]: ...
