"""Pytest configuration and in-memory backend fakes."""
import copy
import hashlib

import pytest

from esrag.errors import BackendStatusError
from esrag.llm_client import GenerationChunk
from esrag.rag.encoder import Encoder
from esrag.rag.segmenter import SentenceSegmenter


class FakeEmbeddingService:
    """Deterministic embeddings derived from a hash of the prompt."""

    def __init__(self, dims: int = 4):
        self.dims = dims
        self.calls = []

    async def embeddings(self, prompt, model=None):
        self.calls.append({"model": model, "prompt": prompt})
        digest = hashlib.sha256(prompt.encode("utf-8")).digest()
        return {"embedding": [byte / 255 for byte in digest[: self.dims]]}


class FakeStore:
    """In-memory stand-in for the Elasticsearch connector."""

    def __init__(self):
        self.indices = {}
        self.bulk_calls = []
        self.search_calls = []
        self.custom_queries = []
        self.search_response = {"hits": {"total": {"value": 0}, "hits": []}}
        self.fail_bulk_on_call = None
        self.search_error = None

    def add_index(self, name, properties, documents):
        self.indices[name] = {
            "mapping": {"mappings": {"properties": copy.deepcopy(properties)}},
            "docs": {doc_id: copy.deepcopy(source) for doc_id, source in documents.items()},
        }

    def drop(self, name):
        del self.indices[name]

    def documents(self, name):
        return self.indices[name]["docs"]

    async def create_index(self, index_name, mapping):
        if index_name in self.indices:
            raise BackendStatusError(
                "create index", 400, '{"error":{"type":"resource_already_exists_exception"}}'
            )
        self.indices[index_name] = {"mapping": copy.deepcopy(mapping), "docs": {}}

    async def get_index_mapping(self, index_name):
        if index_name not in self.indices:
            raise BackendStatusError(
                "get index mapping", 404, '{"error":{"type":"index_not_found_exception"}}'
            )
        return {index_name: copy.deepcopy(self.indices[index_name]["mapping"])}

    async def search(self, index_name, offset, size):
        self.search_calls.append((index_name, offset, size))
        docs = list(self.indices[index_name]["docs"].items())
        page = docs[offset: offset + size]
        return {
            "hits": {
                "total": {"value": len(docs), "relation": "eq"},
                "hits": [
                    {"_index": index_name, "_id": doc_id, "_score": 1.0, "_source": copy.deepcopy(source)}
                    for doc_id, source in page
                ],
            }
        }

    async def search_with_custom_query(self, index_name, query):
        self.custom_queries.append((index_name, copy.deepcopy(query)))
        if self.search_error is not None:
            raise self.search_error
        return self.search_response

    async def bulk_index(self, index_name, documents):
        self.bulk_calls.append((index_name, list(documents)))
        if self.fail_bulk_on_call == len(self.bulk_calls):
            raise BackendStatusError("index documents", 500, "bulk rejected")
        self.indices[index_name]["docs"].update(copy.deepcopy(dict(documents)))
        return {"took": 1, "errors": False, "items": []}


class FakeGenerationService:
    """Streams fixed fragments, flagging the last one as done."""

    def __init__(self, fragments):
        self.fragments = list(fragments)
        self.calls = []

    async def generate(self, prompt, options=None):
        self.calls.append({"prompt": prompt, "options": dict(options or {})})
        for position, text in enumerate(self.fragments):
            yield GenerationChunk(text=text, done=position == len(self.fragments) - 1)


@pytest.fixture(scope="session")
def segmenter():
    """English sentence segmenter (spaCy pipeline built once)."""
    return SentenceSegmenter("en")


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def encoder(embedding_service):
    return Encoder(embedding_service, model="test-embed")


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def make_generation_service():
    return FakeGenerationService


@pytest.fixture
def make_embedding_service():
    return FakeEmbeddingService
