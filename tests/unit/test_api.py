"""Tests for the Quart search and ask endpoints."""
import pytest

from esrag import config, main
from esrag.errors import SearchError
from esrag.rag.generator import AnswerGenerator
from esrag.rag.retriever import SearchResult

RESULTS = [
    SearchResult("a", "Alpha", "https://a", "alpha body", 0.9),
    SearchResult("b", "Beta", "https://b", "", 0.8),
]


class StubSearcher:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.calls = []

    async def search(self, index_name, query):
        self.calls.append((index_name, query))
        if self.error:
            raise self.error
        return self.results


@pytest.fixture
def searcher(monkeypatch):
    stub = StubSearcher(RESULTS)
    monkeypatch.setattr(main, "get_searcher", lambda: stub)
    return stub


@pytest.fixture
def client():
    return main.app.test_client()


@pytest.mark.asyncio
async def test_search_returns_results(client, searcher):
    response = await client.post("/api/search", json={"query": "  hello  ", "index": "search"})

    assert response.status_code == 200
    data = await response.get_json()
    assert data == {"results": [
        {"id": "a", "title": "Alpha", "url": "https://a", "score": 0.9},
        {"id": "b", "title": "Beta", "url": "https://b", "score": 0.8},
    ]}
    assert searcher.calls == [("search", "hello")]


@pytest.mark.asyncio
async def test_search_can_include_bodies(client, searcher):
    response = await client.post(
        "/api/search", json={"query": "hello", "index": "search", "include_body": True}
    )

    data = await response.get_json()
    assert [item["body"] for item in data["results"]] == ["alpha body", ""]


@pytest.mark.asyncio
async def test_search_defaults_to_configured_index(client, searcher, monkeypatch):
    monkeypatch.setattr(config, "SEARCH_INDEX", "enriched")

    await client.post("/api/search", json={"query": "hello"})

    assert searcher.calls == [("enriched", "hello")]


@pytest.mark.asyncio
async def test_search_without_any_index_is_rejected(client, searcher, monkeypatch):
    monkeypatch.setattr(config, "SEARCH_INDEX", None)

    response = await client.post("/api/search", json={"query": "hello"})

    assert response.status_code == 400
    assert searcher.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"query": ""}, {"query": "   "}, {"query": "x" * 2001}])
async def test_invalid_search_body_is_rejected(client, searcher, body):
    response = await client.post("/api/search", json=body)

    assert response.status_code == 400
    assert searcher.calls == []


@pytest.mark.asyncio
async def test_search_failure_maps_to_bad_gateway(client, monkeypatch):
    monkeypatch.setattr(main, "get_searcher", lambda: StubSearcher(error=SearchError("down")))

    response = await client.post("/api/search", json={"query": "hello", "index": "search"})

    assert response.status_code == 502
    assert await response.get_json() == {
        "error": {"message": "down", "code": "SearchError", "details": {}}
    }


@pytest.mark.asyncio
async def test_ask_streams_answer(client, searcher, monkeypatch, make_generation_service):
    service = make_generation_service(["Alpha ", "it is."])
    monkeypatch.setattr(main, "get_generator", lambda: AnswerGenerator(service, options={}))

    response = await client.post("/api/ask", json={"query": "what?", "index": "search"})

    assert response.status_code == 200
    assert await response.get_data(as_text=True) == "Alpha it is.\n"
    assert "alpha body" in service.calls[0]["prompt"]
    assert service.calls[0]["prompt"].endswith("Answer this question: what?")


@pytest.mark.asyncio
async def test_health_live(client):
    response = await client.get("/health/live")

    assert response.status_code == 200
    assert await response.get_json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_ask_retrieval_failure_reports_error_code(client, monkeypatch):
    error = SearchError("k-NN search failed", details={"index": "search"})
    monkeypatch.setattr(main, "get_searcher", lambda: StubSearcher(error=error))

    response = await client.post("/api/ask", json={"query": "what?", "index": "search"})

    assert response.status_code == 502
    data = await response.get_json()
    assert data["error"]["code"] == "SearchError"
    assert data["error"]["details"] == {"index": "search"}
