"""Tests for the Ollama client streaming and model listing."""
import json

import httpx
import pytest

from esrag.errors import ResponseParseError
from esrag.llm_client import GenerationChunk, OllamaClient


def ndjson(*records) -> bytes:
    return b"".join(json.dumps(record).encode("utf-8") + b"\n" for record in records)


@pytest.mark.asyncio
async def test_generate_streams_chunks_in_order():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=ndjson(
            {"response": "Hel", "done": False},
            {"response": "lo", "done": False},
            {"response": "!", "done": True},
        ))

    client = OllamaClient(
        base_url="http://ollama.test",
        generation_model="gen-model",
        transport=httpx.MockTransport(handler),
    )

    chunks = [chunk async for chunk in client.generate("prompt text", {"temperature": 0.6})]

    assert chunks == [
        GenerationChunk("Hel", False),
        GenerationChunk("lo", False),
        GenerationChunk("!", True),
    ]
    assert requests[0].url.path == "/api/generate"
    assert json.loads(requests[0].content) == {
        "model": "gen-model",
        "prompt": "prompt text",
        "options": {"temperature": 0.6},
        "stream": True,
    }


@pytest.mark.asyncio
async def test_generate_skips_blank_lines():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b'\n{"response": "ok", "done": true}\n\n')

    client = OllamaClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))

    chunks = [chunk async for chunk in client.generate("p")]

    assert chunks == [GenerationChunk("ok", True)]


@pytest.mark.asyncio
async def test_generate_rejects_malformed_line():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b'{"response": "a", "done": false}\nnot-json\n')

    client = OllamaClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))

    with pytest.raises(ResponseParseError):
        async for _ in client.generate("p"):
            pass


@pytest.mark.asyncio
async def test_generate_raises_on_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "model not found"})

    client = OllamaClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))

    with pytest.raises(httpx.HTTPStatusError):
        async for _ in client.generate("p"):
            pass


@pytest.mark.asyncio
async def test_list_models():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": [{"name": "all-minilm:latest"}, {"name": "llama3"}]})

    client = OllamaClient(base_url="http://ollama.test/", transport=httpx.MockTransport(handler))

    assert await client.list_models() == ["all-minilm:latest", "llama3"]
