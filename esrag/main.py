"""Quart application serving vector search and RAG answers."""
from typing import Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from quart import Quart, Response, jsonify, request

from esrag import config
from esrag.errors import EsragError
from esrag.llm_client import OllamaClient
from esrag.logging_config import configure_logging
from esrag.rag.encoder import Encoder
from esrag.rag.generator import AnswerGenerator
from esrag.rag.retriever import KnnSearcher
from esrag.rag.store_es import ElasticsearchConnector

configure_logging()

logger = structlog.get_logger()

app = Quart(__name__)


class SearchRequest(BaseModel):
    """Body of /api/search."""

    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(min_length=1, max_length=2000)
    index: Optional[str] = None
    include_body: bool = False


class AskRequest(BaseModel):
    """Body of /api/ask."""

    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(min_length=1, max_length=2000)
    index: Optional[str] = None


_ollama_client: Optional[OllamaClient] = None
_store: Optional[ElasticsearchConnector] = None
_searcher: Optional[KnnSearcher] = None
_generator: Optional[AnswerGenerator] = None


def get_ollama_client() -> OllamaClient:
    global _ollama_client
    if _ollama_client is None:
        _ollama_client = OllamaClient()
    return _ollama_client


def get_store() -> ElasticsearchConnector:
    global _store
    if _store is None:
        _store = ElasticsearchConnector()
    return _store


def get_searcher() -> KnnSearcher:
    """Get or create the shared searcher."""
    global _searcher
    if _searcher is None:
        _searcher = KnnSearcher(Encoder(get_ollama_client()), get_store())
    return _searcher


def get_generator() -> AnswerGenerator:
    """Get or create the shared answer generator."""
    global _generator
    if _generator is None:
        _generator = AnswerGenerator(get_ollama_client())
    return _generator


async def _parse_body(model: type[BaseModel]):
    data = await request.get_json(silent=True)
    try:
        return model.model_validate(data or {}), None
    except ValidationError as e:
        logger.warning("invalid_request_body", errors=[err["msg"] for err in e.errors()])
        return None, (jsonify({
            "error": "Invalid request body",
            "details": [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        }), 400)


def _index_or_error(index: Optional[str]):
    index = index or config.SEARCH_INDEX
    if not index:
        return None, (jsonify({"error": "No index given and SEARCH_INDEX is not set"}), 400)
    return index, None


@app.route("/api/search", methods=["POST"])
async def search():
    """Run a k-NN search.

    Expects JSON body:
    {
        "query": "search text",
        "index": "optional-index",   // defaults to SEARCH_INDEX
        "include_body": false        // optional
    }

    Returns JSON:
    {
        "results": [{"id", "title", "url", "score", "body"?}, ...]
    }
    """
    body, error = await _parse_body(SearchRequest)
    if error:
        return error

    index, error = _index_or_error(body.index)
    if error:
        return error

    try:
        results = await get_searcher().search(index, body.query)
    except EsragError as e:
        logger.error("search_request_failed", error=str(e), error_type=type(e).__name__)
        return jsonify(e.to_dict()), 502
    except httpx.HTTPError as e:
        logger.error("search_request_failed", error=str(e), error_type=type(e).__name__)
        return jsonify({"error": {"message": "Search failed", "code": type(e).__name__, "details": {}}}), 502

    payload = []
    for result in results:
        item = {
            "id": result.id,
            "title": result.title,
            "url": result.url,
            "score": result.score,
        }
        if body.include_body:
            item["body"] = result.body
        payload.append(item)

    return jsonify({"results": payload})


@app.route("/api/ask", methods=["POST"])
async def ask():
    """Answer a question from retrieved passages, streamed as plain text.

    Expects JSON body:
    {
        "query": "question",
        "index": "optional-index"
    }
    """
    body, error = await _parse_body(AskRequest)
    if error:
        return error

    index, error = _index_or_error(body.index)
    if error:
        return error

    try:
        results = await get_searcher().search(index, body.query)
    except EsragError as e:
        logger.error("ask_retrieval_failed", error=str(e), error_type=type(e).__name__)
        return jsonify(e.to_dict()), 502
    except httpx.HTTPError as e:
        logger.error("ask_retrieval_failed", error=str(e), error_type=type(e).__name__)
        return jsonify({"error": {"message": "Search failed", "code": type(e).__name__, "details": {}}}), 502

    logger.info("ask_request_received", index=index, sources=len(results))

    generator = get_generator()

    async def stream_answer():
        async for fragment in generator.answer(body.query, results):
            yield fragment.encode("utf-8")

    return Response(stream_answer(), mimetype="text/plain")


@app.route("/health/ready")
async def health_ready():
    """Readiness probe.

    Checks:
    - Ollama is reachable and has the embedding and generation models
    - Elasticsearch is reachable
    """
    checks = {
        "status": "healthy",
        "ollama": False,
        "models": False,
        "elasticsearch": False,
    }

    try:
        models = await get_ollama_client().list_models()
        checks["ollama"] = True

        missing = [
            model for model in (config.EMBEDDING_MODEL, config.GENERATION_MODEL)
            if model not in models and f"{model}:latest" not in models
        ]
        if missing:
            checks["status"] = "unhealthy"
            checks["error"] = f"Missing models: {', '.join(missing)}"
        else:
            checks["models"] = True

        checks["elasticsearch"] = await get_store().ping()
        if not checks["elasticsearch"]:
            checks["status"] = "unhealthy"

    except (EsragError, httpx.HTTPError) as e:
        logger.error("health_check_failed", error=str(e))
        checks["status"] = "unhealthy"
        checks["error"] = str(e)

    status_code = 200 if checks["status"] == "healthy" else 503
    return jsonify(checks), status_code


@app.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@app.errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error("internal_server_error", error=str(error))
    return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
