"""Ollama client wrapper for embeddings and streamed generation."""
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

import httpx
import structlog

from esrag import config
from esrag.errors import ResponseParseError

logger = structlog.get_logger()


@dataclass(frozen=True)
class GenerationChunk:
    """One streamed fragment of a generated answer."""

    text: str
    done: bool


class OllamaClient:
    """Async client for interacting with the Ollama API."""

    def __init__(
        self,
        base_url: str = None,
        generation_model: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API base URL (defaults to config.OLLAMA_URL)
            generation_model: Model used by generate() (defaults to config.GENERATION_MODEL)
            timeout: Request timeout in seconds (defaults to config.HTTP_TIMEOUT)
            transport: Optional httpx transport, mainly for tests
        """
        self.base_url = (base_url or config.OLLAMA_URL).rstrip("/")
        self.generation_model = generation_model or config.GENERATION_MODEL
        self.timeout = timeout or config.HTTP_TIMEOUT
        self._transport = transport

    def _client(self, timeout: float = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.timeout,
            transport=self._transport,
        )

    async def embeddings(
        self,
        prompt: str,
        model: str = None,
    ) -> Dict:
        """Generate embeddings for a text prompt.

        Args:
            prompt: Text to embed
            model: Model to use (defaults to config.EMBEDDING_MODEL)

        Returns:
            Response dict with 'embedding' list

        Raises:
            httpx.HTTPError: On API errors
        """
        model = model or config.EMBEDDING_MODEL

        payload = {
            "model": model,
            "prompt": prompt,
        }

        try:
            async with self._client() as client:
                logger.debug(
                    "ollama_embedding_request",
                    model=model,
                    prompt_length=len(prompt),
                )

                response = await client.post(
                    f"{self.base_url}/api/embeddings",
                    json=payload,
                )
                response.raise_for_status()

                data = response.json()

                logger.debug(
                    "ollama_embedding_response",
                    model=model,
                    dimension=len(data.get("embedding") or []) if isinstance(data, dict) else None,
                )

                return data

        except httpx.HTTPError as e:
            logger.error("ollama_embedding_error", error=str(e), base_url=self.base_url)
            raise

    async def generate(
        self,
        prompt: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> AsyncIterator[GenerationChunk]:
        """Stream a completion for a prompt.

        See https://github.com/ollama/ollama/blob/main/docs/api.md#generate-a-completion
        for the supported options.

        Args:
            prompt: Full prompt text
            options: Decoding options such as temperature

        Yields:
            GenerationChunk per NDJSON line, in the order Ollama sends them

        Raises:
            httpx.HTTPError: On API errors
            ResponseParseError: If a streamed line is not a generation record
        """
        payload = {
            "model": self.generation_model,
            "prompt": prompt,
            "options": dict(options or {}),
            "stream": True,
        }

        logger.info(
            "ollama_generate_request",
            model=self.generation_model,
            prompt_length=len(prompt),
        )

        try:
            async with self._client() as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/api/generate",
                    json=payload,
                ) as response:
                    response.raise_for_status()

                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        yield _parse_generation_line(line)

        except httpx.HTTPError as e:
            logger.error("ollama_generate_error", error=str(e), base_url=self.base_url)
            raise

    async def list_models(self) -> List[str]:
        """List all available Ollama models.

        Returns:
            List of model names

        Raises:
            httpx.HTTPError: On API errors
        """
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                response.raise_for_status()
                data = response.json()
                return [m["name"] for m in data.get("models", [])]
        except httpx.HTTPError as e:
            logger.error("ollama_list_models_error", error=str(e))
            raise


def _parse_generation_line(line: str) -> GenerationChunk:
    try:
        record = json.loads(line)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            "Failed to process response line",
            details={"line": line[:200]},
        ) from e

    if not isinstance(record, dict) or "response" not in record:
        raise ResponseParseError(
            "Generation record has no 'response' field",
            details={"line": line[:200]},
        )

    return GenerationChunk(
        text=str(record["response"]),
        done=bool(record.get("done", False)),
    )
