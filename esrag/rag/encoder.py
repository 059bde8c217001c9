"""Text to embedding encoder over an embedding service."""
import numbers
from typing import List

import httpx
import structlog

from esrag import config
from esrag.errors import EncodingError
from esrag.interfaces import EmbeddingService
from esrag.llm_client import OllamaClient

logger = structlog.get_logger()


class Encoder:
    """Turns one text into one embedding vector per call.

    No batching, caching or retries: every call is a single round trip.
    """

    def __init__(self, embedding_service: EmbeddingService = None, model: str = None):
        """Initialize the encoder.

        Args:
            embedding_service: Backend to call (default: an OllamaClient)
            model: Embedding model name (default from config)
        """
        self.embedding_service = embedding_service or OllamaClient()
        self.model = model or config.EMBEDDING_MODEL

    async def encode(self, text: str) -> List[float]:
        """Encode text into an embedding.

        Args:
            text: Text to encode

        Returns:
            Embedding vector

        Raises:
            EncodingError: If text is None, the round trip fails, or the
                response carries no usable 'embedding' field
        """
        if text is None:
            raise EncodingError("Text to encode cannot be None", details={"model": self.model})

        try:
            response = await self.embedding_service.embeddings(prompt=text, model=self.model)
        except (httpx.HTTPError, ValueError) as e:
            # ValueError covers undecodable JSON bodies
            logger.error(
                "embedding_generation_failed",
                model=self.model,
                text_preview=text[:100],
                error=str(e),
            )
            raise EncodingError(
                f"Failed to encode text: {e}",
                details={"model": self.model, "text_length": len(text)},
            ) from e

        embedding = response.get("embedding") if isinstance(response, dict) else None

        if not embedding or not isinstance(embedding, list):
            raise EncodingError(
                "Embedding response has no 'embedding' vector",
                details={"model": self.model},
            )

        if not all(
            isinstance(value, numbers.Real) and not isinstance(value, bool)
            for value in embedding
        ):
            raise EncodingError(
                "Embedding response contains non-numeric values",
                details={"model": self.model},
            )

        return [float(value) for value in embedding]
