"""Retrieval-augmented answer generation."""
from typing import Any, AsyncIterator, Dict, Iterable, Mapping, Optional

import structlog

from esrag import config
from esrag.interfaces import TextGenerationService
from esrag.llm_client import OllamaClient
from esrag.rag.retriever import SearchResult

logger = structlog.get_logger()

PROMPT_TEMPLATE = """Based on the following context:

{context}

Answer this question: {query}"""


def prepare_context(results: Iterable[SearchResult]) -> str:
    """Join the non-blank bodies of results with blank lines."""
    return "\n\n".join(
        result.body for result in results
        if result.body and result.body.strip()
    )


def build_prompt(query: str, context: str) -> str:
    return PROMPT_TEMPLATE.format(context=context, query=query)


class AnswerGenerator:
    """Feeds retrieved passages and the query to a generation backend."""

    def __init__(
        self,
        generation_service: TextGenerationService = None,
        options: Optional[Mapping[str, Any]] = None,
    ):
        self.generation_service = generation_service or OllamaClient()
        self.options: Dict[str, Any] = dict(
            options if options is not None else {"temperature": config.GENERATION_TEMPERATURE}
        )

    async def answer(self, query: str, results: Iterable[SearchResult]) -> AsyncIterator[str]:
        """Stream an answer to query grounded on results.

        Fragments are passed through in the order the backend sends them;
        the final one (flagged done) ends with a line break.
        """
        context = prepare_context(results)
        prompt = build_prompt(query, context)

        logger.info(
            "answer_generation_started",
            query_length=len(query),
            context_length=len(context),
        )

        async for chunk in self.generation_service.generate(prompt, self.options):
            if chunk.done:
                yield chunk.text + "\n"
            else:
                yield chunk.text
