#!/usr/bin/env python
"""Vector search and RAG answers over the enriched index.

Usage:
    python scripts/ask.py "how do I configure TLS?"   # Search, then stream an answer
    python scripts/ask.py --search-only               # Prompt for a query, search only
    python scripts/ask.py --debug "query"             # Also print result bodies
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from esrag import config
from esrag.errors import ConfigurationError, EsragError
from esrag.llm_client import OllamaClient
from esrag.logging_config import configure_logging
from esrag.rag.encoder import Encoder
from esrag.rag.generator import AnswerGenerator
from esrag.rag.retriever import KnnSearcher, SearchResult
from esrag.rag.store_es import ElasticsearchConnector
import httpx
import structlog

logger = structlog.get_logger()


def display_search_results(results: List[SearchResult], debug: bool = False):
    """Print search results, with bodies in debug mode."""
    print("\nSearch Results:")
    print("==============")
    for result in results:
        print(f"Title: {result.title}")
        print(f"URL: {result.url}")
        print(f"Score: {result.score}")
        if debug:
            print(f"Body: {result.body}")
        print("--------------")


def read_query(argv_query: str = None) -> str:
    """Take the query from the command line or stdin.

    Raises:
        ValueError: If the query is blank
    """
    query = argv_query
    if query is None:
        query = input("Enter your search query: ")
    if not query or not query.strip():
        raise ValueError("Invalid input: input cannot be empty")
    return query.strip()


async def main():
    """Main entry point for the ask script."""
    parser = argparse.ArgumentParser(
        description="Semantic search and RAG over the enriched index",
    )

    parser.add_argument("query", nargs="?", default=None, help="Query text (prompted if omitted)")

    parser.add_argument(
        "--index",
        default=config.SEARCH_INDEX,
        help=f"Index to search (default: SEARCH_INDEX={config.SEARCH_INDEX})",
    )

    parser.add_argument(
        "--search-only",
        action="store_true",
        help="Only show search results, do not generate an answer",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print result bodies",
    )

    args = parser.parse_args()

    configure_logging("DEBUG" if args.debug else "WARNING")

    try:
        if not args.index:
            raise ConfigurationError("SEARCH_INDEX")

        query = read_query(args.query)

        ollama_client = OllamaClient()
        searcher = KnnSearcher(Encoder(ollama_client), ElasticsearchConnector())

        results = await searcher.search(args.index, query)
        display_search_results(results, debug=args.debug)

        if args.search_only:
            return

        print()
        generator = AnswerGenerator(ollama_client)
        async for fragment in generator.answer(query, results):
            print(fragment, end="", flush=True)

    except (ValueError, EsragError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error("ask_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
