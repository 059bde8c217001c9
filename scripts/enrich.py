#!/usr/bin/env python
"""Enrich crawled documents with embeddings and re-index them.

Usage:
    python scripts/enrich.py                               # CRAWL_INDEX -> SEARCH_INDEX
    python scripts/enrich.py --source crawl --target search
    python scripts/enrich.py --max-pages 5 --verbose       # Bounded trial run
"""
import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from esrag import config
from esrag.errors import ConfigurationError
from esrag.llm_client import OllamaClient
from esrag.logging_config import configure_logging
from esrag.rag.chunker import PassageChunker
from esrag.rag.encoder import Encoder
from esrag.rag.enricher import DocumentEnricher
from esrag.rag.store_es import ElasticsearchConnector
import structlog

logger = structlog.get_logger()


class ProgressReporter:
    """Simple progress reporter for CLI."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.start_time = None

    def start(self, message: str):
        """Start progress reporting."""
        self.start_time = datetime.now()
        print(f"\n{'=' * 60}")
        print(f"  {message}")
        print(f"{'=' * 60}\n")

    def update(self, current: int, total: int):
        """Update progress."""
        percentage = min(current / total * 100, 100.0) if total > 0 else 0
        bar_length = 40
        filled = min(int(bar_length * current / total), bar_length) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        print(
            f"\r  [{bar}] {percentage:5.1f}% ({current}/{total})",
            end="",
            flush=True,
        )

        if self.verbose:
            print()

    def finish(self, stats: dict):
        """Finish progress reporting."""
        print("\n")
        elapsed_seconds = (datetime.now() - self.start_time).total_seconds()

        print(f"{'=' * 60}")
        print(f"  Enrichment Complete!")
        print(f"{'=' * 60}\n")
        print(f"  📄 Documents processed:  {stats['documents_processed']}/{stats['total_hits']}")
        print(f"  📦 Pages written:        {stats['pages_processed']}")
        print(f"  🏷️  Titles embedded:      {stats['titles_embedded']}")
        print(f"  🧮 Passages embedded:    {stats['passages_embedded']}")
        print(f"  ⏱️  Time elapsed:         {elapsed_seconds:.1f}s")

        if stats['passages_embedded'] > 0 and elapsed_seconds > 0:
            rate = stats['passages_embedded'] / elapsed_seconds
            print(f"  ⚡ Embedding rate:       {rate:.1f} passages/sec")

        print(f"\n{'=' * 60}\n")


async def main():
    """Main entry point for the enrichment script."""
    parser = argparse.ArgumentParser(
        description="Enrich crawled documents with embeddings and re-index them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/enrich.py
  python scripts/enrich.py --source crawl --target search
  python scripts/enrich.py --max-pages 5 --verbose
        """,
    )

    parser.add_argument(
        "--source",
        default=config.CRAWL_INDEX,
        help=f"Source index with crawled documents (default: CRAWL_INDEX={config.CRAWL_INDEX})",
    )

    parser.add_argument(
        "--target",
        default=config.SEARCH_INDEX,
        help=f"Target index to create (default: SEARCH_INDEX={config.SEARCH_INDEX})",
    )

    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Stop after this many pages (default: until the source is exhausted)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show verbose progress output",
    )

    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else None)

    progress = ProgressReporter(verbose=args.verbose)

    try:
        if not args.source:
            raise ConfigurationError("CRAWL_INDEX")
        if not args.target:
            raise ConfigurationError("SEARCH_INDEX")

        print("\n📋 Configuration:")
        print(f"   Source index:     {args.source}")
        print(f"   Target index:     {args.target}")
        print(f"   Embedding model:  {config.EMBEDDING_MODEL} ({config.EMBEDDING_DIMS} dims)")
        print(f"   Passage size:     {config.MAX_WORDS_PER_PASSAGE} words")
        print(f"   Page size:        {config.PAGE_SIZE}")

        enricher = DocumentEnricher(
            encoder=Encoder(OllamaClient()),
            store=ElasticsearchConnector(),
            chunker=PassageChunker(),
            max_pages=args.max_pages,
        )

        progress.start(f"Enriching {args.source} -> {args.target}")

        stats = await enricher.process_documents(
            args.source,
            args.target,
            progress_callback=progress.update,
        )

        progress.finish(stats)

    except KeyboardInterrupt:
        print("\n\n⚠️  Enrichment cancelled by user.\n")
        sys.exit(1)

    except ConfigurationError as e:
        print(f"\n❌ Configuration error: {e}\n")
        sys.exit(1)

    except Exception as e:
        print(f"\n❌ Error while processing documents: {e}\n")
        logger.error("enrich_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
