#!/usr/bin/env python
"""Validate setup - check dependencies, configuration and backends."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("esrag - Setup Validation")

    errors = []
    warnings = []

    # 1. Python version check
    print_section("1. Python Environment")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print_info(f"Python version: {python_version}")
    if sys.version_info >= (3, 10):
        print_success("Python version >= 3.10")
    else:
        print_error("Python version < 3.10 (required)")
        errors.append("Python version too old")

    # 2. Import core dependencies
    print_section("2. Core Dependencies")

    dependencies = [
        ("quart", "Quart web framework"),
        ("httpx", "HTTP client"),
        ("spacy", "Sentence segmentation"),
        ("pydantic", "Data validation"),
        ("structlog", "Structured logging"),
        ("pytest", "Testing framework"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 3. Configuration
    print_section("3. Configuration")

    try:
        # Add parent directory to path to import esrag
        sys.path.insert(0, str(Path(__file__).parent.parent))
        from esrag import config

        print_success("Config loaded successfully")
        print_info(f"  Embedding model: {config.EMBEDDING_MODEL} ({config.EMBEDDING_DIMS} dims)")
        print_info(f"  Generation model: {config.GENERATION_MODEL}")
        print_info(f"  Ollama URL: {config.OLLAMA_URL}")
        print_info(f"  Passage size: {config.MAX_WORDS_PER_PASSAGE} words")
        print_info(f"  k / candidates: {config.SEARCH_K} / {config.SEARCH_NUM_CANDIDATES}")

        for name in ("ES_URL", "ES_APIKEY"):
            if getattr(config, name):
                print_success(f"{name} is set")
            else:
                print_error(f"{name} is not set")
                errors.append(f"Missing {name}")

        for name in ("CRAWL_INDEX", "SEARCH_INDEX"):
            value = getattr(config, name)
            if value:
                print_success(f"{name} = {value}")
            else:
                print_warning(f"{name} is not set (pass the index on the command line)")
                warnings.append(f"{name} not set")

    except Exception as e:
        print_error(f"Failed to load config: {e}")
        errors.append("Config loading failed")
        return errors, warnings

    # 4. Sentence segmentation
    print_section("4. Sentence Segmentation")

    try:
        from esrag.rag.segmenter import SentenceSegmenter

        segmenter = SentenceSegmenter()
        sentences = list(segmenter.split_into_sentences("Mr. Smith paid 3.50 dollars. He left."))
        print_success(f"spaCy '{segmenter.language}' sentencizer: {len(sentences)} sentences")
    except Exception as e:
        print_error(f"Segmenter failed: {e}")
        errors.append(f"Segmenter error: {e}")

    # 5. Ollama service
    print_section("5. Ollama Service")

    import httpx
    from esrag.llm_client import OllamaClient
    from esrag.rag.encoder import Encoder

    client = OllamaClient()
    try:
        models = set(await client.list_models())
        print_success(f"Ollama service running at {config.OLLAMA_URL}")
        print_info(f"Found {len(models)} models installed")

        for label, model in (("Embedding", config.EMBEDDING_MODEL), ("Generation", config.GENERATION_MODEL)):
            if model in models or f"{model}:latest" in models:
                print_success(f"{label} model available: {model}")
            else:
                print_error(f"{label} model missing: {model}")
                print_info(f"  Run: ollama pull {model}")
                errors.append(f"Missing {label.lower()} model: {model}")

        vector = await Encoder(client).encode("test")
        if len(vector) == config.EMBEDDING_DIMS:
            print_success(f"Embedding dimension matches mapping ({len(vector)})")
        else:
            print_error(f"Embedding dimension {len(vector)} != EMBEDDING_DIMS {config.EMBEDDING_DIMS}")
            errors.append("Embedding dimension mismatch")

    except httpx.ConnectError:
        print_error("Cannot connect to Ollama service")
        print_info("  Make sure Ollama is running: ollama serve")
        errors.append("Ollama not running")
    except Exception as e:
        print_error(f"Ollama check failed: {e}")
        errors.append(f"Ollama error: {e}")

    # 6. Elasticsearch
    print_section("6. Elasticsearch")

    if config.ES_URL and config.ES_APIKEY:
        from esrag.rag.store_es import ElasticsearchConnector

        if await ElasticsearchConnector().ping():
            print_success(f"Elasticsearch reachable at {config.ES_URL}")
        else:
            print_error(f"Elasticsearch not reachable at {config.ES_URL}")
            errors.append("Elasticsearch not reachable")
    else:
        print_warning("Skipped (ES_URL / ES_APIKEY not set)")

    # 7. Summary
    print_section("Summary")

    if not errors:
        print_success("All checks passed! ✨")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)
