"""Application configuration with sensible defaults."""
import os

# Elasticsearch (required, validated by the connector)
ES_URL = os.getenv("ES_URL")
ES_APIKEY = os.getenv("ES_APIKEY")
CRAWL_INDEX = os.getenv("CRAWL_INDEX")
SEARCH_INDEX = os.getenv("SEARCH_INDEX")

# Ollama configuration
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
EMBEDDING_MODEL = os.getenv("OLLAMA_EMBEDDING_MODEL", "all-minilm")
GENERATION_MODEL = os.getenv("OLLAMA_GENERATING_MODEL", "deepseek-r1:14b")
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.6"))

# Must match the embedding model output (all-minilm -> 384)
EMBEDDING_DIMS = int(os.getenv("EMBEDDING_DIMS", "384"))

# Chunking (word-based, sentences are never split)
MAX_WORDS_PER_PASSAGE = int(os.getenv("MAX_WORDS_PER_PASSAGE", "300"))
SENTENCE_LANGUAGE = os.getenv("SENTENCE_LANGUAGE", "en")

# Retrieval
SEARCH_K = int(os.getenv("SEARCH_K", "3"))
SEARCH_NUM_CANDIDATES = int(os.getenv("SEARCH_NUM_CANDIDATES", "100"))

# Reindexing page size is fixed
PAGE_SIZE = 10

# HTTP
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "60.0"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
