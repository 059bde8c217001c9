"""Document enrichment and k-NN retrieval over Elasticsearch with Ollama embeddings."""

__version__ = "0.1.0"
