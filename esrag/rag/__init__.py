"""Enrichment and retrieval pipeline components.

This package contains modules for:
- Sentence segmentation and passage chunking
- Embedding generation
- Index mapping merge and Elasticsearch access
- Document enrichment and re-indexing
- k-NN retrieval and answer generation
"""
