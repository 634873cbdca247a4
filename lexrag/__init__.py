"""
lexrag: sentence-aware chunking and lexical retrieval.

This package provides:
- TextChunker for byte-safe, sentence-boundary-aware splitting
- DocumentStore, an in-memory stand-in for a vector store
- SimilarityEngine with cosine, Jaccard, Euclidean and BM25 strategies
- Retriever, MultiQueryRetriever and ContextualCompressionRetriever
- RAGChain tying ingestion and answering together
"""

from .core.errors import ConfigurationError, DuplicateDocumentError, LexRagError
from .models.document import Document
from .retrieval import (
    ContextualCompressionRetriever,
    DocumentStore,
    MultiQueryRetriever,
    RandomIdGenerator,
    Retriever,
    SimilarityAlgorithm,
    SimilarityEngine,
)
from .services import RAGChain, TextChunker

__all__ = [
    "ConfigurationError",
    "DuplicateDocumentError",
    "LexRagError",
    "Document",
    "ContextualCompressionRetriever",
    "DocumentStore",
    "MultiQueryRetriever",
    "RandomIdGenerator",
    "Retriever",
    "SimilarityAlgorithm",
    "SimilarityEngine",
    "RAGChain",
    "TextChunker",
]
