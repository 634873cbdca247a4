"""
Retrieval module for lexical search.

Contains:
- Shared whitespace tokenizer
- Similarity strategies and the engine dispatching between them
- In-memory document store with coarse overlap ranking
- Retriever with metadata filters, thresholds and hybrid blending
- Multi-query and contextual compression retrievers
"""

from .tokenizer import (
    tokenize,
    term_frequencies,
)
from .similarity import (
    SimilarityAlgorithm,
    SimilarityStrategy,
    SimilarityEngine,
    CosineSimilarity,
    JaccardSimilarity,
    EuclideanSimilarity,
    BM25Similarity,
    CorpusBM25Similarity,
    CustomSimilarity,
)
from .document_store import (
    DocumentStore,
    IdGenerator,
    RandomIdGenerator,
    overlap_similarity,
)
from .protocols import (
    LLM,
    Searcher,
)
from .retriever import (
    Retriever,
    RetrievalResult,
    matches_filters,
)
from .multi_query import MultiQueryRetriever
from .compression import ContextualCompressionRetriever

__all__ = [
    "tokenize",
    "term_frequencies",
    "SimilarityAlgorithm",
    "SimilarityStrategy",
    "SimilarityEngine",
    "CosineSimilarity",
    "JaccardSimilarity",
    "EuclideanSimilarity",
    "BM25Similarity",
    "CorpusBM25Similarity",
    "CustomSimilarity",
    "DocumentStore",
    "IdGenerator",
    "RandomIdGenerator",
    "overlap_similarity",
    "LLM",
    "Searcher",
    "Retriever",
    "RetrievalResult",
    "matches_filters",
    "MultiQueryRetriever",
    "ContextualCompressionRetriever",
]
