"""
Retriever combining the store's coarse ranking with fine-grained scoring.

Pipeline for every search:
1. Over-fetch ``k * fetch_multiplier`` candidates from the document store
2. Keep candidates whose metadata matches every filter pair exactly
3. Score each candidate with the similarity engine (or custom function)
4. Drop candidates scoring below ``threshold``
5. Sort by score (stable, candidate order breaks ties) and keep ``k``

The over-fetch is a recall heuristic: a document the coarse overlap ranks
below the fetch window is never scored, however well the fine algorithm
would rate it. Raise ``fetch_multiplier`` when filters are selective.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.config import get_settings
from ..core.errors import ConfigurationError
from ..logging_utils import operation_context
from ..models.document import Document
from .document_store import DocumentStore, overlap_similarity
from .similarity import (
    SimilarityAlgorithm,
    SimilarityEngine,
    SimilarityFunction,
    SimilarityStrategy,
)


logger = logging.getLogger(__name__)

MetadataFilter = Mapping[str, str]


@dataclass
class RetrievalResult:
    """
    Result from hybrid retrieval.

    Carries both component scores alongside the blended one.
    """
    document: Document
    keyword_score: float = 0.0
    semantic_score: float = 0.0
    fused_score: float = 0.0
    metadata: Dict[str, str] = field(default_factory=dict)


def matches_filters(document: Document, filters: Optional[MetadataFilter]) -> bool:
    """True when every filter key exists in the metadata with the exact value."""
    if not filters:
        return True
    metadata = document.metadata
    return all(key in metadata and metadata[key] == value for key, value in filters.items())


def filter_documents(
    documents: Sequence[Document],
    filters: Optional[MetadataFilter],
) -> List[Document]:
    if not filters:
        return list(documents)
    return [document for document in documents if matches_filters(document, filters)]


class Retriever:
    """
    Configurable-algorithm retriever over a ``DocumentStore``.

    Example:
        >>> store = DocumentStore()
        >>> _ = store.add([Document(content="Python is great"), Document(content="Dogs are loyal")])
        >>> retriever = Retriever(store, algorithm=SimilarityAlgorithm.COSINE)
        >>> [d.content for d in retriever.search("python", k=1)]
        ['Python is great']
    """

    def __init__(
        self,
        store: DocumentStore,
        algorithm: Optional[Union[SimilarityAlgorithm, str]] = None,
        engine: Optional[SimilarityEngine] = None,
        fetch_multiplier: Optional[int] = None,
    ) -> None:
        """
        Initialize the retriever.

        Args:
            store: Source of candidate documents
            algorithm: Similarity algorithm (default from settings)
            engine: Pre-configured engine, possibly shared with other retrievers;
                mutually exclusive with ``algorithm``
            fetch_multiplier: Candidates fetched per requested result (default from settings)

        Raises:
            ConfigurationError: If ``fetch_multiplier`` is below 1, the
                algorithm name is unknown, or both ``engine`` and ``algorithm``
                are given
        """
        if engine is not None and algorithm is not None:
            raise ConfigurationError(
                "pass either engine or algorithm; set the algorithm on the engine itself"
            )
        settings = get_settings()
        self._store = store
        self._engine = engine if engine is not None else SimilarityEngine(
            algorithm or settings.similarity_algorithm
        )
        multiplier = settings.fetch_multiplier if fetch_multiplier is None else fetch_multiplier
        if multiplier < 1:
            raise ConfigurationError(f"fetch_multiplier must be at least 1, got {multiplier}")
        self._fetch_multiplier = multiplier

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def engine(self) -> SimilarityEngine:
        return self._engine

    @property
    def fetch_multiplier(self) -> int:
        return self._fetch_multiplier

    @fetch_multiplier.setter
    def fetch_multiplier(self, value: int) -> None:
        if value < 1:
            raise ConfigurationError(f"fetch_multiplier must be at least 1, got {value}")
        self._fetch_multiplier = value

    def set_similarity_algorithm(self, algorithm: Union[SimilarityAlgorithm, str]) -> None:
        self._engine.algorithm = algorithm

    def set_custom_similarity_function(
        self, fn: Optional[Union[SimilarityFunction, SimilarityStrategy]]
    ) -> None:
        """Replace algorithm dispatch with ``fn``; pass None to restore it."""
        self._engine.set_custom_function(fn)

    def search(
        self,
        query: str,
        k: int = 4,
        filters: Optional[MetadataFilter] = None,
        threshold: float = 0.0,
    ) -> List[Document]:
        return [document for document, _ in self.search_with_scores(query, k, filters, threshold)]

    def search_with_scores(
        self,
        query: str,
        k: int = 4,
        filters: Optional[MetadataFilter] = None,
        threshold: float = 0.0,
    ) -> List[Tuple[Document, float]]:
        """
        Run the full pipeline and return ``(document, score)`` pairs.

        Args:
            query: The search query
            k: Maximum number of results
            filters: Exact-match metadata constraints, all of which must hold
            threshold: Minimum score a result must reach

        Returns:
            Pairs sorted by score, highest first
        """
        if k <= 0:
            return []

        with operation_context("retriever.search"):
            candidates = filter_documents(self._fetch_candidates(query, k), filters)

            scored: List[Tuple[Document, float]] = []
            for document in candidates:
                score = self._engine.compute(query, document.content)
                if score >= threshold:
                    scored.append((document, score))

            scored.sort(key=lambda pair: pair[1], reverse=True)
            logger.debug(
                "Search scored %d candidates, %d passed threshold %.3f",
                len(candidates),
                len(scored),
                threshold,
            )
        return scored[:k]

    def hybrid_search(
        self,
        query: str,
        k: int = 4,
        filters: Optional[MetadataFilter] = None,
        keyword_weight: float = 0.5,
        semantic_weight: float = 0.5,
    ) -> List[Document]:
        return [
            result.document
            for result in self.hybrid_search_with_scores(
                query, k, filters, keyword_weight, semantic_weight
            )
        ]

    def hybrid_search_with_scores(
        self,
        query: str,
        k: int = 4,
        filters: Optional[MetadataFilter] = None,
        keyword_weight: float = 0.5,
        semantic_weight: float = 0.5,
    ) -> List[RetrievalResult]:
        """
        Blend the store's keyword overlap with the engine score.

        The fused score is:
            fused(d) = keyword_weight * overlap(q, d) + semantic_weight * engine(q, d)

        Raises:
            ValueError: If a weight is negative or both weights are zero
        """
        if keyword_weight < 0 or semantic_weight < 0:
            raise ValueError("hybrid weights must not be negative")
        if keyword_weight == 0 and semantic_weight == 0:
            raise ValueError("at least one hybrid weight must be positive")

        if k <= 0:
            return []

        results: List[RetrievalResult] = []
        with operation_context("retriever.hybrid_search"):
            for document in filter_documents(self._fetch_candidates(query, k), filters):
                keyword_score = overlap_similarity(query, document.content)
                semantic_score = self._engine.compute(query, document.content)
                results.append(RetrievalResult(
                    document=document,
                    keyword_score=keyword_score,
                    semantic_score=semantic_score,
                    fused_score=keyword_weight * keyword_score + semantic_weight * semantic_score,
                    metadata=dict(document.metadata),
                ))

        results.sort(key=lambda r: r.fused_score, reverse=True)
        return results[:k]

    def _fetch_candidates(self, query: str, k: int) -> List[Document]:
        return self._store.search(query, k * self._fetch_multiplier)
