"""
Multi-query retrieval.

The LLM rewrites the question several ways; every variant is searched and
documents are ranked by how many of the result sets they appear in.
"""

import logging
from typing import Dict, List, Optional

from ..core.config import get_settings
from ..core.errors import ConfigurationError
from ..logging_utils import operation_context
from ..models.document import Document
from .prompts import MULTI_QUERY_PROMPT
from .protocols import LLM, Searcher


logger = logging.getLogger(__name__)


class MultiQueryRetriever:
    """
    Aggregate results over LLM-generated paraphrases of a query.

    Without an LLM, or when the LLM call fails, no paraphrases are generated
    and retrieval is a plain single-query search.
    """

    def __init__(
        self,
        searcher: Searcher,
        llm: Optional[LLM] = None,
        num_queries: Optional[int] = None,
    ) -> None:
        queries = get_settings().num_queries if num_queries is None else num_queries
        if queries < 0:
            raise ConfigurationError(f"num_queries must not be negative, got {queries}")
        self._searcher = searcher
        self._llm = llm
        self._num_queries = queries

    @property
    def num_queries(self) -> int:
        return self._num_queries

    def generate_queries(self, query: str) -> List[str]:
        """
        Ask the LLM for paraphrases of ``query``.

        Returns:
            Up to ``num_queries`` non-empty lines of the reply; empty when no
            LLM is configured or the call fails
        """
        if self._llm is None or self._num_queries == 0:
            return []

        prompt = MULTI_QUERY_PROMPT.format(num_queries=self._num_queries, query=query)
        try:
            response = self._llm.generate(prompt)
        except Exception as exc:
            logger.warning("Query generation failed, searching original query only: %s", exc)
            return []

        queries = [line.strip() for line in (response or "").splitlines() if line.strip()]
        return queries[: self._num_queries]

    def retrieve(self, query: str, k: int = 4) -> List[Document]:
        if k <= 0:
            return []

        hit_counts: Dict[str, int] = {}
        documents: Dict[str, Document] = {}
        with operation_context("multi_query.retrieve"):
            queries = [query, *self.generate_queries(query)]
            for variant in queries:
                for document in self._searcher.search(variant, k):
                    hit_counts[document.id] = hit_counts.get(document.id, 0) + 1
                    documents.setdefault(document.id, document)

            # dicts keep first-seen order, and sorted() is stable
            ranked = sorted(hit_counts, key=lambda document_id: hit_counts[document_id], reverse=True)
            logger.debug("Multi-query over %d variants found %d documents", len(queries), len(ranked))
        return [documents[document_id] for document_id in ranked[:k]]
