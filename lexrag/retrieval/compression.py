"""
Contextual compression retrieval.

Each candidate is passed through the LLM, which keeps only the passages that
answer the query. Candidates the LLM declares irrelevant are dropped.
"""

import logging
from typing import List, Optional

from ..core.config import get_settings
from ..core.errors import ConfigurationError
from ..logging_utils import operation_context
from ..models.document import Document
from .prompts import COMPRESSION_PROMPT, NO_RELEVANT_INFO
from .protocols import LLM, Searcher


logger = logging.getLogger(__name__)

COMPRESSED_METADATA_KEY = "compressed"


class ContextualCompressionRetriever:
    """
    Retrieve ``k * fetch_multiplier`` candidates and compress them with an LLM.

    Without an LLM, or when a call fails, the candidate is returned unchanged.
    """

    def __init__(
        self,
        searcher: Searcher,
        llm: Optional[LLM] = None,
        fetch_multiplier: Optional[int] = None,
    ) -> None:
        multiplier = (
            get_settings().compression_fetch_multiplier
            if fetch_multiplier is None
            else fetch_multiplier
        )
        if multiplier < 1:
            raise ConfigurationError(f"fetch_multiplier must be at least 1, got {multiplier}")
        self._searcher = searcher
        self._llm = llm
        self._fetch_multiplier = multiplier

    def retrieve(self, query: str, k: int = 4) -> List[Document]:
        if k <= 0:
            return []

        compressed_docs: List[Document] = []
        with operation_context("compression.retrieve"):
            for document in self._searcher.search(query, k * self._fetch_multiplier):
                compressed = self.compress_document(document, query)
                if compressed is None:
                    continue
                compressed_docs.append(compressed)
                if len(compressed_docs) >= k:
                    break

        return compressed_docs

    def compress_document(self, document: Document, query: str) -> Optional[Document]:
        """
        Reduce ``document`` to the content relevant to ``query``.

        Returns:
            A new document with the same id and metadata plus
            ``compressed="true"``; the original document if no LLM is usable;
            None when the LLM finds nothing relevant
        """
        if self._llm is None:
            return document

        prompt = COMPRESSION_PROMPT.format(document=document.content, query=query)
        with operation_context(document_id=document.id):
            try:
                response = self._llm.generate(prompt)
            except Exception as exc:
                logger.warning("Compression failed, keeping document uncompressed: %s", exc)
                return document

            if not response or not response.strip() or NO_RELEVANT_INFO in response:
                logger.debug("Dropping document %s: no relevant content", document.id)
                return None

        return Document(
            id=document.id,
            content=response,
            metadata={**document.metadata, COMPRESSED_METADATA_KEY: "true"},
        )
