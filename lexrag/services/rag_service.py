from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..core.config import get_settings
from ..logging_utils import operation_context
from ..models.document import Document
from ..retrieval.prompts import RAG_QUERY_PROMPT
from ..retrieval.protocols import LLM, Searcher
from ..retrieval.document_store import DocumentStore
from .chunking_service import TextChunker


class RAGChain:
    """Chunk-and-store ingestion plus retrieve-then-generate answering.

    Retrieval goes through ``searcher`` when one is given (for example a
    ``Retriever`` with filters baked in), otherwise through the store itself.
    """

    def __init__(
        self,
        store: DocumentStore,
        llm: LLM,
        chunker: Optional[TextChunker] = None,
        searcher: Optional[Searcher] = None,
        k: Optional[int] = None,
    ):
        self.store = store
        self.llm = llm
        self.chunker = chunker or TextChunker()
        self.searcher: Searcher = searcher if searcher is not None else store
        self.k = get_settings().default_k if k is None else k
        self.logger = logging.getLogger("lexrag.services.rag")

    def set_text_splitter(self, chunker: TextChunker) -> None:
        self.chunker = chunker

    def add_documents(self, documents: Sequence[Document]) -> List[str]:
        chunks = self.chunker.split_documents(documents)
        ids = self.store.add(chunks)
        self.logger.info("Indexed %d documents as %d chunks", len(documents), len(chunks))
        return ids

    def build_context(self, documents: Sequence[Document]) -> str:
        return "".join(f"{document.content}\n\n" for document in documents)

    def query(self, question: str) -> str:
        with operation_context("rag.query"):
            relevant = self.searcher.search(question, self.k)
            prompt = RAG_QUERY_PROMPT.format(
                context=self.build_context(relevant),
                question=question,
            )
            self.logger.debug("Answering with %d context documents", len(relevant))
            return self.llm.generate(prompt)
