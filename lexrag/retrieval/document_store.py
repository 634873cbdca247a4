"""
In-memory document store with coarse lexical ranking.

The store stands in for a vector store: it owns its documents, assigns ids,
and ranks by normalized token overlap instead of embeddings. Retrievers use
its ranking only as a candidate pre-filter.

The store is not thread-safe. Callers sharing one instance across threads
must serialize access themselves.
"""

import logging
import random
import string
from typing import Iterable, List, Optional, Protocol, Sequence, Set, Tuple, runtime_checkable

from ..core.errors import DuplicateDocumentError
from ..models.document import Document
from .tokenizer import tokenize


logger = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
DEFAULT_ID_LENGTH = 16


@runtime_checkable
class IdGenerator(Protocol):
    """Strategy that produces ids for documents added without one."""

    def generate(self) -> str:
        ...


class RandomIdGenerator:
    """
    Random alphanumeric ids drawn from a per-instance RNG.

    Pass ``seed`` (or an explicit ``random.Random``) for reproducible ids.
    """

    def __init__(
        self,
        length: int = DEFAULT_ID_LENGTH,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if length <= 0:
            raise ValueError("id length must be positive")
        self._length = length
        self._rng = rng or random.Random(seed)

    def generate(self) -> str:
        return "".join(self._rng.choice(ID_ALPHABET) for _ in range(self._length))


def overlap_similarity(query: str, content: str) -> float:
    """
    Coarse relevance used by the store.

    Counts query tokens (with repetition) that also occur in ``content`` and
    normalizes by the longer token list, so the result is in [0, 1].
    """
    query_tokens = tokenize(query)
    content_tokens = tokenize(content)
    if not query_tokens or not content_tokens:
        return 0.0
    content_vocabulary = set(content_tokens)
    common = sum(1 for token in query_tokens if token in content_vocabulary)
    return common / max(len(query_tokens), len(content_tokens))


def _detached(document: Document) -> Document:
    return document.model_copy(deep=True)


class DocumentStore:
    """
    In-memory collection of documents in insertion order.

    ``_ids`` and ``_documents`` are parallel lists: position ``i`` of both
    always refers to the same document.

    The store owns deep copies: documents are copied on ``add`` and every
    read returns fresh copies, so callers mutating metadata never change
    what is stored.

    Example:
        >>> store = DocumentStore(id_generator=RandomIdGenerator(seed=7))
        >>> ids = store.add([Document(content="Python is great")])
        >>> store.search("python", k=1)[0].content
        'Python is great'
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None) -> None:
        self._id_generator: IdGenerator = id_generator or RandomIdGenerator()
        self._ids: List[str] = []
        self._documents: List[Document] = []

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._ids

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def add(self, documents: Iterable[Document]) -> List[str]:
        """
        Store documents, keeping caller ids and generating the missing ones.

        Args:
            documents: Documents to append, in order

        Returns:
            The id of every stored document, in input order

        Raises:
            DuplicateDocumentError: If a caller id is already stored or repeated
                in the batch. Nothing is stored in that case.
        """
        batch = list(documents)
        taken = set(self._ids)

        for document in batch:
            if not document.id:
                continue
            if document.id in taken:
                raise DuplicateDocumentError(document.id)
            taken.add(document.id)

        new_ids: List[str] = []
        for document in batch:
            document_id = document.id or self._new_id(taken)
            taken.add(document_id)
            stored = document.model_copy(update={"id": document_id}, deep=True)
            self._ids.append(document_id)
            self._documents.append(stored)
            new_ids.append(document_id)

        logger.debug("Added %d documents (store size %d)", len(new_ids), len(self._documents))
        return new_ids

    def search(self, query: str, k: int = 4) -> List[Document]:
        return [document for document, _ in self.search_with_score(query, k)]

    def search_with_score(self, query: str, k: int = 4) -> List[Tuple[Document, float]]:
        """
        Rank every stored document against ``query`` by token overlap.

        Ties keep insertion order.
        """
        if k <= 0 or not self._documents:
            return []
        scored = [
            (document, overlap_similarity(query, document.content))
            for document in self._documents
        ]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [(_detached(document), score) for document, score in scored[:k]]

    def delete(self, ids: Iterable[str]) -> None:
        """Remove documents by id; unknown ids are ignored."""
        doomed = set(ids)
        if not doomed:
            return
        kept = [
            (document_id, document)
            for document_id, document in zip(self._ids, self._documents)
            if document_id not in doomed
        ]
        removed = len(self._ids) - len(kept)
        self._ids = [document_id for document_id, _ in kept]
        self._documents = [document for _, document in kept]
        logger.debug("Deleted %d documents (store size %d)", removed, len(self._documents))

    def get_by_ids(self, ids: Sequence[str]) -> List[Document]:
        """Return documents in the requested order, skipping unknown ids."""
        positions = {document_id: idx for idx, document_id in enumerate(self._ids)}
        return [
            _detached(self._documents[positions[document_id]])
            for document_id in ids
            if document_id in positions
        ]

    def get_all_documents(self) -> List[Document]:
        return [_detached(document) for document in self._documents]

    def _new_id(self, taken: Set[str]) -> str:
        document_id = self._id_generator.generate()
        while document_id in taken:
            document_id = self._id_generator.generate()
        return document_id
