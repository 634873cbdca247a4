"""
Protocol definitions for the retrieval module.

These are the seams where callers plug in their own collaborators: an LLM for
query rewriting and compression, and anything that can answer
``search(query, k)`` as a candidate source.
"""

from typing import List, Protocol, runtime_checkable

from ..models.document import Document


@runtime_checkable
class LLM(Protocol):
    """Synchronous text-completion collaborator."""

    def generate(self, prompt: str) -> str:
        """Complete a prompt.

        Args:
            prompt: The full prompt text

        Returns:
            The completion text

        Note:
            Implementations signal failure by raising; retrievers treat any
            exception as "LLM unavailable" and degrade.
        """
        ...


@runtime_checkable
class Searcher(Protocol):
    """Anything that returns the top-k documents for a query."""

    def search(self, query: str, k: int = 4) -> List[Document]:
        """Return up to ``k`` documents ranked for ``query``."""
        ...
