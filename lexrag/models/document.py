from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A unit of text handled by the chunker, the store and the retrievers.

    An empty ``id`` means "not assigned yet"; the store generates one on add.
    """

    model_config = ConfigDict(frozen=True)

    content: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)
    id: str = ""

    def with_id(self, document_id: str) -> "Document":
        return self.model_copy(update={"id": document_id})

    def with_metadata(self, **extra: str) -> "Document":
        return self.model_copy(update={"metadata": {**self.metadata, **extra}})
