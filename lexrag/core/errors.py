"""Exception types raised by the chunking and retrieval core."""


class LexRagError(Exception):
    """Base class for lexrag errors."""


class ConfigurationError(LexRagError, ValueError):
    """Raised when a component is constructed with invalid settings."""


class DuplicateDocumentError(LexRagError, ValueError):
    """Raised when a caller-supplied document id is already taken."""

    def __init__(self, document_id: str):
        super().__init__(f"Document id already exists: {document_id}")
        self.document_id = document_id
