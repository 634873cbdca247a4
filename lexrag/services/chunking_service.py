from __future__ import annotations

import bisect
import logging
import re
from typing import List, Optional, Sequence, Tuple

from ..core.config import Settings
from ..core.errors import ConfigurationError
from ..models.document import Document

DEFAULT_CHUNK_SIZE = 1000  # UTF-8 bytes
DEFAULT_CHUNK_OVERLAP = 200

# Sentence terminators: ASCII . ! ? ; and the full-width 。！？； (3 bytes each in UTF-8).
# UTF-8 is self-synchronizing, so none of these can match inside another code point.
SENTENCE_END_PATTERN = re.compile(rb"[.!?;]|\xe3\x80\x82|\xef\xbc[\x81\x9f\x9b]")

CHUNK_ID_TEMPLATE = "{parent_id}_chunk_{index}"

logger = logging.getLogger(__name__)


def find_sentence_boundaries(data: bytes) -> List[int]:
    """Return ascending byte offsets right after each sentence terminator.

    The length of ``data`` is always the last entry.
    """
    boundaries = [match.end() for match in SENTENCE_END_PATTERN.finditer(data)]
    if not boundaries or boundaries[-1] != len(data):
        boundaries.append(len(data))
    return boundaries


def _is_continuation_byte(byte: int) -> bool:
    return byte & 0xC0 == 0x80


def _align_backward(data: bytes, position: int) -> int:
    while 0 < position < len(data) and _is_continuation_byte(data[position]):
        position -= 1
    return position


def _align_forward(data: bytes, position: int) -> int:
    while position < len(data) and _is_continuation_byte(data[position]):
        position += 1
    return position


class TextChunker:
    """Greedy sentence-aware splitter working on UTF-8 byte offsets.

    Each window is at most ``chunk_size`` bytes. Its end is pulled back to the
    last sentence boundary inside the window when there is one, and the next
    window starts at the first boundary inside the trailing ``chunk_overlap``
    bytes, so consecutive chunks share whole sentences where possible.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ):
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ConfigurationError(f"chunk_overlap must not be negative, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise ConfigurationError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextChunker":
        return cls(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap)

    # --------------------- Splitting ---------------------

    def split_text(self, text: str) -> List[str]:
        if not text:
            return []
        data = text.encode("utf-8")
        return [data[start:end].decode("utf-8") for start, end in self._spans(data)]

    def split_spans(self, text: str) -> List[Tuple[int, int]]:
        """Byte ``(start, end)`` spans of the chunks ``split_text`` would emit."""
        if not text:
            return []
        return self._spans(text.encode("utf-8"))

    def split_document(self, document: Document) -> List[Document]:
        chunks = self.split_text(document.content)
        total = str(len(chunks))
        documents: List[Document] = []
        for idx, chunk_text in enumerate(chunks):
            chunk_id = (
                CHUNK_ID_TEMPLATE.format(parent_id=document.id, index=idx)
                if document.id
                else ""
            )
            documents.append(
                Document(
                    id=chunk_id,
                    content=chunk_text,
                    metadata={
                        **document.metadata,
                        "chunk_index": str(idx),
                        "total_chunks": total,
                    },
                )
            )
        logger.debug("Split document %s into %d chunks", document.id or "<unsaved>", len(chunks))
        return documents

    def split_documents(self, documents: Sequence[Document]) -> List[Document]:
        chunks: List[Document] = []
        for document in documents:
            chunks.extend(self.split_document(document))
        return chunks

    # --------------------- Helpers ---------------------

    def _spans(self, data: bytes) -> List[Tuple[int, int]]:
        boundaries = find_sentence_boundaries(data)
        length = len(data)
        spans: List[Tuple[int, int]] = []
        start = 0

        while start < length:
            raw_end = min(start + self.chunk_size, length)
            end = self._last_boundary_within(boundaries, start, raw_end)
            if end is None:
                end = _align_backward(data, raw_end)
                if end <= start:
                    # chunk_size is smaller than the code point at ``start``
                    end = _align_forward(data, start + 1)

            spans.append((start, end))
            if end == length:
                break

            overlap_start = max(end - min(self.chunk_overlap, self.chunk_size), start)
            next_start = self._first_boundary_within(boundaries, overlap_start, end)
            if next_start is None:
                next_start = _align_backward(data, overlap_start)
            if next_start <= start:
                next_start = end
            start = next_start

        return spans

    @staticmethod
    def _last_boundary_within(boundaries: List[int], low: int, high: int) -> Optional[int]:
        """Largest boundary in ``(low, high]``."""
        idx = bisect.bisect_right(boundaries, high) - 1
        if idx >= 0 and boundaries[idx] > low:
            return boundaries[idx]
        return None

    @staticmethod
    def _first_boundary_within(boundaries: List[int], low: int, high: int) -> Optional[int]:
        """Smallest boundary in ``(low, high]``."""
        idx = bisect.bisect_right(boundaries, low)
        if idx < len(boundaries) and boundaries[idx] <= high:
            return boundaries[idx]
        return None


def split_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    return TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap).split_text(text)
