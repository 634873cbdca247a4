from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

from ..models.document import Document

SUPPORTED_EXTENSIONS = {".txt": "text", ".md": "markdown"}

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_document(file_path: PathLike) -> Document:
    """Load one file; ``.md`` is tagged markdown, anything else plain text."""
    path = Path(file_path)
    if path.suffix.lower() == ".md":
        return load_markdown_file(path)
    return load_text_file(path)


def load_text_file(file_path: PathLike) -> Document:
    return _load(Path(file_path), "text")


def load_markdown_file(file_path: PathLike) -> Document:
    return _load(Path(file_path), "markdown")


def load_documents_from_directory(directory_path: PathLike) -> List[Document]:
    """Load every ``.txt`` and ``.md`` file directly inside ``directory_path``."""
    directory = Path(directory_path)
    if not directory.is_dir():
        raise FileNotFoundError(f"Document directory not found: {directory}")

    documents = [
        load_document(path)
        for path in sorted(directory.iterdir())
        if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS
    ]
    logger.info("Loaded %d documents from %s", len(documents), directory)
    return documents


def _load(path: Path, doc_type: str) -> Document:
    if not path.is_file():
        raise FileNotFoundError(f"Document not found: {path}")
    return Document(
        id=str(path),
        content=path.read_text(encoding="utf-8"),
        metadata={"source": str(path), "type": doc_type},
    )
