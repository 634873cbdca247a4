from .chunking_service import TextChunker, find_sentence_boundaries, split_text
from .document_loader import load_document, load_documents_from_directory
from .rag_service import RAGChain

__all__ = [
    "TextChunker",
    "find_sentence_boundaries",
    "split_text",
    "load_document",
    "load_documents_from_directory",
    "RAGChain",
]
