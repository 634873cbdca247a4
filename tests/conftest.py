from typing import Callable, Dict, List, Optional, Tuple

import pytest

from lexrag.core.config import get_settings
from lexrag.logging_utils import clear_context
from lexrag.models.document import Document
from lexrag.retrieval.document_store import DocumentStore


class FakeLLM:
    """Deterministic LLM returning canned replies and recording prompts."""

    def __init__(self, reply: str = "", responder: Optional[Callable[[str], str]] = None):
        self.reply = reply
        self.responder = responder
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.responder is not None:
            return self.responder(prompt)
        return self.reply


class FailingLLM:
    def __init__(self):
        self.calls = 0

    def generate(self, prompt: str) -> str:
        self.calls += 1
        raise RuntimeError("Simulated LLM outage")


class CannedSearcher:
    """Searcher returning fixed result lists per query and recording calls."""

    def __init__(self, results: Dict[str, List[Document]]):
        self.results = results
        self.calls: List[Tuple[str, int]] = []

    def search(self, query: str, k: int = 4) -> List[Document]:
        self.calls.append((query, k))
        return list(self.results.get(query, []))[:k]


class SequentialIdGenerator:
    def __init__(self, prefix: str = "doc"):
        self.prefix = prefix
        self.counter = 0

    def generate(self) -> str:
        self.counter += 1
        return f"{self.prefix}{self.counter}"


@pytest.fixture(autouse=True)
def reset_settings():
    get_settings.cache_clear()
    clear_context()
    yield
    get_settings.cache_clear()
    clear_context()


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore(id_generator=SequentialIdGenerator())


@pytest.fixture
def populated_store(store: DocumentStore) -> DocumentStore:
    store.add([
        Document(content="Python is great for data science", metadata={"category": "programming", "lang": "en"}),
        Document(content="Dogs are loyal animals", metadata={"category": "animals", "lang": "en"}),
        Document(content="Python programming with type hints", metadata={"category": "programming", "lang": "de"}),
        Document(content="Cats and dogs living together", metadata={"category": "animals"}),
        Document(content="Snakes like the python are reptiles", metadata={"category": "animals", "lang": "en"}),
    ])
    return store
