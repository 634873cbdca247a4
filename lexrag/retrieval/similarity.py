"""
Lexical similarity strategies.

Every strategy exposes ``score(query, text) -> float`` over the shared
tokenizer, so the retriever never needs to know which formula is active:

- Cosine over term-frequency vectors, in [0, 1]
- Jaccard over token sets, in [0, 1]
- Euclidean distance mapped to 1 / (1 + d), in (0, 1]
- Simplified single-document BM25 (unbounded, >= 0)
- Corpus BM25 backed by rank_bm25 statistics
- Any caller-supplied ``(query, text) -> float`` function
"""

import logging
import math
from enum import Enum
from typing import Callable, Dict, Iterable, Mapping, Optional, Protocol, Union, runtime_checkable

from rank_bm25 import BM25Okapi

from ..core.errors import ConfigurationError
from .tokenizer import term_frequencies, tokenize


logger = logging.getLogger(__name__)

SimilarityFunction = Callable[[str, str], float]


class SimilarityAlgorithm(str, Enum):
    """Built-in scoring formulas."""
    COSINE = "cosine"
    JACCARD = "jaccard"
    EUCLIDEAN = "euclidean"
    BM25 = "bm25"


@runtime_checkable
class SimilarityStrategy(Protocol):
    """Anything that can score a candidate text against a query."""

    def score(self, query: str, text: str) -> float:
        ...


class CosineSimilarity:
    """Cosine of the angle between the two term-frequency vectors."""

    def score(self, query: str, text: str) -> float:
        freqs1 = term_frequencies(query)
        freqs2 = term_frequencies(text)

        dot_product = sum(count * freqs2.get(term, 0) for term, count in freqs1.items())
        magnitude1 = math.sqrt(sum(count * count for count in freqs1.values()))
        magnitude2 = math.sqrt(sum(count * count for count in freqs2.values()))

        if magnitude1 == 0.0 or magnitude2 == 0.0:
            return 0.0
        # rounding can push identical vectors a hair above 1
        return min(1.0, dot_product / (magnitude1 * magnitude2))


class JaccardSimilarity:
    """Size of the token-set intersection over the size of the union."""

    def score(self, query: str, text: str) -> float:
        set1 = set(tokenize(query))
        set2 = set(tokenize(text))
        union = set1 | set2
        if not union:
            return 0.0
        return len(set1 & set2) / len(union)


class EuclideanSimilarity:
    """Euclidean distance between term-frequency vectors, mapped into (0, 1]."""

    def score(self, query: str, text: str) -> float:
        freqs1 = term_frequencies(query)
        freqs2 = term_frequencies(text)

        distance_squared = 0
        for term in freqs1.keys() | freqs2.keys():
            diff = freqs1.get(term, 0) - freqs2.get(term, 0)
            distance_squared += diff * diff

        return 1.0 / (1.0 + math.sqrt(distance_squared))


class BM25Similarity:
    """
    Single-document BM25 approximation.

    There is no corpus here: IDF is estimated from the candidate's own term
    frequency as ``log(1 + 1 / (1 + tf))`` and the average document length is
    a fixed assumption. Document length is the number of distinct terms in the
    candidate. Scores are comparable across candidates for one query but are
    not textbook BM25; use ``CorpusBM25Similarity`` for corpus statistics.
    """

    DEFAULT_K1 = 1.5
    DEFAULT_B = 0.75
    DEFAULT_AVG_DOC_LENGTH = 100.0

    def __init__(
        self,
        k1: float = DEFAULT_K1,
        b: float = DEFAULT_B,
        avg_doc_length: float = DEFAULT_AVG_DOC_LENGTH,
    ) -> None:
        if k1 < 0:
            raise ConfigurationError("k1 must not be negative")
        if not 0.0 <= b <= 1.0:
            raise ConfigurationError("b must be between 0.0 and 1.0")
        if avg_doc_length <= 0:
            raise ConfigurationError("avg_doc_length must be positive")
        self.k1 = k1
        self.b = b
        self.avg_doc_length = avg_doc_length

    def score(self, query: str, text: str) -> float:
        query_freqs = term_frequencies(query)
        doc_freqs = term_frequencies(text)
        doc_length = len(doc_freqs)

        score = 0.0
        for term, query_freq in query_freqs.items():
            tf = doc_freqs.get(term)
            if not tf:
                continue
            idf = math.log(1.0 + 1.0 / (1.0 + tf))
            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * (1 - self.b + self.b * (doc_length / self.avg_doc_length))
            score += idf * (numerator / denominator) * query_freq

        return score


class CorpusBM25Similarity:
    """
    BM25 with IDF and average length taken from a real corpus.

    Corpus statistics come from rank_bm25's ``BM25Okapi``; the candidate being
    scored does not need to be part of that corpus. Terms the corpus never saw
    contribute nothing.

    Example:
        >>> strategy = CorpusBM25Similarity.from_texts(
        ...     ["python is great", "dogs are loyal", "cats are independent"]
        ... )
        >>> strategy.score("python", "python rocks") > 0
        True
    """

    def __init__(self, index: BM25Okapi) -> None:
        self._index = index

    @classmethod
    def from_texts(
        cls,
        texts: Iterable[str],
        k1: float = BM25Similarity.DEFAULT_K1,
        b: float = BM25Similarity.DEFAULT_B,
    ) -> "CorpusBM25Similarity":
        corpus = [tokenize(text) for text in texts]
        if not corpus:
            raise ValueError("Cannot build BM25 statistics from an empty corpus")
        return cls(BM25Okapi(corpus, k1=k1, b=b))

    @property
    def avg_doc_length(self) -> float:
        return self._index.avgdl

    def score(self, query: str, text: str) -> float:
        doc_freqs = term_frequencies(text)
        doc_length = sum(doc_freqs.values())
        if doc_length == 0:
            return 0.0

        k1 = self._index.k1
        b = self._index.b
        avgdl = self._index.avgdl or 1.0
        score = 0.0
        for term in tokenize(query):
            tf = doc_freqs.get(term, 0)
            if not tf:
                continue
            idf = self._index.idf.get(term, 0.0)
            score += idf * (tf * (k1 + 1)) / (tf + k1 * (1 - b + b * doc_length / avgdl))
        # epsilon-floored idf can go negative on tiny corpora
        return max(0.0, score)


class CustomSimilarity:
    """Adapter turning a plain ``(query, text) -> float`` function into a strategy."""

    def __init__(self, fn: SimilarityFunction) -> None:
        if not callable(fn):
            raise ConfigurationError("custom similarity must be callable")
        self._fn = fn

    def score(self, query: str, text: str) -> float:
        return float(self._fn(query, text))


def default_strategies() -> Dict[SimilarityAlgorithm, SimilarityStrategy]:
    return {
        SimilarityAlgorithm.COSINE: CosineSimilarity(),
        SimilarityAlgorithm.JACCARD: JaccardSimilarity(),
        SimilarityAlgorithm.EUCLIDEAN: EuclideanSimilarity(),
        SimilarityAlgorithm.BM25: BM25Similarity(),
    }


def _coerce_algorithm(algorithm: Union[SimilarityAlgorithm, str]) -> SimilarityAlgorithm:
    try:
        return SimilarityAlgorithm(algorithm)
    except ValueError as exc:
        valid = ", ".join(a.value for a in SimilarityAlgorithm)
        raise ConfigurationError(
            f"Unknown similarity algorithm {algorithm!r}; expected one of: {valid}"
        ) from exc


class SimilarityEngine:
    """
    Dispatches scoring to the selected strategy.

    A custom function, once set, replaces the algorithm dispatch entirely
    until it is cleared with ``set_custom_function(None)``.

    Example:
        >>> engine = SimilarityEngine(SimilarityAlgorithm.JACCARD)
        >>> engine.compute("a b", "b c")
        0.3333333333333333
    """

    def __init__(
        self,
        algorithm: Union[SimilarityAlgorithm, str] = SimilarityAlgorithm.COSINE,
        custom_function: Optional[Union[SimilarityFunction, SimilarityStrategy]] = None,
        strategies: Optional[Mapping[SimilarityAlgorithm, SimilarityStrategy]] = None,
    ) -> None:
        self._strategies: Dict[SimilarityAlgorithm, SimilarityStrategy] = default_strategies()
        if strategies:
            self._strategies.update(strategies)
        self._algorithm = _coerce_algorithm(algorithm)
        self._custom: Optional[SimilarityStrategy] = None
        self.set_custom_function(custom_function)

    @property
    def algorithm(self) -> SimilarityAlgorithm:
        return self._algorithm

    @algorithm.setter
    def algorithm(self, value: Union[SimilarityAlgorithm, str]) -> None:
        self._algorithm = _coerce_algorithm(value)

    @property
    def has_custom_function(self) -> bool:
        return self._custom is not None

    def set_custom_function(
        self, fn: Optional[Union[SimilarityFunction, SimilarityStrategy]]
    ) -> None:
        if fn is None:
            self._custom = None
        elif isinstance(fn, SimilarityStrategy):
            self._custom = fn
        else:
            self._custom = CustomSimilarity(fn)

    def strategy_for(self, algorithm: Union[SimilarityAlgorithm, str]) -> SimilarityStrategy:
        return self._strategies[_coerce_algorithm(algorithm)]

    def compute(
        self,
        query: str,
        text: str,
        algorithm: Optional[Union[SimilarityAlgorithm, str]] = None,
    ) -> float:
        if self._custom is not None:
            return self._custom.score(query, text)
        strategy = self.strategy_for(algorithm if algorithm is not None else self._algorithm)
        return strategy.score(query, text)

    def score(self, query: str, text: str) -> float:
        return self.compute(query, text)
