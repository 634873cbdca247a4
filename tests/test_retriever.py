"""
Tests for the Retriever pipeline: over-fetch, metadata filter, scoring,
threshold, stable top-k, and hybrid blending.
"""

import pytest
from hypothesis import given, settings, strategies as st

from lexrag.core.config import get_settings
from lexrag.core.errors import ConfigurationError
from lexrag.models.document import Document
from lexrag.retrieval.document_store import DocumentStore, overlap_similarity
from lexrag.retrieval.retriever import RetrievalResult, Retriever, matches_filters
from lexrag.retrieval.similarity import SimilarityAlgorithm, SimilarityEngine

from conftest import SequentialIdGenerator


class TestSearch:
    def test_cosine_prefers_matching_document(self, store):
        store.add([Document(content="Python is great"), Document(content="Dogs are loyal")])
        retriever = Retriever(store, algorithm=SimilarityAlgorithm.COSINE)

        results = retriever.search_with_scores("python", k=2)

        assert [d.content for d, _ in results] == ["Python is great", "Dogs are loyal"]
        assert results[0][1] > results[1][1]
        assert results[1][1] == 0.0

    def test_high_threshold_drops_weak_matches(self, populated_store):
        retriever = Retriever(populated_store, algorithm="cosine")
        assert retriever.search_with_scores("python", k=4, threshold=0.9) == []

    def test_threshold_is_inclusive(self, store):
        store.add([Document(content="python")])
        retriever = Retriever(store, algorithm="jaccard")
        assert len(retriever.search("python", threshold=1.0)) == 1

    def test_search_matches_search_with_scores(self, populated_store):
        retriever = Retriever(populated_store)
        assert retriever.search("python dogs", k=3) == [
            d for d, _ in retriever.search_with_scores("python dogs", k=3)
        ]

    def test_truncates_to_k(self, populated_store):
        retriever = Retriever(populated_store)
        assert len(retriever.search("python", k=2)) == 2
        assert retriever.search("python", k=0) == []

    def test_empty_store(self, store):
        assert Retriever(store).search("anything") == []

    def test_ties_keep_candidate_order(self, store):
        store.add([Document(content=f"item {i}") for i in range(4)])
        retriever = Retriever(store, algorithm="jaccard")
        assert [d.content for d in retriever.search("nothing", k=4)] == [f"item {i}" for i in range(4)]

    def test_custom_function_overrides_algorithm(self, populated_store):
        retriever = Retriever(populated_store, algorithm="cosine")
        retriever.set_custom_similarity_function(lambda query, text: float(len(text)))

        [top] = retriever.search("python", k=1)
        assert top.content == "Snakes like the python are reptiles"

        retriever.set_custom_similarity_function(None)
        assert retriever.search("python", k=1)[0].content == "Python programming with type hints"

    def test_set_similarity_algorithm(self, populated_store):
        retriever = Retriever(populated_store)
        retriever.set_similarity_algorithm("jaccard")
        assert retriever.engine.algorithm is SimilarityAlgorithm.JACCARD
        with pytest.raises(ConfigurationError):
            retriever.set_similarity_algorithm("unknown")


class TestFilters:
    def test_filter_keeps_only_matching_category(self, populated_store):
        retriever = Retriever(populated_store)
        results = retriever.search("python", k=5, filters={"category": "animals"})

        assert results[0].content == "Snakes like the python are reptiles"
        assert len(results) == 3
        assert all(d.metadata["category"] == "animals" for d in results)

    def test_filters_are_conjunctive(self, populated_store):
        retriever = Retriever(populated_store)
        results = retriever.search("python dogs", k=5, filters={"category": "animals", "lang": "en"})
        assert {d.content for d in results} == {
            "Dogs are loyal animals",
            "Snakes like the python are reptiles",
        }

    def test_filters_are_case_sensitive(self, populated_store):
        assert Retriever(populated_store).search("python", filters={"category": "Animals"}) == []

    def test_mutated_results_do_not_change_later_filtering(self, store):
        store.add([Document(content="python", metadata={"category": "x"})])
        retriever = Retriever(store)

        store.search("python", 1)[0].metadata["category"] = "y"
        retriever.search("python", filters={"category": "x"})[0].metadata["category"] = "y"

        assert [d.content for d in retriever.search("python", filters={"category": "x"})] == ["python"]

    def test_missing_key_never_matches(self):
        document = Document(content="x", metadata={"category": "animals"})
        assert matches_filters(document, {})
        assert matches_filters(document, None)
        assert not matches_filters(document, {"lang": "en"})

    def test_fetch_multiplier_bounds_recall(self, populated_store):
        narrow = Retriever(populated_store, fetch_multiplier=1)
        wide = Retriever(populated_store, fetch_multiplier=10)
        query, filters = "python", {"category": "animals"}

        # the single coarse candidate is a programming document
        assert narrow.search(query, k=1, filters=filters) == []
        assert wide.search(query, k=1, filters=filters)[0].content == "Snakes like the python are reptiles"

    @settings(max_examples=75)
    @given(
        categories=st.lists(st.sampled_from(["x", "y", "z", None]), min_size=1, max_size=15),
        wanted=st.sampled_from(["x", "y"]),
        k=st.integers(min_value=1, max_value=10),
    )
    def test_filter_never_returns_non_matching(self, categories, wanted, k):
        store = DocumentStore(id_generator=SequentialIdGenerator())
        store.add([
            Document(
                content=f"python document {i}",
                metadata={"category": category} if category else {},
            )
            for i, category in enumerate(categories)
        ])
        for document in Retriever(store).search("python", k=k, filters={"category": wanted}):
            assert document.metadata.get("category") == wanted


class TestHybridSearch:
    def test_fused_score_blends_components(self, populated_store):
        retriever = Retriever(populated_store, algorithm="cosine")
        results = retriever.hybrid_search_with_scores(
            "python", k=5, keyword_weight=0.3, semantic_weight=0.7
        )

        assert results
        for result in results:
            assert isinstance(result, RetrievalResult)
            assert result.keyword_score == pytest.approx(overlap_similarity("python", result.document.content))
            assert result.semantic_score == pytest.approx(
                retriever.engine.compute("python", result.document.content)
            )
            assert result.fused_score == pytest.approx(0.3 * result.keyword_score + 0.7 * result.semantic_score)
        fused = [r.fused_score for r in results]
        assert fused == sorted(fused, reverse=True)

    def test_weights_change_ranking(self, store):
        # overlap: 2/5 vs 2/3; jaccard: 1 vs 2/3
        store.add([
            Document(content="a a a a b"),
            Document(content="a b c"),
        ])
        retriever = Retriever(store, algorithm="jaccard")

        keyword_only = retriever.hybrid_search("a b", k=1, keyword_weight=1.0, semantic_weight=0.0)
        semantic_only = retriever.hybrid_search("a b", k=1, keyword_weight=0.0, semantic_weight=1.0)

        assert keyword_only[0].content == "a b c"
        assert semantic_only[0].content == "a a a a b"

    def test_hybrid_respects_filters(self, populated_store):
        results = Retriever(populated_store).hybrid_search("python", k=5, filters={"lang": "de"})
        assert [d.content for d in results] == ["Python programming with type hints"]

    @pytest.mark.parametrize("weights", [(-0.1, 0.5), (0.5, -1.0), (0.0, 0.0)])
    def test_invalid_weights(self, populated_store, weights):
        keyword_weight, semantic_weight = weights
        with pytest.raises(ValueError):
            Retriever(populated_store).hybrid_search(
                "python", keyword_weight=keyword_weight, semantic_weight=semantic_weight
            )


class TestConfiguration:
    def test_fetch_multiplier_must_be_positive(self, store):
        with pytest.raises(ConfigurationError):
            Retriever(store, fetch_multiplier=0)
        retriever = Retriever(store)
        with pytest.raises(ConfigurationError):
            retriever.fetch_multiplier = 0

    def test_defaults_from_settings(self, store, monkeypatch):
        monkeypatch.setenv("LEXRAG_SIMILARITY_ALGORITHM", "bm25")
        monkeypatch.setenv("LEXRAG_FETCH_MULTIPLIER", "3")
        get_settings.cache_clear()

        retriever = Retriever(store)
        assert retriever.engine.algorithm is SimilarityAlgorithm.BM25
        assert retriever.fetch_multiplier == 3

    def test_explicit_engine(self, store):
        engine = SimilarityEngine(SimilarityAlgorithm.JACCARD)
        retriever = Retriever(store, engine=engine)
        assert retriever.engine is engine
        assert retriever.engine.algorithm is SimilarityAlgorithm.JACCARD

    def test_engine_and_algorithm_are_exclusive(self, store):
        engine = SimilarityEngine(SimilarityAlgorithm.JACCARD)
        shared = Retriever(store, engine=engine)

        with pytest.raises(ConfigurationError):
            Retriever(store, algorithm="euclidean", engine=engine)
        assert shared.engine.algorithm is SimilarityAlgorithm.JACCARD
