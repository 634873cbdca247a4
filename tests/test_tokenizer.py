"""
Unit tests for the shared whitespace tokenizer.

Tests cover:
- Lowercasing and whitespace splitting
- Punctuation staying attached to tokens
- Term frequency counting
- Edge cases (empty input, whitespace-only)
"""

from hypothesis import given, strategies as st

from lexrag.retrieval.tokenizer import term_frequencies, tokenize


class TestTokenize:
    """Tests for tokenize()."""

    def test_lowercases_and_splits(self):
        """Mixed case words are lowered and split on any whitespace."""
        assert tokenize("Hello  World\tAgain\n") == ["hello", "world", "again"]

    def test_punctuation_is_kept(self):
        """Trailing punctuation is part of the token."""
        assert tokenize("Dogs are loyal.") == ["dogs", "are", "loyal."]

    def test_duplicates_are_kept(self):
        assert tokenize("a A a") == ["a", "a", "a"]

    def test_cjk_text_without_spaces_is_one_token(self):
        assert tokenize("你好世界") == ["你好世界"]

    def test_empty_input(self):
        """Empty and whitespace-only input yields no tokens."""
        assert tokenize("") == []
        assert tokenize("   \n\t") == []

    @given(st.text(max_size=100))
    def test_tokens_are_non_empty_and_lowercase(self, text):
        for token in tokenize(text):
            assert token
            assert token == token.lower()
            assert not any(ch.isspace() for ch in token)


class TestTermFrequencies:
    def test_counts_tokens(self):
        assert term_frequencies("Python python rocks") == {"python": 2, "rocks": 1}

    def test_empty(self):
        assert term_frequencies("") == {}
