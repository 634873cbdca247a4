"""
Tokenizer shared by the document store and every similarity strategy.

Tokens are whitespace-separated, lowercased, and keep their punctuation:
"Python." and "python" are different terms. There is no stemming and no
stopword list.

CRITICAL: the store's coarse ranking and the retriever's fine scoring MUST
tokenize the same way, otherwise the over-fetched candidate set and the
final ranking disagree about which terms exist.
"""

from collections import Counter
from typing import List


def tokenize(text: str) -> List[str]:
    """
    Split text into lowercase whitespace-delimited tokens.

    Args:
        text: Input text

    Returns:
        List of tokens in order of appearance (duplicates kept)

    Examples:
        >>> tokenize("Hello  World")
        ['hello', 'world']
        >>> tokenize("Dogs are loyal.")
        ['dogs', 'are', 'loyal.']
    """
    if not text:
        return []
    return text.lower().split()


def term_frequencies(text: str) -> Counter:
    """Count how often each token occurs in ``text``."""
    return Counter(tokenize(text))
