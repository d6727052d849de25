"""
Text processing utilities for market title normalization and scoring.
"""

import re
from collections import Counter
from typing import List

MIN_TOKEN_LENGTH = 3


def normalize_title(title: str) -> str:
    """
    Normalize market title for matching.

    Steps:
    1. Convert to lowercase
    2. Remove special characters (keep a-z, 0-9 and spaces)
    3. Collapse repeated whitespace
    4. Strip leading/trailing spaces

    Args:
        title: Raw market title

    Returns:
        Normalized title string
    """
    if not title:
        return ""

    normalized = title.lower()

    # "$100,000" becomes "100000", not "100 000"
    normalized = re.sub(r'[^a-z0-9 ]', '', normalized)

    normalized = re.sub(r'\s+', ' ', normalized)

    return normalized.strip()


def tokenize(title: str) -> List[str]:
    """
    Split a title into scoring tokens.

    Only tokens longer than two characters count, which drops most
    articles and prepositions ("by", "to", "in").

    Args:
        title: Raw market title

    Returns:
        List of tokens in title order (duplicates kept)
    """
    normalized = normalize_title(title)
    return [word for word in normalized.split(' ') if len(word) >= MIN_TOKEN_LENGTH]


def similarity(title_a: str, title_b: str) -> float:
    """
    Bag-of-words overlap between two titles.

    Score = shared tokens / max(token count of either title). Shared tokens
    are counted as a multiset intersection so the score is symmetric.

    Args:
        title_a: First title
        title_b: Second title

    Returns:
        Score within [0, 1]; 0 when neither title has a token
    """
    tokens_a = tokenize(title_a)
    tokens_b = tokenize(title_b)

    # Divide by long tokens only, not every word of the title; otherwise a
    # title with short words would score below 1 against itself.
    denominator = max(len(tokens_a), len(tokens_b))
    if denominator == 0:
        return 0.0

    common = Counter(tokens_a) & Counter(tokens_b)
    return sum(common.values()) / denominator
