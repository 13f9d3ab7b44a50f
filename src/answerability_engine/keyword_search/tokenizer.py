"""Text preprocessing shared by term analysis, match features and hit resolution."""

from __future__ import annotations

import re
from collections import defaultdict

from answerability_engine.config.constants import MIN_TERM_LENGTH, STOPWORDS

_WORD_RE = re.compile(r"\w+")


def tokenize(text: str) -> list[str]:
    """Tokenize text: lowercase, strip punctuation, remove stopwords and short tokens."""
    text = text.lower()
    text = re.sub(r"[^\w\s]", " ", text)
    tokens = text.split()
    return [t for t in tokens if t not in STOPWORDS and len(t) >= MIN_TERM_LENGTH]


def iter_words(text: str) -> list[tuple[int, str, int, int]]:
    """Return (token_index, lowered_word, char_start, char_end) for every word in text."""
    return [
        (i, m.group(0).lower(), m.start(), m.end())
        for i, m in enumerate(_WORD_RE.finditer(text))
    ]


def token_positions(text: str) -> dict[str, tuple[int, ...]]:
    """Map each informative token to its ordered token offsets within text.

    Offsets count every word, stopwords included, so distances reflect the
    original text rather than the filtered token stream.
    """
    positions: dict[str, list[int]] = defaultdict(list)
    for index, word, _, _ in iter_words(text):
        if word in STOPWORDS or len(word) < MIN_TERM_LENGTH:
            continue
        positions[word].append(index)
    return {term: tuple(offsets) for term, offsets in positions.items()}
