"""Text helpers for summaries and query tokenization."""

from __future__ import annotations

from typing import Iterable, List

SUMMARY_LINES = 3
SUMMARY_CHARS = 200

STOP_WORDS = frozenset(
    [
        "the", "is", "at", "which", "on", "a", "an", "and", "or", "but", "in",
        "with", "to", "for", "of", "as", "by", "that", "this", "from", "up",
        "out", "if", "about", "into", "through", "during", "how", "when",
        "where", "why", "what", "who", "whose", "whom", "been", "being", "have",
        "has", "had", "do", "does", "did", "will", "would", "should", "could",
        "may", "might", "must", "shall", "can", "need", "ought", "dare", "used",
    ]
)


def tokenize(query: str) -> List[str]:
    """Lowercase and split on whitespace."""
    return query.lower().split()


def extract_keywords(query: str, *, min_length: int = 3) -> List[str]:
    """Tokens of at least ``min_length`` characters that are not stop words."""
    return [word for word in tokenize(query) if len(word) >= min_length and word not in STOP_WORDS]


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def summarize(content: str, *, max_lines: int = SUMMARY_LINES, max_chars: int = SUMMARY_CHARS) -> str:
    """First non-blank lines joined by spaces, truncated to ``max_chars``."""
    lines = normalize_whitespace(content.splitlines()).split("\n")
    return " ".join(lines[:max_lines])[:max_chars]
