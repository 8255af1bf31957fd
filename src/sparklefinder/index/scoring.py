"""Relevance scoring for indexed and recently seen files."""

from __future__ import annotations

import math
import time
from typing import Sequence

import numpy as np

from sparklefinder.models import FileMetadata
from sparklefinder.utils.text import tokenize

SEMANTIC_WEIGHT = 0.5
NAME_MATCH_WEIGHT = 0.3
CONTENT_MATCH_WEIGHT = 0.2
RECENCY_BONUS = 0.1
RECENCY_WINDOW_SECONDS = 7 * 24 * 60 * 60

RECENT_NAME_MATCH_WEIGHT = 0.4
# (max age in seconds, bonus), checked in order
RECENT_AGE_BONUSES = ((60 * 60, 0.3), (6 * 60 * 60, 0.2), (24 * 60 * 60, 0.1))
RECENT_SCORE_CAP = 0.9


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0.0 when undefined."""
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.size == 0 or left.shape != right.shape:
        return 0.0
    norm = float(np.linalg.norm(left)) * float(np.linalg.norm(right))
    if norm == 0.0 or not math.isfinite(norm):
        return 0.0
    return float(np.dot(left, right) / norm)


class RelevanceScorer:
    """Weighted sum of semantic, lexical and recency signals, bounded to [0, 1]."""

    def score(
        self,
        query: str,
        metadata: FileMetadata,
        query_embedding: np.ndarray,
        file_embedding: np.ndarray,
        *,
        now: float | None = None,
    ) -> float:
        now = time.time() if now is None else now
        keywords = tokenize(query)

        # Negative similarity is treated as no signal so the lexical floors hold.
        score = max(cosine_similarity(query_embedding, file_embedding), 0.0) * SEMANTIC_WEIGHT

        name = metadata.name.lower()
        score += NAME_MATCH_WEIGHT * sum(1 for word in keywords if word in name)

        if metadata.content:
            content = metadata.content.lower()
            score += CONTENT_MATCH_WEIGHT * sum(1 for word in keywords if word in content)

        if now - metadata.modified < RECENCY_WINDOW_SECONDS:
            score += RECENCY_BONUS

        return min(max(score, 0.0), 1.0)

    def recency_score(
        self,
        query: str,
        name: str,
        seen_at: float,
        *,
        now: float | None = None,
    ) -> float:
        """Score for transient files seen outside the main index.

        Capped below 1.0 so fully indexed files can always outrank them.
        """
        now = time.time() if now is None else now
        lowered = name.lower()
        score = RECENT_NAME_MATCH_WEIGHT * sum(1 for word in tokenize(query) if word in lowered)

        age = now - seen_at
        for max_age, bonus in RECENT_AGE_BONUSES:
            if age < max_age:
                score += bonus
                break

        return min(score, RECENT_SCORE_CAP)
