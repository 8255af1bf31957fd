"""Deterministic hash-based pseudo-embeddings.

These vectors are a structural placeholder, not a semantic representation:
identical strings always map to bit-identical vectors, and nothing more is
promised. Swapping in a learned model means revisiting the relevance weights in
:mod:`sparklefinder.index.scoring`.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

DEFAULT_DIMENSION = 128


def simple_hash(text: str) -> int:
    """Polynomial rolling hash over UTF-16 code units with 32-bit signed wraparound."""
    encoded = text.encode("utf-16-le", "surrogatepass")
    value = 0
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def pseudo_embedding(text: str, dimension: int = DEFAULT_DIMENSION) -> np.ndarray:
    h = float(simple_hash(text))
    steps = np.arange(dimension, dtype=np.float64)
    return np.sin(h * steps) * np.cos(h / (steps + 1.0))


class HashEmbeddingModel:
    """Drop-in stand-in for an embedding encoder, backed by :func:`pseudo_embedding`."""

    def __init__(self, dimension: int = DEFAULT_DIMENSION) -> None:
        self.dimension = dimension

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return one row per input text."""
        rows = [pseudo_embedding(text, self.dimension) for text in texts]
        if not rows:
            return np.empty((0, self.dimension), dtype=np.float64)
        return np.vstack(rows)

    def embed_query(self, text: str) -> np.ndarray:
        return pseudo_embedding(text, self.dimension)

    def embed_metadata(self, name: str, content: str | None) -> np.ndarray:
        # An empty content sample falls back to the file name.
        return pseudo_embedding(content or name, self.dimension)
