"""Metrics: attention range statistics and cosine similarity"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as sk_cosine_similarity

from textgraph.errors import DimensionMismatch


@dataclass(frozen=True)
class AttentionStats:
    min_attention: float
    max_attention: float

    @property
    def is_degenerate(self) -> bool:
        """True for the inverted range produced by an all-zero matrix; render flat."""
        return self.min_attention > self.max_attention


def aggregate(matrix, include_diagonal: bool) -> AttentionStats:
    """Global min/max attention used as the consumer's opacity range.

    With ``include_diagonal=False`` only strictly positive cells are scanned, so
    the zero self-attention diagonal does not drag the minimum down. An all-zero
    matrix then yields (1.0, 0.0).
    """
    values = np.asarray(matrix, dtype=np.float64).ravel()
    if not include_diagonal:
        values = values[values > 0]
    min_attention = 1.0
    max_attention = 0.0
    if values.size:
        min_attention = min(min_attention, float(values.min()))
        max_attention = max(max_attention, float(values.max()))
    return AttentionStats(min_attention=min_attention, max_attention=max_attention)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero magnitude."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatch(a.shape[0], b.shape[0])
    mag_a = np.linalg.norm(a)
    mag_b = np.linalg.norm(b)
    if mag_a == 0 or mag_b == 0:
        return 0.0
    return float(np.dot(a, b) / (mag_a * mag_b))


def cosine_similarity_matrix(embeddings: Sequence[Sequence[float]]) -> np.ndarray:
    """Pairwise cosine similarities (N, N); zero vectors give 0 rows."""
    if len(embeddings) == 0:
        return np.zeros((0, 0))
    dim = len(embeddings[0])
    for vec in embeddings[1:]:
        if len(vec) != dim:
            raise DimensionMismatch(dim, len(vec))
    return sk_cosine_similarity(np.asarray(embeddings, dtype=np.float64))
