"""Deterministic synthetic token embeddings.

Two generators share the same character seed:

 - ``SimpleEmbedder``: 64-d sin/cos mixture plus a flat bonus when the token
   also appears in the context paragraph (educational GAT).
 - ``RichFeatureEmbedder``: 64-d lexical + contextual + positional + length
   features, fed into the learnable transform of the original GAT.

Contract:
 - embed_sequence(query_tokens, context_tokens) -> list of read-only float64 arrays

Nothing is cached; identical token text always maps to identical simple
embeddings because the computation depends only on the characters.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence

import numpy as np


class Variant(str, Enum):
    EDUCATIONAL = "educational"
    ORIGINAL = "original"


def token_seed(token: str) -> int:
    """Sum of character codes weighted by (1 + character position)."""
    return sum(ord(c) * (k + 1) for k, c in enumerate(token))


def _freeze(vec: np.ndarray) -> np.ndarray:
    vec.setflags(write=False)
    return vec


def simple_embedding(token: str, context_tokens: Sequence[str] = (), dim: int = 64) -> np.ndarray:
    seed = token_seed(token)
    d = np.arange(1, dim + 1, dtype=np.float64)
    context_bonus = 0.2 if token in context_tokens else 0.0
    vec = np.sin(seed * 0.01 * d) * 0.5 + np.cos(seed * 0.02 * d) * 0.3 + context_bonus
    return _freeze(vec)


def rich_features(token: str, position: int, context_tokens: Sequence[str] = (), dim: int = 64) -> np.ndarray:
    """Feature vector for the original GAT variant.

    Args:
        token: query token
        position: index of the token within the query
        context_tokens: paragraph tokens; the first occurrence index shifts the contextual term
        dim: output dimension
    """
    seed = token_seed(token)
    d0 = np.arange(dim, dtype=np.float64)  # d
    d1 = d0 + 1.0  # d + 1

    # lexical
    vec = np.sin(seed * d1 * 0.01) * 0.3 + np.cos(seed * d1 * 0.02) * 0.2
    # contextual: a constant shift across dimensions
    context = list(context_tokens)
    if token in context:
        vec = vec + np.sin((seed + context.index(token)) * 0.03) * 0.2
    # positional
    vec = vec + np.sin(position * 0.1 + d0 * 0.05) * 0.1
    # length
    vec = vec + (len(token) / 10.0) * np.cos(d0 * 0.04)
    return _freeze(vec)


def embed(
    token: str,
    context_tokens: Sequence[str] = (),
    variant: Variant | str = Variant.EDUCATIONAL,
    position: int = 0,
    dim: int = 64,
) -> np.ndarray:
    variant = Variant(variant)
    if variant is Variant.EDUCATIONAL:
        return simple_embedding(token, context_tokens, dim=dim)
    return rich_features(token, position, context_tokens, dim=dim)


class SimpleEmbedder:
    variant = Variant.EDUCATIONAL

    def __init__(self, dim: int = 64):
        self.dim = dim

    def embed_sequence(self, query_tokens: Sequence[str], context_tokens: Optional[Sequence[str]] = None) -> List[np.ndarray]:
        context = list(context_tokens or ())
        return [simple_embedding(tok, context, dim=self.dim) for tok in query_tokens]


class RichFeatureEmbedder:
    variant = Variant.ORIGINAL

    def __init__(self, dim: int = 64):
        self.dim = dim

    def embed_sequence(self, query_tokens: Sequence[str], context_tokens: Optional[Sequence[str]] = None) -> List[np.ndarray]:
        context = list(context_tokens or ())
        return [rich_features(tok, i, context, dim=self.dim) for i, tok in enumerate(query_tokens)]


__all__ = [
    "Variant",
    "token_seed",
    "simple_embedding",
    "rich_features",
    "embed",
    "SimpleEmbedder",
    "RichFeatureEmbedder",
]
