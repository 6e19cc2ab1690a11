"""Raw pairwise attention scores for query tokens.

Two interchangeable scorers, both returning an (N, N) float64 tensor of
unnormalised scores:

 - ``EducationalScorer``: LeakyReLU(0.1) of embedding dot products, +0.3 for
   adjacent tokens, clamped at zero, no self-attention.
 - ``OriginalGATScorer``: e_ij = LeakyReLU(a^T [W h_i || W h_j], 0.01) with
   self-attention (Velickovic et al. 2017).

``aggregate_messages`` is the message-passing step run on the normalised
weights: h'_i = ELU(sum_j alpha_ij * h_j).
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

from textgraph.data.graph_builder import adjacency_mask
from textgraph.errors import DimensionMismatch


def stack_embeddings(embeddings: Sequence[np.ndarray]) -> torch.Tensor:
    """Stack per-token vectors into an (N, D) float64 tensor, checking they align."""
    if len(embeddings) == 0:
        return torch.zeros((0, 0), dtype=torch.float64)
    dim = len(embeddings[0])
    for vec in embeddings[1:]:
        if len(vec) != dim:
            raise DimensionMismatch(dim, len(vec))
    return torch.tensor(np.stack([np.asarray(v, dtype=np.float64) for v in embeddings]), dtype=torch.float64)


def attention_vector(dim: int) -> torch.Tensor:
    k = torch.arange(dim, dtype=torch.float64)
    return torch.sin(k * 0.1) * 0.3 + torch.cos(k * 0.05) * 0.2


def aggregate_messages(attention: torch.Tensor, features: torch.Tensor) -> torch.Tensor:
    """Attention-weighted sum of neighbour features followed by ELU.

    attention: (N, N) normalised weights, row i holds the weights node i gives its neighbours
    features: (N, D) node features
    """
    attention = attention.to(torch.float64)
    features = features.to(torch.float64)
    if attention.shape[1] != features.shape[0]:
        raise DimensionMismatch(attention.shape[1], features.shape[0])
    return F.elu(attention @ features)  # (N, D)


class EducationalScorer(nn.Module):
    def __init__(self, negative_slope: float = 0.1, adjacency_bonus: float = 0.3):
        super().__init__()
        self.negative_slope = negative_slope
        self.adjacency_bonus = adjacency_bonus

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        # x: (N, D)
        N = x.shape[0]
        dots = x @ x.T  # (N, N)
        scores = F.leaky_relu(dots, negative_slope=self.negative_slope)
        scores = scores + self.adjacency_bonus * adjacency_mask(N, k=1).to(scores.dtype)
        scores = scores.clamp(min=0.0)
        scores.fill_diagonal_(0.0)
        return scores

    def score(self, embeddings: Sequence[np.ndarray], tokens: Optional[Sequence[str]] = None) -> torch.Tensor:
        with torch.no_grad():
            return self(stack_embeddings(embeddings))


class LinearGATTransform(nn.Module):
    """Shared linear map W plus the attention vector a of a single GAT head.

    W is Xavier-uniform initialised from ``generator`` each time the module is
    built; the attention vector is a fixed sinusoid of length ``2 * out_dim``.
    """

    def __init__(self, in_dim: int = 64, out_dim: int = 32, generator: Optional[torch.Generator] = None):
        super().__init__()
        self.in_dim = in_dim
        self.out_dim = out_dim
        self.linear = nn.Linear(in_dim, out_dim, bias=False, dtype=torch.float64)
        self.register_buffer("attn", attention_vector(2 * out_dim))
        self.reset_parameters(generator)

    def reset_parameters(self, generator: Optional[torch.Generator] = None):
        nn.init.xavier_uniform_(self.linear.weight, generator=generator)

    @property
    def attn_l(self) -> torch.Tensor:
        return self.attn[: self.out_dim]

    @property
    def attn_r(self) -> torch.Tensor:
        return self.attn[self.out_dim :]

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.linear(x)  # (N, out_dim)


class OriginalGATScorer(nn.Module):
    def __init__(self, transform: LinearGATTransform, negative_slope: float = 0.01):
        super().__init__()
        self.transform = transform
        self.negative_slope = negative_slope
        self.last_features: Optional[torch.Tensor] = None

    def transformed_features(self, x: torch.Tensor) -> torch.Tensor:
        if x.shape[1] != self.transform.in_dim:
            raise DimensionMismatch(self.transform.in_dim, x.shape[1])
        return self.transform(x)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        h = self.transformed_features(x)  # (N, out_dim)
        self.last_features = h.detach()
        # a^T [h_i || h_j] == a_l . h_i + a_r . h_j
        src = h @ self.transform.attn_l  # (N,)
        dst = h @ self.transform.attn_r  # (N,)
        e = src.unsqueeze(1) + dst.unsqueeze(0)  # (N, N)
        return F.leaky_relu(e, negative_slope=self.negative_slope)

    def score(self, embeddings: Sequence[np.ndarray], tokens: Optional[Sequence[str]] = None) -> torch.Tensor:
        with torch.no_grad():
            return self(stack_embeddings(embeddings))


__all__ = [
    "stack_embeddings",
    "attention_vector",
    "aggregate_messages",
    "EducationalScorer",
    "LinearGATTransform",
    "OriginalGATScorer",
]
