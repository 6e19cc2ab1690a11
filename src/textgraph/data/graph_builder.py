"""Graph builder for query tokens: complete attention graph and adjacency window.

Every query token is a node. The attention graph is complete (each token may
attend to every other token); self-loops are present only for the variant that
keeps self-attention.
"""
from __future__ import annotations

from typing import List, Sequence, Tuple

import torch


def sliding_window_edges(n_tokens: int, k: int = 1) -> List[Tuple[int, int]]:
    edges = []
    for i in range(n_tokens):
        for j in range(max(0, i - k), min(n_tokens, i + k + 1)):
            if i == j:
                continue
            edges.append((i, j))
    return edges


def complete_graph_edges(n_tokens: int, self_loops: bool = False) -> List[Tuple[int, int]]:
    return [
        (i, j)
        for i in range(n_tokens)
        for j in range(n_tokens)
        if self_loops or i != j
    ]


def edges_to_mask(n_tokens: int, edges: Sequence[Tuple[int, int]]) -> torch.Tensor:
    """Dense (N, N) boolean mask with True at every listed (src, dst) edge."""
    mask = torch.zeros((n_tokens, n_tokens), dtype=torch.bool)
    for i, j in edges:
        mask[i, j] = True
    return mask


def self_attention_mask(n_tokens: int, self_loops: bool = False) -> torch.Tensor:
    """Cells that take part in softmax normalisation."""
    mask = torch.ones((n_tokens, n_tokens), dtype=torch.bool)
    if not self_loops:
        mask.fill_diagonal_(False)
    return mask


def adjacency_mask(n_tokens: int, k: int = 1) -> torch.Tensor:
    return edges_to_mask(n_tokens, sliding_window_edges(n_tokens, k=k))


def build_token_graph(tokens: Sequence[str], self_loops: bool = False, window_k: int = 1):
    n = len(tokens)
    return {
        "n_nodes": n,
        "tokens": list(tokens),
        "edges": complete_graph_edges(n, self_loops=self_loops),
        "attention_mask": self_attention_mask(n, self_loops=self_loops),
        "adjacency": adjacency_mask(n, k=window_k),
    }
