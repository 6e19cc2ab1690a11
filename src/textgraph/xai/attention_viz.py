"""Attention visualization helpers: cell opacity mapping and heatmap export"""
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from textgraph.pipeline import ComputationResult

ZERO_OPACITY = 0.1
FLAT_OPACITY = 0.6


def cell_opacity(value: float, min_attention: float, max_attention: float) -> float:
    """Opacity a matrix cell is drawn with.

    Zero cells (no self-attention) are nearly transparent; a flat or inverted
    range (all-zero matrix) renders every other cell at a fixed mid opacity.
    """
    if value == 0:
        return ZERO_OPACITY
    span = max_attention - min_attention
    if span <= 0:
        return FLAT_OPACITY
    return 0.2 + 0.8 * (value - min_attention) / span


def opacity_matrix(result: ComputationResult) -> np.ndarray:
    attn = result.as_array()
    return np.vectorize(lambda v: cell_opacity(v, result.min_attention, result.max_attention))(attn)


def plot_attention(result: ComputationResult, ax=None, cmap: str = "Blues", title: Optional[str] = None):
    # ax: existing axes to draw into, a new figure otherwise
    if ax is None:
        _, ax = plt.subplots(figsize=(5, 4))
    attn = result.as_array()
    tokens = list(result.query_tokens)
    ax.imshow(opacity_matrix(result), cmap=cmap, vmin=0.0, vmax=1.0, aspect="equal")
    ax.set_xticks(range(len(tokens)))
    ax.set_yticks(range(len(tokens)))
    ax.set_xticklabels(tokens, rotation=90)
    ax.set_yticklabels(tokens)
    for i in range(attn.shape[0]):
        for j in range(attn.shape[1]):
            ax.text(j, i, f"{attn[i, j]:.1f}", ha="center", va="center", fontsize=8)
    if title:
        ax.set_xlabel(title)
    return ax
