"""Attention pipeline: tokenize -> embed -> score -> normalise -> aggregate -> compose.

Each call builds its own tokens, embeddings and matrices; collaborators
(embedders, scorers) are passed in explicitly instead of being looked up from
module-level singletons.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import torch

from textgraph.data.graph_builder import build_token_graph
from textgraph.data.tokenizer import display_tokens, tokenize_pair
from textgraph.errors import InputError
from textgraph.models.embeddings import RichFeatureEmbedder, SimpleEmbedder, Variant
from textgraph.models.gat_scoring import (
    EducationalScorer,
    LinearGATTransform,
    OriginalGATScorer,
    aggregate_messages,
    stack_embeddings,
)
from textgraph.models.normalization import softmax_normalize
from textgraph.utils.config import PipelineConfig
from textgraph.utils.metrics import AttentionStats, aggregate
from textgraph.utils.seed import make_generator
from textgraph.utils.trace import TraceHook, embedding_stats, emit, emit_rows

logger = logging.getLogger(__name__)

Matrix = Tuple[Tuple[float, ...], ...]


def _freeze_matrix(matrix: torch.Tensor) -> Matrix:
    return tuple(tuple(float(v) for v in row) for row in matrix.tolist())


@dataclass(frozen=True)
class ComputationResult:
    """Everything the visualisation layer needs for one attention matrix."""

    query_tokens: Tuple[str, ...]
    attention_matrix: Matrix
    min_attention: float
    max_attention: float
    computation_details: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    paragraph_tokens: Tuple[str, ...] = ()
    aggregated_features: Matrix = ()

    def __post_init__(self):
        # read-only view over a private copy
        object.__setattr__(self, "computation_details", MappingProxyType(dict(self.computation_details)))

    @property
    def stats(self) -> AttentionStats:
        return AttentionStats(self.min_attention, self.max_attention)

    def as_array(self) -> np.ndarray:
        return np.array(self.attention_matrix, dtype=np.float64).reshape(len(self.query_tokens), len(self.query_tokens))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queryTokens": list(self.query_tokens),
            "attentionMatrix": [list(row) for row in self.attention_matrix],
            "minAttention": self.min_attention,
            "maxAttention": self.max_attention,
            "computationDetails": dict(self.computation_details),
            "paragraphTokens": list(self.paragraph_tokens),
            "aggregatedFeatures": [list(row) for row in self.aggregated_features],
        }


@dataclass(frozen=True)
class DualComputationResult:
    """Educational and original results over the same tokens, kept independent."""

    educational: ComputationResult
    original: ComputationResult

    @property
    def query_tokens(self) -> Tuple[str, ...]:
        return self.educational.query_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queryTokens": list(self.query_tokens),
            "educational": self.educational.to_dict(),
            "original": self.original.to_dict(),
        }


def _coerce_variant(variant) -> Variant:
    try:
        return Variant(variant)
    except ValueError:
        raise InputError(f"Unknown attention variant {variant!r}; expected 'educational' or 'original'") from None


def _embed(embedder, query_tokens, paragraph_tokens, variant: Variant, trace: Optional[TraceHook]):
    embeddings = embedder.embed_sequence(query_tokens, paragraph_tokens)
    if len(embeddings) != len(query_tokens):
        raise InputError(f"Embedder returned {len(embeddings)} vectors for {len(query_tokens)} tokens")
    for i, vec in enumerate(embeddings):
        emit(trace, "embedding", variant.value, index=i, token=query_tokens[i], **embedding_stats(vec))
    return embeddings


def _run_educational(
    query_tokens: List[str],
    paragraph_tokens: List[str],
    config: PipelineConfig,
    embedder=None,
    scorer=None,
    trace: Optional[TraceHook] = None,
) -> Tuple[torch.Tensor, AttentionStats, Dict[str, Any], Optional[torch.Tensor]]:
    variant = Variant.EDUCATIONAL
    embedder = embedder or SimpleEmbedder(dim=config.embedding_dim)
    scorer = scorer or EducationalScorer(
        negative_slope=config.educational_slope,
        adjacency_bonus=config.adjacency_bonus,
    )
    embeddings = _embed(embedder, query_tokens, paragraph_tokens, variant, trace)
    raw = scorer.score(embeddings, query_tokens)
    emit_rows(trace, "scores", variant.value, query_tokens, raw.tolist())

    n = len(query_tokens)
    graph = build_token_graph(query_tokens, self_loops=False)
    matrix = softmax_normalize(
        raw,
        mask=graph["attention_mask"],
        round_to_one_decimal=config.round_to_one_decimal,
    )
    stats = aggregate(matrix.numpy(), include_diagonal=False)
    details = {
        "method": "educational_gat",
        "dimensions": len(embeddings[0]),
        "taskType": getattr(embedder, "task_type", config.task_type),
        "embeddings": len(embeddings),
        "matrixSize": f"{n}x{n}",
        "edges": len(graph["edges"]),
        "nonZeroElements": int((matrix > 0).sum().item()),
        "selfAttention": "excluded",
        "rounded": config.round_to_one_decimal,
    }
    return matrix, stats, details, stack_embeddings(embeddings)


def _run_original(
    query_tokens: List[str],
    paragraph_tokens: List[str],
    config: PipelineConfig,
    embedder=None,
    scorer=None,
    trace: Optional[TraceHook] = None,
) -> Tuple[torch.Tensor, AttentionStats, Dict[str, Any], Optional[torch.Tensor]]:
    variant = Variant.ORIGINAL
    embedder = embedder or RichFeatureEmbedder(dim=config.embedding_dim)
    embeddings = _embed(embedder, query_tokens, paragraph_tokens, variant, trace)
    in_dim = len(embeddings[0])

    seed_used = None
    if scorer is None:
        generator, seed_used = make_generator(config.seed)
        transform = LinearGATTransform(in_dim=in_dim, out_dim=config.transformed_dim, generator=generator)
        scorer = OriginalGATScorer(transform, negative_slope=config.original_slope)
    raw = scorer.score(embeddings, query_tokens)
    emit_rows(trace, "scores", variant.value, query_tokens, raw.tolist())

    graph = build_token_graph(query_tokens, self_loops=True)
    matrix = softmax_normalize(raw, mask=graph["attention_mask"], round_to_one_decimal=config.round_to_one_decimal)
    stats = aggregate(matrix.numpy(), include_diagonal=True)
    out_dim = scorer.transform.out_dim
    details = {
        "method": "original_gat",
        "dimensions": in_dim,
        "transformedDimensions": out_dim,
        "taskType": getattr(embedder, "task_type", config.task_type),
        "features": len(embeddings),
        "edges": len(graph["edges"]),
        "weightMatrix": f"{in_dim}x{out_dim}",
        "attentionVector": f"{2 * out_dim}D",
        "selfAttention": "included",
        "seed": seed_used,
        "rounded": config.round_to_one_decimal,
    }
    # W h of every node, as seen by the scorer
    return matrix, stats, details, getattr(scorer, "last_features", None)


_RUNNERS = {
    Variant.EDUCATIONAL: _run_educational,
    Variant.ORIGINAL: _run_original,
}


def _compute_tokens(
    paragraph_tokens: List[str],
    query_tokens: List[str],
    variant: Variant,
    config: PipelineConfig,
    embedder=None,
    scorer=None,
    trace: Optional[TraceHook] = None,
) -> ComputationResult:
    matrix, stats, details, features = _RUNNERS[variant](
        query_tokens, paragraph_tokens, config, embedder=embedder, scorer=scorer, trace=trace
    )
    aggregated = ()
    if features is not None:
        updated = aggregate_messages(matrix, features)
        emit_rows(trace, "aggregated", variant.value, query_tokens, updated.tolist())
        details["aggregatedDimensions"] = int(updated.shape[1])
        aggregated = _freeze_matrix(updated)
    emit_rows(trace, "normalized_row", variant.value, query_tokens, matrix.tolist())
    emit(trace, "stats", variant.value, min_attention=stats.min_attention, max_attention=stats.max_attention)
    logger.debug(
        "%s attention over %d tokens: range [%.4f, %.4f]",
        variant.value,
        len(query_tokens),
        stats.min_attention,
        stats.max_attention,
    )
    return ComputationResult(
        query_tokens=tuple(query_tokens),
        attention_matrix=_freeze_matrix(matrix),
        min_attention=stats.min_attention,
        max_attention=stats.max_attention,
        computation_details=details,
        paragraph_tokens=tuple(display_tokens(paragraph_tokens, config.paragraph_display_limit)),
        aggregated_features=aggregated,
    )


def _tokenize_checked(paragraph_text: Optional[str], query_text: Optional[str], trace: Optional[TraceHook], variant: str):
    paragraph_tokens, query_tokens = tokenize_pair(paragraph_text, query_text)
    if not query_tokens:
        raise InputError("Query text contains no word tokens")
    emit(trace, "tokens", variant, query=list(query_tokens), paragraph=list(paragraph_tokens))
    return paragraph_tokens, query_tokens


def compute_attention(
    paragraph_text: Optional[str],
    query_text: str,
    variant: Variant | str = Variant.EDUCATIONAL,
    config: Optional[PipelineConfig] = None,
    *,
    embedder=None,
    scorer=None,
    trace: Optional[TraceHook] = None,
) -> ComputationResult:
    """Compute one normalised attention matrix for the query tokens.

    Args:
        paragraph_text: context paragraph; its tokens only feed the contextual embedding terms
        query_text: text whose words become graph nodes; must contain at least one word
        variant: "educational" or "original"
        config: pipeline settings, defaults to ``PipelineConfig()``
        embedder: object with ``embed_sequence(query_tokens, context_tokens)``; replaces the synthetic generator
        scorer: object with ``score(embeddings, tokens)``; for "original" it must expose ``transform``
        trace: optional callable receiving ``TraceEvent`` objects

    Raises:
        InputError: empty query or unknown variant.
        DimensionMismatch: embeddings of unequal length.
    """
    variant = _coerce_variant(variant)
    config = config or PipelineConfig()
    paragraph_tokens, query_tokens = _tokenize_checked(paragraph_text, query_text, trace, variant.value)
    return _compute_tokens(paragraph_tokens, query_tokens, variant, config, embedder=embedder, scorer=scorer, trace=trace)


def compute_dual_attention(
    paragraph_text: Optional[str],
    query_text: str,
    config: Optional[PipelineConfig] = None,
    *,
    trace: Optional[TraceHook] = None,
    educational_embedder=None,
    original_embedder=None,
) -> DualComputationResult:
    """Run both variants on the same tokenized query for side-by-side display."""
    config = config or PipelineConfig()
    paragraph_tokens, query_tokens = _tokenize_checked(paragraph_text, query_text, trace, "dual")
    educational = _compute_tokens(
        paragraph_tokens, query_tokens, Variant.EDUCATIONAL, config, embedder=educational_embedder, trace=trace
    )
    original = _compute_tokens(
        paragraph_tokens, query_tokens, Variant.ORIGINAL, config, embedder=original_embedder, trace=trace
    )
    return DualComputationResult(educational=educational, original=original)


__all__ = [
    "ComputationResult",
    "DualComputationResult",
    "compute_attention",
    "compute_dual_attention",
]
