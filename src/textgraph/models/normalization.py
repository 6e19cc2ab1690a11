"""Row-wise softmax over raw attention scores."""
from __future__ import annotations

import logging
from typing import Optional

import torch

logger = logging.getLogger(__name__)


def round_one_decimal(t: torch.Tensor) -> torch.Tensor:
    return torch.round(t * 10.0) / 10.0


def softmax_normalize(
    raw: torch.Tensor,
    mask: Optional[torch.Tensor] = None,
    round_to_one_decimal: bool = False,
) -> torch.Tensor:
    """Normalise every row of ``raw`` (N, N) into a distribution.

    Args:
        raw: raw scores
        mask: optional (N, N) bool; False cells are left out of the softmax and come back as 0
        round_to_one_decimal: round each output cell to one decimal (rows then no longer sum to exactly 1)

    Rows whose exponentials sum to zero (every participating score is -inf, or
    no cell participates) keep their raw values instead.
    """
    raw = raw.to(torch.float64)
    if mask is None:
        mask = torch.ones_like(raw, dtype=torch.bool)

    masked = raw.masked_fill(~mask, float("-inf"))
    if raw.numel() == 0:
        return raw.clone()

    # shifting by the row max keeps exp() finite for long backend vectors
    row_max = masked.max(dim=1, keepdim=True).values
    shift = torch.where(torch.isfinite(row_max), row_max, torch.zeros_like(row_max))
    exp = torch.exp(masked - shift)
    sums = exp.sum(dim=1, keepdim=True)

    ok = sums > 0
    denom = torch.where(ok, sums, torch.ones_like(sums))
    fallback = raw.masked_fill(~mask, 0.0)
    out = torch.where(ok, exp / denom, fallback)

    degenerate = (~ok).squeeze(1).nonzero().flatten().tolist()
    if degenerate:
        logger.debug("Softmax rows %s sum to zero; keeping raw scores", degenerate)

    if round_to_one_decimal:
        out = round_one_decimal(out)
    return out


__all__ = ["softmax_normalize", "round_one_decimal"]
