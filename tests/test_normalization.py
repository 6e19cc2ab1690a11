import math

import pytest
import torch

from textgraph.data.graph_builder import self_attention_mask
from textgraph.models.normalization import softmax_normalize


def test_rows_sum_to_one():
    raw = torch.tensor([[0.0, 1.0, 2.0], [0.5, 0.5, 0.5], [-1.0, 3.0, 0.2]], dtype=torch.float64)
    out = softmax_normalize(raw)
    assert torch.allclose(out.sum(dim=1), torch.ones(3, dtype=torch.float64), atol=1e-12)
    assert out[0, 2].item() == pytest.approx(math.exp(2.0) / (1 + math.e + math.exp(2.0)), rel=1e-9)


def test_masked_cells_are_exact_zero():
    raw = torch.tensor([[0.0, 0.4, 0.1], [0.4, 0.0, 0.3], [0.1, 0.3, 0.0]], dtype=torch.float64)
    out = softmax_normalize(raw, mask=self_attention_mask(3, self_loops=False))
    assert torch.all(out.diagonal() == 0.0)
    assert torch.allclose(out.sum(dim=1), torch.ones(3, dtype=torch.float64), atol=1e-12)


def test_degenerate_rows_keep_raw_values():
    raw = torch.tensor([[float("-inf"), float("-inf")], [0.0, 0.0]], dtype=torch.float64)
    out = softmax_normalize(raw)
    assert torch.isinf(out[0]).all()
    assert torch.allclose(out[1], torch.tensor([0.5, 0.5], dtype=torch.float64))

    single = softmax_normalize(torch.zeros((1, 1), dtype=torch.float64), mask=self_attention_mask(1))
    assert single.tolist() == [[0.0]]


def test_large_scores_do_not_overflow():
    raw = torch.tensor([[1000.0, 0.0], [0.0, 800.0]], dtype=torch.float64)
    out = softmax_normalize(raw)
    assert torch.isfinite(out).all()
    assert out[0, 0].item() == 1.0


def test_rounding_to_one_decimal():
    raw = torch.tensor([[0.0, 1.0, 2.0], [0.3, 0.2, 0.1], [1.0, 1.0, 1.0]], dtype=torch.float64)
    out = softmax_normalize(raw, round_to_one_decimal=True)
    scaled = out * 10
    assert torch.allclose(scaled, torch.round(scaled), atol=1e-9)
    assert out[2].tolist() == [0.3, 0.3, 0.3]
