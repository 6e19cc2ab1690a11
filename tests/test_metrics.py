import numpy as np
import pytest

from textgraph.errors import DimensionMismatch
from textgraph.utils.metrics import aggregate, cosine_similarity, cosine_similarity_matrix


def test_aggregate_excludes_zero_cells_when_diagonal_excluded():
    stats = aggregate([[0.0, 0.25], [0.75, 0.0]], include_diagonal=False)
    assert stats.min_attention == 0.25
    assert stats.max_attention == 0.75
    assert not stats.is_degenerate


def test_aggregate_includes_every_cell_with_diagonal():
    stats = aggregate([[0.1, 0.9], [0.5, 0.5]], include_diagonal=True)
    assert (stats.min_attention, stats.max_attention) == (0.1, 0.9)
    stats = aggregate([[0.0, 1.0], [1.0, 0.0]], include_diagonal=True)
    assert (stats.min_attention, stats.max_attention) == (0.0, 1.0)


def test_aggregate_all_zero_matrix_is_inverted_range():
    stats = aggregate(np.zeros((3, 3)), include_diagonal=False)
    assert (stats.min_attention, stats.max_attention) == (1.0, 0.0)
    assert stats.is_degenerate


def test_cosine_similarity_mismatch_and_zero_vector():
    with pytest.raises(DimensionMismatch):
        cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        cosine_similarity([1.0], [1.0, 0.0])
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


def test_cosine_similarity_matrix():
    sims = cosine_similarity_matrix([[1.0, 0.0], [0.0, 1.0], [0.0, 0.0]])
    assert sims.shape == (3, 3)
    assert sims[0, 0] == pytest.approx(1.0)
    assert sims[0, 1] == pytest.approx(0.0)
    assert np.all(sims[2] == 0.0)
    with pytest.raises(DimensionMismatch):
        cosine_similarity_matrix([[1.0, 0.0], [1.0]])
