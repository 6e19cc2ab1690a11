import numpy as np
import pytest
import torch
import torch.nn.functional as F

from textgraph.errors import DimensionMismatch
from textgraph.models.embeddings import RichFeatureEmbedder, SimpleEmbedder
from textgraph.models.gat_scoring import (
    EducationalScorer,
    LinearGATTransform,
    OriginalGATScorer,
    aggregate_messages,
    attention_vector,
    stack_embeddings,
)


def test_stack_embeddings_rejects_mismatched_lengths():
    with pytest.raises(DimensionMismatch):
        stack_embeddings([np.zeros(4), np.zeros(5)])


def test_educational_scores_zero_embeddings_only_get_adjacency_bonus():
    scores = EducationalScorer().score([np.zeros(8)] * 3)
    expected = torch.tensor([[0.0, 0.3, 0.0], [0.3, 0.0, 0.3], [0.0, 0.3, 0.0]], dtype=torch.float64)
    assert torch.allclose(scores, expected)


def test_educational_scores_follow_leaky_relu_and_clamp():
    embs = [np.array([1.0, 0.0]), np.array([-2.0, 0.0]), np.array([0.0, 0.0]), np.array([3.0, 0.0])]
    scores = EducationalScorer().score(embs)
    assert torch.all(scores.diagonal() == 0)
    assert torch.all(scores >= 0)
    # dot(0,3) = 3, non-adjacent
    assert scores[0, 3].item() == pytest.approx(3.0)
    # dot(0,1) = -2 -> leaky -0.2, +0.3 adjacency
    assert scores[0, 1].item() == pytest.approx(0.1)
    # dot(1,3) = -6 -> leaky -0.6, clamped
    assert scores[1, 3].item() == 0.0


def test_attention_vector_is_deterministic():
    a = attention_vector(64)
    assert a.shape == (64,)
    assert a[0].item() == pytest.approx(0.2)
    assert torch.equal(a, attention_vector(64))


def test_linear_transform_is_seeded_xavier():
    g1 = torch.Generator().manual_seed(7)
    g2 = torch.Generator().manual_seed(7)
    t1 = LinearGATTransform(64, 32, generator=g1)
    t2 = LinearGATTransform(64, 32, generator=g2)
    assert torch.equal(t1.linear.weight, t2.linear.weight)
    limit = (6.0 / 96) ** 0.5
    assert t1.linear.weight.abs().max().item() <= limit
    assert t1.linear.weight.shape == (32, 64)

    expected = torch.empty(32, 64, dtype=torch.float64)
    torch.nn.init.xavier_uniform_(expected, generator=torch.Generator().manual_seed(7))
    assert torch.equal(t1.linear.weight.detach(), expected)


def test_original_scores_match_concatenated_formula():
    tokens = ["graph", "attention", "graph"]
    embs = RichFeatureEmbedder().embed_sequence(tokens, [])
    transform = LinearGATTransform(64, 32, generator=torch.Generator().manual_seed(3))
    scorer = OriginalGATScorer(transform, negative_slope=0.01)
    scores = scorer.score(embs, tokens)
    assert scores.shape == (3, 3)

    with torch.no_grad():
        h = transform(stack_embeddings(embs))
        for i in range(3):
            for j in range(3):
                e = torch.dot(transform.attn, torch.cat([h[i], h[j]]))
                assert scores[i, j].item() == pytest.approx(F.leaky_relu(e, 0.01).item(), rel=1e-9, abs=1e-12)


def test_original_scorer_rejects_wrong_input_dim():
    transform = LinearGATTransform(64, 32)
    scorer = OriginalGATScorer(transform)
    with pytest.raises(DimensionMismatch):
        scorer.score(SimpleEmbedder(dim=16).embed_sequence(["a", "b"]))


def test_aggregate_messages_is_elu_of_weighted_neighbour_sum():
    attention = torch.tensor([[0.0, 1.0], [0.25, 0.75]], dtype=torch.float64)
    features = torch.tensor([[1.0, -2.0], [-3.0, 4.0]], dtype=torch.float64)
    out = aggregate_messages(attention, features)
    # row 0 copies node 1; row 1 mixes both
    expected = F.elu(torch.tensor([[-3.0, 4.0], [-2.0, 2.5]], dtype=torch.float64))
    assert torch.allclose(out, expected)
    assert out[0, 0].item() == pytest.approx(np.expm1(-3.0))

    with pytest.raises(DimensionMismatch):
        aggregate_messages(attention, torch.zeros((3, 2)))
