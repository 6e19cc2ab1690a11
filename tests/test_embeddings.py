import numpy as np
import pytest

from textgraph.models.embeddings import (
    RichFeatureEmbedder,
    SimpleEmbedder,
    Variant,
    embed,
    rich_features,
    simple_embedding,
    token_seed,
)


def test_token_seed_weights_characters_by_position():
    assert token_seed("a") == 97
    assert token_seed("ab") == 97 * 1 + 98 * 2
    assert token_seed("ab") != token_seed("ba")


def test_simple_embedding_is_bit_identical_across_calls():
    ctx = ["graphs", "are", "fun"]
    first = embed("graph", ctx, "educational")
    second = embed("graph", ctx, "educational")
    assert first.shape == (64,)
    assert first.dtype == np.float64
    assert first.tobytes() == second.tobytes()


def test_simple_embedding_formula_and_context_bonus():
    seed = token_seed("graph")
    vec = simple_embedding("graph", [])
    d = 3
    expected = np.sin(seed * 0.01 * (d + 1)) * 0.5 + np.cos(seed * 0.02 * (d + 1)) * 0.3
    assert vec[d] == pytest.approx(expected)

    with_ctx = simple_embedding("graph", ["a", "graph"])
    assert np.allclose(with_ctx - vec, 0.2)


def test_embeddings_are_read_only():
    vec = simple_embedding("node")
    with pytest.raises(ValueError):
        vec[0] = 1.0


def test_rich_features_depend_on_position_context_and_length():
    base = rich_features("cat", 0, [])
    assert base.shape == (64,)
    assert not np.allclose(base, rich_features("cat", 1, []))
    assert not np.allclose(base, rich_features("cat", 0, ["dog", "cat"]))
    # length term at d=0 is len/10 * cos(0)
    seed = token_seed("cat")
    lexical0 = np.sin(seed * 0.01) * 0.3 + np.cos(seed * 0.02) * 0.2
    assert base[0] == pytest.approx(lexical0 + 0.0 + 0.3)


def test_embed_dispatch_and_sequence_embedders():
    assert np.array_equal(embed("x", variant=Variant.ORIGINAL, position=2), rich_features("x", 2))
    with pytest.raises(ValueError):
        embed("x", variant="bogus")

    seq = SimpleEmbedder().embed_sequence(["cat", "dog", "cat"], [])
    assert np.array_equal(seq[0], seq[2])
    rich = RichFeatureEmbedder().embed_sequence(["cat", "dog", "cat"], [])
    assert not np.array_equal(rich[0], rich[2])
