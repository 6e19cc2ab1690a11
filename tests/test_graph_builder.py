import torch

from textgraph.data.graph_builder import (
    adjacency_mask,
    build_token_graph,
    complete_graph_edges,
    self_attention_mask,
    sliding_window_edges,
)


def test_complete_graph_edges_with_and_without_self_loops():
    assert len(complete_graph_edges(4, self_loops=False)) == 12
    assert len(complete_graph_edges(4, self_loops=True)) == 16
    assert (2, 2) not in complete_graph_edges(3)


def test_masks():
    mask = self_attention_mask(3, self_loops=False)
    assert not mask.diagonal().any()
    assert mask.sum().item() == 6
    assert self_attention_mask(3, self_loops=True).all()

    adj = adjacency_mask(4, k=1)
    expected = torch.tensor(
        [
            [False, True, False, False],
            [True, False, True, False],
            [False, True, False, True],
            [False, False, True, False],
        ]
    )
    assert torch.equal(adj, expected)
    assert sorted(sliding_window_edges(3, k=1)) == [(0, 1), (1, 0), (1, 2), (2, 1)]


def test_build_token_graph():
    graph = build_token_graph(["a", "b", "c"], self_loops=True)
    assert graph["n_nodes"] == 3
    assert len(graph["edges"]) == 9
    assert graph["attention_mask"].shape == (3, 3)
