import json

import pytest

from textgraph.pipeline import compute_attention, compute_dual_attention
from textgraph.visuals.fig_utils import plot_dual_attention
from textgraph.xai.attention_viz import FLAT_OPACITY, ZERO_OPACITY, cell_opacity
from textgraph.xai.exporters import load_attention_result, save_attention_result, save_dual_attention


def test_save_and_reload_attention_result(tmp_path):
    result = compute_attention("graph networks", "graph attention mechanisms", "educational")
    path = save_attention_result(tmp_path / "out", result)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["queryTokens"] == ["graph", "attention", "mechanisms"]
    assert data["computationDetails"]["method"] == "educational_gat"
    assert load_attention_result(path) == result


def test_save_dual_attention(tmp_path):
    dual = compute_dual_attention("", "cat dog cat")
    path = save_dual_attention(tmp_path, dual)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["original"]["computationDetails"]["selfAttention"] == "included"


def test_cell_opacity_mapping():
    assert cell_opacity(0.0, 0.2, 0.8) == ZERO_OPACITY
    assert cell_opacity(0.2, 0.2, 0.8) == pytest.approx(0.2)
    assert cell_opacity(0.8, 0.2, 0.8) == pytest.approx(1.0)
    # all-zero matrix range (1.0, 0.0) renders flat
    assert cell_opacity(0.5, 1.0, 0.0) == FLAT_OPACITY


def test_plot_dual_attention_writes_png_and_pdf(tmp_path):
    dual = compute_dual_attention("", "graph attention mechanisms")
    png, pdf = plot_dual_attention(dual, tmp_path)
    assert (tmp_path / "dual_attention.png").exists()
    assert (tmp_path / "dual_attention.pdf").exists()
    assert png.endswith(".png") and pdf.endswith(".pdf")
