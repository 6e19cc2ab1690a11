# =========================
# Figure Utilities (Python)
# =========================
import os

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from textgraph.pipeline import DualComputationResult
from textgraph.xai.attention_viz import plot_attention

# Global style (minimal, academic)
plt.rcParams.update({
    "font.size": 11,
    "axes.labelsize": 11,
    "xtick.labelsize": 10,
    "ytick.labelsize": 10,
    "legend.fontsize": 10,
    "pdf.fonttype": 42,   # editable fonts in PDF
    "ps.fonttype": 42,
    "figure.dpi": 300,
})


def _ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)


def _savefig(base_dir: str, name: str):
    _ensure_dir(base_dir)
    png_path = os.path.join(base_dir, f"{name}.png")
    pdf_path = os.path.join(base_dir, f"{name}.pdf")
    plt.savefig(png_path, bbox_inches="tight", dpi=300)
    plt.savefig(pdf_path, bbox_inches="tight")
    plt.close()
    return png_path, pdf_path


def plot_dual_attention(dual: DualComputationResult, out_dir, name="dual_attention"):
    n = len(dual.query_tokens)
    size = max(4, 0.5 * n + 2)
    fig, (ax_edu, ax_orig) = plt.subplots(1, 2, figsize=(2 * size, size))
    plot_attention(dual.educational, ax=ax_edu, cmap="Blues", title="Educational GAT")
    plot_attention(dual.original, ax=ax_orig, cmap="Reds", title="Original GAT")
    return _savefig(str(out_dir), name)

# Usage example:
# plot_dual_attention(compute_dual_attention(paragraph, query), "artifacts/attention")
#
# - Export both PNG and PDF.
# - No titles; the variant name goes on the x label.
