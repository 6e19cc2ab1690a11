from pathlib import Path

from textgraph.pipeline import compute_dual_attention
from textgraph.utils.trace import TraceRecorder
from textgraph.visuals.fig_utils import plot_dual_attention
from textgraph.xai.exporters import save_dual_attention


def main():
    paragraph = "Graph attention networks learn which neighbours matter for each node."
    query = "graph attention mechanisms"
    recorder = TraceRecorder()
    dual = compute_dual_attention(paragraph, query, trace=recorder)
    for ev in recorder.of_kind("embedding"):
        print(ev.variant, ev.payload["token"], f"norm={ev.payload['norm']:.3f}")
    out = save_dual_attention(Path("artifacts/attention_demo"), dual)
    print("Saved attention matrices to", out)
    png, _ = plot_dual_attention(dual, "artifacts/attention_demo")
    print("Saved heatmap to", png)


if __name__ == "__main__":
    main()
