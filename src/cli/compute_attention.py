"""Compute CLI: run the attention pipeline on a query and export the matrices."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np

from textgraph.errors import TextGraphError
from textgraph.models.embedding_backend import (
    EmbeddingBackendClient,
    compute_attention_with_fallback,
    compute_dual_attention_with_fallback,
)
from textgraph.pipeline import compute_attention, compute_dual_attention
from textgraph.utils.config import load_pipeline_config
from textgraph.xai.exporters import save_attention_result, save_dual_attention


def print_matrix(title: str, result) -> None:
    print(f"== {title}  range=[{result.min_attention:.4f}, {result.max_attention:.4f}]")
    tokens = list(result.query_tokens)
    width = max(len(t) for t in tokens)
    print(" " * (width + 1) + " ".join(f"{t[:6]:>6}" for t in tokens))
    for tok, row in zip(tokens, result.as_array()):
        print(f"{tok:>{width}} " + " ".join(f"{v:6.3f}" for v in row))


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute GAT attention over the words of a query.")
    parser.add_argument("--query", type=str, required=True, help="Text whose words become graph nodes.")
    parser.add_argument("--paragraph", type=str, default="", help="Context paragraph.")
    parser.add_argument("--config", type=str, help="Path to YAML config.")
    parser.add_argument("--variant", choices=["educational", "original", "dual"], default="dual")
    parser.add_argument("--out-dir", type=str, default="artifacts/attention", help="Output directory.")
    parser.add_argument("--seed", type=int, help="Override the weight seed of the original variant.")
    parser.add_argument("--random-seed", action="store_true", help="Draw a fresh weight seed per run.")
    parser.add_argument("--round", action="store_true", help="Round matrix cells to one decimal.")
    parser.add_argument("--backend", action="store_true", help="Use backend embeddings (falls back to synthetic).")
    parser.add_argument("--plot", action="store_true", help="Also write a side-by-side heatmap.")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.random_seed:
        overrides["seed"] = None
    if args.round:
        overrides["round_to_one_decimal"] = True

    out_dir = Path(args.out_dir)
    np.set_printoptions(precision=4, suppress=True)

    try:
        config = load_pipeline_config(Path(args.config) if args.config else None, overrides)
        if args.variant == "dual":
            if args.backend:
                with EmbeddingBackendClient(config=config.backend) as client:
                    dual = compute_dual_attention_with_fallback(args.paragraph, args.query, config, client=client)
            else:
                dual = compute_dual_attention(args.paragraph, args.query, config)
            print_matrix("Educational GAT", dual.educational)
            print_matrix("Original GAT", dual.original)
            print("Saved", save_dual_attention(out_dir, dual))
            if args.plot:
                from textgraph.visuals.fig_utils import plot_dual_attention

                png, _ = plot_dual_attention(dual, out_dir)
                print("Saved", png)
            return

        if args.backend:
            with EmbeddingBackendClient(config=config.backend) as client:
                result = compute_attention_with_fallback(
                    args.paragraph, args.query, args.variant, config, client=client
                )
        else:
            result = compute_attention(args.paragraph, args.query, args.variant, config)
    except (TextGraphError, OSError) as exc:
        parser.error(str(exc))

    print_matrix(args.variant, result)
    print("Saved", save_attention_result(out_dir, result))


if __name__ == "__main__":
    main()
