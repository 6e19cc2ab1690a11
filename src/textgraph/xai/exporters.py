"""XAI helpers to write attention results to JSON for the visualisation layer."""
from __future__ import annotations

import json
from pathlib import Path

from textgraph.pipeline import ComputationResult, DualComputationResult


def _write_json(path: Path, payload) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def save_attention_result(out_dir: Path, result: ComputationResult, name: str = "attention.json") -> Path:
    return _write_json(Path(out_dir) / name, result.to_dict())


def save_dual_attention(out_dir: Path, dual: DualComputationResult, name: str = "dual_attention.json") -> Path:
    return _write_json(Path(out_dir) / name, dual.to_dict())


def load_attention_result(path: Path) -> ComputationResult:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return ComputationResult(
        query_tokens=tuple(data["queryTokens"]),
        attention_matrix=tuple(tuple(float(v) for v in row) for row in data["attentionMatrix"]),
        min_attention=float(data["minAttention"]),
        max_attention=float(data["maxAttention"]),
        computation_details=dict(data.get("computationDetails", {})),
        paragraph_tokens=tuple(data.get("paragraphTokens", [])),
        aggregated_features=tuple(tuple(float(v) for v in row) for row in data.get("aggregatedFeatures", [])),
    )
