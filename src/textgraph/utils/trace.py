"""Structured trace events emitted by the attention pipeline.

The pipeline itself stays side-effect free; callers that want to inspect the
intermediate values pass a ``trace`` callable which receives ``TraceEvent``
instances in computation order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

TraceHook = Callable[["TraceEvent"], None]


@dataclass(frozen=True)
class TraceEvent:
    kind: str
    variant: str
    payload: Dict[str, Any] = field(default_factory=dict)


class TraceRecorder:
    """Collect events in memory; usable directly as a trace hook."""

    def __init__(self):
        self.events: List[TraceEvent] = []

    def __call__(self, event: TraceEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> List[TraceEvent]:
        return [e for e in self.events if e.kind == kind]


def embedding_stats(vector: np.ndarray) -> Dict[str, float]:
    vec = np.asarray(vector, dtype=np.float64)
    return {
        "dim": int(vec.shape[0]),
        "mean": float(vec.mean()),
        "std": float(vec.std()),
        "min": float(vec.min()),
        "max": float(vec.max()),
        "norm": float(np.linalg.norm(vec)),
    }


def emit(trace: Optional[TraceHook], kind: str, variant: str, **payload) -> None:
    if trace is not None:
        trace(TraceEvent(kind=kind, variant=variant, payload=payload))


def emit_rows(trace: Optional[TraceHook], kind: str, variant: str, tokens: Sequence[str], rows) -> None:
    if trace is None:
        return
    for i, row in enumerate(rows):
        emit(trace, kind, variant, index=i, token=tokens[i], values=[float(v) for v in row])
