"""textgraph: GAT-style attention over text treated as a graph of word tokens.

Educational (dot-product) and original (Velickovic et al.) attention variants
over the same tokenized query, packaged for a side-by-side visualisation.
"""

from . import data, models, xai, utils
from .errors import BackendError, BackendTimeout, DimensionMismatch, InputError, TextGraphError
from .pipeline import ComputationResult, DualComputationResult, compute_attention, compute_dual_attention
from .utils.config import PipelineConfig

__all__ = [
    "data",
    "models",
    "xai",
    "utils",
    "compute_attention",
    "compute_dual_attention",
    "ComputationResult",
    "DualComputationResult",
    "PipelineConfig",
    "TextGraphError",
    "InputError",
    "DimensionMismatch",
    "BackendError",
    "BackendTimeout",
]
