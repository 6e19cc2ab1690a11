"""Exception taxonomy shared across the package."""
from __future__ import annotations


class TextGraphError(Exception):
    """Base class for all textgraph errors."""


class InputError(TextGraphError, ValueError):
    """Raised for unusable input: empty queries, unknown variants, bad config values."""


class DimensionMismatch(TextGraphError, ValueError):
    """Raised when two vectors that must be aligned have different lengths."""

    def __init__(self, len_a: int, len_b: int):
        super().__init__(f"Embedding dimensions must match (got {len_a} and {len_b})")
        self.len_a = len_a
        self.len_b = len_b


class BackendError(TextGraphError, RuntimeError):
    """Raised when the real-embedding backend fails."""


class BackendTimeout(BackendError, TimeoutError):
    """Raised when a backend request stays pending longer than its timeout."""


__all__ = ["TextGraphError", "InputError", "DimensionMismatch", "BackendError", "BackendTimeout"]
