"""Optional real-embedding backend running on a worker thread.

The synthetic generators in ``textgraph.models.embeddings`` are the default
embedding source. This module provides a drop-in replacement that produces one
768-d vector per text, either from a HuggingFace checkpoint or from a
deterministic demo model when ``transformers`` / the weights are unavailable.

Requests are posted to a single worker thread and correlated by callback id;
each one gets a ``concurrent.futures.Future`` that is rejected with
``BackendTimeout`` (and dropped from the pending map) if it is still pending
after ``timeout`` seconds.
"""
from __future__ import annotations

import itertools
import logging
import math
import queue
import re
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import torch

from textgraph.errors import BackendError, BackendTimeout, InputError
from textgraph.pipeline import ComputationResult, DualComputationResult, compute_attention, compute_dual_attention
from textgraph.utils.config import TASK_TYPES, BackendConfig, PipelineConfig
from textgraph.utils.metrics import aggregate, cosine_similarity_matrix

logger = logging.getLogger(__name__)

EMBEDDING_DIM = 768
_LETTERS_RE = re.compile(r"[^a-zA-Z\s]")
_VOWELS_RE = re.compile(r"[aeiou]")


def _check_task_type(task_type: str) -> str:
    if task_type not in TASK_TYPES:
        raise InputError(f"task_type must be one of {TASK_TYPES}, got {task_type!r}")
    return task_type


def text_hash(text: str) -> int:
    """31-multiplier string hash wrapped to a signed 32-bit int, returned as its absolute value."""
    h = 0
    for ch in text:
        h = (h << 5) - h + ord(ch)
        h = ((h + 2**31) % 2**32) - 2**31
    return abs(h)


class DemoEmbeddingModel:
    """Deterministic 768-d semantic-looking embeddings; no weights required."""

    device = "demo"
    name = "demo"

    def __init__(self, dim: int = EMBEDDING_DIM):
        self.dim = dim

    def load(self) -> str:
        return self.device

    def embed_one(self, text: str, task_type: str = "document") -> np.ndarray:
        clean = _LETTERS_RE.sub("", text.lower())
        seed = sum(ord(c) * (i + 1) for i, c in enumerate(clean))
        vowel_density = len(_VOWELS_RE.findall(clean)) / len(clean) if clean else 0.0
        word_hash = text_hash(clean)
        task_bias = 0.15 if task_type == "query" else -0.15

        d = np.arange(1, self.dim + 1, dtype=np.float64)
        value = np.sin(seed * 0.001 * d) * 0.3
        value += np.cos(seed * 0.002 * d) * 0.2
        # word length
        value += np.sin(len(clean) * 0.1 * d) * 0.1
        # vowel density
        value += np.sin(vowel_density * math.pi * d) * 0.1
        value += task_bias * np.cos(d * 0.01)
        # clustering by hash
        value += np.sin(word_hash * 0.0001 * d) * 0.15
        return np.tanh(value)

    def embed(self, texts: Sequence[str], task_type: str = "document") -> List[np.ndarray]:
        return [self.embed_one(t, task_type) for t in texts]


class HFEmbeddingModel:
    """Mean-pooled sentence embeddings from a HuggingFace encoder, loaded lazily."""

    def __init__(
        self,
        model_name: str,
        batch_size: int = 8,
        max_length: int = 256,
        local_files_only: Optional[bool] = None,
        device: Optional[str] = None,
    ):
        self.name = model_name
        self.batch_size = batch_size
        self.max_length = max_length
        self.local_files_only = local_files_only
        self.device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        self.tokenizer = None
        self.model = None

    def load(self) -> str:
        if self.model is not None and self.tokenizer is not None:
            return self.device
        from transformers import AutoModel, AutoTokenizer

        kwargs = {}
        if self.local_files_only is None:
            if Path(self.name).exists():
                kwargs["local_files_only"] = True
        else:
            kwargs["local_files_only"] = self.local_files_only
        self.tokenizer = AutoTokenizer.from_pretrained(self.name, **kwargs)
        self.model = AutoModel.from_pretrained(self.name, **kwargs).to(self.device)
        self.model.eval()
        logger.info("Loaded embedding model %s on %s", self.name, self.device)
        return self.device

    def embed(self, texts: Sequence[str], task_type: str = "document") -> List[np.ndarray]:
        if self.model is None or self.tokenizer is None:
            raise BackendError("Model not loaded")
        out: List[np.ndarray] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            toked = self.tokenizer(batch, padding=True, truncation=True, max_length=self.max_length, return_tensors="pt")
            toked = {k: v.to(self.device) for k, v in toked.items()}
            with torch.no_grad():
                hidden = self.model(**toked, return_dict=True).last_hidden_state  # (B, T, H)
            mask = toked["attention_mask"].unsqueeze(-1).to(hidden.dtype)
            pooled = (hidden * mask).sum(dim=1) / mask.sum(dim=1).clamp(min=1e-8)
            out.extend(pooled.cpu().double().numpy())
        return out


def build_model(config: BackendConfig):
    if config.use_demo:
        return DemoEmbeddingModel()
    return HFEmbeddingModel(
        config.model_name,
        batch_size=config.batch_size,
        max_length=config.max_length,
        local_files_only=config.local_files_only,
    )


class EmbeddingBackendClient:
    """Thread-backed client for an embedding model.

    ``initialize()`` is guarded by a lock so concurrent callers load the model
    once. Use as a context manager or call ``close()`` to stop the worker.
    """

    def __init__(self, model=None, config: Optional[BackendConfig] = None):
        self.config = config or BackendConfig()
        self.model = model if model is not None else build_model(self.config)
        self.timeout = self.config.timeout

        self._queue: "queue.Queue" = queue.Queue()
        self._pending: Dict[int, Future] = {}
        self._pending_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._callback_ids = itertools.count()
        self._thread: Optional[threading.Thread] = None

        self.is_loading = False
        self.is_ready = False
        self.status_message = "Waiting to initialize..."
        self.error: Optional[str] = None
        self.device: Optional[str] = None

    # worker side

    def _ensure_worker(self):
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(target=self._worker_loop, name="embedding-backend", daemon=True)
            self._thread.start()

    def _worker_loop(self):
        while True:
            msg = self._queue.get()
            if msg is None:
                break
            msg_type, data, callback_id = msg
            try:
                result = self._handle(msg_type, data)
            except BackendError as exc:
                self._reject(callback_id, exc)
            except Exception as exc:
                err = BackendError(str(exc))
                err.__cause__ = exc
                self._reject(callback_id, err)
            else:
                self._resolve(callback_id, result)

    def _handle(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "load":
            return {"device": self.model.load()}
        if msg_type == "embed":
            return self.model.embed(data["texts"], data["task_type"])
        if msg_type == "attention":
            return self._attention_matrix(data["tokens"], data["task_type"])
        raise BackendError(f"Unknown message type: {msg_type}")

    def _attention_matrix(self, tokens: Sequence[str], task_type: str) -> ComputationResult:
        embeddings = self.model.embed(tokens, task_type)
        similarity = cosine_similarity_matrix(embeddings)
        # map [-1, 1] to [0, 1]; no self-attention
        attention = (similarity + 1.0) / 2.0
        np.fill_diagonal(attention, 0.0)
        stats = aggregate(attention, include_diagonal=False)
        return ComputationResult(
            query_tokens=tuple(tokens),
            attention_matrix=tuple(tuple(float(v) for v in row) for row in attention),
            min_attention=stats.min_attention,
            max_attention=stats.max_attention,
            computation_details={
                "method": "embedding_cosine",
                "model": getattr(self.model, "name", type(self.model).__name__),
                "taskType": task_type,
                "dimensions": len(embeddings[0]) if embeddings else 0,
                "device": self.device,
            },
        )

    def _resolve(self, callback_id: int, result):
        with self._pending_lock:
            fut = self._pending.pop(callback_id, None)
        if fut is not None:
            fut.set_result(result)

    def _reject(self, callback_id: int, exc: BaseException):
        with self._pending_lock:
            fut = self._pending.pop(callback_id, None)
        if fut is not None:
            fut.set_exception(exc)

    def _expire(self, callback_id: int):
        self._reject(callback_id, BackendTimeout(f"Request {callback_id} timed out after {self.timeout}s"))

    # caller side

    @property
    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def send_message(self, msg_type: str, data: Optional[Dict[str, Any]] = None) -> Future:
        self._ensure_worker()
        callback_id = next(self._callback_ids)
        fut: Future = Future()
        with self._pending_lock:
            self._pending[callback_id] = fut
        timer = threading.Timer(self.timeout, self._expire, args=(callback_id,))
        timer.daemon = True
        timer.start()
        fut.add_done_callback(lambda _f: timer.cancel())
        self._queue.put((msg_type, dict(data or {}), callback_id))
        return fut

    def initialize(self) -> None:
        with self._init_lock:
            if self.is_ready:
                return
            self.is_loading = True
            self.status_message = "Loading model..."
            try:
                info = self.send_message("load").result()
            except BackendError as exc:
                self.error = str(exc)
                self.status_message = "Error during initialization"
                raise
            finally:
                self.is_loading = False
            self.device = info["device"]
            self.is_ready = True
            self.status_message = f"Ready ({self.device})"

    def embed(self, texts: Sequence[str], task_type: str = "document") -> List[np.ndarray]:
        _check_task_type(task_type)
        if not self.is_ready:
            self.initialize()
        return self.send_message("embed", {"texts": list(texts), "task_type": task_type}).result()

    def embed_one(self, text: str, task_type: str = "document") -> np.ndarray:
        return self.embed([text], task_type)[0]

    def create_attention_matrix(self, tokens: Sequence[str], task_type: str = "document") -> ComputationResult:
        _check_task_type(task_type)
        if not tokens:
            raise InputError("No tokens to build an attention matrix from")
        if not self.is_ready:
            self.initialize()
        return self.send_message("attention", {"tokens": list(tokens), "task_type": task_type}).result()

    def status(self) -> Dict[str, Any]:
        return {
            "isLoading": self.is_loading,
            "isReady": self.is_ready,
            "status": self.status_message,
            "error": self.error,
            "modelName": getattr(self.model, "name", None),
            "device": self.device,
            "pending": self.pending_count,
        }

    def close(self) -> None:
        if self._thread is not None:
            self._queue.put(None)
            self._thread.join(timeout=5)
            self._thread = None
        with self._pending_lock:
            leftovers = list(self._pending.values())
            self._pending.clear()
        for fut in leftovers:
            if not fut.done():
                fut.set_exception(BackendError("Backend closed"))
        self.is_ready = False

    def __enter__(self) -> "EmbeddingBackendClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class BackendEmbedder:
    """Adapter so backend vectors can replace the synthetic generator."""

    def __init__(self, client: EmbeddingBackendClient, task_type: str = "query"):
        self.client = client
        self.task_type = _check_task_type(task_type)

    def embed_sequence(self, query_tokens: Sequence[str], context_tokens: Optional[Sequence[str]] = None) -> List[np.ndarray]:
        vectors = self.client.embed(list(query_tokens), self.task_type)
        out = []
        for vec in vectors:
            arr = np.array(vec, dtype=np.float64)
            arr.setflags(write=False)
            out.append(arr)
        return out


def compute_attention_with_fallback(
    paragraph_text: Optional[str],
    query_text: str,
    variant: str = "educational",
    config: Optional[PipelineConfig] = None,
    *,
    client: EmbeddingBackendClient,
    trace=None,
) -> ComputationResult:
    """Score with backend embeddings, falling back to the synthetic pipeline on backend failure."""
    config = config or PipelineConfig()
    try:
        return compute_attention(
            paragraph_text,
            query_text,
            variant,
            config,
            embedder=BackendEmbedder(client, task_type=config.task_type),
            trace=trace,
        )
    except BackendError as exc:
        logger.warning("Embedding backend failed (%s); using synthetic embeddings", exc)
        return compute_attention(paragraph_text, query_text, variant, config, trace=trace)


def compute_dual_attention_with_fallback(
    paragraph_text: Optional[str],
    query_text: str,
    config: Optional[PipelineConfig] = None,
    *,
    client: EmbeddingBackendClient,
    trace=None,
) -> DualComputationResult:
    """Both variants on backend embeddings; synthetic embeddings for both if the backend fails."""
    config = config or PipelineConfig()
    embedder = BackendEmbedder(client, task_type=config.task_type)
    try:
        return compute_dual_attention(
            paragraph_text,
            query_text,
            config,
            trace=trace,
            educational_embedder=embedder,
            original_embedder=embedder,
        )
    except BackendError as exc:
        logger.warning("Embedding backend failed (%s); using synthetic embeddings", exc)
        return compute_dual_attention(paragraph_text, query_text, config, trace=trace)


__all__ = [
    "EMBEDDING_DIM",
    "text_hash",
    "DemoEmbeddingModel",
    "HFEmbeddingModel",
    "build_model",
    "EmbeddingBackendClient",
    "BackendEmbedder",
    "compute_attention_with_fallback",
    "compute_dual_attention_with_fallback",
]
