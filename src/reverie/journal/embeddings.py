"""
Embedding engine: text -> vector, vector similarity, and vector record files.

The default model is a sentence-transformers model loaded lazily on first
use. Loading is expensive, so one engine is shared per process via
``get_embedding_engine()``; callers that need isolation (tests, alternate
models) construct their own ``EmbeddingEngine`` and pass it explicitly.

Requires sentence-transformers for the default model
(``pip install reverie[embeddings]``).
"""

from __future__ import annotations

import asyncio
import json
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import numpy as np
from loguru import logger

from reverie.core.config import Config, get_config
from reverie.core.exceptions import EmbeddingUnavailableError
from reverie.core.utils.file_io import read_text_async, write_text_async

from .models import VectorRecord

ENTRY_SUFFIX = ".md"
EMBEDDING_SUFFIX = ".embedding"
DEFAULT_MODEL = "all-MiniLM-L6-v2"


@runtime_checkable
class EmbeddingModel(Protocol):
    """Anything that turns one string into a fixed-length numeric vector."""

    def encode(self, text: str) -> Sequence[float]: ...


def _require_sentence_transformers():
    """Lazy import with clear error message."""
    try:
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer
    except ImportError:
        raise EmbeddingUnavailableError(
            "sentence-transformers is required for embeddings. Install with: pip install reverie[embeddings]"
        ) from None


class SentenceTransformerModel:
    """Adapter producing L2-normalised sentence-transformers embeddings."""

    def __init__(self, model_name: str = DEFAULT_MODEL, device: str | None = None):
        SentenceTransformer = _require_sentence_transformers()
        logger.info(f"Loading embedding model: {model_name}")
        self._model = SentenceTransformer(model_name, device=device or None)
        logger.info(f"Model loaded. Embedding dimension: {self._model.get_sentence_embedding_dimension()}")

    def encode(self, text: str) -> Sequence[float]:
        return self._model.encode(text, convert_to_numpy=True, normalize_embeddings=True)


ModelFactory = Callable[[], EmbeddingModel]


class EmbeddingEngine:
    """Lazily initialised text embedder.

    The model factory runs at most once per engine, on the first call that
    needs it; concurrent first calls wait for the same initialisation. A
    failed initialisation is not cached, so a later call may retry.

    Example::

        engine = EmbeddingEngine()
        vector = await engine.generate_embedding("what did I learn about async?")
        engine.cosine_similarity(vector, vector)  # 1.0
    """

    def __init__(self, model_name: str = DEFAULT_MODEL, device: str | None = None, model_factory: ModelFactory | None = None):
        self.model_name = model_name
        self._model_factory = model_factory or (lambda: SentenceTransformerModel(model_name, device))
        self._model: EmbeddingModel | None = None
        self._init_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> EmbeddingEngine:
        return cls(
            model_name=config.get("embedding.model") or DEFAULT_MODEL,
            device=config.get("embedding.device") or None,
        )

    @property
    def is_initialized(self) -> bool:
        return self._model is not None

    def _ensure_model(self) -> EmbeddingModel:
        if self._model is not None:
            return self._model
        with self._init_lock:
            if self._model is None:
                try:
                    self._model = self._model_factory()
                except EmbeddingUnavailableError:
                    raise
                except Exception as e:
                    raise EmbeddingUnavailableError(f"Failed to initialise embedding model {self.model_name}: {e}") from e
        return self._model

    async def initialize(self) -> None:
        """Load the model now instead of on first use."""
        await asyncio.to_thread(self._ensure_model)

    async def generate_embedding(self, text: str) -> list[float]:
        """
        Embed *text*.

        Raises:
            EmbeddingUnavailableError: If text is empty or the model cannot be loaded.
        """
        if not text or not text.strip():
            raise EmbeddingUnavailableError("Cannot embed empty text")

        model = await asyncio.to_thread(self._ensure_model)
        vector = await asyncio.to_thread(model.encode, text)
        return np.asarray(vector, dtype=float).ravel().tolist()

    @staticmethod
    def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
        """Return ``dot(a, b) / (|a| * |b|)``; 0.0 when either vector is all zeros."""
        va = np.asarray(a, dtype=float)
        vb = np.asarray(b, dtype=float)
        if va.shape != vb.shape:
            raise ValueError(f"Vector length mismatch: {va.shape[0]} vs {vb.shape[0]}")

        denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
        if denom == 0.0:
            return 0.0
        return float(np.dot(va, vb) / denom)


# ── Vector record files ──────────────────────────────────────────────


def embedding_path_for(entry_path: str | Path) -> Path:
    """Path of the vector record that accompanies *entry_path*."""
    return Path(entry_path).with_suffix(EMBEDDING_SUFFIX)


async def save_vector_record(entry_path: str | Path, record: VectorRecord) -> Path:
    """Write *record* as JSON next to *entry_path* and return its path."""
    target = embedding_path_for(entry_path)
    await write_text_async(target, json.dumps(record.to_dict(), indent=2))
    logger.debug(f"Saved vector record {target}")
    return target


async def load_vector_record(path: str | Path) -> VectorRecord:
    """Read and validate a vector record. Raises OSError or ValueError when unusable."""
    raw = await read_text_async(path)
    return VectorRecord.from_dict(json.loads(raw))


# Process-wide shared engine
_engine_instance: EmbeddingEngine | None = None
_engine_guard = threading.Lock()


def get_embedding_engine(config: Config | None = None) -> EmbeddingEngine:
    """Get or create the process-wide EmbeddingEngine. The model itself still loads lazily."""
    global _engine_instance
    with _engine_guard:
        if _engine_instance is None:
            _engine_instance = EmbeddingEngine.from_config(config or get_config())
        return _engine_instance


def reset_embedding_engine() -> None:
    """Drop the shared engine (useful for testing)."""
    global _engine_instance
    with _engine_guard:
        _engine_instance = None
