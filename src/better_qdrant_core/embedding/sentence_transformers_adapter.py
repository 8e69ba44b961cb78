from __future__ import annotations

import asyncio
import importlib
import logging
from typing import Any, Dict, List, Optional

from ..errors import ConfigError, ProtocolError
from .adapter import EmbeddingAdapter
from .types import Vector

logger = logging.getLogger(__name__)

DEFAULT_SENTENCE_TRANSFORMERS_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

SENTENCE_TRANSFORMERS_MODEL_DIMENSIONS: Dict[str, int] = {
    "all-minilm-l6-v2": 384,
    "all-minilm-l12-v2": 384,
    "all-mpnet-base-v2": 768,
    "bge-small-en-v1.5": 384,
    "bge-base-en-v1.5": 768,
    "bge-large-en-v1.5": 1024,
    "multi-qa-minilm-l6-cos-v1": 384,
    "paraphrase-multilingual-minilm-l12-v2": 384,
}


def resolve_sentence_transformers_dimension(model_name: str) -> Optional[int]:
    base = model_name.rsplit("/", 1)[-1].strip().lower()
    return SENTENCE_TRANSFORMERS_MODEL_DIMENSIONS.get(base)


class SentenceTransformersEmbeddingAdapter(EmbeddingAdapter):
    """Embedding adapter using sentence-transformers (local, optional dependency).

    The model is loaded on first use, never at construction, so config
    validation stays free of downloads.
    """

    provider_id = "sentence-transformers"

    def __init__(
        self,
        model_name: str = DEFAULT_SENTENCE_TRANSFORMERS_MODEL,
        *,
        dimension: Optional[int] = None,
        device: Optional[str] = None,
        batch_size: int = 32,
        normalize_embeddings: bool = False,
    ) -> None:
        vector_size = (
            dimension if dimension is not None else resolve_sentence_transformers_dimension(model_name)
        )
        if vector_size is None:
            raise ConfigError(
                f"Unknown vector size for sentence-transformers model {model_name!r}; "
                "set EMBEDDING_DIMENSION"
            )
        super().__init__(model_name, vector_size)

        self._device = device
        self._batch_size = int(batch_size)
        self._normalize_embeddings = bool(normalize_embeddings)
        self._model: Any = None
        self.validate_config()

    def validate_config(self) -> None:
        if self._batch_size <= 0:
            raise ConfigError("batch_size must be > 0")

    def _ensure_model(self) -> Any:
        if self._model is not None:
            return self._model

        try:
            mod = importlib.import_module("sentence_transformers")
        except ImportError as e:
            raise ConfigError(
                "sentence-transformers is required for local embeddings. "
                "Install with: pip install sentence-transformers"
            ) from e

        kwargs: Dict[str, Any] = {}
        if self._device:
            kwargs["device"] = self._device

        logger.info("Loading sentence-transformers model %s", self.model_name)
        try:
            model = mod.SentenceTransformer(self.model_name, **kwargs)
        except Exception as e:
            raise ConfigError(
                f"Failed to load sentence-transformers model {self.model_name!r}"
            ) from e

        dim = int(model.get_sentence_embedding_dimension())
        if dim != self.vector_size:
            raise ConfigError(
                f"Configured dimension={self.vector_size} does not match "
                f"model dimension={dim} for model={self.model_name!r}"
            )

        self._model = model
        return model

    def _encode(self, texts: List[str]) -> List[Vector]:
        model = self._ensure_model()
        try:
            vectors = model.encode(
                texts,
                batch_size=self._batch_size,
                show_progress_bar=False,
                normalize_embeddings=self._normalize_embeddings,
            )
        except Exception as e:
            raise ProtocolError(
                f"sentence-transformers model {self.model_name!r} failed to encode {len(texts)} texts"
            ) from e
        if len(vectors) != len(texts):
            raise ProtocolError(
                f"sentence-transformers returned {len(vectors)} vectors for {len(texts)} texts"
            )
        # vectors may be a numpy array; we avoid importing numpy directly.
        return [
            self._coerce_vector(v.tolist() if hasattr(v, "tolist") else list(v)) for v in vectors
        ]

    async def embed_batch(self, texts: List[str]) -> List[Vector]:
        if not texts:
            return []
        # Encoding is CPU bound; keep the event loop free.
        return await asyncio.to_thread(self._encode, list(texts))
