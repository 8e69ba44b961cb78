from __future__ import annotations

from abc import ABC, abstractmethod
import math
from typing import Any, List

from ..errors import ConfigError, ProtocolError
from .types import Vector


class EmbeddingAdapter(ABC):
    """Abstract base class for embedding providers."""

    provider_id: str = "unknown"

    def __init__(self, model_name: str, vector_size: int):
        if not model_name:
            raise ConfigError("model_name must be non-empty")
        if vector_size <= 0:
            raise ConfigError("vector_size must be > 0")
        self._model_name = model_name
        self._vector_size = int(vector_size)

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def vector_size(self) -> int:
        return self._vector_size

    @abstractmethod
    def validate_config(self) -> None:
        """Raise ConfigError if required settings are missing. Must not do I/O."""
        raise NotImplementedError

    @abstractmethod
    async def embed_batch(self, texts: List[str]) -> List[Vector]:
        """Embed ``texts``; ``result[i]`` belongs to ``texts[i]``."""
        raise NotImplementedError

    def _coerce_vector(self, value: Any) -> Vector:
        """Validate one raw vector from a provider response."""
        if not isinstance(value, (list, tuple)) or not value:
            raise ProtocolError(
                f"Invalid response from {self.provider_id}: embedding is missing or not a list"
            )
        vector: Vector = []
        for v in value:
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise ProtocolError(
                    f"Invalid response from {self.provider_id}: embedding contains non-numeric values"
                )
            vector.append(float(v))
        if len(vector) != self._vector_size:
            raise ProtocolError(
                f"{self.provider_id} returned dimension={len(vector)} but "
                f"vector_size={self._vector_size} for model={self._model_name!r}"
            )
        return vector
