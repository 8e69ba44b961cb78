from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

Vector = List[float]


class ProviderType(str, Enum):
    """Recognized embedding provider tags."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    OLLAMA = "ollama"
    SENTENCE_TRANSFORMERS = "sentence-transformers"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class ProviderConfig(BaseModel):
    """Settings needed to build one embedding adapter.

    Notes:
    - ``dimension`` overrides the known-model vector size table.
    - ``concurrency_limit`` bounds in-flight requests for network providers.
    """

    type: ProviderType
    api_key: Optional[str] = Field(default=None, repr=False)
    endpoint: Optional[str] = None
    model: Optional[str] = None
    dimension: Optional[int] = Field(default=None, gt=0)
    concurrency_limit: int = Field(default=5, gt=0)
    timeout: float = Field(default=30.0, gt=0)
    device: Optional[str] = None

    model_config = ConfigDict(frozen=True)
