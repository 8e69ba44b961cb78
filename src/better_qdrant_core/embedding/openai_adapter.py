"""OpenAI embedding adapter implementation."""

from typing import Any, Dict, List, Optional
import logging

import httpx
import openai

from ..errors import ConfigError, ProtocolError, TransportError
from .adapter import EmbeddingAdapter
from .batching import DEFAULT_CONCURRENCY_LIMIT, embed_in_batches
from .types import Vector

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "text-embedding-3-small"

OPENAI_MODEL_DIMENSIONS: Dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


def resolve_openai_dimension(model_name: str) -> Optional[int]:
    # OpenRouter prefixes the vendor ("openai/text-embedding-3-small").
    base = model_name.rsplit("/", 1)[-1].strip().lower()
    return OPENAI_MODEL_DIMENSIONS.get(base)


class OpenAIEmbeddingAdapter(EmbeddingAdapter):
    """Embedding adapter for OpenAI models."""

    provider_id = "openai"
    default_base_url: Optional[str] = None

    def __init__(
        self,
        model_name: str = DEFAULT_OPENAI_MODEL,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        dimension: Optional[int] = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        known_size = resolve_openai_dimension(model_name)
        vector_size = dimension if dimension is not None else known_size
        if vector_size is None:
            raise ConfigError(
                f"Unknown vector size for {self.provider_id} model {model_name!r}; "
                "set EMBEDDING_DIMENSION"
            )
        super().__init__(model_name, vector_size)

        self._api_key = (api_key or "").strip() or None
        self._base_url = (base_url or "").strip().rstrip("/") or self.default_base_url
        # Shortened output is only requested from models we know support it.
        self._request_dimensions = (
            dimension if known_size is not None and dimension not in (None, known_size) else None
        )
        self._concurrency_limit = int(concurrency_limit)
        self._timeout = float(timeout)
        self._http_client = http_client
        self.validate_config()

    def validate_config(self) -> None:
        if not self._api_key:
            raise ConfigError(f"{self.provider_id} API key is required")
        if self._concurrency_limit <= 0:
            raise ConfigError("concurrency_limit must be > 0")

    def _build_client(self) -> openai.AsyncOpenAI:
        kwargs: Dict[str, Any] = {
            "api_key": self._api_key,
            "timeout": self._timeout,
            "max_retries": 0,
        }
        if self._base_url:
            kwargs["base_url"] = self._base_url
        if self._http_client is not None:
            kwargs["http_client"] = self._http_client
        return openai.AsyncOpenAI(**kwargs)

    async def _embed_one(self, client: openai.AsyncOpenAI, text: str) -> Vector:
        kwargs: Dict[str, Any] = {
            "model": self.model_name,
            "input": text,
            "encoding_format": "float",
        }
        if self._request_dimensions is not None:
            kwargs["dimensions"] = self._request_dimensions
        try:
            response = await client.embeddings.create(**kwargs)
        except openai.APIStatusError as e:
            raise TransportError(
                f"{self.provider_id} embedding failed! Status: {e.status_code}",
                status_code=e.status_code,
            ) from e
        except openai.APIConnectionError as e:
            raise TransportError(f"{self.provider_id} embedding request failed: {e}") from e
        except openai.APIError as e:
            raise ProtocolError(f"Invalid response from {self.provider_id}: {type(e).__name__}") from e

        data = getattr(response, "data", None)
        if not data:
            raise ProtocolError(f"Invalid response from {self.provider_id}: missing embedding data")
        return self._coerce_vector(getattr(data[0], "embedding", None))

    async def embed_batch(self, texts: List[str]) -> List[Vector]:
        if not texts:
            return []

        client = self._build_client()
        try:
            vectors = await embed_in_batches(
                texts,
                lambda text: self._embed_one(client, text),
                self._concurrency_limit,
            )
        finally:
            # An injected http_client belongs to the caller.
            if self._http_client is None:
                await client.close()

        logger.debug("%s embedded %d texts with %s", self.provider_id, len(texts), self.model_name)
        return vectors
