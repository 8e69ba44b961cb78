"""Ollama embedding adapter (local HTTP model server)."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator, Dict, List, Optional

import httpx

from ..errors import ConfigError, ProtocolError, TransportError
from .adapter import EmbeddingAdapter
from .batching import DEFAULT_CONCURRENCY_LIMIT, embed_in_batches
from .types import Vector

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "nomic-embed-text"

OLLAMA_MODEL_DIMENSIONS: Dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
    "snowflake-arctic-embed": 1024,
    "bge-m3": 1024,
}


def resolve_ollama_dimension(model_name: str) -> Optional[int]:
    # Ollama tags look like "nomic-embed-text:latest".
    base = model_name.split(":", 1)[0].strip().lower()
    return OLLAMA_MODEL_DIMENSIONS.get(base)


class OllamaEmbeddingAdapter(EmbeddingAdapter):
    """Embedding adapter for a local Ollama server (``POST /api/embeddings``)."""

    provider_id = "ollama"

    def __init__(
        self,
        model_name: str = DEFAULT_OLLAMA_MODEL,
        endpoint: Optional[str] = DEFAULT_OLLAMA_ENDPOINT,
        *,
        api_key: Optional[str] = None,
        dimension: Optional[int] = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        vector_size = dimension if dimension is not None else resolve_ollama_dimension(model_name)
        if vector_size is None:
            raise ConfigError(
                f"Unknown vector size for Ollama model {model_name!r}; set EMBEDDING_DIMENSION"
            )
        super().__init__(model_name, vector_size)

        self._endpoint = (endpoint or "").strip().rstrip("/")
        self._api_key = api_key
        self._concurrency_limit = int(concurrency_limit)
        self._timeout = float(timeout)
        self._http_client = http_client
        self.validate_config()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def validate_config(self) -> None:
        if not self._endpoint:
            raise ConfigError("Ollama endpoint is required")
        if not self._endpoint.startswith(("http://", "https://")):
            raise ConfigError(f"Ollama endpoint must be an http(s) URL: {self._endpoint!r}")
        if self._concurrency_limit <= 0:
            raise ConfigError("concurrency_limit must be > 0")

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _embed_one(self, client: httpx.AsyncClient, text: str) -> Vector:
        url = f"{self._endpoint}/api/embeddings"
        try:
            response = await client.post(
                url,
                json={"model": self.model_name, "prompt": text},
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Ollama request timed out: {url}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Ollama request failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Ollama HTTP error! Status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError("Invalid response from Ollama API: body is not JSON") from e
        if not isinstance(data, dict):
            raise ProtocolError("Invalid response from Ollama API: body is not an object")
        return self._coerce_vector(data.get("embedding"))

    async def embed_batch(self, texts: List[str]) -> List[Vector]:
        if not texts:
            return []
        async with self._client() as client:
            vectors = await embed_in_batches(
                texts,
                lambda text: self._embed_one(client, text),
                self._concurrency_limit,
            )
        logger.debug("Ollama embedded %d texts with %s", len(texts), self.model_name)
        return vectors
