from __future__ import annotations

import importlib.util
from typing import Optional

import httpx

from ..errors import ConfigError, ValidationError
from .adapter import EmbeddingAdapter
from .types import ProviderConfig, ProviderType


def resolve_embedder(
    config: ProviderConfig,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> EmbeddingAdapter:
    """Resolve embedding adapter from a provider configuration.

    ``http_client`` is handed to network adapters; the caller keeps ownership.
    """
    provider = ProviderType(config.type)

    if provider is ProviderType.OLLAMA:
        from .ollama_adapter import DEFAULT_OLLAMA_ENDPOINT, DEFAULT_OLLAMA_MODEL, OllamaEmbeddingAdapter

        return OllamaEmbeddingAdapter(
            model_name=config.model or DEFAULT_OLLAMA_MODEL,
            endpoint=config.endpoint or DEFAULT_OLLAMA_ENDPOINT,
            api_key=config.api_key,
            dimension=config.dimension,
            concurrency_limit=config.concurrency_limit,
            timeout=config.timeout,
            http_client=http_client,
        )

    if provider is ProviderType.OPENAI:
        from .openai_adapter import DEFAULT_OPENAI_MODEL, OpenAIEmbeddingAdapter

        return OpenAIEmbeddingAdapter(
            model_name=config.model or DEFAULT_OPENAI_MODEL,
            api_key=config.api_key,
            base_url=config.endpoint,
            dimension=config.dimension,
            concurrency_limit=config.concurrency_limit,
            timeout=config.timeout,
            http_client=http_client,
        )

    if provider is ProviderType.OPENROUTER:
        from .openrouter_adapter import DEFAULT_OPENROUTER_MODEL, OpenRouterEmbeddingAdapter

        return OpenRouterEmbeddingAdapter(
            model_name=config.model or DEFAULT_OPENROUTER_MODEL,
            api_key=config.api_key,
            base_url=config.endpoint,
            dimension=config.dimension,
            concurrency_limit=config.concurrency_limit,
            timeout=config.timeout,
            http_client=http_client,
        )

    if provider is ProviderType.SENTENCE_TRANSFORMERS:
        # Optional dependency gate: do not load a model here, but ensure the
        # library is available so config validation can fail fast.
        if importlib.util.find_spec("sentence_transformers") is None:
            raise ConfigError(
                "sentence-transformers adapter not available. Install with: pip install sentence-transformers"
            )

        from .sentence_transformers_adapter import (
            DEFAULT_SENTENCE_TRANSFORMERS_MODEL,
            SentenceTransformersEmbeddingAdapter,
        )

        return SentenceTransformersEmbeddingAdapter(
            model_name=config.model or DEFAULT_SENTENCE_TRANSFORMERS_MODEL,
            dimension=config.dimension,
            device=config.device,
        )

    raise ValidationError(f"Unknown embedding provider: {provider.value}")


def parse_provider(value: str) -> ProviderType:
    """Map a user-supplied provider tag onto :class:`ProviderType`."""
    tag = (value or "").strip().lower()
    try:
        return ProviderType(tag)
    except ValueError:
        raise ValidationError(
            f"Unsupported embedding provider: {value!r}. Expected one of {ProviderType.values()}"
        ) from None
