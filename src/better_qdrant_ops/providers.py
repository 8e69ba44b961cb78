"""Embedding provider selection."""

import logging
from typing import Optional

from better_qdrant_core.config import AppConfig
from better_qdrant_core.embedding import ProviderConfig, parse_provider
from better_qdrant_core.errors import ValidationError

logger = logging.getLogger(__name__)


def resolve_provider(app_config: AppConfig, requested: Optional[str] = None) -> ProviderConfig:
    """Pick the embedding provider for one operation.

    The process-level ``embedding_provider`` wins over ``requested``.
    Credentials, endpoint and tuning knobs come from ``app_config``.

    Raises:
        ValidationError: If no provider is selected or the tag is unknown.
    """
    requested = (requested or "").strip() or None
    chosen = app_config.embedding_provider or requested
    if chosen is None:
        raise ValidationError(
            "No embedding provider selected. Set EMBEDDING_PROVIDER or pass one explicitly."
        )

    provider = parse_provider(chosen)
    if requested is not None and parse_provider(requested) is not provider:
        logger.warning(
            "Requested embedding provider %r overridden by process setting %r",
            requested,
            provider.value,
        )

    settings = app_config.provider_settings(provider.value)
    return ProviderConfig(
        type=provider,
        api_key=settings.api_key,
        endpoint=settings.endpoint,
        model=app_config.embedding_model,
        dimension=app_config.embedding_dimension,
        concurrency_limit=app_config.embedding_concurrency,
        timeout=app_config.embedding_timeout,
        device=app_config.sentence_transformers_device,
    )
