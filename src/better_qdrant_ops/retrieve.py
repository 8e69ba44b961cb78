"""Similarity search and result formatting."""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from better_qdrant_core.embedding import ProviderConfig, resolve_embedder
from better_qdrant_core.errors import ValidationError
from better_qdrant_core.vector import SearchResult, VectorStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
NO_RESULTS = "No results found."


async def retrieve(
    query: str,
    collection: str,
    *,
    store: VectorStore,
    provider_config: ProviderConfig,
    limit: Optional[int] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> List[SearchResult]:
    """Embed ``query`` and return the nearest points in ``collection``."""
    if not (query or "").strip():
        raise ValidationError("Query text is required")
    if not (collection or "").strip():
        raise ValidationError("Collection name is required")
    if limit is None:
        limit = DEFAULT_LIMIT
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")

    embedder = resolve_embedder(provider_config, http_client=http_client)
    vectors = await embedder.embed_batch([query])
    results = await store.search(collection.strip(), vectors[0], limit=limit)
    logger.debug("Search in %s returned %d results", collection, len(results))
    return results


def result_text(payload: Dict[str, Any]) -> str:
    text = payload.get("text") or payload.get("content")
    if not text:
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)
    return str(text)


def result_source(payload: Dict[str, Any]) -> Optional[str]:
    source = payload.get("source")
    if not source:
        metadata = payload.get("metadata")
        if isinstance(metadata, dict):
            source = metadata.get("source")
    return str(source) if source else None


def format_results(results: Sequence[SearchResult]) -> str:
    """Render search hits as numbered text blocks."""
    if not results:
        return NO_RESULTS

    blocks: List[str] = []
    for n, result in enumerate(results, start=1):
        lines = [f"Result {n} (Score: {result.score:.2f}):", result_text(result.payload)]
        source = result_source(result.payload)
        if source:
            lines.append(f"Source: {source}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
