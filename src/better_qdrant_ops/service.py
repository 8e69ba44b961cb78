"""Document service: the four upstream operations behind the CLI and MCP server."""

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import List, Optional, Union

import httpx

from better_qdrant_core.chunking import TextChunker
from better_qdrant_core.config import AppConfig
from better_qdrant_core.errors import BetterQdrantError, ConfigError, ValidationError
from better_qdrant_core.vector import SearchResult, VectorStore, create_store

from .ingest import IngestResult, ingest_file
from .providers import resolve_provider
from .retrieve import format_results, retrieve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Text payload for a tool response; ``is_error`` marks a failed call."""

    text: str
    is_error: bool = False


def _failure(operation: str, exc: BetterQdrantError) -> OperationResult:
    # Caller input problems are safe to echo back; anything else stays in the log.
    if isinstance(exc, ValidationError):
        logger.warning("%s rejected: %s", operation, exc)
        return OperationResult(f"Invalid arguments: {exc}", is_error=True)
    logger.error("%s failed", operation, exc_info=exc)
    return OperationResult(
        f"Error {operation}. Please check server logs for details.", is_error=True
    )


class DocumentService:
    """Binds the process config and one vector store to the pipeline operations."""

    def __init__(
        self,
        app_config: AppConfig,
        store: Optional[VectorStore] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = app_config
        self._store = store or create_store(
            app_config.qdrant_url,
            app_config.qdrant_api_key,
            timeout=app_config.qdrant_timeout,
            upsert_timeout=app_config.qdrant_upsert_timeout,
        )
        self._http_client = http_client

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def store(self) -> VectorStore:
        return self._store

    async def aclose(self) -> None:
        await self._store.aclose()

    async def __aenter__(self) -> "DocumentService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _chunker(self, chunk_size: Optional[int], chunk_overlap: Optional[int]) -> TextChunker:
        size = chunk_size if chunk_size is not None else self._config.chunk_size
        overlap = chunk_overlap
        if overlap is None:
            overlap = self._config.chunk_overlap
            # A smaller per-call size keeps the configured overlap ratio.
            if isinstance(size, int) and not isinstance(size, bool) and 0 < size <= overlap:
                overlap = size * self._config.chunk_overlap // self._config.chunk_size
                logger.debug("Default chunk overlap scaled to %d for chunk size %d", overlap, size)
        try:
            return TextChunker(chunk_size=size, chunk_overlap=overlap)
        except ConfigError as e:
            raise ValidationError(str(e)) from e

    async def ingest(
        self,
        file_path: Union[str, Path],
        collection: str,
        *,
        provider: Optional[str] = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> IngestResult:
        """Raising variant of :meth:`add_documents`."""
        chunker = self._chunker(chunk_size, chunk_overlap)
        return await ingest_file(
            file_path,
            collection,
            upload_dir=self._config.upload_dir,
            store=self._store,
            provider_config=resolve_provider(self._config, provider),
            chunker=chunker,
            http_client=self._http_client,
        )

    async def query(
        self,
        query: str,
        collection: str,
        *,
        provider: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[SearchResult]:
        """Raising variant of :meth:`search`; returns the raw hits."""
        return await retrieve(
            query,
            collection,
            store=self._store,
            provider_config=resolve_provider(self._config, provider),
            limit=limit,
            http_client=self._http_client,
        )

    async def list_collections(self) -> OperationResult:
        try:
            names = await self._store.list_collections()
        except BetterQdrantError as e:
            return _failure("listing collections", e)
        return OperationResult(json.dumps(names, indent=2))

    async def add_documents(
        self,
        file_path: Union[str, Path],
        collection: str,
        *,
        provider: Optional[str] = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> OperationResult:
        try:
            result = await self.ingest(
                file_path,
                collection,
                provider=provider,
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
            )
        except BetterQdrantError as e:
            return _failure("adding documents", e)
        return OperationResult(
            f"Successfully processed and added {result.chunks_count} chunks "
            f"to collection {result.collection}"
        )

    async def search(
        self,
        query: str,
        collection: str,
        *,
        provider: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> OperationResult:
        try:
            results = await self.query(query, collection, provider=provider, limit=limit)
        except BetterQdrantError as e:
            return _failure("searching", e)
        return OperationResult(format_results(results))

    async def delete_collection(self, collection: str) -> OperationResult:
        try:
            name = (collection or "").strip()
            if not name:
                raise ValidationError("Collection name is required")
            await self._store.delete_collection(name)
        except BetterQdrantError as e:
            return _failure("deleting collection", e)
        return OperationResult(f"Successfully deleted collection: {name}")
