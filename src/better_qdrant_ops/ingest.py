"""Document ingestion: chunk, embed, ensure collection, upsert."""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import List, Optional, Union
import uuid

import httpx

from better_qdrant_core.chunking import TextChunker
from better_qdrant_core.embedding import ProviderConfig, resolve_embedder
from better_qdrant_core.errors import ProtocolError, ValidationError
from better_qdrant_core.vector import Point, VectorStore

from .paths import sanitize_upload_path

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Result of ingesting one document."""

    collection: str
    chunks_count: int
    vector_size: Optional[int]
    provider: str
    created_collection: bool = False


def _require_collection(collection: str) -> str:
    name = (collection or "").strip()
    if not name:
        raise ValidationError("Collection name is required")
    return name


async def ingest_text(
    text: str,
    collection: str,
    *,
    store: VectorStore,
    provider_config: ProviderConfig,
    chunker: Optional[TextChunker] = None,
    source: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> IngestResult:
    """Index ``text`` into ``collection``.

    All chunks are embedded as one ordered sequence and upserted in a single
    call. The collection is created with the provider's vector size when it
    does not exist yet. A failure at any step aborts; a collection created
    before the failure is left in place.
    """
    collection = _require_collection(collection)
    chunker = chunker or TextChunker()
    provider = provider_config.type.value

    chunks = chunker.process(text, source=source)
    if not chunks:
        logger.info("Nothing to ingest into %s: empty document", collection)
        return IngestResult(
            collection=collection,
            chunks_count=0,
            vector_size=None,
            provider=provider,
        )

    embedder = resolve_embedder(provider_config, http_client=http_client)
    vectors = await embedder.embed_batch([c.text for c in chunks])
    if len(vectors) != len(chunks):
        raise ProtocolError(
            f"{provider} returned {len(vectors)} vectors for {len(chunks)} chunks"
        )

    created = False
    existing = await store.list_collections()
    if collection not in existing:
        await store.create_collection(collection, embedder.vector_size)
        created = True

    points: List[Point] = [
        Point(
            id=str(uuid.uuid4()),
            vector=vector,
            payload={"text": chunk.text, **chunk.metadata()},
        )
        for chunk, vector in zip(chunks, vectors)
    ]
    await store.add_documents(collection, points)

    logger.info(
        "Ingested %d chunks into %s via %s (%s, d=%d)",
        len(points),
        collection,
        provider,
        embedder.model_name,
        embedder.vector_size,
    )
    return IngestResult(
        collection=collection,
        chunks_count=len(points),
        vector_size=embedder.vector_size,
        provider=provider,
        created_collection=created,
    )


async def ingest_file(
    file_path: Union[str, Path],
    collection: str,
    *,
    upload_dir: Union[str, Path],
    store: VectorStore,
    provider_config: ProviderConfig,
    chunker: Optional[TextChunker] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> IngestResult:
    """Index a UTF-8 file that lives inside ``upload_dir``.

    The path is checked before anything is read.
    """
    collection = _require_collection(collection)
    path = sanitize_upload_path(upload_dir, file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"Cannot read {path}: {e}") from e

    return await ingest_text(
        text,
        collection,
        store=store,
        provider_config=provider_config,
        chunker=chunker,
        source=str(path),
        http_client=http_client,
    )
