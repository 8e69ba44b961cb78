"""Ingestion pipeline tests with a fake store and a mocked Ollama server."""

import uuid
from pathlib import Path

import httpx
import pytest

from better_qdrant_core.chunking import TextChunker
from better_qdrant_core.errors import TransportError, ValidationError
from better_qdrant_ops import ingest_file, ingest_text

from conftest import FakeStore, fake_vector, ollama_client, ollama_provider


@pytest.mark.asyncio
async def test_creates_missing_collection_and_upserts_once():
    store = FakeStore()
    calls = []
    async with ollama_client(calls) as client:
        result = await ingest_text(
            "abcdefghij",
            "docs",
            store=store,
            provider_config=ollama_provider(),
            chunker=TextChunker(chunk_size=4, chunk_overlap=1),
            source="/up/a.txt",
            http_client=client,
        )

    assert result.collection == "docs"
    assert result.chunks_count == 3
    assert result.vector_size == 4
    assert result.provider == "ollama"
    assert result.created_collection is True

    assert [c["prompt"] for c in calls] == ["abcd", "defg", "ghij"]
    assert store.call_names() == ["list_collections", "create_collection", "add_documents"]
    assert store.calls[1] == ("create_collection", ("docs", 4))

    points = store.points["docs"]
    assert [p.payload["text"] for p in points] == ["abcd", "defg", "ghij"]
    assert [p.payload["index"] for p in points] == [0, 1, 2]
    assert all(p.payload["source"] == "/up/a.txt" for p in points)
    assert [p.vector for p in points] == [fake_vector(t) for t in ["abcd", "defg", "ghij"]]
    ids = [p.id for p in points]
    assert len(set(ids)) == 3
    assert all(uuid.UUID(i).version == 4 for i in ids)


@pytest.mark.asyncio
async def test_existing_collection_is_not_recreated():
    store = FakeStore(collections=["docs"])
    async with ollama_client() as client:
        result = await ingest_text(
            "hello", "docs", store=store, provider_config=ollama_provider(), http_client=client
        )
    assert result.created_collection is False
    assert store.call_names() == ["list_collections", "add_documents"]


@pytest.mark.asyncio
async def test_empty_text_touches_nothing():
    store = FakeStore()
    calls = []
    async with ollama_client(calls) as client:
        result = await ingest_text(
            "", "docs", store=store, provider_config=ollama_provider(), http_client=client
        )
    assert result.chunks_count == 0
    assert result.vector_size is None
    assert calls == []
    assert store.calls == []


@pytest.mark.asyncio
async def test_embedding_failure_aborts_before_store_writes():
    store = FakeStore()
    failing = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
    )
    async with failing:
        with pytest.raises(TransportError):
            await ingest_text(
                "hello world",
                "docs",
                store=store,
                provider_config=ollama_provider(),
                http_client=failing,
            )
    assert store.calls == []


@pytest.mark.asyncio
async def test_blank_collection_rejected():
    with pytest.raises(ValidationError):
        await ingest_text(
            "hello", "  ", store=FakeStore(), provider_config=ollama_provider()
        )


@pytest.mark.asyncio
async def test_ingest_file_uses_resolved_path_as_source(upload_dir: Path):
    target = upload_dir / "notes.txt"
    target.write_text("some notes", encoding="utf-8")
    store = FakeStore()
    async with ollama_client() as client:
        result = await ingest_file(
            "notes.txt",
            "docs",
            upload_dir=upload_dir,
            store=store,
            provider_config=ollama_provider(),
            http_client=client,
        )
    assert result.chunks_count == 1
    assert store.points["docs"][0].payload["source"] == str(target.resolve())


@pytest.mark.asyncio
async def test_ingest_file_traversal_rejected_before_any_io(tmp_path: Path, upload_dir: Path):
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    store = FakeStore()
    calls = []
    async with ollama_client(calls) as client:
        with pytest.raises(ValidationError):
            await ingest_file(
                "../secret.txt",
                "docs",
                upload_dir=upload_dir,
                store=store,
                provider_config=ollama_provider(),
                http_client=client,
            )
    assert calls == []
    assert store.calls == []


@pytest.mark.asyncio
async def test_ingest_file_missing_or_binary(upload_dir: Path):
    (upload_dir / "blob.bin").write_bytes(b"\xff\xfe\x00\x80")
    for name in ("missing.txt", "blob.bin"):
        with pytest.raises(ValidationError, match="Cannot read"):
            await ingest_file(
                name,
                "docs",
                upload_dir=upload_dir,
                store=FakeStore(),
                provider_config=ollama_provider(),
            )
