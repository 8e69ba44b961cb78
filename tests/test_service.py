"""DocumentService results as seen by the CLI and MCP surfaces."""

import importlib.machinery
import json
import logging
from pathlib import Path
import sys
import types

import pytest

from better_qdrant_core.config import ConfigLoader
from better_qdrant_core.errors import TransportError
from better_qdrant_core.vector import QdrantStore, SearchResult
from better_qdrant_ops import DocumentService, OperationResult

from conftest import FakeStore, ollama_client


@pytest.mark.asyncio
async def test_list_collections(app_config):
    service = DocumentService(app_config, FakeStore(collections=["docs", "notes"]))
    result = await service.list_collections()
    assert result == OperationResult(json.dumps(["docs", "notes"], indent=2))


@pytest.mark.asyncio
async def test_add_documents(app_config, upload_dir: Path):
    (upload_dir / "a.txt").write_text("x" * 25, encoding="utf-8")
    store = FakeStore()
    async with ollama_client() as client:
        service = DocumentService(app_config, store, http_client=client)
        result = await service.add_documents("a.txt", "docs", chunk_size=10, chunk_overlap=5)
    assert result.is_error is False
    assert result.text == "Successfully processed and added 4 chunks to collection docs"


@pytest.mark.asyncio
async def test_add_documents_rejects_traversal_with_reason(app_config):
    service = DocumentService(app_config, FakeStore())
    result = await service.add_documents("../../etc/passwd", "docs")
    assert result.is_error is True
    assert result.text.startswith("Invalid arguments:")


@pytest.mark.asyncio
async def test_add_documents_bad_chunking_is_caller_error(app_config, upload_dir: Path):
    (upload_dir / "a.txt").write_text("text", encoding="utf-8")
    service = DocumentService(app_config, FakeStore())
    result = await service.add_documents("a.txt", "docs", chunk_size=10, chunk_overlap=10)
    assert result.is_error is True
    assert "chunk_overlap" in result.text


@pytest.mark.asyncio
async def test_store_failure_gives_generic_message(app_config, caplog):
    service = DocumentService(app_config, FakeStore(fail_with=TransportError("HTTP error! Status: 500", status_code=500)))
    with caplog.at_level(logging.ERROR, logger="better_qdrant_ops.service"):
        result = await service.list_collections()
    assert result == OperationResult(
        "Error listing collections. Please check server logs for details.", is_error=True
    )
    assert "Status: 500" not in result.text
    assert caplog.records[0].exc_info is not None


@pytest.mark.asyncio
async def test_search(app_config):
    hits = [SearchResult(id="1", score=0.8, payload={"text": "found", "source": "s.txt"})]
    store = FakeStore(search_results=hits)
    async with ollama_client() as client:
        service = DocumentService(app_config, store, http_client=client)
        result = await service.search("query", "docs", limit=1)
    assert result == OperationResult("Result 1 (Score: 0.80):\nfound\nSource: s.txt")


@pytest.mark.asyncio
async def test_search_without_hits(app_config):
    async with ollama_client() as client:
        service = DocumentService(app_config, FakeStore(), http_client=client)
        result = await service.search("query", "docs")
    assert result.text == "No results found."


@pytest.mark.asyncio
async def test_search_failure(app_config):
    store = FakeStore(fail_with=TransportError("down"))
    async with ollama_client() as client:
        service = DocumentService(app_config, store, http_client=client)
        result = await service.search("query", "docs")
    assert result == OperationResult(
        "Error searching. Please check server logs for details.", is_error=True
    )


@pytest.mark.asyncio
async def test_delete_collection(app_config):
    store = FakeStore(collections=["docs"])
    service = DocumentService(app_config, store)
    result = await service.delete_collection("docs")
    assert result == OperationResult("Successfully deleted collection: docs")
    assert "docs" not in store.collections


@pytest.mark.asyncio
async def test_close_releases_store(app_config):
    store = FakeStore()
    async with DocumentService(app_config, store):
        pass
    assert store.closed is True


def test_default_store_built_from_config(app_config):
    service = DocumentService(app_config)
    assert isinstance(service.store, QdrantStore)
    assert service.store.url == "http://localhost:6333"


@pytest.mark.asyncio
async def test_local_model_failure_stays_in_logs(monkeypatch, upload_dir: Path, caplog):
    def broken(model_name, **kwargs):
        raise OSError("Can't load /root/.cache/huggingface/private model")

    module = types.ModuleType("sentence_transformers")
    module.__spec__ = importlib.machinery.ModuleSpec("sentence_transformers", None)
    module.SentenceTransformer = broken
    monkeypatch.setitem(sys.modules, "sentence_transformers", module)

    (upload_dir / "a.txt").write_text("some text", encoding="utf-8")
    config = ConfigLoader.load(
        environ={"MCP_UPLOAD_DIR": str(upload_dir), "EMBEDDING_PROVIDER": "sentence-transformers"}
    )
    store = FakeStore()
    service = DocumentService(config, store)

    with caplog.at_level(logging.ERROR, logger="better_qdrant_ops.service"):
        result = await service.add_documents("a.txt", "docs")

    assert result == OperationResult(
        "Error adding documents. Please check server logs for details.", is_error=True
    )
    assert ".cache" not in result.text
    assert store.calls == []
    assert caplog.records[0].exc_info is not None


@pytest.mark.asyncio
async def test_small_chunk_size_scales_default_overlap(app_config, upload_dir: Path):
    # Defaults are 1000/200, so a 100-character chunk gets a 20-character overlap.
    (upload_dir / "a.txt").write_text("w" * 180, encoding="utf-8")
    store = FakeStore()
    async with ollama_client() as client:
        service = DocumentService(app_config, store, http_client=client)
        result = await service.add_documents("a.txt", "docs", chunk_size=100)
    assert result.is_error is False
    assert result.text == "Successfully processed and added 2 chunks to collection docs"
    starts = [point.payload["char_start"] for point in store.points["docs"]]
    assert starts == [0, 80]
