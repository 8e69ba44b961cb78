import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx
import pytest
from hypothesis import settings

from better_qdrant_core.config import AppConfig, ConfigLoader, _ENV_KEYS
from better_qdrant_core.embedding import ProviderConfig, ProviderType
from better_qdrant_core.vector import Point, SearchResult, VectorStore

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("better-qdrant-tests", database=None)
settings.load_profile("better-qdrant-tests")

TEST_DIMENSION = 4


@pytest.fixture(autouse=True)
def _clean_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell settings out of config-driven tests."""
    for var in (*_ENV_KEYS, "OPENAI_BASE_URL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_cli_logging():
    """Drop stderr handlers installed by CLI invocations."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, "_better_qdrant", False):
            root.removeHandler(handler)


def fake_vector(text: str, dimension: int = TEST_DIMENSION) -> List[float]:
    """Deterministic, text-dependent vector."""
    return [float(len(text) + i) for i in range(dimension)]


def ollama_handler(
    calls: Optional[List[Dict[str, Any]]] = None,
    *,
    dimension: int = TEST_DIMENSION,
) -> Callable[[httpx.Request], httpx.Response]:
    """MockTransport handler that answers like ``POST /api/embeddings``."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if calls is not None:
            calls.append(body)
        return httpx.Response(200, json={"embedding": fake_vector(body["prompt"], dimension)})

    return handler


def ollama_client(calls: Optional[List[Dict[str, Any]]] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(ollama_handler(calls)))


def ollama_provider(**overrides: Any) -> ProviderConfig:
    values: Dict[str, Any] = {
        "type": ProviderType.OLLAMA,
        "endpoint": "http://localhost:11434",
        "model": "nomic-embed-text",
        "dimension": TEST_DIMENSION,
    }
    values.update(overrides)
    return ProviderConfig(**values)


class FakeStore(VectorStore):
    """In-memory vector store that records every call."""

    def __init__(
        self,
        collections: Sequence[str] = (),
        *,
        search_results: Sequence[SearchResult] = (),
        fail_with: Optional[Exception] = None,
    ) -> None:
        self.collections: Dict[str, int] = {name: TEST_DIMENSION for name in collections}
        self.points: Dict[str, List[Point]] = {}
        self.search_results = list(search_results)
        self.fail_with = fail_with
        self.calls: List[Tuple[str, Any]] = []
        self.closed = False

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if self.fail_with is not None:
            raise self.fail_with

    async def list_collections(self) -> List[str]:
        self._record("list_collections")
        return list(self.collections)

    async def create_collection(self, name: str, vector_size: int) -> None:
        self._record("create_collection", (name, vector_size))
        self.collections[name] = vector_size

    async def add_documents(self, collection: str, points: Sequence[Point]) -> None:
        self._record("add_documents", (collection, len(points)))
        self.points.setdefault(collection, []).extend(points)

    async def search(self, collection: str, vector: List[float], limit: int = 10) -> List[SearchResult]:
        self._record("search", (collection, vector, limit))
        return self.search_results[:limit]

    async def delete_collection(self, name: str) -> None:
        self._record("delete_collection", name)
        self.collections.pop(name, None)

    async def aclose(self) -> None:
        self.closed = True

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def app_config(upload_dir: Path) -> AppConfig:
    return ConfigLoader.load(
        environ={
            "MCP_UPLOAD_DIR": str(upload_dir),
            "EMBEDDING_PROVIDER": "ollama",
            "EMBEDDING_DIMENSION": str(TEST_DIMENSION),
        }
    )
