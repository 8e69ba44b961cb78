from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from .types import Point, SearchResult


class VectorStore(ABC):
    """Abstract interface for vector storage backends."""

    @abstractmethod
    async def list_collections(self) -> List[str]:
        """Names of all collections in the store."""
        raise NotImplementedError

    @abstractmethod
    async def create_collection(self, name: str, vector_size: int) -> None:
        """Create a cosine collection of dimension ``vector_size``.

        Not idempotent; callers check ``list_collections`` first.
        """
        raise NotImplementedError

    @abstractmethod
    async def add_documents(self, collection: str, points: Sequence[Point]) -> None:
        """Upsert ``points`` into ``collection``."""
        raise NotImplementedError

    @abstractmethod
    async def search(self, collection: str, vector: List[float], limit: int = 10) -> List[SearchResult]:
        """Return the ``limit`` nearest points, highest score first."""
        raise NotImplementedError

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release held connections."""
        return None

    async def __aenter__(self) -> "VectorStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
