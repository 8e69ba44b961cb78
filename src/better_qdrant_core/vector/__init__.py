from .adapter import VectorStore
from .qdrant import QdrantStore, check_transport_security, create_store, is_local_host
from .types import Point, SearchResult

__all__ = [
    "Point",
    "QdrantStore",
    "SearchResult",
    "VectorStore",
    "check_transport_security",
    "create_store",
    "is_local_host",
]
