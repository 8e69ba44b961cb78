"""better-qdrant core - chunking, embedding providers and the Qdrant store."""

from .__version__ import __version__, __version_info__

from .config import AppConfig, ConfigLoader, ProviderSettings
from .chunking import Chunk, TextChunker, reassemble
from .embedding import (
    EmbeddingAdapter,
    ProviderConfig,
    ProviderType,
    embed_in_batches,
    parse_provider,
    resolve_embedder,
)
from .vector import Point, QdrantStore, SearchResult, VectorStore, create_store
from .errors import (
    BetterQdrantError,
    ConfigError,
    ProtocolError,
    SecurityPolicyError,
    TransportError,
    ValidationError,
)

__all__ = [
    "__version__",
    "__version_info__",
    # Config
    "AppConfig",
    "ConfigLoader",
    "ProviderSettings",
    # Chunking
    "Chunk",
    "TextChunker",
    "reassemble",
    # Embedding
    "EmbeddingAdapter",
    "ProviderConfig",
    "ProviderType",
    "embed_in_batches",
    "parse_provider",
    "resolve_embedder",
    # Vector
    "Point",
    "QdrantStore",
    "SearchResult",
    "VectorStore",
    "create_store",
    # Errors
    "BetterQdrantError",
    "ConfigError",
    "ProtocolError",
    "SecurityPolicyError",
    "TransportError",
    "ValidationError",
]
