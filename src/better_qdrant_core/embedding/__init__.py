from .adapter import EmbeddingAdapter
from .batching import DEFAULT_CONCURRENCY_LIMIT, embed_in_batches
from .factory import parse_provider, resolve_embedder
from .ollama_adapter import OllamaEmbeddingAdapter
from .openai_adapter import OpenAIEmbeddingAdapter
from .openrouter_adapter import OpenRouterEmbeddingAdapter
from .types import ProviderConfig, ProviderType, Vector

__all__ = [
    "DEFAULT_CONCURRENCY_LIMIT",
    "EmbeddingAdapter",
    "OllamaEmbeddingAdapter",
    "OpenAIEmbeddingAdapter",
    "OpenRouterEmbeddingAdapter",
    "ProviderConfig",
    "ProviderType",
    "Vector",
    "embed_in_batches",
    "parse_provider",
    "resolve_embedder",
]
