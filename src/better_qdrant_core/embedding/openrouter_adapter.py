"""OpenRouter embedding adapter (OpenAI-compatible API)."""

from .openai_adapter import OpenAIEmbeddingAdapter

DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_OPENROUTER_MODEL = "openai/text-embedding-3-small"


class OpenRouterEmbeddingAdapter(OpenAIEmbeddingAdapter):
    """Embedding adapter for OpenRouter; same wire format as OpenAI, different host."""

    provider_id = "openrouter"
    default_base_url = DEFAULT_OPENROUTER_BASE_URL
