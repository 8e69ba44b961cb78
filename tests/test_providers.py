"""Embedding provider selection from process config."""

import logging

import pytest

from better_qdrant_core.config import ConfigLoader
from better_qdrant_core.embedding import ProviderType
from better_qdrant_core.errors import ValidationError
from better_qdrant_ops import resolve_provider


def test_process_setting_used_when_no_request():
    config = ConfigLoader.load(environ={"EMBEDDING_PROVIDER": "ollama"})
    provider = resolve_provider(config)
    assert provider.type is ProviderType.OLLAMA
    assert provider.endpoint == "http://localhost:11434"


def test_request_used_when_no_process_setting():
    config = ConfigLoader.load(
        environ={"OPENAI_API_KEY": "sk-test", "OPENAI_ENDPOINT": "https://proxy.example/v1"}
    )
    provider = resolve_provider(config, "openai")
    assert provider.type is ProviderType.OPENAI
    assert provider.api_key == "sk-test"
    assert provider.endpoint == "https://proxy.example/v1"


def test_process_setting_wins_and_warns(caplog):
    config = ConfigLoader.load(environ={"EMBEDDING_PROVIDER": "ollama"})
    with caplog.at_level(logging.WARNING, logger="better_qdrant_ops.providers"):
        provider = resolve_provider(config, "openai")
    assert provider.type is ProviderType.OLLAMA
    assert "overridden" in caplog.text


def test_matching_request_does_not_warn(caplog):
    config = ConfigLoader.load(environ={"EMBEDDING_PROVIDER": "ollama"})
    with caplog.at_level(logging.WARNING, logger="better_qdrant_ops.providers"):
        resolve_provider(config, "Ollama")
    assert caplog.text == ""


def test_neither_set():
    config = ConfigLoader.load(environ={})
    with pytest.raises(ValidationError, match="No embedding provider"):
        resolve_provider(config)


@pytest.mark.parametrize("environ,requested", [({}, "fastembed"), ({"EMBEDDING_PROVIDER": "cohere"}, None)])
def test_unknown_tag(environ, requested):
    config = ConfigLoader.load(environ=environ)
    with pytest.raises(ValidationError, match="Unsupported embedding provider"):
        resolve_provider(config, requested)


def test_tuning_knobs_copied():
    config = ConfigLoader.load(
        environ={
            "EMBEDDING_PROVIDER": "sentence-transformers",
            "EMBEDDING_MODEL": "BAAI/bge-small-en-v1.5",
            "EMBEDDING_DIMENSION": "384",
            "EMBEDDING_CONCURRENCY": "3",
            "SENTENCE_TRANSFORMERS_DEVICE": "cpu",
        }
    )
    provider = resolve_provider(config)
    assert provider.model == "BAAI/bge-small-en-v1.5"
    assert provider.dimension == 384
    assert provider.concurrency_limit == 3
    assert provider.device == "cpu"
