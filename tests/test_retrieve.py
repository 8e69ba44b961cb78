"""Retrieval and result formatting."""

import pytest

from better_qdrant_core.errors import ValidationError
from better_qdrant_core.vector import SearchResult
from better_qdrant_ops import NO_RESULTS, format_results, retrieve

from conftest import FakeStore, fake_vector, ollama_client, ollama_provider


class TestFormatResults:
    def test_empty(self):
        assert format_results([]) == "No results found."
        assert NO_RESULTS == "No results found."

    def test_blocks_with_source(self):
        results = [
            SearchResult(id="1", score=0.91234, payload={"text": "alpha", "source": "/up/a.txt"}),
            SearchResult(id="2", score=0.5, payload={"text": "beta"}),
        ]
        assert format_results(results) == (
            "Result 1 (Score: 0.91):\nalpha\nSource: /up/a.txt\n\n"
            "Result 2 (Score: 0.50):\nbeta"
        )

    def test_content_fallback_and_nested_source(self):
        result = SearchResult(
            id="1", score=0.7, payload={"content": "from content", "metadata": {"source": "wiki"}}
        )
        assert format_results([result]) == "Result 1 (Score: 0.70):\nfrom content\nSource: wiki"

    def test_empty_text_falls_back_to_content(self):
        result = SearchResult(
            id="1",
            score=0.5,
            payload={"text": "", "content": "body", "source": "", "metadata": {"source": "wiki"}},
        )
        assert format_results([result]) == "Result 1 (Score: 0.50):\nbody\nSource: wiki"

    def test_empty_text_and_content_fall_back_to_json(self):
        result = SearchResult(id="1", score=0.5, payload={"text": "", "content": None})
        assert format_results([result]) == (
            'Result 1 (Score: 0.50):\n{"content": null, "text": ""}'
        )

    def test_json_fallback(self):
        result = SearchResult(id="1", score=0.1, payload={"title": "T", "n": 2})
        assert format_results([result]) == 'Result 1 (Score: 0.10):\n{"n": 2, "title": "T"}'

    def test_empty_source_omitted(self):
        result = SearchResult(id="1", score=1.0, payload={"text": "x", "source": ""})
        assert format_results([result]) == "Result 1 (Score: 1.00):\nx"


class TestRetrieve:
    @pytest.mark.asyncio
    async def test_embeds_query_once_and_searches(self):
        hits = [SearchResult(id="1", score=0.9, payload={"text": "a"})]
        store = FakeStore(search_results=hits)
        calls = []
        async with ollama_client(calls) as client:
            results = await retrieve(
                "what is it", "docs", store=store, provider_config=ollama_provider(), http_client=client
            )
        assert results == hits
        assert [c["prompt"] for c in calls] == ["what is it"]
        assert store.calls == [("search", ("docs", fake_vector("what is it"), 10))]

    @pytest.mark.asyncio
    async def test_explicit_limit(self):
        store = FakeStore()
        async with ollama_client() as client:
            await retrieve(
                "q", "docs", store=store, provider_config=ollama_provider(), limit=3, http_client=client
            )
        assert store.calls[0][1][2] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -1, True, 2.5])
    async def test_invalid_limit(self, limit):
        with pytest.raises(ValidationError, match="limit"):
            await retrieve("q", "docs", store=FakeStore(), provider_config=ollama_provider(), limit=limit)

    @pytest.mark.asyncio
    async def test_blank_query(self):
        with pytest.raises(ValidationError):
            await retrieve("   ", "docs", store=FakeStore(), provider_config=ollama_provider())
