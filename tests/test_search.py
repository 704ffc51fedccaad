"""Tests for the Tavily search capability and its tool wrapper."""

from __future__ import annotations

import asyncio
import logging

import pytest
from autogen_core import CancellationToken

from conftest import FakeTavilyClient
from research_agents.errors import ConfigurationError
from research_agents.model_registry import ProviderCredentials
from research_agents.schemas import SearchResponse, SearchResult
from research_agents.search import SEARCH_TOOL_NAME, SearchCapability


def test_search_uses_fixed_provider_parameters(search, tavily):
    search.search("bitcoin price")

    assert tavily.calls == [
        {
            "query": "bitcoin price",
            "max_results": 5,
            "search_depth": "basic",
            "include_answer": True,
            "include_raw_content": False,
            "include_images": False,
        }
    ]


def test_search_normalises_and_limits_results():
    tavily = FakeTavilyClient(
        results=[
            {"title": "A", "url": "https://a.example", "content": "alpha", "score": 0.9},
            {"title": "B", "url": "https://b.example"},
            {"title": "C", "url": "https://c.example", "content": "gamma"},
        ]
    )
    results = SearchCapability(tavily).search("letters", max_results=2)

    assert results == [
        SearchResult(title="A", url="https://a.example", content="alpha"),
        SearchResult(title="B", url="https://b.example", content=""),
    ]
    assert tavily.calls[0]["max_results"] == 2


def test_search_handles_missing_results_key():
    class EmptyClient:
        def search(self, **kwargs):
            return {"answer": "nothing"}

    assert SearchCapability(EmptyClient()).search("anything") == []


def test_search_rethrows_provider_failure_unchanged(caplog):
    error = RuntimeError("tavily unavailable")
    capability = SearchCapability(FakeTavilyClient(error=error))

    with caplog.at_level(logging.ERROR, logger="research_agents.search"):
        with pytest.raises(RuntimeError) as excinfo:
            capability.search("bitcoin price")

    assert excinfo.value is error
    assert "Error searching" in caplog.text


def test_blank_query_is_rejected_without_calling_provider(search, tavily):
    with pytest.raises(ValueError):
        search.search("   ")
    assert tavily.calls == []


def test_from_credentials_requires_tavily_key():
    with pytest.raises(ConfigurationError):
        SearchCapability.from_credentials(ProviderCredentials(gemini_api_key="gm"))


def test_tool_exposes_query_schema_and_returns_results(search, tavily):
    tool = search.as_tool()

    assert tool.name == SEARCH_TOOL_NAME
    assert list(tool.schema["parameters"]["properties"]) == ["query"]

    result = asyncio.run(tool.run_json({"query": "bitcoin price"}, CancellationToken()))

    assert isinstance(result, SearchResponse)
    assert [item.url for item in result.results] == [
        "https://www.coindesk.com/price/bitcoin",
        "https://coinmarketcap.com/currencies/bitcoin/",
    ]
    assert tavily.calls[0]["query"] == "bitcoin price"
