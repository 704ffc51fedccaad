"""Shared fixtures: credentials, a fake Tavily client and scripted model clients."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest
from autogen_core import FunctionCall
from autogen_core.models import CreateResult, ModelInfo, RequestUsage
from autogen_ext.models.replay import ReplayChatCompletionClient

from research_agents.model_registry import ModelConfig, ModelRegistry, ProviderCredentials
from research_agents.search import SearchCapability

REPLAY_MODEL_INFO: ModelInfo = {
    "vision": False,
    "function_calling": True,
    "json_output": False,
    "structured_output": False,
    "family": "unknown",
}


class FakeTavilyClient:
    """Records search calls and returns canned Tavily payloads."""

    def __init__(self, results: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None) -> None:
        self.results = results if results is not None else [
            {"title": "CoinDesk", "url": "https://www.coindesk.com/price/bitcoin", "content": "BTC trades at $64,000."},
            {"title": "CoinMarketCap", "url": "https://coinmarketcap.com/currencies/bitcoin/", "content": "Bitcoin price today."},
        ]
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def search(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"query": kwargs.get("query"), "answer": "summary", "results": list(self.results)}


class RecordingReplayClient(ReplayChatCompletionClient):
    """Replay client that remembers the prompts it received and whether it was closed."""

    def __init__(self, chat_completions: Sequence[Union[str, CreateResult]], error: Optional[Exception] = None) -> None:
        super().__init__(chat_completions, model_info=REPLAY_MODEL_INFO)
        self.error = error
        self.seen_messages: List[List[Any]] = []
        self.closed = False

    async def create(self, messages, **kwargs):  # type: ignore[override]
        self.seen_messages.append(list(messages))
        if self.error is not None:
            raise self.error
        return await super().create(messages, **kwargs)

    async def close(self) -> None:
        self.closed = True


class ClientQueue:
    """Client factory handing out pre-built clients in order and recording the models requested."""

    def __init__(self, clients: Sequence[RecordingReplayClient]) -> None:
        self._clients = list(clients)
        self.requested: List[ModelConfig] = []
        self.handed_out: List[RecordingReplayClient] = []

    def __call__(self, model: ModelConfig) -> RecordingReplayClient:
        self.requested.append(model)
        client = self._clients.pop(0)
        self.handed_out.append(client)
        return client


def search_call(query: str, call_id: str = "call-1") -> CreateResult:
    return CreateResult(
        finish_reason="function_calls",
        content=[FunctionCall(id=call_id, arguments=f'{{"query": "{query}"}}', name="search_web")],
        usage=RequestUsage(prompt_tokens=0, completion_tokens=0),
        cached=False,
    )


@pytest.fixture
def all_credentials() -> ProviderCredentials:
    return ProviderCredentials(gemini_api_key="gm-test", openai_api_key="sk-test", tavily_api_key="tvly-test")


@pytest.fixture
def registry(all_credentials: ProviderCredentials) -> ModelRegistry:
    return ModelRegistry(all_credentials)


@pytest.fixture
def tavily() -> FakeTavilyClient:
    return FakeTavilyClient()


@pytest.fixture
def search(tavily: FakeTavilyClient) -> SearchCapability:
    return SearchCapability(tavily)


@pytest.fixture
def make_clients() -> Callable[..., ClientQueue]:
    def _make(*scripts: Sequence[Union[str, CreateResult]], error: Optional[Exception] = None) -> ClientQueue:
        return ClientQueue([RecordingReplayClient(script, error=error) for script in scripts])

    return _make
