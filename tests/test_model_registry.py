"""Tests for the credential-filtered model catalogue."""

from __future__ import annotations

import pytest

from research_agents.errors import ConfigurationError, UnknownModelError
from research_agents.model_registry import (
    AVAILABLE_MODELS,
    ModelProvider,
    ModelRegistry,
    ProviderCredentials,
)
from research_agents.research_agent import ResearchAgent
from research_agents.search import SearchCapability


def _names(registry: ModelRegistry) -> list[str]:
    return [model.model_name for model in registry.available_models()]


@pytest.mark.parametrize(
    "credentials, expected",
    [
        (
            ProviderCredentials(gemini_api_key="gm"),
            ["googleai/gemini-2.0-flash", "googleai/gemini-1.5-flash"],
        ),
        (
            ProviderCredentials(openai_api_key="sk"),
            ["openai/gpt-4o-mini", "openai/gpt-4o"],
        ),
        (
            ProviderCredentials(gemini_api_key="gm", openai_api_key="sk"),
            [model.model_name for model in AVAILABLE_MODELS],
        ),
    ],
)
def test_available_models_follow_catalogue_order(credentials, expected):
    registry = ModelRegistry(credentials)

    assert _names(registry) == expected
    assert all(credentials.has_provider(model.provider) for model in registry.available_models())
    assert registry.default_model().model_name == expected[0]


def test_catalogue_model_names_are_unique():
    names = [model.model_name for model in AVAILABLE_MODELS]
    assert len(names) == len(set(names))


def test_no_credentials_fails_fast_before_any_generation_call(tavily):
    registry = ModelRegistry(ProviderCredentials(tavily_api_key="tvly"))
    requested = []

    assert registry.available_models() == []
    with pytest.raises(ConfigurationError):
        registry.default_model()
    with pytest.raises(ConfigurationError):
        ResearchAgent(registry, SearchCapability(tavily), client_factory=requested.append)
    assert requested == []
    assert tavily.calls == []


def test_configuration_error_is_an_environment_error():
    assert issubclass(ConfigurationError, EnvironmentError)


def test_from_env_treats_empty_values_as_missing():
    credentials = ProviderCredentials.from_env({"GEMINI_API_KEY": "", "OPENAI_API_KEY": "sk", "TAVILY_API_KEY": "t"})

    assert credentials.gemini_api_key is None
    assert credentials.has_provider(ModelProvider.OPENAI)
    assert not credentials.has_provider(ModelProvider.GEMINI)


def test_resolve_defaults_and_explicit_names(registry):
    assert registry.resolve(None).model_name == "googleai/gemini-2.0-flash"
    assert registry.resolve("openai/gpt-4o").display_name == "GPT-4o"


def test_resolve_rejects_models_without_credentials():
    registry = ModelRegistry(ProviderCredentials(gemini_api_key="gm"))

    with pytest.raises(UnknownModelError):
        registry.resolve("openai/gpt-4o-mini")
    with pytest.raises(UnknownModelError):
        registry.resolve("made-up/model")


def test_select_is_one_based(registry):
    assert registry.select(1) == AVAILABLE_MODELS[0]
    assert registry.select(4) == AVAILABLE_MODELS[3]
    with pytest.raises(UnknownModelError):
        registry.select(0)
    with pytest.raises(UnknownModelError):
        registry.select(5)


def test_api_model_strips_namespace():
    assert AVAILABLE_MODELS[0].api_model == "gemini-2.0-flash"
    assert AVAILABLE_MODELS[2].api_model == "gpt-4o-mini"


def test_build_client_declares_function_calling(registry):
    client = registry.build_client(registry.resolve("openai/gpt-4o-mini"))

    assert client.model_info["function_calling"] is True


def test_build_client_requires_provider_key():
    registry = ModelRegistry(ProviderCredentials(gemini_api_key="gm"))

    with pytest.raises(ConfigurationError):
        registry.build_client(AVAILABLE_MODELS[2])
