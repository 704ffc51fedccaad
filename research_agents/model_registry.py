"""
Static catalogue of generation backends, filtered by which provider
credentials are configured.

Credentials are captured once into `ProviderCredentials`; the registry is a
pure function of that snapshot.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from autogen_core.models import ChatCompletionClient, ModelFamily, ModelInfo
from autogen_ext.models.openai import OpenAIChatCompletionClient

from .errors import ConfigurationError, UnknownModelError

logger = logging.getLogger(__name__)

OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class ModelProvider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"


@dataclass(frozen=True, slots=True)
class ModelConfig:
    provider: ModelProvider
    model_name: str
    display_name: str

    @property
    def api_model(self) -> str:
        """Model identifier as the provider API expects it (namespace stripped)."""
        return self.model_name.split("/", 1)[-1]


AVAILABLE_MODELS: Tuple[ModelConfig, ...] = (
    ModelConfig(ModelProvider.GEMINI, "googleai/gemini-2.0-flash", "Gemini 2.0 Flash"),
    ModelConfig(ModelProvider.GEMINI, "googleai/gemini-1.5-flash", "Gemini 1.5 Flash"),
    ModelConfig(ModelProvider.OPENAI, "openai/gpt-4o-mini", "GPT-4o Mini"),
    ModelConfig(ModelProvider.OPENAI, "openai/gpt-4o", "GPT-4o"),
)

_MODEL_FAMILIES: Dict[str, str] = {
    "gemini-2.0-flash": ModelFamily.GEMINI_2_0_FLASH,
    "gemini-1.5-flash": ModelFamily.GEMINI_1_5_FLASH,
    "gpt-4o-mini": ModelFamily.GPT_4O,
    "gpt-4o": ModelFamily.GPT_4O,
}


@dataclass(frozen=True, slots=True)
class ProviderCredentials:
    """Snapshot of the secrets present when the process started."""

    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    tavily_api_key: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProviderCredentials":
        env = os.environ if environ is None else environ
        return cls(
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            tavily_api_key=env.get("TAVILY_API_KEY") or None,
        )

    def key_for(self, provider: ModelProvider) -> Optional[str]:
        if provider is ModelProvider.GEMINI:
            return self.gemini_api_key
        if provider is ModelProvider.OPENAI:
            return self.openai_api_key
        return None

    def has_provider(self, provider: ModelProvider) -> bool:
        return bool(self.key_for(provider))


class ModelRegistry:
    """Resolves model selectors against the credential-filtered catalogue."""

    def __init__(
        self,
        credentials: ProviderCredentials,
        *,
        catalogue: Tuple[ModelConfig, ...] = AVAILABLE_MODELS,
    ) -> None:
        self._credentials = credentials
        self._available = tuple(model for model in catalogue if credentials.has_provider(model.provider))
        logger.info(
            "Model registry initialised with %d available model(s): %s",
            len(self._available),
            ", ".join(model.model_name for model in self._available) or "none",
        )

    @property
    def credentials(self) -> ProviderCredentials:
        return self._credentials

    def available_models(self) -> List[ModelConfig]:
        return list(self._available)

    def require_available(self) -> None:
        if not self._available:
            raise ConfigurationError("At least one of GEMINI_API_KEY or OPENAI_API_KEY must be set.")

    def default_model(self) -> ModelConfig:
        self.require_available()
        return self._available[0]

    def resolve(self, model_name: Optional[str] = None) -> ModelConfig:
        if not model_name:
            return self.default_model()
        for model in self._available:
            if model.model_name == model_name:
                return model
        raise UnknownModelError(f"Model '{model_name}' is not available with the configured credentials.")

    def select(self, index: int) -> ModelConfig:
        """Pick a model by its 1-based position in `available_models()`."""
        if 1 <= index <= len(self._available):
            return self._available[index - 1]
        raise UnknownModelError(f"Model selection must be between 1 and {len(self._available)}.")

    def build_client(self, model: ModelConfig, *, temperature: Optional[float] = None) -> ChatCompletionClient:
        api_key = self._credentials.key_for(model.provider)
        if not api_key:
            raise ConfigurationError(f"No API key configured for provider '{model.provider.value}'.")

        if model.provider is ModelProvider.GEMINI:
            base_url = os.getenv("GEMINI_API_BASE_URL", GEMINI_DEFAULT_BASE_URL)
        else:
            base_url = os.getenv("OPENAI_API_BASE_URL", OPENAI_DEFAULT_BASE_URL)

        model_info: ModelInfo = {
            "vision": False,
            "function_calling": True,
            "json_output": True,
            "structured_output": False,
            "family": _MODEL_FAMILIES.get(model.api_model, ModelFamily.UNKNOWN),
        }
        client_kwargs: Dict[str, Any] = {
            "model": model.api_model,
            "api_key": api_key,
            "base_url": base_url,
            "include_name_in_message": False,
            "model_info": model_info,
        }
        if temperature is not None:
            client_kwargs["temperature"] = temperature
        logger.debug("Building %s client for '%s' at %s", model.provider.value, model.api_model, base_url)
        return OpenAIChatCompletionClient(**client_kwargs)
