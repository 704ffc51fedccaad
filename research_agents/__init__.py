"""
Research agent package.

Groups the model registry, the Tavily search tool, the research and judge
agents, and the evaluation harness.  Import the main entry points directly
from here:

```python
from research_agents import ResearchAgent

agent = ResearchAgent.from_env()
answer = agent.invoke("What is the current bitcoin price?")
```
"""

from .errors import (  # noqa: F401
    ConfigurationError,
    InsufficientBalanceError,
    RateLimitError,
    UnknownModelError,
    UpstreamError,
)
from .evaluator import EvaluationReport, EvaluationResult, Evaluator  # noqa: F401
from .judge_agent import JudgeAgent  # noqa: F401
from .model_registry import AVAILABLE_MODELS, ModelConfig, ModelRegistry, ProviderCredentials  # noqa: F401
from .research_agent import ResearchAgent, ResearchRun  # noqa: F401
from .schemas import JudgeVerdict, Source, StructuredAnswer  # noqa: F401
from .search import SearchCapability  # noqa: F401

__all__ = [
    "AVAILABLE_MODELS",
    "ConfigurationError",
    "EvaluationReport",
    "EvaluationResult",
    "Evaluator",
    "InsufficientBalanceError",
    "JudgeAgent",
    "JudgeVerdict",
    "ModelConfig",
    "ModelRegistry",
    "ProviderCredentials",
    "RateLimitError",
    "ResearchAgent",
    "ResearchRun",
    "SearchCapability",
    "Source",
    "StructuredAnswer",
    "UnknownModelError",
    "UpstreamError",
]
