"""
Research Agent (Tavily + Gemini/OpenAI)

- Built on Microsoft AutoGen (agentchat/core/ext stack).
- The backend is chosen per request from the credential-filtered model registry.
- Tavily search is the only tool; the AssistantAgent decides how often to call it.

Required env:
  - GEMINI_API_KEY and/or OPENAI_API_KEY
  - TAVILY_API_KEY
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, NoReturn, Optional, Sequence, Tuple

from autogen_agentchat.agents import AssistantAgent
from autogen_agentchat.messages import BaseChatMessage, ToolCallRequestEvent
from autogen_core.model_context import UnboundedChatCompletionContext
from autogen_core.models import ChatCompletionClient

from conversation_state import ConversationTurn, history_to_llm_messages

from .errors import classify_error
from .model_registry import ModelConfig, ModelRegistry, ProviderCredentials
from .research_prompts import RESEARCH_SYSTEM_PROMPT, research_task_prompt
from .schemas import StructuredAnswer, parse_model_output
from .search import SEARCH_TOOL_NAME, SearchCapability

logger = logging.getLogger(__name__)

NO_ANSWER_PLACEHOLDER = "No answer could be generated."

ClientFactory = Callable[[ModelConfig], ChatCompletionClient]


@dataclass(frozen=True, slots=True)
class ResearchRun:
    """One answered question plus the search calls the backend made for it."""

    answer: StructuredAnswer
    actions: Tuple[Dict[str, Any], ...] = ()


class ResearchAgent:
    """Answers one question per call with web-sourced, structured output."""

    def __init__(
        self,
        registry: ModelRegistry,
        search: SearchCapability,
        *,
        client_factory: Optional[ClientFactory] = None,
        temperature: Optional[float] = None,
        max_tool_iterations: int = 5,
    ) -> None:
        registry.require_available()

        self._registry = registry
        self._temperature = temperature
        self._client_factory = client_factory or self._default_client_factory
        self._max_tool_iterations = max(1, max_tool_iterations)
        self._search = search
        self._action_history: List[Dict[str, Any]] = []

    @classmethod
    def from_env(cls, **kwargs: Any) -> "ResearchAgent":
        """Build the agent from credentials present in the environment."""

        credentials = ProviderCredentials.from_env()
        registry = ModelRegistry(credentials)
        registry.require_available()
        return cls(registry, SearchCapability.from_credentials(credentials), **kwargs)

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    @property
    def action_history(self) -> List[Dict[str, Any]]:
        """Return the search calls the backend made during the last run."""

        return list(self._action_history)

    def invoke(
        self,
        question: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        model: Optional[str] = None,
    ) -> StructuredAnswer:
        return self._run_async(self.arun(question, history=history, model=model))

    async def arun(
        self,
        question: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        model: Optional[str] = None,
    ) -> StructuredAnswer:
        run = await self.aresearch(question, history=history, model=model)
        return run.answer

    def research(
        self,
        question: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        model: Optional[str] = None,
    ) -> ResearchRun:
        return self._run_async(self.aresearch(question, history=history, model=model))

    async def aresearch(
        self,
        question: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        model: Optional[str] = None,
    ) -> ResearchRun:
        """Answer `question` and return the answer together with the search calls made for it."""

        if not question or not question.strip():
            raise ValueError("Question must be a non-empty string.")

        model_config = self._registry.resolve(model)
        turns = list(history or [])
        self._action_history = []
        logger.info(
            "Research run with %s (%d prior turn(s)) for: %s",
            model_config.model_name,
            len(turns),
            question,
        )

        search_failures: List[Exception] = []
        client = self._client_factory(model_config)
        try:
            agent = self._build_agent(client, turns, search_failures)
            try:
                result = await agent.run(task=research_task_prompt(question))
            except Exception as exc:
                classified = classify_error(exc)
                if classified is None:
                    logger.exception("Research run failed.")
                    raise
                raise classified from exc
        finally:
            await self._close_client(client)

        if search_failures:
            self._raise_search_failure(search_failures[0])

        actions = self._tool_activity(result.messages)
        self._action_history = list(actions)
        answer = self._to_structured(result.messages, preferred_source=agent.name)
        logger.info(
            "Research run finished after %d search call(s) with %d source(s).",
            len(actions),
            len(answer.sources),
        )
        return ResearchRun(answer=answer, actions=tuple(actions))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _build_agent(
        self,
        client: ChatCompletionClient,
        turns: List[ConversationTurn],
        search_failures: List[Exception],
    ) -> AssistantAgent:
        context = UnboundedChatCompletionContext(initial_messages=history_to_llm_messages(turns))
        return AssistantAgent(
            name="research_agent",
            model_client=client,
            tools=[self._search.as_tool(failures=search_failures)],
            model_context=context,
            system_message=RESEARCH_SYSTEM_PROMPT,
            description="Answers questions from live web search results.",
            reflect_on_tool_use=True,
            max_tool_iterations=self._max_tool_iterations,
        )

    def _default_client_factory(self, model: ModelConfig) -> ChatCompletionClient:
        return self._registry.build_client(model, temperature=self._temperature)

    def _to_structured(self, messages: Iterable[Any], preferred_source: Optional[str]) -> StructuredAnswer:
        final_message = self._last_chat_message(messages, preferred_source=preferred_source)
        if final_message is None:
            logger.warning("Backend produced no chat response; returning placeholder answer.")
            return StructuredAnswer(answer=NO_ANSWER_PLACEHOLDER, sources=[])

        content = getattr(final_message, "content", None)
        if isinstance(content, StructuredAnswer):
            return content

        text = final_message.to_text().strip()
        parsed = parse_model_output(text, StructuredAnswer)
        if parsed is not None:
            return parsed

        logger.warning("Backend output was not structured; returning raw text without sources.")
        return StructuredAnswer(answer=text or NO_ANSWER_PLACEHOLDER, sources=[])

    @staticmethod
    def _raise_search_failure(failure: Exception) -> NoReturn:
        classified = classify_error(failure)
        if classified is None:
            logger.error("Search failed during the research run: %s", failure)
            raise failure
        raise classified from failure

    @staticmethod
    def _tool_activity(messages: Iterable[Any]) -> List[Dict[str, Any]]:
        actions: List[Dict[str, Any]] = []
        for message in messages:
            if not isinstance(message, ToolCallRequestEvent):
                continue
            for call in message.content:
                if call.name != SEARCH_TOOL_NAME:
                    continue
                try:
                    arguments = json.loads(call.arguments or "{}")
                except json.JSONDecodeError:
                    arguments = {}
                actions.append({"type": call.name, "query": arguments.get("query", "")})
        return actions

    @staticmethod
    def _last_chat_message(
        messages: Iterable[Any], preferred_source: Optional[str] = None
    ) -> Optional[BaseChatMessage]:
        for message in reversed(list(messages)):
            if not isinstance(message, BaseChatMessage):
                continue
            if preferred_source is None or getattr(message, "source", None) == preferred_source:
                return message
        return None

    @staticmethod
    async def _close_client(client: ChatCompletionClient) -> None:
        close = getattr(client, "close", None)
        if callable(close):
            await close()

    @staticmethod
    def _run_async(coro: Any) -> Any:
        return asyncio.run(coro)
