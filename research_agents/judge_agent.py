"""JudgeAgent: grades a research answer against a list of expected facts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, Optional, Sequence

from autogen_agentchat.agents import AssistantAgent
from autogen_agentchat.messages import BaseChatMessage
from autogen_core.models import ChatCompletionClient

from .errors import classify_error
from .model_registry import ModelConfig, ModelRegistry
from .research_prompts import JUDGE_SYSTEM_PROMPT, judge_task_prompt
from .schemas import JudgeVerdict, parse_model_output

logger = logging.getLogger(__name__)

JUDGE_FAILURE_REASONING = "Failed to get judge response"


class JudgeAgent:
    """Scores answers from 0 to 10 using a second generation call."""

    def __init__(
        self,
        registry: ModelRegistry,
        *,
        client_factory: Optional[Callable[[ModelConfig], ChatCompletionClient]] = None,
        temperature: Optional[float] = 0.0,
    ) -> None:
        registry.require_available()
        self._registry = registry
        self._temperature = temperature
        self._client_factory = client_factory or self._default_client_factory

    def judge(
        self,
        question: str,
        answer: str,
        expected_facts: Sequence[str],
        model: Optional[str] = None,
    ) -> JudgeVerdict:
        return self._run_async(self.ajudge(question, answer, expected_facts, model=model))

    async def ajudge(
        self,
        question: str,
        answer: str,
        expected_facts: Sequence[str],
        model: Optional[str] = None,
    ) -> JudgeVerdict:
        if not question or not question.strip():
            raise ValueError("Question must be a non-empty string.")

        model_config = self._registry.resolve(model)
        logger.info("JudgeAgent scoring answer with %s for question: %s", model_config.model_name, question)

        client = self._client_factory(model_config)
        try:
            assistant = AssistantAgent(
                name="answer_judge",
                model_client=client,
                system_message=JUDGE_SYSTEM_PROMPT,
                description="Grades research answers against expected facts.",
                tools=[],
                max_tool_iterations=1,
            )
            try:
                result = await assistant.run(task=judge_task_prompt(question, answer, expected_facts))
            except Exception as exc:
                classified = classify_error(exc)
                if classified is None:
                    raise
                raise classified from exc
        finally:
            close = getattr(client, "close", None)
            if callable(close):
                await close()

        text = self._extract_text(result.messages, source=assistant.name)
        logger.info("JudgeAgent output: %s", text)
        verdict = parse_model_output(text, JudgeVerdict)
        if verdict is None:
            logger.warning("JudgeAgent response could not be parsed; scoring as 0.")
            return JudgeVerdict(score=0, reasoning=JUDGE_FAILURE_REASONING)
        return verdict

    def _default_client_factory(self, model: ModelConfig) -> ChatCompletionClient:
        return self._registry.build_client(model, temperature=self._temperature)

    @staticmethod
    def _extract_text(messages: Iterable[Any], source: str) -> str:
        for message in reversed(list(messages)):
            if isinstance(message, BaseChatMessage) and getattr(message, "source", None) == source:
                return message.to_text().strip()
        return ""

    @staticmethod
    def _run_async(coro: Any) -> Any:
        return asyncio.run(coro)
