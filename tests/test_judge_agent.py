"""Tests for the judge agent."""

from __future__ import annotations

import pytest

from research_agents.errors import InsufficientBalanceError, RateLimitError
from research_agents.judge_agent import JUDGE_FAILURE_REASONING, JudgeAgent
from research_agents.schemas import JudgeVerdict

QUESTION = "What is the current bitcoin price?"
FACTS = ["price in USD", "source cited"]


def test_verdict_is_parsed(registry, make_clients):
    clients = make_clients(['{"score": 8, "reasoning": "Gives a USD price and cites CoinDesk."}'])

    verdict = JudgeAgent(registry, client_factory=clients).judge(QUESTION, "BTC is $64,000 [CoinDesk]", FACTS)

    assert verdict == JudgeVerdict(score=8, reasoning="Gives a USD price and cites CoinDesk.")
    assert 0 <= verdict.score <= 10


def test_prompt_contains_question_answer_and_facts(registry, make_clients):
    clients = make_clients(['{"score": 5, "reasoning": "ok"}'])

    JudgeAgent(registry, client_factory=clients).judge(QUESTION, "BTC is $64,000", FACTS, model="openai/gpt-4o-mini")

    prompt_text = "\n".join(str(message.content) for message in clients.handed_out[0].seen_messages[0])
    assert QUESTION in prompt_text
    assert "BTC is $64,000" in prompt_text
    assert "- price in USD" in prompt_text
    assert "- source cited" in prompt_text
    assert clients.requested[0].model_name == "openai/gpt-4o-mini"


def test_unparseable_verdict_scores_zero(registry, make_clients):
    clients = make_clients(["I think this answer is pretty good."])

    verdict = JudgeAgent(registry, client_factory=clients).judge(QUESTION, "answer", FACTS)

    assert verdict == JudgeVerdict(score=0, reasoning=JUDGE_FAILURE_REASONING)


def test_upstream_failures_are_classified(registry, make_clients):
    clients = make_clients(["unused"], error=RuntimeError("Error code: 402 - Payment Required"))

    with pytest.raises(InsufficientBalanceError):
        JudgeAgent(registry, client_factory=clients).judge(QUESTION, "answer", FACTS)
    assert clients.handed_out[0].closed


def test_rate_limits_are_classified(registry, make_clients):
    clients = make_clients(["unused"], error=RuntimeError("429 Too Many Requests"))

    with pytest.raises(RateLimitError):
        JudgeAgent(registry, client_factory=clients).judge(QUESTION, "answer", FACTS)
