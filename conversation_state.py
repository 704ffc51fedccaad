"""
Session state for the interactive surfaces: the ordered conversation history
and the currently selected model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Sequence, Tuple

from autogen_core.models import AssistantMessage, LLMMessage, UserMessage

if TYPE_CHECKING:
    from research_agents.model_registry import ModelConfig
    from research_agents.research_agent import ResearchAgent
    from research_agents.schemas import StructuredAnswer

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    role: Role
    content: str


class ConversationHistory:
    """Append-only, chronological log of turns for one session."""

    def __init__(self, turns: Sequence[ConversationTurn] = ()) -> None:
        self._turns: List[ConversationTurn] = list(turns)

    def append(self, role: Role | str, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=Role(role), content=content)
        self._turns.append(turn)
        return turn

    def add_user(self, content: str) -> ConversationTurn:
        return self.append(Role.USER, content)

    def add_agent(self, content: str) -> ConversationTurn:
        return self.append(Role.AGENT, content)

    def snapshot(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._turns)


def history_to_llm_messages(turns: Sequence[ConversationTurn]) -> List[LLMMessage]:
    """Translate turns into the message types the model context expects."""

    messages: List[LLMMessage] = []
    for turn in turns:
        if turn.role is Role.USER:
            messages.append(UserMessage(content=turn.content, source="user"))
        else:
            messages.append(AssistantMessage(content=turn.content, source="agent"))
    return messages


@dataclass
class ChatSession:
    """Selected model plus history, owned and mutated only by the session loop."""

    model: "ModelConfig"
    history: ConversationHistory = field(default_factory=ConversationHistory)
    last_actions: Tuple[Dict[str, Any], ...] = ()

    def ask(self, agent: "ResearchAgent", question: str) -> "StructuredAnswer":
        """Run one research turn; history is only extended when the turn succeeds."""

        run = agent.research(question, history=self.history.snapshot(), model=self.model.model_name)
        self.history.add_user(question)
        self.history.add_agent(run.answer.answer)
        self.last_actions = run.actions
        return run.answer

    def switch_model(self, model: "ModelConfig") -> None:
        logger.info("Switching session model from %s to %s", self.model.model_name, model.model_name)
        self.model = model

    def reset(self) -> None:
        """Start a new conversation; the previous history is discarded, not edited."""
        self.history = ConversationHistory()
        self.last_actions = ()
