"""
Command line interface for the Research Agent.

Loads API keys from environment variables (via `.env`), creates a ResearchAgent,
and enters an interactive loop that keeps the conversation history for the
lifetime of the process.
"""

import logging
import os
import sys

from dotenv import load_dotenv

from conversation_state import ChatSession
from research_agents import (
    ConfigurationError,
    InsufficientBalanceError,
    RateLimitError,
    ResearchAgent,
    StructuredAnswer,
    UnknownModelError,
)

# --- Logging configuration ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands:\n"
    "  /models       list the available models\n"
    "  /model <n>    switch to model number <n>\n"
    "  /clear        start a new conversation\n"
    "  exit | quit   leave the session\n"
)


def print_models(agent: ResearchAgent, session: ChatSession) -> None:
    for index, model in enumerate(agent.registry.available_models(), start=1):
        marker = "*" if model == session.model else " "
        print(f" {marker} {index}. {model.display_name} ({model.model_name})")
    print()


def print_answer(answer: StructuredAnswer) -> None:
    print(f"\n{answer.answer}\n")
    if answer.sources:
        print("Sources:")
        for index, source in enumerate(answer.sources, start=1):
            print(f"  [{index}] {source.title} - {source.url}")
        print()


def handle_command(command: str, agent: ResearchAgent, session: ChatSession) -> None:
    name, _, argument = command.partition(" ")
    if name == "/models":
        print_models(agent, session)
    elif name == "/model":
        try:
            model = agent.registry.select(int(argument.strip()))
        except (ValueError, UnknownModelError) as exc:
            print(f"Invalid model selection: {exc}\n")
            return
        session.switch_model(model)
        print(f"Model selected: {model.display_name}\n")
    elif name == "/clear":
        session.reset()
        print("Conversation cleared.\n")
    else:
        print(HELP_TEXT)


def main() -> int:
    """Run the command line loop for the research agent."""
    logger.info("Loading environment variables from .env file...")
    load_dotenv()

    try:
        agent = ResearchAgent.from_env()
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    session = ChatSession(model=agent.registry.default_model())
    print(
        "\nWelcome to the Research Agent!\n"
        f"Using model: {session.model.display_name}. Type /help for commands and 'exit' to quit.\n"
    )

    while True:
        try:
            query = input("> ").strip()
        except EOFError:
            logger.info("EOF received; exiting.")
            break

        if not query:
            continue
        if query.lower() in {"quit", "exit", "q"}:
            logger.info("User requested exit.")
            break
        if query.startswith("/"):
            handle_command(query, agent, session)
            continue

        try:
            answer = session.ask(agent, query)
            print_answer(answer)
        except RateLimitError as exc:
            print(f"{exc}\nUse /model <n> to switch to a different model.\n")
        except InsufficientBalanceError as exc:
            print(f"{exc}\nUse /model <n> to switch to a different model.\n")
        except Exception as exc:
            logger.exception("Error while processing query: %s", exc)
            print(f"An error occurred: {exc}\n")

    logger.info("Session ended. Goodbye!")
    print("Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
