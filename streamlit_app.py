"""
Streamlit entry point for the Research Agent.

Provides a chat-style interface on top of `ResearchAgent`, keeping the
conversation history and the selected model per browser session and surfacing
the sources and search calls of the most recent answer in the sidebar.
"""

from __future__ import annotations

import logging

import streamlit as st
from dotenv import load_dotenv

from conversation_state import ChatSession, Role
from research_agents import InsufficientBalanceError, RateLimitError, ResearchAgent

# Ensure environment variables from .env are loaded before instantiating the agent.
load_dotenv()

LOGGER = logging.getLogger(__name__)


@st.cache_resource(show_spinner=False)
def _get_agent() -> ResearchAgent:
    """Create a singleton ResearchAgent per Streamlit process."""
    return ResearchAgent.from_env()


def _init_session_state(agent: ResearchAgent) -> None:
    """Initialize keys stored in st.session_state."""
    if "chat_session" not in st.session_state:
        st.session_state.chat_session = ChatSession(model=agent.registry.default_model())
    if "metadata" not in st.session_state:
        st.session_state.metadata = {"sources": [], "action_history": []}


def _render_sidebar(agent: ResearchAgent) -> None:
    """Render sidebar controls and metadata viewers."""
    session: ChatSession = st.session_state.chat_session
    models = agent.registry.available_models()
    with st.sidebar:
        st.header("Session Controls")
        selected = st.selectbox(
            "Model",
            models,
            index=models.index(session.model),
            format_func=lambda model: model.display_name,
        )
        if selected != session.model:
            session.switch_model(selected)

        if st.button("Clear conversation", use_container_width=True):
            session.reset()
            st.session_state.metadata = {"sources": [], "action_history": []}
            st.rerun()

        st.divider()
        st.header("Latest Run Details")
        sources = st.session_state.metadata.get("sources", [])
        with st.expander("Sources", expanded=True):
            if sources:
                for idx, source in enumerate(sources, start=1):
                    st.markdown(f"{idx}. [{source['title']}]({source['url']})")
            else:
                st.caption("No sources for the last answer.")

        actions = st.session_state.metadata.get("action_history", [])
        with st.expander("Search calls", expanded=False):
            if actions:
                for action in actions:
                    st.markdown(f"**{action.get('type', 'tool')}** — {action.get('query', '')}")
            else:
                st.caption("No search calls recorded yet.")


def main() -> None:
    st.set_page_config(page_title="Research Agent", layout="wide")

    st.title("Research Agent")
    st.caption("Ask anything and the agent will search the web before answering, citing its sources.")

    try:
        agent = _get_agent()
    except Exception as exc:  # pragma: no cover - surfaced to UI
        LOGGER.exception("Streamlit failed to initialize ResearchAgent: %s", exc)
        st.error(
            "Failed to initialize the research agent. "
            "Verify API keys in your environment and restart the app.\n\n"
            f"Details: {exc}"
        )
        return

    _init_session_state(agent)
    _render_sidebar(agent)
    session: ChatSession = st.session_state.chat_session

    # Replay the chat history.
    for turn in session.history:
        with st.chat_message("user" if turn.role is Role.USER else "assistant"):
            st.markdown(turn.content)

    prompt = st.chat_input("What would you like to research?")
    if not prompt:
        return

    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        with st.spinner(f"Researching with {session.model.display_name}..."):
            try:
                answer = session.ask(agent, prompt)
            except (RateLimitError, InsufficientBalanceError) as exc:
                st.warning(f"{exc}\n\nPick a different model in the sidebar.")
                return
            except Exception as exc:  # pragma: no cover - surfaced to UI
                LOGGER.exception("Agent invocation failed: %s", exc)
                st.error(f"An error occurred while researching your question:\n\n{exc}")
                return
        st.markdown(answer.answer)

    st.session_state.metadata = {
        "sources": [source.model_dump() for source in answer.sources],
        "action_history": list(session.last_actions),
    }
    st.rerun()


if __name__ == "__main__":
    main()
