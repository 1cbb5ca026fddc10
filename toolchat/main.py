"""
Streamlit entry-point for toolchat.

Responsibilities
- Build one agent per browser session from the environment settings
- Share a single tool client across sessions for the life of the server
- Forward each user turn to the agent loop
- Render a simple chat interface with a tool trace under every answer
"""
from __future__ import annotations

import atexit
import logging
import sys
from pathlib import Path

import streamlit as st

# Ensure absolute `toolchat.*` imports work even when Streamlit sets cwd to the package
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from toolchat.agent import Agent, format_trace
from toolchat.config import load_settings
from toolchat.factory import build_agent, build_tool_client
from toolchat.tools import ToolClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@st.cache_resource
def _get_tool_client() -> ToolClient:
    """Build the tool client once per server; it is closed at interpreter exit."""
    client = build_tool_client(load_settings())
    atexit.register(client.close)
    return client


def _get_agent() -> Agent:
    if "agent_instance" not in st.session_state:
        st.session_state["agent_instance"] = build_agent(load_settings(), tool_client=_get_tool_client())
    return st.session_state["agent_instance"]


def ask(query: str) -> str:
    """
    Run one conversational turn and return the rendered answer.

    Parameters
    ----------
    query : str
        User's free-text message.

    Returns
    -------
    str
        Agent answer followed by a trace line of the tools it used.
    """
    agent = _get_agent()
    text = agent.chat(query)

    # Stash last trace for debugging or future UI features
    st.session_state["agent_last_trace"] = agent.last_trace

    return f"{text}\n{format_trace(agent.last_trace)}"


def clear_conversation() -> None:
    """Forget the agent's history and the rendered transcript."""
    agent = st.session_state.get("agent_instance")
    if agent is not None:
        agent.clear_history()
    st.session_state["messages"] = []
    st.session_state.pop("agent_last_trace", None)


def main() -> None:
    """Run the Streamlit chat UI."""
    st.title("toolchat")

    if "messages" not in st.session_state:
        st.session_state["messages"] = []

    if st.sidebar.button("Clear conversation"):
        clear_conversation()

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])  # type: ignore[arg-type]

    query = st.chat_input("Write your query")  # type: ignore[assignment]
    if not query:
        return

    with st.chat_message("user"):
        st.markdown(query)
    st.session_state.messages.append({"role": "user", "content": query})

    try:
        response = ask(query)
    except Exception as exc:
        logger.exception("Error while handling query: %s", exc)
        response = f"Sorry, something went wrong: {exc}"

    with st.chat_message("assistant"):
        st.markdown(response)
    st.session_state.messages.append({"role": "assistant", "content": response})


if __name__ == "__main__":
    main()
