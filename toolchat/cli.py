"""Console chat loop."""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional, TextIO

from toolchat.agent import Agent
from toolchat.config import load_settings
from toolchat.exceptions import ToolchatError
from toolchat.factory import build_agent

logger = logging.getLogger(__name__)

EXIT_COMMAND = "exit"
CLEAR_COMMAND = "clear"


def repl(
    agent: Agent,
    read: Callable[[str], str] = input,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> None:
    """
    Read user lines and print the agent's answers until `exit` or EOF.

    A failed turn prints one error line and the loop continues.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    while True:
        try:
            line = read("You: ")
        except EOFError:
            break

        text = line.strip()
        if not text:
            continue
        if text == EXIT_COMMAND:
            print("Goodbye!", file=out)
            return
        if text == CLEAR_COMMAND:
            agent.clear_history()
            print("Conversation history cleared.", file=out)
            continue

        try:
            reply = agent.chat(text)
        except Exception as exc:
            logger.debug("Turn failed", exc_info=True)
            print(f"Error processing request: {exc}", file=err)
            continue
        print(f"Agent: {reply}\n", file=out)


def main() -> int:
    """Entry point for the `toolchat` console script."""
    logging.basicConfig(level=logging.WARNING)
    try:
        settings = load_settings()
        agent = build_agent(settings)
    except ToolchatError as exc:
        print(f"Failed to start: {exc}", file=sys.stderr)
        return 1

    print("toolchat started!")
    print(f"Tool calling: {'enabled' if settings.tools_enabled else 'disabled'}")
    print(f"Max context messages: {settings.max_history}")
    print(f"Type '{EXIT_COMMAND}' to quit, '{CLEAR_COMMAND}' to reset conversation history.")

    try:
        repl(agent)
    except KeyboardInterrupt:
        print()
    finally:
        agent.tool_client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
