"""Wiring of settings into tool clients, the model client and the agent."""

from __future__ import annotations

import logging
from typing import Optional

from toolchat.agent import Agent
from toolchat.config import Settings
from toolchat.model import GroqModel, ModelClient
from toolchat.tools import ToolClient
from toolchat.tools.local import LocalToolClient
from toolchat.tools.noop import NoopToolClient
from toolchat.tools.stdio import StdioToolClient

logger = logging.getLogger(__name__)


def build_tool_client(settings: Settings) -> ToolClient:
    """Pick the tool client for the configured mode."""
    if not settings.tools_enabled:
        return NoopToolClient()
    if settings.tool_mode == "stdio":
        return StdioToolClient(settings.worker_command)
    return LocalToolClient()


def build_model(settings: Settings) -> GroqModel:
    return GroqModel(
        model=settings.model_name,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.model_timeout,
        native_tools=settings.native_tools,
    )


def build_agent(
    settings: Settings,
    model: Optional[ModelClient] = None,
    tool_client: Optional[ToolClient] = None,
) -> Agent:
    """Assemble an Agent; collaborators not supplied are built from `settings`."""
    if model is None:
        model = build_model(settings)
    if tool_client is None:
        tool_client = build_tool_client(settings)
    logger.info(
        "Agent ready: tools=%s mode=%s max_history=%d max_rounds=%d",
        "on" if settings.tools_enabled else "off",
        settings.tool_mode,
        settings.max_history,
        settings.max_rounds,
    )
    return Agent(
        model=model,
        tool_client=tool_client,
        max_history=settings.max_history,
        tools_enabled=settings.tools_enabled,
        max_rounds=settings.max_rounds,
        system_prompt=settings.system_prompt,
    )
