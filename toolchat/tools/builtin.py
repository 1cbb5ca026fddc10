"""Built-in tools shared by the local client and the worker process."""

from __future__ import annotations

from datetime import datetime

from toolchat.tools import ToolArguments, ToolDefinition
from toolchat.tools.registry import ToolRegistry

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_current_time(args: ToolArguments) -> str:
    """Return the current local time. Arguments are ignored."""
    return datetime.now().strftime(TIME_FORMAT)


GET_CURRENT_TIME = ToolDefinition(
    name="get_current_time",
    description="Get the current local date and time.",
    fn=get_current_time,
)


def builtin_registry() -> ToolRegistry:
    """Build a fresh registry holding every built-in tool."""
    registry = ToolRegistry()
    registry.register(GET_CURRENT_TIME)
    return registry
