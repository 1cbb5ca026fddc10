"""Error taxonomy shared by the agent, the tool clients and the worker."""

from __future__ import annotations

from typing import Optional


class ToolchatError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(ToolchatError):
    """A required setting is missing or cannot be parsed."""


class ToolError(ToolchatError):
    """Base class for failures the agent turns into tool-role messages."""

    def __init__(self, message: str, tool_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class ToolNotFound(ToolError):
    """The requested tool name is not registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"tool not found: {tool_name}", tool_name=tool_name)


class ToolExecutionFailed(ToolError):
    """The tool handler raised, or the worker reported an error."""

    def __init__(self, detail: str, tool_name: Optional[str] = None) -> None:
        super().__init__(detail, tool_name=tool_name)
        self.detail = detail


class InvalidArguments(ToolError):
    """The argument payload could not be decoded into a JSON object."""


class WorkerUnavailable(ToolchatError):
    """The worker process could not be spawned or its pipes are gone."""


class ModelCallFailed(ToolchatError):
    """Transport or decoding failure while talking to the model service."""
