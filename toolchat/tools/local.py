"""In-process tool execution."""

from __future__ import annotations

import logging
from typing import List, Optional

from toolchat.exceptions import ToolExecutionFailed, ToolNotFound
from toolchat.tools import ToolArguments, ToolInfo
from toolchat.tools.builtin import builtin_registry
from toolchat.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class LocalToolClient:
    """Runs handlers from a registry on the caller's thread."""

    def __init__(self, registry: Optional[ToolRegistry] = None) -> None:
        self.registry = registry if registry is not None else builtin_registry()

    def call(self, name: str, arguments: ToolArguments) -> str:
        """
        Execute the named tool.

        Raises
        ------
        ToolNotFound
            If no tool with that name is registered.
        ToolExecutionFailed
            If the handler raises.
        """
        definition = self.registry.get(name)
        if definition is None:
            raise ToolNotFound(name)
        try:
            result = definition.fn(dict(arguments))
        except Exception as exc:
            logger.debug("Tool '%s' failed", name, exc_info=True)
            raise ToolExecutionFailed(str(exc) or type(exc).__name__, tool_name=name) from exc
        return str(result)

    def list(self) -> List[ToolInfo]:
        return [definition.info() for definition in self.registry.list()]

    def close(self) -> None:
        """Nothing to release."""
