"""Name-keyed storage for tool definitions."""

from __future__ import annotations

from typing import Dict, List, Optional

from toolchat.tools import ToolDefinition


class ToolRegistry:
    """
    Maps tool names to definitions.

    Registering an existing name replaces the previous definition. Listing
    order is unspecified. Not thread-safe: register everything before the
    registry is shared.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> None:
        self._tools[definition.name] = definition

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def list(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
