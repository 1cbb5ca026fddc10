"""Tool client used when tool calling is switched off."""

from __future__ import annotations

from typing import List

from toolchat.exceptions import ToolNotFound
from toolchat.tools import ToolArguments, ToolInfo


class NoopToolClient:
    """Advertises no tools; every call is a miss."""

    def call(self, name: str, arguments: ToolArguments) -> str:
        raise ToolNotFound(name)

    def list(self) -> List[ToolInfo]:
        return []

    def close(self) -> None:
        pass
