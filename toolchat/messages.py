"""Conversation turns and tool-call requests exchanged with the model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"
TOOL = "tool"

ROLES = (SYSTEM, USER, ASSISTANT, TOOL)


@dataclass(frozen=True, slots=True)
class ToolCallRequest:
    """One tool invocation requested by the model.

    `arguments` is the raw JSON text emitted by the model; decoding it is
    the agent's job. `id` is empty when the model used the plain-text
    tool convention, which carries no identifiers.
    """

    id: str
    name: str
    arguments: str = "{}"


@dataclass(slots=True)
class Message:
    """A single conversational turn."""

    role: str
    content: str = ""
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: Optional[List[ToolCallRequest]] = None) -> "Message":
        return cls(role=ASSISTANT, content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool(cls, call: ToolCallRequest, content: str) -> "Message":
        """Build the tool-role turn answering `call`."""
        return cls(
            role=TOOL,
            content=content,
            tool_name=call.name,
            tool_call_id=call.id or None,
        )
