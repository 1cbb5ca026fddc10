"""
Tool-aware chat completions using Groq.

Design
- Dependency injection for the Groq client and model name.
- Native tool calling by default; a plain-text JSON convention when the
  backing model has no tool support (`native_tools=False`).
- Every SDK failure surfaces as `ModelCallFailed`.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set

import groq
from groq import Groq

from toolchat.config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL_TIMEOUT,
    DEFAULT_TEMPERATURE,
    GROQ_MODEL_ENV,
    get_groq_api_key,
    require_env,
)
from toolchat.exceptions import ModelCallFailed
from toolchat.messages import ASSISTANT, SYSTEM, TOOL, USER, Message, ToolCallRequest

logger = logging.getLogger(__name__)

TOOL_CONVENTION_PROMPT = (
    "You have access to the tools described below. When you need one or more of them, reply with "
    "only a JSON object of the form "
    '{"tools": [{"name": "<tool name>", "arguments": {<argument name>: <value>}}]} '
    "and nothing else. Tool results will be sent back to you as messages starting with "
    '"[tool <name> result]". When no tool is needed, answer in plain text.\n'
    "Available tools:\n"
)


@dataclass(slots=True)
class ModelReply:
    """One completion: text, tool-call requests, or both."""

    content: str = ""
    tool_calls: List[ToolCallRequest] = field(default_factory=list)


class ModelClient(Protocol):
    """What the agent needs from a model backend."""

    def chat_with_tools(
        self,
        messages: Sequence[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> ModelReply:
        ...


def _build_groq(client: Optional[Groq], timeout: float) -> Groq:
    """Return a Groq client, building one if not injected."""
    if client is not None:
        return client
    return Groq(api_key=get_groq_api_key(), timeout=timeout)


def to_api_messages(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    """
    Render history in the chat-completions message format.

    Tool turns without a call ID (plain-text convention), or whose
    assistant request was trimmed out of the history, cannot be sent as
    `tool` messages; they become user text tagged with the tool name.
    """
    rendered: List[Dict[str, Any]] = []
    open_calls: Set[str] = set()
    for message in messages:
        if message.role in (SYSTEM, USER):
            rendered.append({"role": message.role, "content": message.content})
        elif message.role == ASSISTANT:
            entry: Dict[str, Any] = {"role": ASSISTANT, "content": message.content}
            native = [call for call in message.tool_calls if call.id]
            if native:
                entry["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": call.arguments},
                    }
                    for call in native
                ]
                open_calls.update(call.id for call in native)
            rendered.append(entry)
        elif message.role == TOOL:
            if message.tool_call_id and message.tool_call_id in open_calls:
                rendered.append(
                    {
                        "role": TOOL,
                        "tool_call_id": message.tool_call_id,
                        "name": message.tool_name or "",
                        "content": message.content,
                    }
                )
            else:
                rendered.append(
                    {"role": USER, "content": f"[tool {message.tool_name} result] {message.content}"}
                )
    return rendered


def _with_tool_convention(
    messages: List[Dict[str, Any]],
    tools: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Insert the tool instructions right after the leading system message."""
    functions = [tool.get("function", tool) for tool in tools]
    instruction = {"role": SYSTEM, "content": TOOL_CONVENTION_PROMPT + json.dumps(functions, indent=2)}
    index = 1 if messages and messages[0]["role"] == SYSTEM else 0
    return messages[:index] + [instruction] + messages[index:]


class GroqModel:
    """`ModelClient` implementation on top of the Groq SDK."""

    def __init__(
        self,
        model: Optional[str] = None,
        client: Optional[Groq] = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_MODEL_TIMEOUT,
        native_tools: bool = True,
    ) -> None:
        self.client = _build_groq(client, timeout)
        self.model = model or require_env(GROQ_MODEL_ENV)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.native_tools = native_tools

    def chat(self, messages: Sequence[Message]) -> str:
        """Plain completion without tools."""
        return self.chat_with_tools(messages).content

    def chat_with_tools(
        self,
        messages: Sequence[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> ModelReply:
        """
        Request a completion, offering `tools` when given.

        Parameters
        ----------
        messages : Sequence[Message]
            Full conversation history, system message first.
        tools : Optional[list[dict]]
            Function schemas in chat-completions format.

        Returns
        -------
        ModelReply
            Reply text and any native tool-call requests.

        Raises
        ------
        ModelCallFailed
            On transport errors, API errors, or an empty response.
        """
        api_messages = to_api_messages(messages)
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools and self.native_tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        elif tools:
            api_messages = _with_tool_convention(api_messages, tools)
        kwargs["messages"] = api_messages

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Requesting completion: model=%s messages=%d tools=%d",
                self.model,
                len(api_messages),
                len(tools or []),
            )
        try:
            completion = self.client.chat.completions.create(**kwargs)
        except groq.GroqError as exc:
            raise ModelCallFailed(f"model call failed: {exc}") from exc

        if not completion.choices:
            raise ModelCallFailed("no choices returned from model")

        message = completion.choices[0].message
        tool_calls = [
            ToolCallRequest(
                id=call.id or "",
                name=call.function.name,
                arguments=call.function.arguments or "{}",
            )
            for call in (getattr(message, "tool_calls", None) or [])
        ]
        return ModelReply(content=message.content or "", tool_calls=tool_calls)
