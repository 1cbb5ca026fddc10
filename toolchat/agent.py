"""Agent loop turning one user turn into tool calls and a final answer."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from toolchat.config import DEFAULT_MAX_HISTORY, DEFAULT_MAX_ROUNDS, DEFAULT_SYSTEM_PROMPT
from toolchat.exceptions import InvalidArguments, ToolError
from toolchat.messages import SYSTEM, Message, ToolCallRequest
from toolchat.model import ModelClient, ModelReply
from toolchat.tools import ToolArguments, ToolClient, ToolInfo
from toolchat.tools.noop import NoopToolClient

logger = logging.getLogger(__name__)

MAX_ROUNDS_MESSAGE = "Error: Maximum tool call depth exceeded."
INVALID_ARGUMENTS_MESSAGE = "Error: invalid arguments JSON"

_FENCED_JSON = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", flags=re.IGNORECASE | re.DOTALL)


def tool_schemas(tools: Iterable[ToolInfo]) -> List[Dict[str, Any]]:
    """Convert tool metadata into chat-completions function schemas."""
    schemas: List[Dict[str, Any]] = []
    for tool in tools:
        parameters: Dict[str, Any] = {
            "type": "object",
            "properties": {
                name: {"type": param.type, "description": param.description}
                for name, param in tool.parameters.items()
            },
        }
        if tool.required:
            parameters["required"] = tool.required
        schemas.append(
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": parameters,
                },
            }
        )
    return schemas


def normalize_tool_calls(reply: ModelReply, parse_content: bool = True) -> List[ToolCallRequest]:
    """
    Produce the canonical tool-call list for a model reply.

    Native `tool_calls` win. Otherwise, when `parse_content` is set, the
    reply text is checked for the plain-text convention
    ``{"tools": [{"name": ..., "arguments": {...}}]}``, optionally inside a
    fenced code block. Calls recovered from text have no IDs, so their
    results are matched to them by position and tool name only.
    """
    if reply.tool_calls:
        return list(reply.tool_calls)
    if not parse_content:
        return []

    text = reply.content.strip()
    fenced = _FENCED_JSON.match(text)
    if fenced:
        text = fenced.group(1)
    if not text.startswith("{"):
        return []
    try:
        payload = json.loads(text)
    except ValueError:
        return []
    if not isinstance(payload, dict) or not isinstance(payload.get("tools"), list):
        return []

    calls: List[ToolCallRequest] = []
    for entry in payload["tools"]:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            continue
        arguments = entry.get("arguments")
        if arguments is None:
            arguments = {}
        raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
        calls.append(ToolCallRequest(id="", name=entry["name"], arguments=raw))
    return calls


def parse_arguments(raw: str) -> ToolArguments:
    """
    Decode a model-supplied argument payload.

    Blank text and JSON ``null`` mean no arguments.

    Raises
    ------
    InvalidArguments
        If the payload is not JSON or not a JSON object.
    """
    if not raw or not raw.strip():
        return {}
    try:
        arguments = json.loads(raw)
    except ValueError as exc:
        raise InvalidArguments(f"invalid arguments JSON: {exc}") from exc
    if arguments is None:
        return {}
    if not isinstance(arguments, dict):
        raise InvalidArguments(f"arguments must be a JSON object, got {type(arguments).__name__}")
    return arguments


class Agent:
    """
    Owns one conversation and runs the bounded tool-calling loop.

    Each `chat` call asks the model for a completion, executes any tool
    calls it requests, feeds the results back, and repeats for at most
    `max_rounds` rounds.
    """

    def __init__(
        self,
        model: ModelClient,
        tool_client: Optional[ToolClient] = None,
        max_history: int = DEFAULT_MAX_HISTORY,
        tools_enabled: bool = True,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self.model = model
        self.tool_client: ToolClient = tool_client if tool_client is not None else NoopToolClient()
        self.max_history = max_history if max_history > 0 else DEFAULT_MAX_HISTORY
        self.max_rounds = max_rounds if max_rounds > 0 else DEFAULT_MAX_ROUNDS
        self.tools_enabled = tools_enabled
        self.system_prompt = system_prompt
        self._history: List[Message] = []
        self.last_trace: List[Dict[str, Any]] = []

    @property
    def history(self) -> List[Message]:
        """Snapshot of the conversation so far."""
        return list(self._history)

    # ---------------------------------------------------------------- chat
    def chat(self, user_text: str) -> str:
        """
        Process one user turn and return the final answer.

        Raises
        ------
        ModelCallFailed
            If the model cannot be reached.
        WorkerUnavailable
            If a worker-backed tool client has lost its process.
        """
        if not self._history:
            self._history.append(Message.system(self.system_prompt))
        self._history.append(Message.user(user_text))
        self._trim_history()
        self.last_trace = []

        schemas: Optional[List[Dict[str, Any]]] = None
        if self.tools_enabled:
            schemas = tool_schemas(self.tool_client.list()) or None

        for round_index in range(self.max_rounds):
            reply = self.model.chat_with_tools(self.history, schemas)
            calls = normalize_tool_calls(reply, parse_content=schemas is not None)

            self._history.append(Message.assistant(reply.content, calls))
            self._trim_history()

            if not calls:
                return reply.content

            logger.info(
                "Round %d/%d: model requested %s",
                round_index + 1,
                self.max_rounds,
                ", ".join(call.name for call in calls),
            )
            for call in calls:
                self._history.append(self._execute(call))
            self._trim_history()

        logger.warning("Stopping after %d rounds of tool calls", self.max_rounds)
        return MAX_ROUNDS_MESSAGE

    def clear_history(self) -> None:
        self._history = []
        self.last_trace = []

    # ------------------------------------------------------------ execute
    def _execute(self, call: ToolCallRequest) -> Message:
        """Run one tool call and build the tool-role message answering it."""
        try:
            arguments = parse_arguments(call.arguments)
        except InvalidArguments as exc:
            logger.warning("Tool '%s' got bad arguments: %s", call.name, exc)
            self._record(call.name, call.arguments, ok=False)
            return Message.tool(call, INVALID_ARGUMENTS_MESSAGE)

        try:
            result = self.tool_client.call(call.name, arguments)
        except ToolError as exc:
            logger.warning("Tool '%s' failed: %s", call.name, exc)
            self._record(call.name, arguments, ok=False)
            return Message.tool(call, f"Error: {exc}")

        self._record(call.name, arguments, ok=True)
        return Message.tool(call, result)

    def _record(self, tool: str, args: Any, ok: bool) -> None:
        self.last_trace.append({"tool": tool, "args": args, "ok": ok})

    # ---------------------------------------------------------------- trim
    def _trim_history(self) -> None:
        """Keep the system message plus the newest `max_history` messages."""
        if not self._history:
            return
        head = self._history[:1] if self._history[0].role == SYSTEM else []
        rest = self._history[len(head):]
        if len(rest) > self.max_history:
            self._history = head + rest[-self.max_history:]


def format_trace(trace: List[Dict[str, Any]]) -> str:
    """Render the trace line shown under each answer."""
    if not trace:
        return "Trace: none"
    path = " -> ".join(entry["tool"] for entry in trace)
    return f"Trace: {path}"
