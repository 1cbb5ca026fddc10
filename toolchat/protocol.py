"""
Line-delimited JSON protocol spoken between the stdio tool client and the
worker process.

Every message is one JSON object on one line, ASCII-escaped so the frame
is valid UTF-8 whatever the pipe encoding. `json.dumps` escapes any
newline inside string values, so a frame can never span two lines.

Requests
    {"method": "list_tools"}
    {"method": "call_tool", "name": str, "arguments": {...}}

Responses
    {"tools": [tool, ...]}
    {"result": str}                       on success
    {"result": "", "error": str}          on failure
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable

from toolchat.tools import ToolArguments, ToolInfo

METHOD_LIST_TOOLS = "list_tools"
METHOD_CALL_TOOL = "call_tool"


def list_tools_request() -> Dict[str, Any]:
    return {"method": METHOD_LIST_TOOLS}


def call_tool_request(name: str, arguments: ToolArguments) -> Dict[str, Any]:
    return {"method": METHOD_CALL_TOOL, "name": name, "arguments": dict(arguments)}


def list_tools_response(tools: Iterable[ToolInfo]) -> Dict[str, Any]:
    return {"tools": [tool.to_dict() for tool in tools]}


def result_response(result: str) -> Dict[str, Any]:
    return {"result": result}


def error_response(message: str) -> Dict[str, Any]:
    return {"result": "", "error": message}


def encode(message: Dict[str, Any]) -> str:
    """Serialize one frame, newline included."""
    return json.dumps(message, separators=(",", ":")) + "\n"


def decode(line: str) -> Dict[str, Any]:
    """
    Parse one frame.

    Raises
    ------
    ValueError
        If the line is not JSON or not a JSON object.
    """
    payload = json.loads(line)
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload
