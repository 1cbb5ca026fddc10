"""
Worker process hosting its own tool registry behind the stdio protocol.

Run with ``python -m toolchat.worker``. Requests arrive one per line on
stdin; exactly one response line is written to stdout for each of them.
Logging goes to stderr so stdout only ever carries protocol frames.
"""
from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional, TextIO

from toolchat import protocol
from toolchat.tools.builtin import builtin_registry
from toolchat.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class WorkerHandler:
    """Decodes one request, dispatches it, and builds one response."""

    def __init__(self, registry: Optional[ToolRegistry] = None) -> None:
        self.registry = registry if registry is not None else builtin_registry()

    def handle_request(self, line: str) -> Dict[str, Any]:
        """
        Turn a raw request line into a response payload.

        Never raises: malformed input and tool failures are reported
        through the `error` field so the serving loop keeps going. An
        omitted `arguments` field means `{}`; an explicit `null` is
        rejected like any other non-object.
        """
        try:
            request = protocol.decode(line)
        except ValueError as exc:
            return protocol.error_response(f"invalid JSON: {exc}")

        method = request.get("method")
        if not isinstance(method, str):
            return protocol.error_response("missing or invalid method field")

        if method == protocol.METHOD_LIST_TOOLS:
            return self._list_tools()
        if method == protocol.METHOD_CALL_TOOL:
            return self._call_tool(request)
        return protocol.error_response(f"unknown method: {method}")

    def _list_tools(self) -> Dict[str, Any]:
        return protocol.list_tools_response(d.info() for d in self.registry.list())

    def _call_tool(self, request: Dict[str, Any]) -> Dict[str, Any]:
        name = request.get("name")
        if not isinstance(name, str):
            return protocol.error_response("missing or invalid name field for call_tool")
        if not name:
            return protocol.error_response("tool name is required")

        arguments = request.get("arguments", {})
        if not isinstance(arguments, dict):
            return protocol.error_response("arguments must be an object")

        definition = self.registry.get(name)
        if definition is None:
            return protocol.error_response(f"tool not found: {name}")

        try:
            result = definition.fn(arguments)
        except Exception as exc:
            logger.exception("Tool '%s' failed", name)
            return protocol.error_response(f"tool execution failed: {exc}")
        return protocol.result_response(str(result))


def serve(handler: WorkerHandler, stdin: TextIO, stdout: TextIO) -> int:
    """
    Answer requests until stdin reaches end-of-stream.

    Returns
    -------
    int
        Number of requests served.
    """
    served = 0
    for line in iter(stdin.readline, ""):
        response = handler.handle_request(line)
        stdout.write(protocol.encode(response))
        stdout.flush()
        served += 1
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Served request %d: %s", served, line.strip())
    return served


def main() -> int:
    """Entry point for the worker process."""
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    # undecodable bytes must still reach the handler as a malformed line
    sys.stdin.reconfigure(encoding="utf-8", errors="replace")
    sys.stdout.reconfigure(encoding="utf-8")

    handler = WorkerHandler()
    try:
        served = serve(handler, sys.stdin, sys.stdout)
    except KeyboardInterrupt:
        logger.info("Worker interrupted, shutting down")
        return 0
    except BrokenPipeError:
        logger.error("Client closed the response pipe")
        return 1
    logger.info("Input closed after %d request(s), shutting down", served)
    return 0


if __name__ == "__main__":
    sys.exit(main())
