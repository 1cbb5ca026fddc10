"""Tool client backed by a worker process reached over stdin/stdout."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence

from toolchat import protocol
from toolchat.exceptions import ToolExecutionFailed, ToolNotFound, WorkerUnavailable
from toolchat.tools import ToolArguments, ToolInfo

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 2.0

_NOT_FOUND_PREFIX = "tool not found: "


class StdioToolClient:
    """
    Spawns one worker process and talks to it one request at a time.

    The protocol has no request IDs, so a response is matched to its
    request purely by order. `_lock` covers the write of a request and the
    read of its response; at most one request is outstanding per worker.
    There is no per-call timeout: a worker that never answers blocks the
    caller.
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        self.command = list(command)
        self.shutdown_timeout = shutdown_timeout
        self._lock = threading.Lock()
        self._close_lock = threading.Lock()
        self._closed = False

        process_env = None
        if env:
            process_env = os.environ.copy()
            process_env.update(env)

        logger.info("Starting tool worker: %s", " ".join(self.command))
        try:
            self._process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                cwd=cwd,
                env=process_env,
                text=True,
                encoding="utf-8",
            )
        except (OSError, ValueError) as exc:
            raise WorkerUnavailable(f"failed to start worker process: {exc}") from exc

        if self._process.stdin is None or self._process.stdout is None:
            self._process.kill()
            self._process.wait()
            raise WorkerUnavailable("worker process pipes are unavailable")
        self._stdin = self._process.stdin
        self._stdout = self._process.stdout
        logger.info("Tool worker started with PID %s", self._process.pid)

    # ---------------------------------------------------------------- wire
    def _send_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Write one request line and read exactly one response line."""
        frame = protocol.encode(request)
        with self._lock:
            if self._closed:
                raise WorkerUnavailable("tool client is closed")
            try:
                self._stdin.write(frame)
                self._stdin.flush()
            except (BrokenPipeError, OSError, ValueError) as exc:
                raise WorkerUnavailable(f"failed to send request: {exc}") from exc

            try:
                line = self._stdout.readline()
            except (OSError, ValueError) as exc:
                raise WorkerUnavailable(f"error reading response: {exc}") from exc

        if not line:
            raise WorkerUnavailable("worker closed stdout unexpectedly")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Worker exchange: %s -> %s", frame.strip(), line.strip())
        try:
            return protocol.decode(line)
        except ValueError as exc:
            raise WorkerUnavailable(f"malformed response from worker: {exc}") from exc

    # ----------------------------------------------------------- interface
    def call(self, name: str, arguments: ToolArguments) -> str:
        """
        Run a tool inside the worker.

        Raises
        ------
        ToolNotFound
            If the worker does not know the tool.
        ToolExecutionFailed
            If the worker reports any other error.
        WorkerUnavailable
            If the worker cannot be reached.
        """
        response = self._send_request(protocol.call_tool_request(name, arguments))
        error = response.get("error")
        if error:
            error = str(error)
            if error == f"{_NOT_FOUND_PREFIX}{name}":
                raise ToolNotFound(name)
            raise ToolExecutionFailed(error, tool_name=name)
        return str(response.get("result", ""))

    def list(self) -> List[ToolInfo]:
        response = self._send_request(protocol.list_tools_request())
        error = response.get("error")
        if error:
            raise WorkerUnavailable(f"list_tools failed: {error}")
        try:
            return [ToolInfo.from_dict(entry) for entry in response.get("tools") or []]
        except (AttributeError, KeyError, TypeError) as exc:
            raise WorkerUnavailable(f"malformed list_tools response: {exc}") from exc

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    def close(self) -> None:
        """
        Stop the worker: interrupt, wait up to `shutdown_timeout`, then kill.

        Safe to call repeatedly and after the worker has exited on its own.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        process = self._process
        try:
            if process.poll() is None:
                self._interrupt(process)
                try:
                    process.wait(timeout=self.shutdown_timeout)
                except subprocess.TimeoutExpired:
                    logger.warning(
                        "Tool worker %s ignored interrupt for %.1fs, killing it",
                        process.pid,
                        self.shutdown_timeout,
                    )
                    process.kill()
                    process.wait()
        finally:
            for stream in (self._stdin, self._stdout):
                try:
                    stream.close()
                except OSError:
                    pass
        logger.info("Tool worker %s exited with code %s", process.pid, process.returncode)

    @staticmethod
    def _interrupt(process: subprocess.Popen) -> None:
        try:
            if os.name == "nt":
                process.terminate()
            else:
                process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            pass

    def __enter__(self) -> "StdioToolClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
