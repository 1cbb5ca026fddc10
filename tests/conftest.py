import sys
import types
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from toolchat.messages import Message, ToolCallRequest  # noqa: E402
from toolchat.model import ModelReply  # noqa: E402

WORKER_COMMAND = [sys.executable, "-m", "toolchat.worker"]

Reply = Union[str, Tuple[str, List[Tuple[str, str, str]]]]


def _tool_call(call_id: str, name: str, arguments: str):
    return types.SimpleNamespace(
        id=call_id,
        type="function",
        function=types.SimpleNamespace(name=name, arguments=arguments),
    )


class DummyChoice:
    def __init__(self, content: Optional[str], tool_calls=None):
        self.message = types.SimpleNamespace(content=content, tool_calls=tool_calls)


class DummyCompletion:
    def __init__(self, content: Optional[str], tool_calls=None):
        self.choices = [DummyChoice(content, tool_calls)]


class DummyGroq:
    """
    Minimal mock for groq.Groq that supports:
    client.chat.completions.create(...)

    Each reply is either plain content or ``(content, [(id, name, args), ...])``.
    The last reply repeats once the script runs out. Request kwargs are kept
    in ``requests``.
    """

    def __init__(self, *replies: Reply, error: Optional[Exception] = None):
        self._replies = list(replies) or [""]
        self._error = error
        self.requests: List[Dict[str, Any]] = []
        self.chat = types.SimpleNamespace(
            completions=types.SimpleNamespace(create=self._create)
        )

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self._error is not None:
            raise self._error
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, tuple):
            content, calls = reply
            return DummyCompletion(content, [_tool_call(*call) for call in calls])
        return DummyCompletion(reply)


class ScriptedModel:
    """ModelClient fake replaying canned replies and recording what it saw."""

    def __init__(self, *replies: ModelReply, error: Optional[Exception] = None):
        self._replies = list(replies)
        self._error = error
        self.calls: List[Tuple[List[Message], Optional[List[Dict[str, Any]]]]] = []

    def chat_with_tools(self, messages: Sequence[Message], tools=None) -> ModelReply:
        self.calls.append((list(messages), tools))
        if self._error is not None:
            raise self._error
        if len(self._replies) > 1:
            return self._replies.pop(0)
        return self._replies[0]


def tool_reply(*calls: Tuple[str, str, str], content: str = "") -> ModelReply:
    """Model reply requesting ``(id, name, arguments)`` tool calls."""
    return ModelReply(content=content, tool_calls=[ToolCallRequest(*call) for call in calls])


@pytest.fixture(autouse=True)
def set_env(monkeypatch):
    """
    Automatically set the required model env var for all tests.
    """
    monkeypatch.setenv("GROQ_MODEL", "dummy-model")
    monkeypatch.setenv("GROQ_API_KEY", "dummy-key")
    yield


@pytest.fixture
def worker_command() -> List[str]:
    return list(WORKER_COMMAND)
