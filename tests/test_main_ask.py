import contextlib
import types

from tests.conftest import ScriptedModel, tool_reply
from toolchat import main as mainmod
from toolchat.agent import Agent
from toolchat.model import ModelReply
from toolchat.tools.local import LocalToolClient


def test_ask_appends_trace(monkeypatch):
    model = ScriptedModel(
        tool_reply(("c1", "get_current_time", "{}")),
        ModelReply(content="It is noon."),
        ModelReply(content="Hello."),
    )
    agent = Agent(model, tool_client=LocalToolClient())
    state = {"agent_instance": agent}
    monkeypatch.setattr(mainmod, "st", types.SimpleNamespace(session_state=state))

    assert mainmod.ask("what time is it?") == "It is noon.\nTrace: get_current_time"
    assert state["agent_last_trace"][0]["ok"] is True
    assert mainmod.ask("hi") == "Hello.\nTrace: none"


def test_clear_conversation(monkeypatch):
    agent = Agent(ScriptedModel(ModelReply(content="ok")))
    agent.chat("hello")
    state = {"agent_instance": agent, "messages": [{"role": "user", "content": "hello"}]}
    monkeypatch.setattr(mainmod, "st", types.SimpleNamespace(session_state=state))

    mainmod.clear_conversation()

    assert agent.history == []
    assert state["messages"] == []


def test_sessions_share_one_tool_client(monkeypatch):
    built = []

    def fake_build_tool_client(settings):
        client = LocalToolClient()
        built.append(client)
        return client

    monkeypatch.setattr(mainmod, "build_tool_client", fake_build_tool_client)
    mainmod._get_tool_client.clear()
    try:
        agents = []
        for _ in range(2):
            monkeypatch.setattr(mainmod, "st", types.SimpleNamespace(session_state={}))
            agents.append(mainmod._get_agent())
    finally:
        mainmod._get_tool_client.clear()

    first, second = agents
    assert first is not second
    assert len(built) == 1
    assert first.tool_client is second.tool_client is built[0]


def test_main_shows_apology_for_unexpected_errors(monkeypatch):
    rendered = []

    class SessionState(dict):
        __getattr__ = dict.__getitem__

    class FakeStreamlit:
        def __init__(self):
            self.session_state = SessionState(messages=[])
            self.sidebar = types.SimpleNamespace(button=lambda label: False)

        def title(self, text):
            pass

        def chat_input(self, placeholder):
            return "hello"

        def chat_message(self, role):
            return contextlib.nullcontext()

        def markdown(self, text):
            rendered.append(text)

    def broken_ask(query):
        raise AttributeError("'NoneType' object has no attribute 'name'")

    fake = FakeStreamlit()
    monkeypatch.setattr(mainmod, "st", fake)
    monkeypatch.setattr(mainmod, "ask", broken_ask)

    mainmod.main()

    assert rendered[-1] == "Sorry, something went wrong: 'NoneType' object has no attribute 'name'"
    assert fake.session_state.messages[-1]["role"] == "assistant"
