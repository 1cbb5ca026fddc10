import io
import json
import subprocess
from typing import Any, Dict

from tests.conftest import ROOT
from toolchat.tools import ToolDefinition, ToolParameter
from toolchat.tools.registry import ToolRegistry
from toolchat.worker import WorkerHandler, serve


def make_handler() -> WorkerHandler:
    def greet(args: Dict[str, Any]) -> str:
        return f"hello {args.get('name', 'world')}"

    def explode(_args: Dict[str, Any]) -> str:
        raise RuntimeError("kaboom")

    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            name="greet",
            description="Say hello",
            fn=greet,
            parameters={"name": ToolParameter(type="string", description="Who", required=True)},
        )
    )
    registry.register(ToolDefinition(name="explode", description="Always fails", fn=explode))
    return WorkerHandler(registry)


def test_list_tools_excludes_handlers():
    response = make_handler().handle_request('{"method":"list_tools"}')

    tools = {tool["name"]: tool for tool in response["tools"]}
    assert set(tools) == {"greet", "explode"}
    assert tools["greet"] == {
        "name": "greet",
        "description": "Say hello",
        "parameters": {
            "type": "object",
            "properties": {"name": {"type": "string", "description": "Who"}},
            "required": ["name"],
        },
    }


def test_call_tool_success_has_no_error_field():
    response = make_handler().handle_request(
        '{"method":"call_tool","name":"greet","arguments":{"name":"Ada"}}'
    )

    assert response == {"result": "hello Ada"}


def test_call_tool_without_arguments_defaults_to_empty():
    response = make_handler().handle_request('{"method":"call_tool","name":"greet"}')

    assert response == {"result": "hello world"}


def test_unknown_tool_is_an_error_response():
    response = make_handler().handle_request('{"method":"call_tool","name":"does_not_exist"}')

    assert response == {"result": "", "error": "tool not found: does_not_exist"}


def test_handler_failure_is_an_error_response():
    response = make_handler().handle_request('{"method":"call_tool","name":"explode"}')

    assert response["result"] == ""
    assert response["error"] == "tool execution failed: kaboom"


def test_malformed_requests_are_error_responses():
    handler = make_handler()
    cases = {
        "not json": "invalid JSON",
        "[1, 2]": "invalid JSON",
        '{"name": "greet"}': "missing or invalid method field",
        '{"method": 42}': "missing or invalid method field",
        '{"method": "launch"}': "unknown method: launch",
        '{"method": "call_tool", "name": 7}': "missing or invalid name field for call_tool",
        '{"method": "call_tool", "name": ""}': "tool name is required",
        '{"method": "call_tool", "name": "greet", "arguments": [1]}': "arguments must be an object",
        '{"method": "call_tool", "name": "greet", "arguments": null}': "arguments must be an object",
    }
    for line, expected in cases.items():
        response = handler.handle_request(line)
        assert response["result"] == ""
        assert response["error"].startswith(expected), line


def test_serve_answers_every_line_and_survives_garbage():
    stdin = io.StringIO(
        "{broken\n"
        '{"method":"list_tools"}\n'
        '{"method":"call_tool","name":"greet","arguments":{"name":"Bob"}}\n'
    )
    stdout = io.StringIO()

    served = serve(make_handler(), stdin, stdout)

    lines = stdout.getvalue().splitlines()
    assert served == 3
    assert len(lines) == 3
    first, second, third = (json.loads(line) for line in lines)
    assert "error" in first
    assert {tool["name"] for tool in second["tools"]} == {"greet", "explode"}
    assert third == {"result": "hello Bob"}


def test_result_with_newlines_stays_on_one_line():
    registry = ToolRegistry()
    registry.register(ToolDefinition(name="poem", description="", fn=lambda args: "roses\nviolets"))
    stdout = io.StringIO()

    serve(WorkerHandler(registry), io.StringIO('{"method":"call_tool","name":"poem"}\n'), stdout)

    lines = stdout.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0]) == {"result": "roses\nviolets"}


def test_worker_process_survives_invalid_utf8(worker_command):
    payload = b'{"method":"call_tool","name":"\xff"}\n{"method":"list_tools"}\n'

    completed = subprocess.run(
        worker_command,
        input=payload,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=str(ROOT),
        timeout=30,
    )

    lines = completed.stdout.decode("utf-8").splitlines()
    assert completed.returncode == 0
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert first["error"].startswith("tool not found: ")
    assert [tool["name"] for tool in second["tools"]] == ["get_current_time"]
