"""Tests for the MCP server and tool definitions."""

import asyncio
import json

import pytest

from polyglot_code.core.config import ServerConfig
from polyglot_code.languages import default_registry
from polyglot_code.mcp.server import PolyglotTools, ToolCallResult, create_server


@pytest.fixture
def server(engine):
    return create_server(ServerConfig(max_concurrent_executions=2), engine=engine)


def _text(response):
    return response["content"][0]["text"]


def test_tool_call_result_success_formats_json():
    response = ToolCallResult(success=True, content={"a": 1}).to_mcp_response()
    assert json.loads(_text(response)) == {"a": 1}
    assert "isError" not in response


def test_tool_call_result_error():
    response = ToolCallResult(success=False, content=None, error="bad").to_mcp_response()
    assert response["isError"] is True
    assert _text(response) == "bad"


def test_tools_cover_every_language():
    registry = default_registry()
    tools = PolyglotTools(registry).to_mcp_tools()
    names = [tool["name"] for tool in tools]

    assert names[0] == "execute_code"
    assert {f"execute_{language}" for language in registry.languages()} <= set(names)
    assert "list_languages" in names
    assert "echo" in names
    assert len(names) == len(registry) + 3


def test_language_tool_schema():
    registry = default_registry()
    java = PolyglotTools.execute_language(registry.spec_for("java")).to_mcp_schema()
    python = PolyglotTools.execute_language(registry.spec_for("python")).to_mcp_schema()

    assert java["description"] == "Compiles and executes given Java code and returns the output."
    assert python["description"] == "Executes given Python code and returns the output."
    assert java["inputSchema"]["required"] == ["code"]
    assert "public class Main" in java["inputSchema"]["properties"]["code"]["description"]


def test_execute_code_schema_lists_languages():
    schema = PolyglotTools(default_registry()).execute_code().to_mcp_schema()
    language = schema["inputSchema"]["properties"]["language"]
    assert "python" in language["enum"]
    assert schema["inputSchema"]["required"] == ["language", "code"]


@pytest.mark.asyncio
async def test_initialize(server):
    response = await server.handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}
    )
    assert response["id"] == 1
    assert response["result"]["serverInfo"]["name"] == "polyglot-code"
    assert response["result"]["protocolVersion"] == "2024-11-05"


@pytest.mark.asyncio
async def test_tools_list(server):
    response = await server.handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    names = {tool["name"] for tool in response["result"]["tools"]}
    assert "execute_python" in names
    assert "execute_pycompiled" in names


@pytest.mark.asyncio
async def test_execute_language_tool(server):
    result = await server.handle_tools_call(
        {"name": "execute_python", "arguments": {"code": "print('hi from mcp')"}}
    )
    assert result == {"content": [{"type": "text", "text": "hi from mcp"}]}


@pytest.mark.asyncio
async def test_execute_code_tool_with_alias(server):
    result = await server.handle_tools_call(
        {"name": "execute_code", "arguments": {"language": "py", "code": "print(6 * 7)"}}
    )
    assert _text(result) == "42"


@pytest.mark.asyncio
async def test_execution_failure_is_tool_error(server):
    result = await server.handle_tools_call(
        {"name": "execute_python", "arguments": {"code": "raise ValueError('nope')"}}
    )
    assert result["isError"] is True
    assert _text(result).startswith("Execution error: ")
    assert "ValueError: nope" in _text(result)


@pytest.mark.asyncio
async def test_compile_failure_is_tool_error(server):
    result = await server.handle_tools_call(
        {"name": "execute_pycompiled", "arguments": {"code": "def f(:"}}
    )
    assert result["isError"] is True
    assert _text(result).startswith("Compilation error: ")


@pytest.mark.asyncio
async def test_unsupported_language(server):
    result = await server.handle_tools_call(
        {"name": "execute_code", "arguments": {"language": "cobol", "code": "x"}}
    )
    assert result["isError"] is True
    assert _text(result).startswith("Configuration error: Unsupported language 'cobol'")


@pytest.mark.asyncio
async def test_missing_arguments(server):
    no_code = await server.handle_tools_call({"name": "execute_python", "arguments": {}})
    assert _text(no_code) == "Code is required"

    no_language = await server.handle_tools_call(
        {"name": "execute_code", "arguments": {"code": "print(1)"}}
    )
    assert _text(no_language) == "Language is required"


@pytest.mark.asyncio
async def test_unknown_tool(server):
    result = await server.handle_tools_call({"name": "execute_cobol", "arguments": {"code": ""}})
    assert result["isError"] is True
    assert _text(result) == "Unknown tool: execute_cobol"


@pytest.mark.asyncio
async def test_echo(server):
    result = await server.handle_tools_call({"name": "echo", "arguments": {"message": "ping"}})
    assert _text(result) == "Echo: ping"

    missing = await server.handle_tools_call({"name": "echo", "arguments": {}})
    assert missing["isError"] is True


@pytest.mark.asyncio
async def test_list_languages(server):
    result = await server.handle_tools_call({"name": "list_languages", "arguments": {}})
    languages = {item["id"]: item for item in json.loads(_text(result))}

    assert languages["python"]["available"] is True
    assert languages["python"]["compiled"] is False
    assert languages["python"]["compile_timeout_seconds"] is None
    assert languages["java"]["compiled"] is True
    assert languages["java"]["compile_timeout_seconds"] == 10
    assert "py" in languages["python"]["aliases"]


@pytest.mark.asyncio
async def test_concurrent_tool_calls(server):
    calls = [
        server.handle_tools_call(
            {"name": "execute_python", "arguments": {"code": f"print('call-{index}')"}}
        )
        for index in range(5)
    ]
    results = await asyncio.gather(*calls)
    assert [_text(result) for result in results] == [f"call-{index}" for index in range(5)]


@pytest.mark.asyncio
async def test_unknown_method(server):
    response = await server.handle_message({"jsonrpc": "2.0", "id": 9, "method": "nope"})
    assert response["error"]["code"] == -32601


@pytest.mark.asyncio
async def test_notifications_get_no_response(server):
    assert await server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    assert await server.handle_message({"jsonrpc": "2.0", "method": "ping"}) is None


@pytest.mark.asyncio
async def test_ping(server):
    response = await server.handle_message({"jsonrpc": "2.0", "id": 3, "method": "ping"})
    assert response == {"jsonrpc": "2.0", "id": 3, "result": {}}


@pytest.mark.asyncio
async def test_unsupported_transport(engine):
    server = create_server(ServerConfig(transport="http"), engine=engine)
    with pytest.raises(NotImplementedError):
        await server.run()
