"""
Polyglot Code MCP server.

Speaks JSON-RPC 2.0 over newline-delimited stdio so MCP hosts (Claude
Desktop, editor extensions) can run code through the execution engine.
"""

from __future__ import annotations

import asyncio
import functools
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ...core.config import ServerConfig
from ...core.debug_logger import DebugLogger
from ...core.logging import get_logger
from ...languages.toolchains import detect_toolchains
from .tools import PolyglotTools

logger = get_logger(__name__)

PROTOCOL_VERSION = "2024-11-05"

METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

ToolHandler = Callable[[dict[str, Any]], Awaitable["ToolCallResult"]]


@dataclass
class ToolCallResult:
    """Outcome of one tool invocation, before MCP encoding."""

    success: bool
    content: Any
    error: str | None = None

    def to_mcp_response(self) -> dict[str, Any]:
        """Encode as an MCP ``CallToolResult`` with a single text item."""
        if not self.success:
            return {"isError": True, "content": [_text_item(self.error or "Unknown error")]}
        if isinstance(self.content, (dict, list)):
            text = json.dumps(self.content, indent=2)
        else:
            text = str(self.content)
        return {"content": [_text_item(text)]}


def _text_item(text: str) -> dict[str, str]:
    return {"type": "text", "text": text}


def _reply(msg_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "result": result}


def _reply_error(msg_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


class PolyglotServer:
    """
    MCP server over the execution engine.

    Engine calls are blocking, so each runs on a worker thread; at most
    ``max_concurrent_executions`` run at once.
    """

    def __init__(self, config: ServerConfig | None = None, engine=None, config_manager=None):
        self.config = config or ServerConfig()
        self.config_manager = config_manager
        self._engine = engine
        self._tools: PolyglotTools | None = None
        self._semaphore = asyncio.Semaphore(max(1, self.config.max_concurrent_executions))
        self.debug = DebugLogger.get_instance()

    @property
    def engine(self):
        """Execution engine, created from the config manager on first use."""
        if self._engine is None:
            from ...execution import ExecutionEngine

            self._engine = ExecutionEngine(config_manager=self.config_manager)
        return self._engine

    @property
    def tools(self) -> PolyglotTools:
        if self._tools is None:
            self._tools = PolyglotTools(self.engine.registry)
        return self._tools

    # JSON-RPC methods

    async def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": self.config.name, "version": self.config.version},
        }

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": self.tools.to_mcp_tools()}

    async def handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run one tool; failures come back as ``isError`` results, never raised."""
        name = params.get("name", "")
        arguments = params.get("arguments") or {}
        self.debug.trace_tool_call("recv", name, arguments)

        handler = self._get_tool_handler(name)
        if handler is None:
            outcome = ToolCallResult(success=False, content=None, error=f"Unknown tool: {name}")
        else:
            try:
                outcome = await handler(arguments)
            except Exception as exc:
                logger.exception(f"Tool {name} failed")
                outcome = ToolCallResult(success=False, content=None, error=str(exc))

        self.debug.trace_tool_call("send", name, outcome.content or outcome.error)
        return outcome.to_mcp_response()

    def _get_tool_handler(self, tool_name: str) -> ToolHandler | None:
        fixed: dict[str, ToolHandler] = {
            "execute_code": self._handle_execute_code,
            "list_languages": self._handle_list_languages,
            "echo": self._handle_echo,
        }
        if tool_name in fixed:
            return fixed[tool_name]

        language = tool_name.removeprefix("execute_")
        if language != tool_name and language in self.engine.registry.languages():
            return functools.partial(self._handle_execute_language, language)
        return None

    # Tools

    async def _handle_execute_code(self, args: dict[str, Any]) -> ToolCallResult:
        language = args.get("language")
        if not language or not isinstance(language, str):
            return ToolCallResult(success=False, content=None, error="Language is required")
        return await self._execute(language, args.get("code"))

    async def _handle_execute_language(
        self, language: str, args: dict[str, Any]
    ) -> ToolCallResult:
        return await self._execute(language, args.get("code"))

    async def _execute(self, language: str, code: Any) -> ToolCallResult:
        if code is None or not isinstance(code, str):
            return ToolCallResult(success=False, content=None, error="Code is required")

        async with self._semaphore:
            result = await asyncio.to_thread(self.engine.execute, language, code)

        if result.success:
            return ToolCallResult(success=True, content=result.text)
        return ToolCallResult(success=False, content=None, error=result.text)

    async def _handle_list_languages(self, args: dict[str, Any]) -> ToolCallResult:
        registry = self.engine.registry
        python = self.engine.sandbox_config.resolve_python()
        health = await asyncio.to_thread(detect_toolchains, registry, python)
        languages = [
            {
                "id": spec.id,
                "name": spec.display_name,
                "aliases": list(spec.aliases),
                "compiled": spec.compiled,
                "compile_timeout_seconds": spec.compile_timeout if spec.compiled else None,
                "run_timeout_seconds": spec.run_timeout,
                "available": health[spec.id].available,
                "detail": health[spec.id].detail,
            }
            for spec in registry
        ]
        return ToolCallResult(success=True, content=languages)

    async def _handle_echo(self, args: dict[str, Any]) -> ToolCallResult:
        message = args.get("message")
        if message is None:
            return ToolCallResult(success=False, content=None, error="Message is required")
        return ToolCallResult(success=True, content=f"Echo: {message}")

    # Transport

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """
        Dispatch one decoded JSON-RPC message.

        Returns the reply, or None for notifications (messages without an id).
        """
        method = message.get("method", "")
        msg_id = message.get("id")
        methods = {
            "initialize": self.handle_initialize,
            "tools/list": self.handle_tools_list,
            "tools/call": self.handle_tools_call,
            "ping": self.handle_ping,
        }

        method_handler = methods.get(method)
        if method_handler is None:
            if msg_id is None:
                return None
            return _reply_error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            result = await method_handler(message.get("params") or {})
        except Exception as exc:
            logger.exception(f"{method} failed")
            if msg_id is None:
                return None
            return _reply_error(msg_id, INTERNAL_ERROR, str(exc))

        return None if msg_id is None else _reply(msg_id, result)

    async def run_stdio(self) -> None:
        """Serve newline-delimited JSON-RPC on stdin/stdout until EOF."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        transport, protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        writer = asyncio.StreamWriter(transport, protocol, reader, loop)
        write_lock = asyncio.Lock()
        in_flight: set[asyncio.Task] = set()

        async def serve(message: dict[str, Any]) -> None:
            reply = await self.handle_message(message)
            if reply is None:
                return
            async with write_lock:
                writer.write(json.dumps(reply).encode("utf-8") + b"\n")
                await writer.drain()

        logger.info(f"{self.config.name} {self.config.version} listening on stdio")
        while line := await reader.readline():
            try:
                message = json.loads(line)
            except ValueError:
                logger.warning("Ignoring malformed JSON-RPC line")
                continue
            if not isinstance(message, dict):
                continue

            # One slow compile must not hold up unrelated requests.
            task = asyncio.create_task(serve(message))
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)

        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)

    async def run(self) -> None:
        if self.config.transport != "stdio":
            raise NotImplementedError(f"Unsupported transport: {self.config.transport}")
        await self.run_stdio()


def create_server(
    config: ServerConfig | None = None, engine=None, config_manager=None
) -> PolyglotServer:
    """Build a server; the engine is created lazily when not given."""
    return PolyglotServer(config, engine=engine, config_manager=config_manager)


async def main():
    """Entry point for ``python -m polyglot_code.mcp.server``."""
    from ...core.config import ConfigManager
    from ...core.logging import setup_logging

    config_manager = ConfigManager()
    project_config = config_manager.config
    setup_logging(project_config.logging.level)
    await create_server(project_config.server, config_manager=config_manager).run()


if __name__ == "__main__":
    asyncio.run(main())
