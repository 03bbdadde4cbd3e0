"""
MCP Server for Polyglot Code.

Exposes the polyglot execution engine as MCP tools for external clients
like Claude Desktop, VS Code extensions, and other MCP-compatible tools.

Tools provided:
- execute_code: Run code in any supported language
- execute_<language>: One tool per registered language
- list_languages: Supported languages and toolchain availability
- echo: Echo a message back

Usage:
    # Start MCP server
    python -m polyglot_code.mcp.server

    # Or via CLI
    polyglot-code serve
"""

from .server import PolyglotServer, ToolCallResult, create_server
from .tools import PolyglotTools, ToolDefinition, ToolParameter

__all__ = [
    "PolyglotServer",
    "PolyglotTools",
    "ToolCallResult",
    "ToolDefinition",
    "ToolParameter",
    "create_server",
]
