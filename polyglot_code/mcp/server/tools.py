"""
MCP tool definitions for the Polyglot Code server.

Per-language tools are generated from the language registry, so adding a
RunnerSpec is enough to expose a new ``execute_<language>`` tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...languages.registry import LanguageRegistry
from ...languages.spec import RunnerSpec


@dataclass
class ToolParameter:
    """One argument of a tool, rendered as a JSON-Schema property."""

    name: str
    description: str
    type: str = "string"
    required: bool = False
    enum: list[str] | None = None
    default: Any = None

    def to_property(self) -> dict[str, Any]:
        prop: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            prop["enum"] = list(self.enum)
        if self.default is not None:
            prop["default"] = self.default
        return prop


@dataclass
class ToolDefinition:
    """A tool as advertised by ``tools/list``."""

    name: str
    description: str
    parameters: list[ToolParameter]
    title: str | None = None

    def to_mcp_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": {param.name: param.to_property() for param in self.parameters},
                "required": [param.name for param in self.parameters if param.required],
            },
        }
        if self.title:
            schema["title"] = self.title
        return schema


class PolyglotTools:
    """Collection of tools exposed via MCP."""

    def __init__(self, registry: LanguageRegistry):
        self.registry = registry

    def execute_code(self) -> ToolDefinition:
        """Generic tool taking the language as an argument."""
        return ToolDefinition(
            name="execute_code",
            title="Execute Code",
            description=(
                "Compiles (if needed) and runs a single-file program in the given language "
                "and returns its trimmed output."
            ),
            parameters=[
                ToolParameter(
                    name="language",
                    description="Language id or alias",
                    required=True,
                    enum=self.registry.languages(),
                ),
                ToolParameter(
                    name="code",
                    description="The source code to execute",
                    required=True,
                ),
            ],
        )

    @staticmethod
    def execute_language(spec: RunnerSpec) -> ToolDefinition:
        """Tool bound to one language."""
        if spec.compiled:
            description = (
                f"Compiles and executes given {spec.display_name} code and returns the output."
            )
        else:
            description = f"Executes given {spec.display_name} code and returns the output."
        code_description = f"The {spec.display_name} code to execute"
        if spec.id == "java":
            code_description += " (must declare public class Main with a main method)"
        elif spec.id == "scala":
            code_description += " (must define object Main with a main method)"
        return ToolDefinition(
            name=spec.tool_name,
            title=f"Execute {spec.display_name} Code",
            description=description,
            parameters=[
                ToolParameter(name="code", description=code_description, required=True),
            ],
        )

    @staticmethod
    def list_languages() -> ToolDefinition:
        return ToolDefinition(
            name="list_languages",
            title="List Languages",
            description=(
                "Lists supported languages with their aliases, phases, timeouts and "
                "whether the toolchain is installed."
            ),
            parameters=[],
        )

    @staticmethod
    def echo() -> ToolDefinition:
        return ToolDefinition(
            name="echo",
            title="Echo Tool",
            description="Echos back the input string.",
            parameters=[
                ToolParameter(name="message", description="Message to echo", required=True),
            ],
        )

    def all_tools(self) -> list[ToolDefinition]:
        """Get all available tools."""
        tools = [self.execute_code()]
        tools.extend(self.execute_language(spec) for spec in self.registry)
        tools.extend([self.list_languages(), self.echo()])
        return tools

    def to_mcp_tools(self) -> list[dict[str, Any]]:
        """Get all tools in MCP format."""
        return [tool.to_mcp_schema() for tool in self.all_tools()]
