"""
Runner specifications: declarative descriptions of how to build and run one language.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

BINARY_NAME = "main"
JAR_NAME = "main.jar"
CLASSES_DIR = "classes"


@dataclass(frozen=True, slots=True)
class RunnerSpec:
    """Immutable compile/run recipe for a single language."""

    id: str
    display_name: str
    source_file_name: str
    run_command: tuple[str, ...]
    compile_command: tuple[str, ...] | None = None
    compile_timeout: float = 10.0
    run_timeout: float = 5.0
    artifact_paths: tuple[str, ...] = ()
    support_files: tuple[tuple[str, str], ...] = ()
    support_dirs: tuple[str, ...] = ()
    aliases: tuple[str, ...] = field(default=())

    @property
    def compiled(self) -> bool:
        """Whether the language has a compile phase."""
        return self.compile_command is not None

    @property
    def tool_name(self) -> str:
        """Name of the per-language MCP tool."""
        return f"execute_{self.id}"


@dataclass(frozen=True, slots=True)
class TemplateContext:
    """Concrete values substituted into command and path templates."""

    workdir: Path
    source: Path
    python: str

    def mapping(self) -> dict[str, str]:
        return {
            "{python}": self.python,
            "{workdir}": str(self.workdir),
            "{source}": str(self.source),
            "{source_name}": self.source.name,
            "{stem}": self.source.stem,
            "{binary}": str(self.workdir / BINARY_NAME),
            "{jar}": str(self.workdir / JAR_NAME),
            "{classes}": str(self.workdir / CLASSES_DIR),
        }


def expand_token(token: str, context: TemplateContext) -> str:
    """Expand every placeholder in one template token."""
    expanded = str(token)
    for key, value in context.mapping().items():
        expanded = expanded.replace(key, value)
    return expanded


def expand_command(template: tuple[str, ...], context: TemplateContext) -> list[str]:
    """
    Expand a command template into an argv list.

    Each template token maps to exactly one argument, so paths containing
    spaces never split and nothing is interpreted by a shell.
    """
    return [expand_token(token, context) for token in template]


def expand_path(template: str, context: TemplateContext) -> Path:
    """Expand a path template; relative results are anchored at the workdir."""
    path = Path(expand_token(template, context))
    if not path.is_absolute():
        path = context.workdir / path
    return path
