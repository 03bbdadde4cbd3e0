"""
Language registry: the static table of runner specifications.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import replace
from typing import Any

from ..core.exceptions import UnsupportedLanguageError
from .spec import RunnerSpec

CSHARP_PROJECT_FILE = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <OutputType>Exe</OutputType>
    <TargetFramework>net8.0</TargetFramework>
    <ImplicitUsings>enable</ImplicitUsings>
    <Nullable>disable</Nullable>
  </PropertyGroup>
</Project>
"""

BUILTIN_SPECS: tuple[RunnerSpec, ...] = (
    # Interpreted
    RunnerSpec(
        id="python",
        display_name="Python",
        source_file_name="main.py",
        run_command=("{python}", "{source}"),
        aliases=("py", "python3"),
    ),
    RunnerSpec(
        id="javascript",
        display_name="JavaScript",
        source_file_name="main.js",
        run_command=("node", "{source}"),
        aliases=("js", "node", "nodejs"),
    ),
    RunnerSpec(
        id="ruby",
        display_name="Ruby",
        source_file_name="main.rb",
        run_command=("ruby", "{source}"),
        aliases=("rb",),
    ),
    RunnerSpec(
        id="php",
        display_name="PHP",
        source_file_name="main.php",
        run_command=("php", "{source}"),
    ),
    RunnerSpec(
        id="bash",
        display_name="Bash",
        source_file_name="main.sh",
        run_command=("bash", "{source}"),
        aliases=("sh", "shell"),
    ),
    RunnerSpec(
        id="perl",
        display_name="Perl",
        source_file_name="main.pl",
        run_command=("perl", "{source}"),
        aliases=("pl",),
    ),
    RunnerSpec(
        id="lua",
        display_name="Lua",
        source_file_name="main.lua",
        run_command=("lua", "{source}"),
    ),
    # Compile, then run
    RunnerSpec(
        id="java",
        display_name="Java",
        source_file_name="Main.java",
        compile_command=("javac", "-d", "{workdir}", "{source}"),
        run_command=("java", "-cp", "{workdir}", "Main"),
        artifact_paths=("Main.class",),
    ),
    RunnerSpec(
        id="cpp",
        display_name="C++",
        source_file_name="main.cpp",
        compile_command=("g++", "{source}", "-o", "{binary}"),
        run_command=("{binary}",),
        artifact_paths=("{binary}",),
        aliases=("c++", "cxx"),
    ),
    RunnerSpec(
        id="go",
        display_name="Go",
        source_file_name="main.go",
        compile_command=("go", "build", "-o", "{binary}", "{source}"),
        run_command=("{binary}",),
        artifact_paths=("{binary}",),
        aliases=("golang",),
    ),
    RunnerSpec(
        id="rust",
        display_name="Rust",
        source_file_name="main.rs",
        compile_command=("rustc", "{source}", "-o", "{binary}"),
        run_command=("{binary}",),
        artifact_paths=("{binary}",),
        aliases=("rs",),
    ),
    RunnerSpec(
        id="csharp",
        display_name="C#",
        source_file_name="Program.cs",
        compile_command=("dotnet", "build", "{workdir}", "-o", "{workdir}/bin", "--nologo"),
        run_command=("dotnet", "{workdir}/bin/Program.dll"),
        compile_timeout=15.0,
        run_timeout=10.0,
        artifact_paths=("bin", "obj"),
        support_files=(("Program.csproj", CSHARP_PROJECT_FILE),),
        aliases=("c#", "cs", "dotnet"),
    ),
    RunnerSpec(
        id="kotlin",
        display_name="Kotlin",
        source_file_name="main.kt",
        compile_command=("kotlinc", "{source}", "-include-runtime", "-d", "{jar}"),
        run_command=("java", "-jar", "{jar}"),
        artifact_paths=("{jar}",),
        aliases=("kt",),
    ),
    RunnerSpec(
        id="scala",
        display_name="Scala",
        source_file_name="main.scala",
        compile_command=("scalac", "-d", "{classes}", "{source}"),
        run_command=("scala", "-classpath", "{classes}", "Main"),
        artifact_paths=("{classes}",),
        support_dirs=("{classes}",),
    ),
    RunnerSpec(
        id="haskell",
        display_name="Haskell",
        source_file_name="main.hs",
        compile_command=("ghc", "{source}", "-outputdir", "{workdir}", "-o", "{binary}"),
        run_command=("{binary}",),
        artifact_paths=("{binary}", "Main.hi", "Main.o"),
        aliases=("hs",),
    ),
    RunnerSpec(
        id="typescript",
        display_name="TypeScript",
        source_file_name="main.ts",
        compile_command=("tsc", "{source}", "--outFile", "{workdir}/main.js"),
        run_command=("node", "{workdir}/main.js"),
        artifact_paths=("main.js",),
        aliases=("ts",),
    ),
)


class LanguageRegistry:
    """Read-only lookup from language id (or alias) to RunnerSpec."""

    def __init__(self, specs: Iterable[RunnerSpec]):
        self._specs: dict[str, RunnerSpec] = {}
        self._aliases: dict[str, str] = {}
        for spec in specs:
            key = _normalize(spec.id)
            if key in self._specs:
                raise ValueError(f"Duplicate language id: {spec.id}")
            self._specs[key] = spec
            for alias in spec.aliases:
                self._aliases[_normalize(alias)] = key

    def spec_for(self, language_id: str) -> RunnerSpec:
        """
        Look up the spec for a language id or alias.

        Raises:
            UnsupportedLanguageError: when the id is unknown.
        """
        key = _normalize(language_id or "")
        key = self._aliases.get(key, key)
        spec = self._specs.get(key)
        if spec is None:
            raise UnsupportedLanguageError(language_id, self.languages())
        return spec

    def __contains__(self, language_id: object) -> bool:
        if not isinstance(language_id, str):
            return False
        key = _normalize(language_id)
        return key in self._specs or key in self._aliases

    def __iter__(self) -> Iterator[RunnerSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def languages(self) -> list[str]:
        """Canonical language ids in registration order."""
        return [spec.id for spec in self._specs.values()]

    def with_overrides(
        self,
        overrides: Mapping[str, Any],
        *,
        default_compile_timeout: float | None = None,
        default_run_timeout: float | None = None,
    ) -> "LanguageRegistry":
        """
        Return a new registry with config overrides applied.

        ``overrides`` maps language ids to objects exposing
        ``compile_timeout_seconds``, ``run_timeout_seconds``,
        ``compile_command`` and ``run_command`` (any may be None).
        Global defaults only replace the built-in 10s/5s defaults, never a
        language's own non-default values.
        """
        updated: dict[str, RunnerSpec] = {key: spec for key, spec in self._specs.items()}

        if default_compile_timeout is not None or default_run_timeout is not None:
            for key, spec in updated.items():
                changes: dict[str, Any] = {}
                if default_compile_timeout is not None and spec.compile_timeout == 10.0:
                    changes["compile_timeout"] = float(default_compile_timeout)
                if default_run_timeout is not None and spec.run_timeout == 5.0:
                    changes["run_timeout"] = float(default_run_timeout)
                if changes:
                    updated[key] = replace(spec, **changes)

        for language_id, override in overrides.items():
            key = self.spec_for(language_id).id
            spec = updated[key]
            changes = {}
            compile_timeout = getattr(override, "compile_timeout_seconds", None)
            run_timeout = getattr(override, "run_timeout_seconds", None)
            compile_command = getattr(override, "compile_command", None)
            run_command = getattr(override, "run_command", None)
            if compile_timeout is not None:
                changes["compile_timeout"] = float(compile_timeout)
            if run_timeout is not None:
                changes["run_timeout"] = float(run_timeout)
            if compile_command is not None:
                changes["compile_command"] = tuple(compile_command) or None
            if run_command is not None:
                changes["run_command"] = tuple(run_command)
            if changes:
                updated[key] = replace(spec, **changes)

        return LanguageRegistry(updated.values())

    @classmethod
    def from_config(cls, config: Any) -> "LanguageRegistry":
        """Build the built-in registry with a ProjectConfig's overrides applied."""
        sandbox = getattr(config, "sandbox", None)
        return default_registry().with_overrides(
            getattr(config, "languages", {}) or {},
            default_compile_timeout=getattr(sandbox, "default_compile_timeout_seconds", None),
            default_run_timeout=getattr(sandbox, "default_run_timeout_seconds", None),
        )


def _normalize(language_id: str) -> str:
    return language_id.strip().lower()


_DEFAULT_REGISTRY: LanguageRegistry | None = None


def default_registry() -> LanguageRegistry:
    """Registry of the built-in languages, constructed once."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = LanguageRegistry(BUILTIN_SPECS)
    return _DEFAULT_REGISTRY
