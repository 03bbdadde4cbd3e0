"""
Toolchain availability checks for registered languages.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass

from .registry import LanguageRegistry
from .spec import RunnerSpec


@dataclass(slots=True)
class ToolchainHealth:
    """Availability information for one language's toolchain."""

    language: str
    available: bool
    detail: str
    missing: list[str]


def required_executables(spec: RunnerSpec, python: str) -> list[str]:
    """
    Executables a spec invokes, in phase order, without duplicates.

    Commands whose first token is a build artifact (``{binary}``) are produced
    by the compile phase and are not looked up.
    """
    executables: list[str] = []
    for command in (spec.compile_command, spec.run_command):
        if not command:
            continue
        head = command[0]
        if head == "{python}":
            head = python
        elif "{" in head:
            continue
        if head not in executables:
            executables.append(head)
    return executables


def check_toolchain(spec: RunnerSpec, python: str) -> ToolchainHealth:
    """Return whether every executable needed by ``spec`` is on PATH."""
    executables = required_executables(spec, python)
    missing = [name for name in executables if shutil.which(name) is None]
    if missing:
        return ToolchainHealth(
            language=spec.id,
            available=False,
            detail=f"missing: {', '.join(missing)}",
            missing=missing,
        )
    return ToolchainHealth(
        language=spec.id,
        available=True,
        detail=", ".join(executables) or "no external tools",
        missing=[],
    )


def detect_toolchains(registry: LanguageRegistry, python: str) -> dict[str, ToolchainHealth]:
    """Probe toolchain availability for every registered language."""
    return {spec.id: check_toolchain(spec, python) for spec in registry}
