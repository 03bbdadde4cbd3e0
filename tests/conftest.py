"""
Pytest configuration and fixtures for Polyglot Code tests.
"""

import os
from pathlib import Path

import pytest
from hypothesis import Verbosity, settings

from polyglot_code.core.config import ProjectConfig
from polyglot_code.execution import ExecutionEngine
from polyglot_code.languages import BUILTIN_SPECS, LanguageRegistry, RunnerSpec

# Configure hypothesis settings for property-based testing
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


# A compile-then-run language that only needs the running interpreter:
# py_compile exits non-zero on syntax errors, which exercises the compile phase.
COMPILED_PYTHON = RunnerSpec(
    id="pycompiled",
    display_name="Compiled Python",
    source_file_name="main.py",
    compile_command=("{python}", "-m", "py_compile", "{source}"),
    run_command=("{python}", "{source}"),
    artifact_paths=("__pycache__",),
)


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    """Directory that holds every workspace created during a test."""
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def project_config(temp_root: Path) -> ProjectConfig:
    config = ProjectConfig.create_default()
    config.sandbox.temp_root = str(temp_root)
    return config


@pytest.fixture
def registry() -> LanguageRegistry:
    return LanguageRegistry([*BUILTIN_SPECS, COMPILED_PYTHON])


@pytest.fixture
def engine(project_config: ProjectConfig, registry: LanguageRegistry) -> ExecutionEngine:
    return ExecutionEngine(config=project_config, registry=registry)


@pytest.fixture
def hello_python():
    return 'print("Hello from Python!")'


@pytest.fixture
def compiled_python() -> RunnerSpec:
    return COMPILED_PYTHON
