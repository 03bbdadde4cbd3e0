"""Tests for the execution engine.

Only the running Python interpreter is required; a py_compile-based
language (see conftest) stands in for compiled toolchains.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import pytest

from polyglot_code.core.exceptions import (
    CompilationError,
    ExecutionTimeoutError,
    RuntimeExecutionError,
    ToolchainNotFoundError,
    UnsupportedLanguageError,
    WorkspaceError,
)
from polyglot_code.execution import (
    ExecutionEngine,
    ExecutionRequest,
    ExecutionStatus,
    RunnerState,
)
from polyglot_code.languages import BUILTIN_SPECS, LanguageRegistry
from polyglot_code.sandbox import WorkspaceManager


def _engine_with(project_config, *specs):
    return ExecutionEngine(config=project_config, registry=LanguageRegistry(specs))


def test_interpreted_success(engine, temp_root, hello_python):
    result = engine.execute("python", hello_python)

    assert result.success
    assert result.status is ExecutionStatus.SUCCESS
    assert result.text == "Hello from Python!"
    assert result.language == "python"
    assert result.states == (
        RunnerState.IDLE,
        RunnerState.SOURCE_WRITTEN,
        RunnerState.RAN,
        RunnerState.CLEANED,
        RunnerState.SUCCEEDED,
    )
    assert list(temp_root.iterdir()) == []


def test_alias_resolves_to_language(engine):
    result = engine.execute("PY", "print(2 + 2)")
    assert result.text == "4"
    assert result.language == "python"


def test_output_is_trimmed(engine):
    result = engine.execute("python", "print('   padded   ')\nprint()\nprint()")
    assert result.text == "padded"


def test_stderr_used_when_stdout_empty(engine):
    result = engine.execute("python", "import sys; print('only stderr', file=sys.stderr)")
    assert result.success
    assert result.text == "only stderr"


def test_no_output(engine):
    result = engine.execute("python", "x = 1")
    assert result.success
    assert result.text == "No output"


def test_compiled_success(engine, temp_root):
    result = engine.execute("pycompiled", "print('compiled ok')")

    assert result.success
    assert result.text == "compiled ok"
    assert result.states == (
        RunnerState.IDLE,
        RunnerState.SOURCE_WRITTEN,
        RunnerState.COMPILED,
        RunnerState.RAN,
        RunnerState.CLEANED,
        RunnerState.SUCCEEDED,
    )
    assert list(temp_root.iterdir()) == []


def test_compile_error_skips_run(engine, temp_root):
    result = engine.execute("pycompiled", "def broken(:\n    pass")

    assert result.status is ExecutionStatus.COMPILE_ERROR
    assert result.text.startswith("Compilation error: ")
    assert "SyntaxError" in result.text
    assert isinstance(result.error, CompilationError)
    assert RunnerState.COMPILED not in result.states
    assert RunnerState.RAN not in result.states
    assert result.states[-2:] == (RunnerState.CLEANED, RunnerState.COMPILE_FAILED)
    assert list(temp_root.iterdir()) == []


def test_runtime_error(engine, temp_root):
    result = engine.execute("python", "raise ValueError('boom')")

    assert result.status is ExecutionStatus.RUNTIME_ERROR
    assert result.text.startswith("Execution error: ")
    assert "ValueError: boom" in result.text
    assert isinstance(result.error, RuntimeExecutionError)
    assert result.error.exit_code == 1
    assert result.states[-3:] == (RunnerState.RAN, RunnerState.CLEANED, RunnerState.RUN_FAILED)
    assert list(temp_root.iterdir()) == []


def test_runtime_error_after_output_prefers_stderr(engine):
    result = engine.execute("python", "print('partial')\nraise SystemExit('fatal')")
    assert result.text == "Execution error: fatal"


def test_run_timeout(project_config, temp_root):
    python = next(spec for spec in BUILTIN_SPECS if spec.id == "python")
    engine = _engine_with(project_config, replace(python, run_timeout=1.0))

    result = engine.execute("python", "while True:\n    pass")

    assert result.status is ExecutionStatus.RUNTIME_ERROR
    assert result.text.startswith("Execution error: Execution timed out after 1 seconds")
    assert isinstance(result.error, ExecutionTimeoutError)
    assert result.error.phase == "run"
    assert result.duration_seconds < 10
    assert list(temp_root.iterdir()) == []


def test_compile_timeout(project_config, temp_root, compiled_python):
    slow_compiler = replace(
        compiled_python,
        compile_command=("{python}", "-c", "import time; time.sleep(30)"),
        compile_timeout=0.5,
    )
    engine = _engine_with(project_config, slow_compiler)

    result = engine.execute("pycompiled", "print('never runs')")

    assert result.status is ExecutionStatus.COMPILE_ERROR
    assert result.text == "Compilation error: Compilation timed out after 0.5 seconds"
    assert RunnerState.RAN not in result.states
    assert list(temp_root.iterdir()) == []


def test_unknown_language(engine, temp_root):
    result = engine.execute("cobol", "DISPLAY 'HI'.")

    assert result.status is ExecutionStatus.CONFIGURATION_ERROR
    assert result.text.startswith("Configuration error: Unsupported language 'cobol'")
    assert isinstance(result.error, UnsupportedLanguageError)
    assert result.states == (RunnerState.IDLE, RunnerState.CONFIG_FAILED)
    assert list(temp_root.iterdir()) == []


def test_missing_toolchain(project_config, temp_root, compiled_python):
    missing = replace(
        compiled_python,
        id="missing",
        compile_command=("definitely-not-a-real-compiler-xyz", "{source}"),
    )
    engine = _engine_with(project_config, missing)

    result = engine.execute("missing", "print(1)")

    assert result.status is ExecutionStatus.CONFIGURATION_ERROR
    assert result.text.startswith("Configuration error: Required toolchain not installed")
    assert "definitely-not-a-real-compiler-xyz" in result.text
    assert isinstance(result.error, ToolchainNotFoundError)
    assert result.states[-2:] == (RunnerState.CLEANED, RunnerState.CONFIG_FAILED)
    assert list(temp_root.iterdir()) == []


def test_workspace_failure(project_config, registry, tmp_path):
    engine = ExecutionEngine(
        config=project_config,
        registry=registry,
        workspace_manager=WorkspaceManager(temp_root=tmp_path / "missing-root"),
    )

    result = engine.execute("python", "print(1)")

    assert result.status is ExecutionStatus.CONFIGURATION_ERROR
    assert result.text.startswith("Configuration error: Workspace error: ")
    assert isinstance(result.error, WorkspaceError)
    assert result.states == (RunnerState.IDLE, RunnerState.CLEANED, RunnerState.CONFIG_FAILED)


def test_unexpected_supervisor_failure_is_contained(project_config, registry, temp_root):
    class ExplodingSupervisor:
        def run(self, *args, **kwargs):
            raise RuntimeError("kaboom")

    engine = ExecutionEngine(
        config=project_config, registry=registry, supervisor=ExplodingSupervisor()
    )

    result = engine.execute("python", "print(1)")

    assert result.status is ExecutionStatus.CONFIGURATION_ERROR
    assert result.text == "Configuration error: kaboom"
    assert list(temp_root.iterdir()) == []


def test_program_sees_workspace_as_cwd(engine, temp_root):
    result = engine.execute("python", "import os; print(os.getcwd())")
    assert result.text.startswith(str(temp_root.resolve())) or result.text.startswith(
        str(temp_root)
    )
    assert "polyglot_python_" in result.text


def test_environment_is_filtered(engine, monkeypatch):
    monkeypatch.setenv("POLYGLOT_SECRET_FOR_TEST", "hunter2")
    result = engine.execute(
        "python", "import os; print(os.environ.get('POLYGLOT_SECRET_FOR_TEST', 'absent'))"
    )
    assert result.text == "absent"


def test_inherit_env(project_config, registry, monkeypatch):
    monkeypatch.setenv("POLYGLOT_SECRET_FOR_TEST", "hunter2")
    project_config.sandbox.inherit_env = True
    engine = ExecutionEngine(config=project_config, registry=registry)
    result = engine.execute(
        "python", "import os; print(os.environ.get('POLYGLOT_SECRET_FOR_TEST', 'absent'))"
    )
    assert result.text == "hunter2"


def test_idempotent_repeated_execution(engine, temp_root):
    source = "print(sum(range(10)))"
    first = engine.execute("python", source)
    second = engine.execute("python", source)

    assert first.status is second.status is ExecutionStatus.SUCCESS
    assert first.text == second.text == "45"
    assert list(temp_root.iterdir()) == []


def test_concurrent_requests_are_isolated(engine, temp_root):
    def run(index: int) -> str:
        source = f"import time\ntime.sleep(0.2)\nprint('request-{index}')"
        return engine.execute("pycompiled", source).text

    with ThreadPoolExecutor(max_workers=8) as pool:
        outputs = list(pool.map(run, range(8)))

    assert outputs == [f"request-{index}" for index in range(8)]
    assert list(temp_root.iterdir()) == []


def test_execute_request_and_text(engine):
    result = engine.execute_request(ExecutionRequest(language="python", source="print('req')"))
    assert result.text == "req"
    assert engine.execute_text("python", "print('boundary')") == {"text": "boundary"}


def test_result_to_dict(engine):
    data = engine.execute("python", "print('x')").to_dict()
    assert data["text"] == "x"
    assert data["status"] == "success"
    assert data["language"] == "python"
    assert data["duration_seconds"] >= 0


def test_result_bool(engine):
    assert engine.execute("python", "print(1)")
    assert not engine.execute("python", "raise SystemExit(2)")


def test_config_overrides_reach_engine(project_config):
    from polyglot_code.core.config import LanguageOverride

    project_config.languages["python"] = LanguageOverride(run_timeout_seconds=1.5)
    engine = ExecutionEngine(config=project_config)
    assert engine.registry.spec_for("python").run_timeout == 1.5


@pytest.mark.parametrize("language", ["python", "pycompiled"])
def test_unicode_round_trip(engine, language):
    result = engine.execute(language, "print('héllo wörld ✓')")
    assert result.text == "héllo wörld ✓"
