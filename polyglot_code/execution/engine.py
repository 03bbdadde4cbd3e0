"""
Execution engine for Polyglot Code.

Drives one request through write -> [compile] -> run -> cleanup using the
language registry's declarative runner specs.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..core.config import ProjectConfig
from ..core.debug_logger import DebugLogger
from ..core.exceptions import (
    CompilationError,
    ConfigurationError,
    ExecutionTimeoutError,
    RuntimeExecutionError,
)
from ..core.logging import get_logger
from ..languages.registry import LanguageRegistry
from ..languages.spec import RunnerSpec, expand_command
from ..sandbox.supervisor import ProcessOutcome, ProcessSupervisor, build_environment
from ..sandbox.workspace import Workspace, WorkspaceManager
from .normalizer import (
    ExecutionStatus,
    Phase,
    classify,
    configuration_error_text,
    failure_diagnostic,
)

logger = get_logger(__name__)


class RunnerState(str, Enum):
    """States a request passes through."""

    IDLE = "idle"
    SOURCE_WRITTEN = "source_written"
    COMPILED = "compiled"
    RAN = "ran"
    CLEANED = "cleaned"
    SUCCEEDED = "succeeded"
    COMPILE_FAILED = "compile_failed"
    RUN_FAILED = "run_failed"
    CONFIG_FAILED = "config_failed"


_TERMINAL_STATES = {
    ExecutionStatus.SUCCESS: RunnerState.SUCCEEDED,
    ExecutionStatus.COMPILE_ERROR: RunnerState.COMPILE_FAILED,
    ExecutionStatus.RUNTIME_ERROR: RunnerState.RUN_FAILED,
    ExecutionStatus.CONFIGURATION_ERROR: RunnerState.CONFIG_FAILED,
}


@dataclass
class ExecutionRequest:
    """One (language, source) submission."""

    language: str
    source: str


@dataclass
class ExecutionResult:
    """Result of one execution request."""

    status: ExecutionStatus
    text: str
    language: str | None = None
    states: tuple[RunnerState, ...] = ()
    duration_seconds: float = 0.0
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.status is ExecutionStatus.SUCCESS

    def __bool__(self) -> bool:
        """Allow using as boolean."""
        return self.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "status": self.status.value,
            "language": self.language,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class _PhaseResult:
    status: ExecutionStatus
    text: str
    error: Exception | None = None
    states: list[RunnerState] = field(default_factory=list)


class ExecutionEngine:
    """Runs source code in any registered language."""

    def __init__(
        self,
        config_manager=None,
        *,
        config: ProjectConfig | None = None,
        registry: LanguageRegistry | None = None,
        supervisor: ProcessSupervisor | None = None,
        workspace_manager: WorkspaceManager | None = None,
    ):
        """
        Initialize execution engine.

        Args:
            config_manager: Optional configuration manager
            config: Explicit configuration; takes precedence over config_manager
            registry: Language registry; built from config overrides by default
            supervisor: Process supervisor
            workspace_manager: Workspace manager rooted at sandbox.temp_root
        """
        self.config_manager = config_manager
        if config is None:
            config = config_manager.config if config_manager else ProjectConfig.create_default()
        self.config = config
        self.sandbox_config = config.sandbox
        self.registry = registry or LanguageRegistry.from_config(config)
        self.supervisor = supervisor or ProcessSupervisor()
        self.workspaces = workspace_manager or WorkspaceManager(
            temp_root=self.sandbox_config.resolve_temp_root(),
            python=self.sandbox_config.resolve_python(),
        )
        self.debug = DebugLogger.get_instance()

    def execute(self, language: str, source: str) -> ExecutionResult:
        """
        Execute ``source`` as a program in ``language``.

        Never raises: every failure is returned as a classified result, and
        the request's workspace is always removed before returning.
        """
        start = time.monotonic()
        states = [RunnerState.IDLE]

        try:
            spec = self.registry.spec_for(language)
        except ConfigurationError as exc:
            logger.warning(str(exc))
            states.append(RunnerState.CONFIG_FAILED)
            return ExecutionResult(
                status=ExecutionStatus.CONFIGURATION_ERROR,
                text=configuration_error_text(exc),
                language=language,
                states=tuple(states),
                duration_seconds=time.monotonic() - start,
                error=exc,
            )

        workspace: Workspace | None = None
        try:
            workspace = self.workspaces.allocate(spec)
            self.workspaces.write_source(workspace, spec, source)
            states.append(RunnerState.SOURCE_WRITTEN)
            phase = self._compile_and_run(spec, workspace)
        except ConfigurationError as exc:
            logger.warning(f"{spec.id}: {exc}")
            phase = _PhaseResult(
                status=ExecutionStatus.CONFIGURATION_ERROR,
                text=configuration_error_text(exc),
                error=exc,
            )
        except Exception as exc:
            logger.exception(f"Unexpected failure executing {spec.id} code")
            phase = _PhaseResult(
                status=ExecutionStatus.CONFIGURATION_ERROR,
                text=configuration_error_text(exc),
                error=exc,
            )
        finally:
            if workspace is not None:
                self.workspaces.release(workspace)

        states.extend(phase.states)
        states.append(RunnerState.CLEANED)
        states.append(_TERMINAL_STATES[phase.status])

        duration = time.monotonic() - start
        logger.debug(f"{spec.id} finished: status={phase.status.value}, time={duration:.2f}s")
        return ExecutionResult(
            status=phase.status,
            text=phase.text,
            language=spec.id,
            states=tuple(states),
            duration_seconds=duration,
            error=phase.error,
        )

    def execute_request(self, request: ExecutionRequest) -> ExecutionResult:
        return self.execute(request.language, request.source)

    def execute_text(self, language: str, source: str) -> dict[str, str]:
        """Boundary shape consumed by protocol hosts: ``{"text": ...}``."""
        return {"text": self.execute(language, source).text}

    def _compile_and_run(self, spec: RunnerSpec, workspace: Workspace) -> _PhaseResult:
        env = build_environment(
            workspace.root,
            allowlist=self.sandbox_config.env_allowlist,
            inherit=self.sandbox_config.inherit_env,
        )
        states: list[RunnerState] = []

        if spec.compile_command is not None:
            command = expand_command(spec.compile_command, workspace.context)
            with self.debug.timed_phase(spec.id, Phase.COMPILE.value):
                outcome = self.supervisor.run(
                    command, workspace.root, spec.compile_timeout, env=env, language=spec.id
                )
            if not outcome.ok:
                return self._failed(outcome, Phase.COMPILE, states)
            states.append(RunnerState.COMPILED)

        command = expand_command(spec.run_command, workspace.context)
        with self.debug.timed_phase(spec.id, Phase.RUN.value):
            outcome = self.supervisor.run(
                command, workspace.root, spec.run_timeout, env=env, language=spec.id
            )
        states.append(RunnerState.RAN)
        if not outcome.ok:
            return self._failed(outcome, Phase.RUN, states)

        status, text = classify(outcome, Phase.RUN)
        return _PhaseResult(status=status, text=text, states=states)

    @staticmethod
    def _failed(outcome: ProcessOutcome, phase: Phase, states: list[RunnerState]) -> _PhaseResult:
        status, text = classify(outcome, phase)
        diagnostic = failure_diagnostic(outcome, phase)
        error: Exception
        if outcome.timed_out:
            error = ExecutionTimeoutError(phase.value, outcome.timeout)
        elif phase is Phase.COMPILE:
            error = CompilationError(diagnostic)
        else:
            error = RuntimeExecutionError(diagnostic, exit_code=outcome.exit_code)
        logger.debug(f"{phase.value} failed: {outcome.message}")
        return _PhaseResult(status=status, text=text, error=error, states=states)
