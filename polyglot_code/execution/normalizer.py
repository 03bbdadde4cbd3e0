"""
Result normalization: picks the text returned to the caller.
"""

from enum import Enum

from ..sandbox.supervisor import ProcessOutcome

COMPILE_ERROR_PREFIX = "Compilation error: "
EXECUTION_ERROR_PREFIX = "Execution error: "
CONFIGURATION_ERROR_PREFIX = "Configuration error: "
NO_OUTPUT = "No output"


class ExecutionStatus(str, Enum):
    """Outcome classification of one execution request."""

    SUCCESS = "success"
    COMPILE_ERROR = "compile_error"
    RUNTIME_ERROR = "runtime_error"
    CONFIGURATION_ERROR = "configuration_error"


class Phase(str, Enum):
    COMPILE = "compile"
    RUN = "run"


def success_text(outcome: ProcessOutcome) -> str:
    """Trimmed stdout, else trimmed stderr, else ``"No output"``."""
    return outcome.stdout.strip() or outcome.stderr.strip() or NO_OUTPUT


def failure_diagnostic(outcome: ProcessOutcome, phase: Phase) -> str:
    """
    Diagnostic text for a failed phase.

    stderr wins over stdout because it carries compiler and runtime errors;
    stdout is used for tools that report there (tsc). A timeout always leads
    with the timeout message.
    """
    if outcome.timed_out:
        label = "Compilation" if phase is Phase.COMPILE else "Execution"
        message = f"{label} timed out after {outcome.timeout:g} seconds"
        partial = outcome.stderr.strip()
        return f"{message}\n{partial}" if partial else message
    return outcome.stderr.strip() or outcome.stdout.strip() or outcome.message


def classify(outcome: ProcessOutcome, phase: Phase) -> tuple[ExecutionStatus, str]:
    """Map a finished phase to a status and caller-facing text."""
    if outcome.ok:
        return ExecutionStatus.SUCCESS, success_text(outcome)
    diagnostic = failure_diagnostic(outcome, phase)
    if phase is Phase.COMPILE:
        return ExecutionStatus.COMPILE_ERROR, COMPILE_ERROR_PREFIX + diagnostic
    return ExecutionStatus.RUNTIME_ERROR, EXECUTION_ERROR_PREFIX + diagnostic


def configuration_error_text(error: Exception) -> str:
    return CONFIGURATION_ERROR_PREFIX + str(error)
