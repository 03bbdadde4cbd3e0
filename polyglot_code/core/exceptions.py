"""
Custom exceptions for Polyglot Code.

Provides specific exception types for better error handling and user feedback.
"""


class PolyglotCodeError(Exception):
    """Base exception for Polyglot Code errors."""


class ConfigurationError(PolyglotCodeError):
    """Error in configuration, toolchain setup or the host environment."""


class UnsupportedLanguageError(ConfigurationError):
    """Requested language has no runner specification."""

    def __init__(self, language: str, supported: list[str] | None = None):
        supported_text = ", ".join(supported or [])
        message = f"Unsupported language '{language}'"
        if supported_text:
            message += f". Supported: {supported_text}"
        super().__init__(message)
        self.language = language
        self.user_message = f"Language '{language}' is not supported."
        self.recovery_hint = "Run 'polyglot-code languages' to see available languages."


class ToolchainNotFoundError(ConfigurationError):
    """A compiler or interpreter required by a language is not installed."""

    def __init__(self, executable: str, language: str | None = None):
        suffix = f" for {language}" if language else ""
        super().__init__(f"Required toolchain not installed{suffix}: {executable}")
        self.executable = executable
        self.language = language
        self.user_message = f"'{executable}' was not found on PATH."
        self.recovery_hint = "Install the toolchain or run 'polyglot-code doctor'."


class WorkspaceError(ConfigurationError):
    """Per-request workspace could not be created or written."""

    def __init__(self, message: str):
        super().__init__(f"Workspace error: {message}")
        self.user_message = "Could not prepare a temporary workspace."
        self.recovery_hint = "Check that sandbox.temp_root exists and is writable."


# Execution Errors


class ExecutionError(PolyglotCodeError):
    """Base exception for execution errors."""


class CompilationError(ExecutionError):
    """Compiler exited non-zero."""

    def __init__(self, diagnostic: str):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.user_message = "The program failed to compile."
        self.recovery_hint = "Fix the reported compiler diagnostics and try again."


class RuntimeExecutionError(ExecutionError):
    """Program exited non-zero."""

    def __init__(self, diagnostic: str, exit_code: int | None = None):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.exit_code = exit_code
        self.user_message = "The program exited with an error."
        self.recovery_hint = "Check the error output for the failing line."


class ExecutionTimeoutError(ExecutionError):
    """A compile or run phase exceeded its time limit."""

    def __init__(self, phase: str, timeout: float):
        super().__init__(f"{phase} exceeded {timeout:g}s timeout")
        self.phase = phase
        self.timeout = timeout
        self.user_message = f"The {phase} phase took longer than {timeout:g} seconds."
        self.recovery_hint = (
            f"Raise languages.<id>.{phase}_timeout_seconds in polyglot_config.yaml."
        )


class CleanupError(PolyglotCodeError):
    """Temporary path could not be removed. Logged, never surfaced."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to remove {path}: {reason}")
        self.path = path


def format_error_message(error: Exception) -> str:
    """
    Format an error message for display to user.

    Args:
        error: Exception to format

    Returns:
        Formatted error message with recovery hints
    """
    if isinstance(error, PolyglotCodeError) and hasattr(error, "user_message"):
        message = f"{error.user_message}\n{error}"
        if hasattr(error, "recovery_hint"):
            message += f"\n\nHint: {error.recovery_hint}"
        return message
    return str(error)
