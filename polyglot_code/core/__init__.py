"""
Core functionality for Polyglot Code.
"""

from .config import (
    ConfigManager,
    LanguageOverride,
    LoggingConfig,
    ProjectConfig,
    SandboxConfig,
    ServerConfig,
)
from .exceptions import (
    CleanupError,
    CompilationError,
    ConfigurationError,
    ExecutionError,
    ExecutionTimeoutError,
    PolyglotCodeError,
    RuntimeExecutionError,
    ToolchainNotFoundError,
    UnsupportedLanguageError,
    WorkspaceError,
)
from .logging import get_logger, setup_logging

__all__ = [
    "CleanupError",
    "CompilationError",
    "ConfigManager",
    "ConfigurationError",
    "ExecutionError",
    "ExecutionTimeoutError",
    "LanguageOverride",
    "LoggingConfig",
    "PolyglotCodeError",
    "ProjectConfig",
    "RuntimeExecutionError",
    "SandboxConfig",
    "ServerConfig",
    "ToolchainNotFoundError",
    "UnsupportedLanguageError",
    "WorkspaceError",
    "get_logger",
    "setup_logging",
]
