"""
Logging setup for Polyglot Code.

Everything logs to stderr: stdout is reserved for program output and the
MCP stdio transport.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGER = "polyglot_code"
_configured = False


def setup_logging(level: str | int = "WARNING", verbose: bool = False) -> logging.Logger:
    """
    Install a Rich handler on the package logger.

    Args:
        level: Logging level name or number
        verbose: Force DEBUG level and show source paths

    Returns:
        The configured package logger
    """
    global _configured

    logger = logging.getLogger(_ROOT_LOGGER)
    resolved = logging.DEBUG if verbose else _resolve_level(level)
    logger.setLevel(resolved)

    if not _configured:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=verbose,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the package namespace."""
    return logging.getLogger(name)


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.WARNING
