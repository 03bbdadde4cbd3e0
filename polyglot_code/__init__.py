"""
Polyglot Code: an ephemeral compile-and-run engine for single-file programs,
exposed over the Model Context Protocol.
"""

from .execution import ExecutionEngine, ExecutionResult, ExecutionStatus
from .languages import LanguageRegistry, RunnerSpec, default_registry

__version__ = "1.0.0"

__all__ = [
    "ExecutionEngine",
    "ExecutionResult",
    "ExecutionStatus",
    "LanguageRegistry",
    "RunnerSpec",
    "__version__",
    "default_registry",
]
