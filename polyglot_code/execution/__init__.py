"""
Execution engine for Polyglot Code.
"""

from .engine import ExecutionEngine, ExecutionRequest, ExecutionResult, RunnerState
from .normalizer import ExecutionStatus

__all__ = [
    "ExecutionEngine",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionStatus",
    "RunnerState",
]
