"""
Workspace allocation and process supervision for code execution.
"""

from .supervisor import ProcessOutcome, ProcessSupervisor, build_environment
from .workspace import Workspace, WorkspaceManager

__all__ = [
    "ProcessOutcome",
    "ProcessSupervisor",
    "Workspace",
    "WorkspaceManager",
    "build_environment",
]
