"""
Execution tracing for verbose runs.

When enabled, collects how long each language's compile and run phases take
and keeps a bounded trail of MCP tool calls. ``polyglot-code --verbose run``
prints the collected timings as a table on stderr.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from rich.table import Table

from .logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class PhaseTiming:
    """Durations observed for one (language, phase) pair."""

    samples: list[float] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.samples)

    @property
    def mean(self) -> float:
        return sum(self.samples) / len(self.samples) if self.samples else 0.0

    @property
    def fastest(self) -> float:
        return min(self.samples, default=0.0)

    @property
    def slowest(self) -> float:
        return max(self.samples, default=0.0)


@dataclass
class DebugLoggerConfig:
    """What the tracer records once enabled."""

    enabled: bool = False
    record_phases: bool = True
    record_tool_calls: bool = True
    max_tool_calls: int = 500
    preview_chars: int = 200


class DebugLogger:
    """
    Process-wide tracer shared by the engine and the MCP server.

    Engine calls run on worker threads, so every mutation happens under a lock.
    """

    _instance: DebugLogger | None = None
    _instance_lock = threading.Lock()

    def __init__(self, config: DebugLoggerConfig | None = None):
        self.config = config or DebugLoggerConfig()
        self._phases: dict[tuple[str, str], PhaseTiming] = {}
        self._tool_calls: deque[dict[str, Any]] = deque(maxlen=self.config.max_tool_calls)
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> DebugLogger:
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def configure(cls, config: DebugLoggerConfig) -> DebugLogger:
        """Replace the shared tracer; engines created afterwards pick it up."""
        with cls._instance_lock:
            cls._instance = cls(config)
            return cls._instance

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @contextmanager
    def timed_phase(self, language: str, phase: str) -> Iterator[None]:
        """Time one compile or run phase, including phases that fail or raise."""
        if not (self.config.enabled and self.config.record_phases):
            yield
            return

        started = time.monotonic()
        try:
            yield
        finally:
            elapsed = time.monotonic() - started
            with self._lock:
                self._phases.setdefault((language, phase), PhaseTiming()).samples.append(elapsed)
            logger.debug(f"{phase} {language}: {elapsed:.3f}s")

    def trace_tool_call(self, direction: str, tool: str, payload: Any = None) -> None:
        """
        Record one tool call crossing the MCP boundary.

        Args:
            direction: "recv" for requests, "send" for results
            tool: Tool name, e.g. ``execute_python``
            payload: Arguments or result; stored as a truncated preview
        """
        if not (self.config.enabled and self.config.record_tool_calls):
            return

        preview = None
        if payload is not None:
            preview = str(payload)[: self.config.preview_chars]
        with self._lock:
            self._tool_calls.append(
                {"direction": direction, "tool": tool, "payload": preview, "at": time.time()}
            )
        logger.debug(f"mcp {direction} {tool}")

    def phase_stats(self) -> dict[str, dict[str, float]]:
        """Timings keyed ``"<phase>:<language>"``."""
        with self._lock:
            return {
                f"{phase}:{language}": {
                    "count": timing.count,
                    "mean": timing.mean,
                    "fastest": timing.fastest,
                    "slowest": timing.slowest,
                }
                for (language, phase), timing in self._phases.items()
            }

    def tool_calls(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._tool_calls)

    def reset(self) -> None:
        with self._lock:
            self._phases.clear()
            self._tool_calls.clear()

    def render(self) -> Table:
        """Phase timings as a rich table."""
        table = Table(title="Phase timings")
        table.add_column("Phase")
        table.add_column("Count", justify="right")
        table.add_column("Mean (s)", justify="right")
        table.add_column("Slowest (s)", justify="right")
        for name, stats in sorted(self.phase_stats().items()):
            table.add_row(
                name,
                str(stats["count"]),
                f"{stats['mean']:.3f}",
                f"{stats['slowest']:.3f}",
            )
        return table
