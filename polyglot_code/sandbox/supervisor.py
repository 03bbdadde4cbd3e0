"""
Process supervisor: runs one external command with a wall-clock timeout.
"""

from __future__ import annotations

import os
import signal
import subprocess
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from ..core.exceptions import ToolchainNotFoundError
from ..core.logging import get_logger

logger = get_logger(__name__)

_IS_POSIX = os.name == "posix"


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """Captured result of one supervised process."""

    command: tuple[str, ...]
    stdout: str
    stderr: str
    exit_code: int | None
    timed_out: bool
    timeout: float
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        """True when the process exited 0 within its time limit."""
        return not self.timed_out and self.exit_code == 0

    @property
    def message(self) -> str:
        """One-line description of how the process ended."""
        if self.timed_out:
            return f"Process timed out after {self.timeout:g} seconds"
        if self.exit_code is not None and self.exit_code < 0:
            return f"Process terminated by signal {-self.exit_code}"
        return f"Process exited with code {self.exit_code}"


class ProcessSupervisor:
    """Spawns, times out and reaps a single external process per call."""

    def __init__(self, teardown_timeout: float = 2.0):
        self.teardown_timeout = teardown_timeout

    def run(
        self,
        command: Sequence[str],
        working_dir: Path,
        timeout: float,
        env: dict[str, str] | None = None,
        language: str | None = None,
    ) -> ProcessOutcome:
        """
        Run ``command`` (an argv list, never a shell string) to completion.

        The process is killed, together with its process group on POSIX,
        once ``timeout`` elapses; that is reported as ``timed_out=True``
        rather than raised. Both streams are read to EOF before returning.

        Raises:
            ToolchainNotFoundError: if the executable does not exist.
        """
        argv = [str(token) for token in command]
        logger.debug(f"Running {argv} in {working_dir} (timeout={timeout:g}s)")

        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                argv,
                cwd=str(working_dir),
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=_IS_POSIX,
            )
        except FileNotFoundError as exc:
            raise ToolchainNotFoundError(argv[0] if argv else "", language) from exc

        timed_out = False
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning(f"Process {argv[0]} exceeded {timeout:g}s; killing")
            self._kill(proc)
            stdout, stderr = self._drain(proc)
        except BaseException:
            self._kill(proc)
            self._drain(proc)
            raise
        # The group is only signalled while its leader is still unreaped.

        duration = time.monotonic() - start
        return ProcessOutcome(
            command=tuple(argv),
            stdout=stdout or "",
            stderr=stderr or "",
            exit_code=None if timed_out else proc.returncode,
            timed_out=timed_out,
            timeout=timeout,
            duration_seconds=duration,
        )

    def _drain(self, proc: subprocess.Popen) -> tuple[str, str]:
        try:
            return proc.communicate(timeout=self.teardown_timeout)
        except subprocess.TimeoutExpired:
            # A detached grandchild still holds the pipes open.
            for stream in (proc.stdout, proc.stderr):
                if stream is not None:
                    stream.close()
            proc.kill()
            proc.wait()
            return "", ""

    def _kill(self, proc: subprocess.Popen) -> None:
        self._kill_group(proc)
        try:
            proc.kill()
        except ProcessLookupError:
            pass

    @staticmethod
    def _kill_group(proc: subprocess.Popen) -> None:
        if not _IS_POSIX:
            return
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass


def build_environment(
    workdir: Path,
    *,
    allowlist: Iterable[str] = (),
    inherit: bool = False,
) -> dict[str, str]:
    """
    Environment for a supervised process.

    With ``inherit`` the host environment is passed through. Otherwise only a
    minimal baseline plus allowlisted variables are kept.
    """
    if inherit:
        env = dict(os.environ)
        env["TMPDIR"] = str(workdir)
        return env

    env = {
        "PATH": os.environ.get("PATH", "/usr/local/bin:/usr/bin:/bin"),
        "HOME": os.environ.get("HOME", str(workdir)),
        "TMPDIR": str(workdir),
        "LANG": os.environ.get("LANG", "C.UTF-8"),
        "PYTHONUNBUFFERED": "1",
        "PYTHONIOENCODING": "utf-8",
    }
    for key in allowlist:
        normalized_key = str(key).strip()
        if not normalized_key:
            continue
        value = os.getenv(normalized_key)
        if value is None:
            continue
        env[normalized_key] = value.replace("\n", "").replace("\r", "")
    return env
