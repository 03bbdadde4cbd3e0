"""
Per-request workspaces.

Every execution gets a freshly created, randomly named directory under the
temp root. All paths for the request (source, support files, artifacts) are
derived from it, so concurrent requests for the same language never touch the
same filesystem object.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from ..core.exceptions import CleanupError, WorkspaceError
from ..core.logging import get_logger
from ..languages.spec import RunnerSpec, TemplateContext, expand_path

logger = get_logger(__name__)


@dataclass(slots=True)
class Workspace:
    """File-system reservation for one execution request."""

    language: str
    root: Path
    source_path: Path
    artifact_paths: tuple[Path, ...]
    context: TemplateContext
    released: bool = False


class WorkspaceManager:
    """Allocates and releases per-request workspaces."""

    def __init__(self, temp_root: Path | None = None, python: str | None = None):
        self.temp_root = Path(temp_root) if temp_root else Path(tempfile.gettempdir())
        self.python = python or "python3"

    def allocate(self, spec: RunnerSpec) -> Workspace:
        """
        Create a unique directory for one request and compute its paths.

        Raises:
            WorkspaceError: if the directory cannot be created.
        """
        try:
            root = Path(tempfile.mkdtemp(prefix=f"polyglot_{spec.id}_", dir=self.temp_root))
        except OSError as exc:
            raise WorkspaceError(f"cannot create directory under {self.temp_root}: {exc}") from exc

        source_path = root / spec.source_file_name
        context = TemplateContext(workdir=root, source=source_path, python=self.python)
        artifacts = tuple(expand_path(template, context) for template in spec.artifact_paths)
        logger.debug(f"Allocated workspace {root} for {spec.id}")
        return Workspace(
            language=spec.id,
            root=root,
            source_path=source_path,
            artifact_paths=artifacts,
            context=context,
        )

    def write_source(self, workspace: Workspace, spec: RunnerSpec, source: str) -> None:
        """
        Write the program source plus any support files and directories.

        Raises:
            WorkspaceError: on any file-system failure.
        """
        try:
            for template in spec.support_dirs:
                expand_path(template, workspace.context).mkdir(parents=True, exist_ok=True)
            for template, content in spec.support_files:
                path = expand_path(template, workspace.context)
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            workspace.source_path.write_text(source, encoding="utf-8")
        except OSError as exc:
            raise WorkspaceError(f"cannot write {workspace.source_path.name}: {exc}") from exc

    def release(self, workspace: Workspace) -> None:
        """
        Remove artifacts, the source file and the workspace directory.

        Idempotent and never raises: paths that were never created are
        skipped, and removal failures are logged as CleanupError.
        """
        if workspace.released:
            return
        workspace.released = True

        for path in (*workspace.artifact_paths, workspace.source_path):
            self._remove(path)
        self._remove(workspace.root)
        logger.debug(f"Released workspace {workspace.root}")

    @contextmanager
    def workspace(self, spec: RunnerSpec) -> Iterator[Workspace]:
        """Allocate a workspace and release it when the block exits."""
        ws = self.allocate(spec)
        try:
            yield ws
        finally:
            self.release(ws)

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
        except FileNotFoundError:
            pass
        except OSError as exc:
            error = CleanupError(str(path), str(exc))
            logger.warning(str(error))
