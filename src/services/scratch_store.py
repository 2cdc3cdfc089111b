"""Scratch file store for per-run pipeline artifacts.

All intermediate files of an assembly run live in a single workspace
directory and are named with the run key, so concurrent runs never share a
path. The directory itself is created lazily and reused across runs; only
the files a run created are removed when it finishes.
"""

import logging
import secrets
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from models.artifact import ArtifactKind, PipelineArtifact
from services.errors import ScratchIOError

logger = logging.getLogger(__name__)


def new_run_key() -> str:
    """Millisecond timestamp plus a random suffix for same-millisecond runs."""
    return f"{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class ArtifactScope:
    """Tracks every artifact path handed out during one run.

    Paths are registered when they are allocated, before any producer
    writes to them, so partially written outputs are cleaned up too.
    """

    def __init__(self, store: "ScratchStore", run_key: str):
        self.store = store
        self.run_key = run_key
        self.artifacts: dict[ArtifactKind, PipelineArtifact] = {}

    @property
    def paths(self) -> list[Path]:
        return [artifact.path for artifact in self.artifacts.values()]

    def path_for(self, kind: ArtifactKind) -> Path:
        """Allocate (or return) the workspace path for an artifact kind."""
        if kind not in self.artifacts:
            path = self.store.workspace / kind.filename(self.run_key)
            self.artifacts[kind] = PipelineArtifact(kind=kind, path=path, run_key=self.run_key)
        return self.artifacts[kind].path

    def write(self, kind: ArtifactKind, data: bytes) -> Path:
        path = self.path_for(kind)
        return self.store.write_artifact(path.name, data)

    def read(self, kind: ArtifactKind) -> bytes:
        return self.store.read_artifact(self.path_for(kind))


class ScratchStore:
    """Workspace directory shared by all assembly runs."""

    def __init__(self, workspace: Path | str):
        self.workspace = Path(workspace)

    def ensure_workspace(self) -> Path:
        """Create the workspace directory if it does not exist.

        Raises:
            ScratchIOError: If the directory cannot be created
        """
        try:
            self.workspace.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ScratchIOError(f"Cannot create scratch workspace {self.workspace}: {e}") from e
        return self.workspace

    def write_artifact(self, name: str, data: bytes) -> Path:
        """Write bytes to a new file in the workspace.

        Raises:
            ScratchIOError: If the write fails (disk full, permissions)
        """
        self.ensure_workspace()
        path = self.workspace / name
        try:
            path.write_bytes(data)
        except OSError as e:
            raise ScratchIOError(f"Failed to write artifact {name}: {e}") from e
        logger.debug(f"Wrote artifact {path} ({len(data)} bytes)")
        return path

    def read_artifact(self, path: Path | str) -> bytes:
        """Read a finished artifact back into memory.

        Raises:
            ScratchIOError: If the file is missing or unreadable
        """
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise ScratchIOError(f"Failed to read artifact {Path(path).name}: {e}") from e

    def delete_artifacts(self, paths: Iterable[Path | str]) -> int:
        """Best-effort delete of artifact files.

        Each path is attempted independently. Missing files are skipped and
        other failures are logged, never raised.

        Returns:
            Number of files actually removed
        """
        removed = 0
        for path in paths:
            try:
                Path(path).unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to delete artifact {path}: {e}")
        return removed

    @contextmanager
    def run_scope(self, run_key: str | None = None) -> Iterator[ArtifactScope]:
        """Yield an ArtifactScope whose files are deleted when the block exits."""
        scope = ArtifactScope(self, run_key or new_run_key())
        try:
            yield scope
        finally:
            removed = self.delete_artifacts(scope.paths)
            logger.info(f"Cleaned up {removed} temporary files for run {scope.run_key}")
