"""Worker store — the cache directory holding one subdirectory per worker.

Layout:
  - <root>/<name>: an independent git clone (see provisioner.py)

Key class: WorkerStore (enumerate / locate / delete).
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from ..errors import FilesystemError, InvalidUsageError, WorkerNotFoundError
from ..git import Git

logger = logging.getLogger(__name__)

# Shown by `cw ls` when a worker's branch cannot be determined
NO_BRANCH = "-"


@dataclass(frozen=True)
class WorkerInfo:
    name: str
    branch: str | None
    path: Path

    @property
    def branch_label(self) -> str:
        return self.branch or NO_BRANCH


class WorkerStore:
    """Manages the workers directory."""

    def __init__(self, root: Path, git: Git | None = None) -> None:
        self.root = root
        self.git = git or Git()

    def worker_dir(self, name: str) -> Path:
        """Return <root>/<name> for a valid worker name.

        Raises:
            InvalidUsageError: If name is empty or is not a single path component.
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise InvalidUsageError(f"invalid worker name: '{name}'")
        return self.root / name

    def list_workers(self) -> list[WorkerInfo]:
        """List workers sorted by name. Empty if the store does not exist."""
        if not self.root.is_dir():
            return []
        return [
            WorkerInfo(name=p.name, branch=self.git.current_branch(p), path=p)
            for p in sorted(self.root.iterdir())
            if p.is_dir()
        ]

    def path(self, name: str) -> Path:
        """Return the absolute path of an existing worker.

        Raises:
            WorkerNotFoundError: If the worker does not exist.
        """
        worker_dir = self.worker_dir(name)
        if not worker_dir.exists():
            raise WorkerNotFoundError(name)
        return worker_dir.absolute()

    def remove(self, name: str) -> None:
        """Delete one worker.

        Raises:
            WorkerNotFoundError: If the worker does not exist.
        """
        worker_dir = self.worker_dir(name)
        if not worker_dir.exists() and not worker_dir.is_symlink():
            raise WorkerNotFoundError(name)
        delete_tree(worker_dir)
        logger.info("Removed worker: %s", name)

    def remove_all(self) -> None:
        """Delete the whole store. No-op if it does not exist."""
        if not self.root.exists():
            return
        delete_tree(self.root)
        logger.info("Removed all workers")


def delete_tree(path: Path) -> None:
    """Recursively delete a directory (or unlink a file/symlink)."""
    try:
        if path.is_symlink() or not path.is_dir():
            path.unlink()
        else:
            shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError("remove", path, e) from e
