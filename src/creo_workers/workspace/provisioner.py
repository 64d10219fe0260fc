"""Worker provisioning — builds a fresh worker from the enclosing repository.

new_worker() runs a strict sequence and aborts on the first failure,
leaving whatever was already done in place:

  1. resolve repo root + origin URL, load worker-files.kdl
  2. delete any existing worker with the same name
  3. shallow-clone the repo root into the store
  4. point the clone's origin at the real remote
  5. symlink configured files
  6. copy configured files
  7. symlink files matching configured filename patterns
  8. create and check out the requested branch
  9. run the post-setup command

There is no rollback; re-running with the same name starts from scratch.
"""

import errno
import fnmatch
import logging
import os
import shutil
import subprocess
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from ..errors import FilesystemError, PostSetupFailedError
from ..git import Git
from ..settings import load_config
from .store import WorkerStore, delete_tree

logger = logging.getLogger(__name__)

# Subtrees never searched by symlink patterns
_SKIP_DIRS = {".git"}

# Post-setup output goes to stderr; stdout carries only the worker path
_STDERR_FD = 2


@contextmanager
def _fs(action: str, path: Path) -> Iterator[None]:
    """Re-raise OSError from the wrapped block as FilesystemError."""
    try:
        yield
    except OSError as e:
        raise FilesystemError(action, path, e) from e


class WorkerProvisioner:
    """Creates workers inside a WorkerStore."""

    def __init__(self, store: WorkerStore, git: Git | None = None) -> None:
        self.store = store
        self.git = git or store.git

    def new_worker(self, name: str, branch: str) -> Path:
        """Create (or recreate) worker `name` checked out on a new `branch`.

        Returns:
            Absolute path of the worker directory.
        """
        worker_dir = self.store.worker_dir(name).absolute()
        repo_root = self.git.repo_root()
        remote_url = self.git.remote_url()
        cfg = load_config(repo_root)

        if worker_dir.exists() or worker_dir.is_symlink():
            logger.info("Cleaning up existing worker: %s", worker_dir)
            delete_tree(worker_dir)

        with _fs("create", self.store.root):
            self.store.root.mkdir(parents=True, exist_ok=True)
        logger.info("Cloning to %s...", worker_dir)
        self.git.clone(repo_root, worker_dir, depth=1)

        self.git.set_remote_url(worker_dir, remote_url)

        link_files(repo_root, worker_dir, cfg.symlinks)
        copy_files(repo_root, worker_dir, cfg.copies)
        for pattern in cfg.symlink_patterns:
            link_patterns(repo_root, worker_dir, pattern)

        self.git.checkout_new_branch(worker_dir, branch)

        if cfg.post_setup:
            run_post_setup(cfg.post_setup, worker_dir)

        return worker_dir


def link_files(repo_root: Path, worker_dir: Path, files: Iterable[str]) -> list[Path]:
    """Symlink each repo-relative file into the worker.

    Missing sources are skipped. A file the clone already placed at the
    destination is replaced by the link.

    Returns:
        Destination paths that were linked.
    """
    linked: list[Path] = []
    for file in files:
        src = repo_root / file
        dst = worker_dir / file
        if not src.exists():
            logger.info("  skip (not found): %s", file)
            continue
        with _fs("symlink", dst):
            dst.parent.mkdir(parents=True, exist_ok=True)
            if dst.is_symlink() or dst.is_file():
                dst.unlink()
            dst.symlink_to(src)
        logger.info("  symlink: %s", file)
        linked.append(dst)
    return linked


def copy_files(repo_root: Path, worker_dir: Path, files: Iterable[str]) -> list[Path]:
    """Copy each repo-relative file (or directory) into the worker.

    Missing sources are skipped. Copying a file onto a directory the clone
    placed at the destination raises FilesystemError.

    Returns:
        Destination paths that were written.
    """
    copied: list[Path] = []
    for file in files:
        src = repo_root / file
        dst = worker_dir / file
        if not src.exists():
            logger.info("  skip (not found): %s", file)
            continue
        with _fs("copy", dst):
            dst.parent.mkdir(parents=True, exist_ok=True)
            if dst.is_symlink():
                dst.unlink()
            if src.is_dir():
                shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
            elif dst.is_dir():
                raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(dst))
            else:
                shutil.copy2(src, dst)
        logger.info("  copy: %s", file)
        copied.append(dst)
    return copied


def find_pattern_matches(repo_root: Path, pattern: str) -> list[Path]:
    """Find files anywhere under repo_root whose name matches pattern.

    Only the last path component of the pattern is used, so "config/*.env"
    and "*.env" are equivalent. .git directories are not searched.
    """
    name_pattern = pattern.rsplit("/", 1)[-1]
    matches: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(repo_root):
        dirnames[:] = [d for d in dirnames if d not in _SKIP_DIRS]
        for filename in filenames:
            if fnmatch.fnmatchcase(filename, name_pattern):
                matches.append(Path(dirpath) / filename)
    return sorted(matches)


def link_patterns(repo_root: Path, worker_dir: Path, pattern: str) -> list[Path]:
    """Symlink every pattern match whose destination is still missing.

    Existing destinations (files, directories, links) are never touched,
    so repeated runs only add links for new matches.

    Returns:
        Destination paths that were linked.
    """
    linked: list[Path] = []
    for src in find_pattern_matches(repo_root, pattern):
        rel = src.relative_to(repo_root)
        dst = worker_dir / rel
        if dst.exists() or dst.is_symlink():
            continue
        with _fs("symlink", dst):
            dst.parent.mkdir(parents=True, exist_ok=True)
            dst.symlink_to(src)
        logger.info("  symlink (pattern): %s", rel)
        linked.append(dst)
    return linked


def run_post_setup(command: str, worker_dir: Path) -> None:
    """Run the post-setup shell command inside the worker.

    Raises:
        PostSetupFailedError: If the command exits nonzero.
    """
    logger.info("Running: %s", command)
    with _fs("run post-setup in", worker_dir):
        result = subprocess.run(
            command, shell=True, cwd=worker_dir, stdout=_STDERR_FD
        )
    if result.returncode != 0:
        raise PostSetupFailedError(command, result.returncode)
