"""Git integration — every git invocation made by creo-workers goes through here.

Provides the Git collaborator class (clone, remote rewrite, branch creation,
branch/root/remote queries) and the find_repo_root() / get_remote_url()
helpers that locate the repository enclosing the current directory.

Commands run synchronously with no timeout; a hung git process blocks
the caller until it exits.
"""

import logging
import subprocess
from pathlib import Path

from .errors import NoOriginRemoteError, NotARepositoryError, VersionControlError

logger = logging.getLogger(__name__)


class Git:
    """Thin wrapper over the ``git`` binary."""

    def __init__(self, executable: str = "git") -> None:
        self.executable = executable

    def _run(
        self, args: list[str], cwd: Path | None = None
    ) -> subprocess.CompletedProcess[str]:
        logger.debug("git %s (cwd=%s)", " ".join(args), cwd or ".")
        try:
            return subprocess.run(
                [self.executable, *args],
                cwd=cwd,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise VersionControlError(args, f"{self.executable} not found") from e

    def _check(self, args: list[str], cwd: Path | None = None) -> str:
        """Run git and return stripped stdout, raising on nonzero exit."""
        result = self._run(args, cwd)
        if result.returncode != 0:
            raise VersionControlError(args, result.stderr)
        return result.stdout.strip()

    # --- queries ---

    def repo_root(self, cwd: Path | None = None) -> Path:
        """Return the top-level directory of the repository containing cwd.

        Raises:
            NotARepositoryError: If cwd is not inside a git work tree.
        """
        result = self._run(["rev-parse", "--show-toplevel"], cwd)
        if result.returncode != 0:
            raise NotARepositoryError(cwd)
        return Path(result.stdout.strip())

    def remote_url(self, cwd: Path | None = None) -> str:
        """Return the URL configured for the ``origin`` remote.

        Raises:
            NoOriginRemoteError: If no origin remote is configured.
        """
        result = self._run(["remote", "get-url", "origin"], cwd)
        if result.returncode != 0:
            raise NoOriginRemoteError()
        return result.stdout.strip()

    def current_branch(self, repo: Path) -> str | None:
        """Best-effort current branch name; None when it cannot be resolved."""
        try:
            result = self._run(["branch", "--show-current"], repo)
        except VersionControlError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    # --- mutations ---

    def clone(self, src: Path, dst: Path, depth: int = 1) -> None:
        self._check(["clone", "--depth", str(depth), str(src), str(dst)])

    def set_remote_url(self, repo: Path, url: str) -> None:
        self._check(["remote", "set-url", "origin", url], repo)

    def checkout_new_branch(self, repo: Path, branch: str) -> None:
        """Create and check out a new branch; fails if it already exists."""
        self._check(["checkout", "-b", branch], repo)


def find_repo_root(git: Git | None = None) -> Path:
    """Find the git repo root from the current directory."""
    return (git or Git()).repo_root()


def get_remote_url(git: Git | None = None) -> str:
    """Get the origin remote URL of the repository at the current directory."""
    return (git or Git()).remote_url()
