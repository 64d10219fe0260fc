"""Root conftest — throwaway git repositories and an isolated workers dir.

Every test gets XDG_CACHE_HOME pointing into tmp_path so real workers are
never touched, and git is isolated from the user's global/system config.
"""

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

ORIGIN_URL = "git@host:org/repo.git"


def _git(cwd: Path, *args: str) -> str:
    """Run git in cwd and return stripped stdout (raises on failure)."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", "/dev/null")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))


@pytest.fixture
def git() -> Callable[..., str]:
    """The git runner used to set up and inspect test repositories."""
    return _git


@pytest.fixture
def write_config() -> Callable[[Path, str], Path]:
    """Write .claude/worker-files.kdl in a repo and return its path."""

    def _write(repo: Path, content: str) -> Path:
        path = repo / ".claude" / "worker-files.kdl"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Workers dir implied by the isolated XDG_CACHE_HOME."""
    return tmp_path / "cache" / "creo-workers"


@pytest.fixture
def origin_url() -> str:
    return ORIGIN_URL


@pytest.fixture
def repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A committed repository with an origin remote; cwd is set to it.

    Tracked: README.md, settings.json. Untracked files are added by tests.
    """
    root = tmp_path / "repo"
    root.mkdir()
    _git(root, "init", "-q")
    _git(root, "config", "user.name", "creo-workers tests")
    _git(root, "config", "user.email", "tests@example.com")
    _git(root, "config", "commit.gpgsign", "false")
    (root / "README.md").write_text("# repo\n")
    (root / "settings.json").write_text('{"tracked": true}\n')
    _git(root, "add", ".")
    _git(root, "commit", "-q", "-m", "initial")
    _git(root, "remote", "add", "origin", ORIGIN_URL)
    monkeypatch.chdir(root)
    return root
