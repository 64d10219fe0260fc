"""Exception hierarchy for creo-workers.

Every failure the CLI can report derives from CreoWorkersError, so the
dispatcher in main.py catches a single type and prints ``error: <message>``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class CreoWorkersError(Exception):
    """Base exception for all creo-workers errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class NotARepositoryError(CreoWorkersError):
    """Raised when the working directory is not inside a git repository."""

    def __init__(self, cwd: Path | None = None):
        super().__init__("not a git repository", {"cwd": str(cwd) if cwd else None})


class NoOriginRemoteError(CreoWorkersError):
    """Raised when the repository has no ``origin`` remote."""

    def __init__(self) -> None:
        super().__init__("no origin remote")


class ConfigNotFoundError(CreoWorkersError):
    def __init__(self, path: Path):
        super().__init__(f"{path} not found", {"path": str(path)})
        self.path = path


class ConfigParseError(CreoWorkersError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}", {"path": str(path)})
        self.path = path
        self.reason = reason


class VersionControlError(CreoWorkersError):
    """Raised when a git command exits nonzero or cannot be started."""

    def __init__(self, args: list[str], stderr: str):
        super().__init__(
            f"git {' '.join(args)} failed: {stderr.strip()}",
            {"args": args, "stderr": stderr},
        )
        self.args_list = args
        self.stderr = stderr


class WorkerNotFoundError(CreoWorkersError):
    def __init__(self, name: str):
        super().__init__(f"worker '{name}' not found", {"name": name})
        self.name = name


class PostSetupFailedError(CreoWorkersError):
    def __init__(self, command: str, returncode: int):
        super().__init__(
            f"post-setup failed: {command}",
            {"command": command, "returncode": returncode},
        )
        self.command = command
        self.returncode = returncode


class InvalidUsageError(CreoWorkersError):
    pass


class FilesystemError(CreoWorkersError):
    """Raised when a mkdir/copy/symlink/remove on the worker tree fails."""

    def __init__(self, action: str, path: Path, original: OSError):
        super().__init__(
            f"{action} {path}: {original.strerror or original}",
            {"action": action, "path": str(path)},
        )
        self.action = action
        self.path = path
        self.original = original


class StoreRootError(CreoWorkersError):
    """Raised when neither XDG_CACHE_HOME nor HOME is available."""

    def __init__(self) -> None:
        super().__init__("cannot locate workers directory: HOME is not set")
