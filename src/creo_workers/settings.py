"""Worker settings — reads .claude/worker-files.kdl and locates the workers dir.

Key entities:
  - WorkerConfig: frozen dataclass describing which files each new worker
    gets as symlinks or copies, which filename patterns are linked, and the
    optional post-setup command.
  - load_config(): parse <repo_root>/.claude/worker-files.kdl → WorkerConfig.
  - workers_dir(): resolve the cache directory holding all workers.

Example worker-files.kdl:

    symlink ".env"
    copy "Makefile.local"
    symlink-pattern "*.local.json"
    post-setup "npm ci"
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import kdl

from .errors import (
    ConfigNotFoundError,
    ConfigParseError,
    FilesystemError,
    StoreRootError,
)

logger = logging.getLogger(__name__)

CONFIG_FILE = ".claude/worker-files.kdl"

WORKERS_DIR_NAME = "creo-workers"

# ---------------------------------------------------------------------------
# WorkerConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkerConfig:
    """Parsed worker config. Entry order is preserved as written in the file."""

    symlinks: tuple[str, ...] = ()
    copies: tuple[str, ...] = ()
    symlink_patterns: tuple[str, ...] = ()
    post_setup: str | None = None


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


def load_config(repo_root: Path) -> WorkerConfig:
    """Load worker-files.kdl from the repo root.

    Args:
        repo_root: Top-level directory of the repository.

    Returns:
        The normalized WorkerConfig.

    Raises:
        ConfigNotFoundError: If the config file does not exist.
        ConfigParseError: If the file is not UTF-8 KDL, a recognized node
            is malformed, or a symlink/copy path leaves the repository.
        FilesystemError: If the file cannot be read.
    """
    config_path = repo_root / CONFIG_FILE
    if not config_path.is_file():
        raise ConfigNotFoundError(config_path)

    try:
        text = config_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigParseError(config_path, f"not valid UTF-8: {e.reason}") from e
    except OSError as e:
        raise FilesystemError("read", config_path, e) from e

    try:
        document = kdl.parse(text)
    except kdl.ParseError as e:
        raise ConfigParseError(config_path, str(e)) from e

    return parse_nodes(config_path, document.nodes)


def parse_nodes(config_path: Path, nodes: list) -> WorkerConfig:
    """Build a WorkerConfig from top-level KDL nodes.

    Unknown node names are ignored.
    """
    symlinks: list[str] = []
    copies: list[str] = []
    patterns: list[str] = []
    post_setup: str | None = None

    for node in nodes:
        if node.name == "symlink":
            symlinks.append(_relative_path(config_path, node))
        elif node.name == "copy":
            copies.append(_relative_path(config_path, node))
        elif node.name == "symlink-pattern":
            patterns.append(_string_argument(config_path, node))
        elif node.name == "post-setup":
            if post_setup is not None:
                raise ConfigParseError(config_path, "post-setup may only appear once")
            post_setup = _string_argument(config_path, node)
        else:
            logger.debug("Ignoring unknown node '%s' in %s", node.name, config_path)

    return WorkerConfig(
        symlinks=tuple(symlinks),
        copies=tuple(copies),
        symlink_patterns=tuple(patterns),
        post_setup=post_setup,
    )


def _string_argument(config_path: Path, node) -> str:
    """Return the single string argument of a node."""
    if len(node.args) != 1:
        raise ConfigParseError(
            config_path,
            f"'{node.name}' expects exactly one argument, got {len(node.args)}",
        )
    # Tagged values are wrapped; untagged strings come back as str
    value = getattr(node.args[0], "value", node.args[0])
    if not isinstance(value, str) or not value:
        raise ConfigParseError(
            config_path, f"'{node.name}' argument must be a non-empty string"
        )
    return value


def _relative_path(config_path: Path, node) -> str:
    """Return a symlink/copy argument, which must stay inside the repository."""
    value = _string_argument(config_path, node)
    path = PurePosixPath(value)
    if path.is_absolute() or ".." in path.parts:
        raise ConfigParseError(
            config_path,
            f"'{node.name}' path must be relative to the repository root: {value}",
        )
    return value


# ---------------------------------------------------------------------------
# workers_dir
# ---------------------------------------------------------------------------


def workers_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Return the directory that holds every worker.

    $XDG_CACHE_HOME/creo-workers when XDG_CACHE_HOME is set, otherwise
    $HOME/.cache/creo-workers. Read from the environment on every call.

    Raises:
        StoreRootError: If neither XDG_CACHE_HOME nor HOME is set.
    """
    env = os.environ if environ is None else environ
    cache = env.get("XDG_CACHE_HOME")
    if cache:
        return Path(cache) / WORKERS_DIR_NAME
    home = env.get("HOME")
    if not home:
        raise StoreRootError()
    return Path(home) / ".cache" / WORKERS_DIR_NAME
