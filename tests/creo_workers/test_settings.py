"""Tests for settings.py — worker-files.kdl loading and the workers dir."""

from pathlib import Path

import pytest

from creo_workers.errors import (
    ConfigNotFoundError,
    ConfigParseError,
    FilesystemError,
    StoreRootError,
)
from creo_workers.settings import CONFIG_FILE, WorkerConfig, load_config, workers_dir


class TestLoadConfig:
    def test_all_node_kinds(self, tmp_path: Path, write_config) -> None:
        write_config(
            tmp_path,
            'symlink ".env"\n'
            'copy "Makefile.local"\n'
            'symlink-pattern "*.local.json"\n'
            'post-setup "npm ci"\n',
        )
        cfg = load_config(tmp_path)
        assert cfg == WorkerConfig(
            symlinks=(".env",),
            copies=("Makefile.local",),
            symlink_patterns=("*.local.json",),
            post_setup="npm ci",
        )

    def test_preserves_order(self, tmp_path: Path, write_config) -> None:
        write_config(
            tmp_path,
            'symlink "b.txt"\ncopy "z"\nsymlink "a.txt"\ncopy "y"\nsymlink "c/d.txt"\n',
        )
        cfg = load_config(tmp_path)
        assert cfg.symlinks == ("b.txt", "a.txt", "c/d.txt")
        assert cfg.copies == ("z", "y")

    def test_empty_file(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, "")
        cfg = load_config(tmp_path)
        assert cfg == WorkerConfig()
        assert cfg.post_setup is None

    def test_unknown_nodes_ignored(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, 'hardlink "x"\nsymlink ".env"\nfoo\n')
        cfg = load_config(tmp_path)
        assert cfg.symlinks == (".env",)
        assert cfg.copies == ()

    def test_comments_allowed(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, '// secrets\nsymlink ".env"\n/- symlink "off"\n')
        assert load_config(tmp_path).symlinks == (".env",)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigNotFoundError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.path == tmp_path / CONFIG_FILE
        assert "worker-files.kdl not found" in str(exc_info.value)

    def test_invalid_kdl(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, 'symlink "unterminated\n')
        with pytest.raises(ConfigParseError):
            load_config(tmp_path)

    def test_missing_argument(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, "symlink\n")
        with pytest.raises(ConfigParseError, match="exactly one argument"):
            load_config(tmp_path)

    def test_too_many_arguments(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, 'copy "a" "b"\n')
        with pytest.raises(ConfigParseError, match="exactly one argument"):
            load_config(tmp_path)

    def test_non_string_argument(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, "symlink 42\n")
        with pytest.raises(ConfigParseError, match="non-empty string"):
            load_config(tmp_path)

    def test_duplicate_post_setup(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, 'post-setup "a"\npost-setup "b"\n')
        with pytest.raises(ConfigParseError, match="only appear once"):
            load_config(tmp_path)

    def test_invalid_utf8(self, tmp_path: Path, write_config) -> None:
        path = write_config(tmp_path, "")
        path.write_bytes(b'symlink "\xff\xfe"\n')
        with pytest.raises(ConfigParseError, match="not valid UTF-8"):
            load_config(tmp_path)

    def test_unreadable_file(
        self, tmp_path: Path, write_config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        write_config(tmp_path, 'symlink ".env"\n')

        def deny(self, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(Path, "read_text", deny)
        with pytest.raises(FilesystemError, match="Permission denied"):
            load_config(tmp_path)

    @pytest.mark.parametrize(
        "entry",
        [
            'symlink "/etc/outside.txt"',
            'copy "/etc/outside.txt"',
            'symlink "../shared/.env"',
            'copy "conf/../../escape"',
        ],
    )
    def test_rejects_paths_outside_repo(
        self, tmp_path: Path, write_config, entry: str
    ) -> None:
        write_config(tmp_path, entry + "\n")
        with pytest.raises(ConfigParseError, match="relative to the repository root"):
            load_config(tmp_path)

    def test_allows_nested_and_dotted_paths(self, tmp_path: Path, write_config) -> None:
        write_config(tmp_path, 'symlink "conf/.env"\ncopy "./a..b/Makefile.local"\n')
        cfg = load_config(tmp_path)
        assert cfg.symlinks == ("conf/.env",)
        assert cfg.copies == ("./a..b/Makefile.local",)


class TestWorkersDir:
    def test_xdg_cache_home(self) -> None:
        env = {"XDG_CACHE_HOME": "/xdg", "HOME": "/home/u"}
        assert workers_dir(env) == Path("/xdg/creo-workers")

    def test_home_fallback(self) -> None:
        assert workers_dir({"HOME": "/home/u"}) == Path("/home/u/.cache/creo-workers")

    def test_empty_xdg_falls_back_to_home(self) -> None:
        env = {"XDG_CACHE_HOME": "", "HOME": "/home/u"}
        assert workers_dir(env) == Path("/home/u/.cache/creo-workers")

    def test_neither_set(self) -> None:
        with pytest.raises(StoreRootError):
            workers_dir({})

    def test_reads_environment_each_call(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_CACHE_HOME", "/first")
        assert workers_dir() == Path("/first/creo-workers")
        monkeypatch.delenv("XDG_CACHE_HOME")
        monkeypatch.setenv("HOME", "/second")
        assert workers_dir() == Path("/second/.cache/creo-workers")
