"""Tests for startup configuration and the command-line entry point."""

import dataclasses
from pathlib import Path

import pytest

import server
from server_config import ConfigError, ServerConfig
from utils import display_path


def test_from_args_canonicalizes_root(tmp_path: Path) -> None:
    (tmp_path / "data").mkdir()

    config = ServerConfig.from_args(tmp_path / "data" / ".." / "data", 9000)

    assert config.root_directory == (tmp_path / "data").resolve()
    assert config.listen_port == 9000


def test_config_is_immutable(tmp_path: Path) -> None:
    config = ServerConfig.from_args(tmp_path, 0)

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.listen_port = 1  # type: ignore[misc]


def test_missing_root_is_refused(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="does not exist"):
        ServerConfig.from_args(tmp_path / "missing", 8080)


def test_file_root_is_refused(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x")

    with pytest.raises(ConfigError, match="Not a directory"):
        ServerConfig.from_args(target, 8080)


def test_unknown_log_format_is_refused(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="log format"):
        ServerConfig.from_args(tmp_path, 8080, log_format="xml")


def test_parse_args_defaults() -> None:
    args = server._parse_args([])

    assert args.dir == "."
    assert args.port == 8080
    assert args.no_browser is False
    assert args.log_format == "plain"


def test_main_exits_nonzero_for_missing_root(tmp_path: Path) -> None:
    assert server.main(["--dir", str(tmp_path / "missing"), "--no-browser"]) == 1


def test_main_exits_nonzero_when_port_is_taken(tmp_path: Path) -> None:
    holder = server.HTTPServer(ServerConfig.from_args(tmp_path, 0))
    holder.bind()
    try:
        exit_code = server.main(["--dir", str(tmp_path), "--port", str(holder.port), "--no-browser"])
    finally:
        holder.stop()

    assert exit_code == 1


def test_open_browser_logs_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(server.webbrowser, "open", lambda _url: False)

    assert server.open_browser("http://localhost:1") is False


def test_display_path_relative_to_home(tmp_path: Path) -> None:
    home = tmp_path.resolve()

    assert display_path(home / "a" / "b", home=home) == "~/a/b"
    assert display_path(home, home=home) == "~/"
    assert display_path(home, home=home / "a") == str(home)


def test_display_path_does_not_match_sibling_prefix(tmp_path: Path) -> None:
    assert display_path(tmp_path / "homer", home=tmp_path / "home") == str(tmp_path / "homer")


def test_display_path_resolves_symlinked_home(tmp_path: Path) -> None:
    real_home = (tmp_path / "real-home").resolve()
    (real_home / "data").mkdir(parents=True)
    linked_home = tmp_path / "linked-home"
    try:
        linked_home.symlink_to(real_home, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")

    assert display_path(real_home / "data", home=linked_home) == "~/data"


def test_display_path_uses_resolved_default_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    real_home = (tmp_path / "real-home").resolve()
    real_home.mkdir()
    linked_home = tmp_path / "linked-home"
    try:
        linked_home.symlink_to(real_home, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: linked_home))

    assert display_path(real_home / "notes") == "~/notes"
