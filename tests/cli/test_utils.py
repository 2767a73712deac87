"""Tests for CLI utilities.

Covers:
- find_project_root() marker detection
- load_project_config() error translation
- configure_run_logging() log file placement
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import click
import pytest

from covpipe.cli.utils import configure_run_logging, find_project_root, load_project_config
from covpipe.core.logging import get_log_file_path


@pytest.fixture(autouse=True)
def no_global_config(tmp_path: Path) -> Iterator[None]:
    with patch("covpipe.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "absent.yaml"):
        yield


class TestFindProjectRoot:
    """Tests for find_project_root function."""

    def test_finds_root_from_root(self, tmp_path: Path) -> None:
        (tmp_path / "Cargo.toml").write_text("[package]\n")

        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_finds_root_from_deep_nesting(self, tmp_path: Path) -> None:
        (tmp_path / "Cargo.toml").write_text("[package]\n")
        deep = tmp_path / "src" / "a" / "b"
        deep.mkdir(parents=True)

        assert find_project_root(deep) == tmp_path.resolve()

    def test_config_file_alone_is_a_marker(self, tmp_path: Path) -> None:
        (tmp_path / "covpipe.yaml").write_text("")

        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_nearest_marker_wins(self, tmp_path: Path) -> None:
        """Given a workspace with a member crate, the member is the root."""
        (tmp_path / "Cargo.toml").write_text("[workspace]\n")
        member = tmp_path / "crates" / "core"
        member.mkdir(parents=True)
        (member / "Cargo.toml").write_text("[package]\n")

        assert find_project_root(member) == member.resolve()

    def test_no_marker_raises(self, tmp_path: Path) -> None:
        with patch.object(Path, "exists", return_value=False), pytest.raises(
            click.ClickException, match="Not inside a Cargo project"
        ):
            find_project_root(tmp_path)

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "Cargo.toml").write_text("[package]\n")
        monkeypatch.chdir(tmp_path)

        assert find_project_root() == tmp_path.resolve()


class TestLoadProjectConfig:
    """Tests for load_project_config function."""

    def test_overrides_applied(self, tmp_path: Path) -> None:
        config = load_project_config(tmp_path, upload={"enabled": False})

        assert config.upload.enabled is False

    def test_invalid_config_becomes_click_error(self, tmp_path: Path) -> None:
        (tmp_path / "covpipe.yaml").write_text("pipeline:\n  on_failure: sometimes\n")

        with pytest.raises(click.ClickException):
            load_project_config(tmp_path)


class TestConfigureRunLogging:
    """Tests for configure_run_logging function."""

    def test_log_file_under_state_dir(self, tmp_path: Path) -> None:
        log_file = configure_run_logging(tmp_path, verbose=False)

        assert log_file.parent.parent == tmp_path / ".covpipe" / "logs"
        assert log_file.suffix == ".log"
        assert get_log_file_path() == log_file
