"""Tests for the yoctobox command line."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from yoctobox import __version__
from yoctobox.build_config import BuildConfig
from yoctobox.cli import cli
from yoctobox.config import ProjectConfig, save_project_config
from yoctobox.logging import set_debug


@pytest.fixture
def source(tmp_path: Path) -> Path:
    src = tmp_path / "demo"
    src.mkdir()
    return src


def _invoke(source: Path, *args: str, returncode: int = 0):
    """Invoke the CLI with the workflow replaced, returning (result, config)."""
    captured: list[BuildConfig] = []

    def fake_run(config: BuildConfig) -> int:
        captured.append(config)
        return returncode

    runner = CliRunner()
    with patch("yoctobox.cli.run.run", side_effect=fake_run):
        result = runner.invoke(cli, ["--source", str(source), *args])
    return result, captured[0] if captured else None


class TestCliBasics:
    """Tests for help, version and usage errors."""

    def test_help(self) -> None:
        result = CliRunner().invoke(cli, ["-h"])
        assert result.exit_code == 0
        assert "--bitbake-shell" in result.output
        assert "--cleanup-images" in result.output
        assert "--qemu" in result.output

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_option_exits_1(self, source: Path) -> None:
        result, config = _invoke(source, "--frobnicate")
        assert result.exit_code == 1
        assert config is None

    def test_extra_argument_exits_1(self, source: Path) -> None:
        result, config = _invoke(source, "one", "two")
        assert result.exit_code == 1
        assert config is None


class TestOptionMapping:
    """Tests for mapping command line flags onto the build configuration."""

    def test_defaults(self, source: Path) -> None:
        result, config = _invoke(source)
        assert result.exit_code == 0
        assert config is not None
        assert config.project == "demo"
        assert config.target == "demo"
        assert config.machine == "raspberrypi4-64"
        assert config.build_command() == ["bitbake", "demo"]
        assert config.support_dir == source / "scripts"
        assert config.keep_container is False

    def test_all_flags(self, source: Path, tmp_path: Path) -> None:
        result, config = _invoke(
            source,
            "-n",
            "-k",
            "--keep-container",
            "--downloads",
            str(tmp_path / "dl"),
            "core-image-minimal",
        )
        assert result.exit_code == 0
        assert config is not None
        assert config.build_command() == ["bitbake", "-n", "-k", "core-image-minimal"]
        assert config.keep_container is True
        assert config.downloads_dir == (tmp_path / "dl").resolve()

    @pytest.mark.parametrize(
        "args",
        [
            ["--qemu", "--downloads", "DL"],
            ["--downloads", "DL", "--qemu"],
        ],
    )
    def test_qemu_independent_of_order(self, source: Path, tmp_path: Path, args: list[str]) -> None:
        args = [str(tmp_path / "dl") if a == "DL" else a for a in args]
        result, config = _invoke(source, *args)
        assert result.exit_code == 0
        assert config is not None
        assert config.machine == "qemuarm64"
        assert config.downloads_dir == (tmp_path / "dl").resolve()

    def test_bitbake_shell(self, source: Path) -> None:
        result, config = _invoke(source, "--bitbake-shell")
        assert result.exit_code == 0
        assert config is not None
        assert config.interactive is True
        assert config.build_command() == ["/bin/bash"]

    def test_project_config(self, source: Path) -> None:
        save_project_config(
            source / "scripts",
            ProjectConfig(project="companion", qemu_machine="qemux86-64"),
        )
        result, config = _invoke(source, "--qemu")
        assert result.exit_code == 0
        assert config is not None
        assert config.project == "companion"
        assert config.target == "companion"
        assert config.machine == "qemux86-64"


class TestExitStatus:
    """Tests for exit status and final log lines."""

    def test_build_failure_exits_1(self, source: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="yoctobox"):
            result, _ = _invoke(source, returncode=1)
        assert result.exit_code == 1
        assert "Build finished with errors" in caplog.text

    def test_success_logged(self, source: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="yoctobox"):
            result, _ = _invoke(source)
        assert result.exit_code == 0
        assert "Build finished successfully" in caplog.text

    def test_invalid_downloads_is_fatal(
        self, source: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        with caplog.at_level(logging.INFO, logger="yoctobox"):
            result, config = _invoke(source, "--downloads", str(blocker))
        assert result.exit_code == 1
        assert config is None
        fatal = [r for r in caplog.records if r.levelno == logging.CRITICAL]
        assert len(fatal) == 1
        assert "Invalid downloads location" in fatal[0].getMessage()


class TestMaintenanceModes:
    """Tests for --cleanup-images, --init and --debug."""

    def test_cleanup_images(self, source: Path) -> None:
        with patch("yoctobox.cli.cleanup.remove_project_images", return_value=2) as mock_remove:
            result, config = _invoke(source, "--cleanup-images")
        assert result.exit_code == 0
        assert config is None
        mock_remove.assert_called_once_with("demo")

    def test_malformed_project_config_uses_defaults(self, source: Path) -> None:
        (source / "scripts").mkdir()
        (source / "scripts" / "yoctobox.json").write_text('{"project": 5}')
        with patch("yoctobox.cli.cleanup.remove_project_images", return_value=0) as mock_remove:
            result, _ = _invoke(source, "--cleanup-images")
        assert result.exit_code == 0
        mock_remove.assert_called_once_with("demo")

    def test_init(self, source: Path) -> None:
        result, config = _invoke(source, "--init")
        assert result.exit_code == 0
        assert config is None
        assert (source / "scripts" / "docker" / "Dockerfile").is_file()
        assert (source / "scripts" / "packages.list").is_file()
        assert (source / "scripts" / "container.base").is_file()

    def test_debug(self, source: Path) -> None:
        try:
            result, _ = _invoke(source, "--debug")
            assert result.exit_code == 0
            assert logging.getLogger("yoctobox").level == logging.DEBUG
        finally:
            set_debug(False)

    def test_missing_source(self, tmp_path: Path) -> None:
        result, config = _invoke(tmp_path / "missing")
        assert result.exit_code == 1
        assert config is None
