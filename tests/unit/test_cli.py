"""Tests for CLI option handling that fails before touching git."""

from __future__ import annotations

import shutil

import pytest
from click.testing import CliRunner

from tagflow import __version__
from tagflow.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestGlobalOptions:
    """Tests for group-level options."""

    def test_version_flag(self, runner):
        """--version prints the package version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        """--help lists every command."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("version", "semver", "update", "changelog", "release"):
            assert name in result.output

    def test_unknown_command(self, runner):
        """Unknown commands are usage errors."""
        result = runner.invoke(cli, ["publish"])
        assert result.exit_code == 2


class TestOptionConflicts:
    """Tests for conflicting options, rejected before any git access."""

    @pytest.mark.parametrize(
        ("args", "message"),
        [
            (["release", "--rebuild", "1.0.0"], "Cannot combine --rebuild with an explicit release target"),
            (["release", "--prerelease"], "--prerelease requires an explicit release target"),
            (["release", "--notes-only", "--dry-run"], "--notes-only cannot be combined"),
            (["changelog", "--rebuild", "minor"], "Cannot combine --rebuild with an explicit changelog target"),
            (["changelog", "--dry-run", "--commit"], "--commit cannot be combined with --dry-run"),
            (["changelog", "--message", "msg"], "--message requires --commit"),
            (["update", "--tag"], "--tag requires --commit"),
            (["update", "-m", "msg"], "--message requires --commit"),
        ],
    )
    def test_conflicts(self, runner, tmp_path, monkeypatch, args, message):
        """Each conflict exits 1 with a descriptive error."""
        # Not a git repository: reaching git would fail with a different error
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, args)

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert message in result.output

    def test_aliases(self, runner, tmp_path, monkeypatch):
        """One-letter aliases resolve to the full commands."""
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ["r", "--prerelease"])

        assert result.exit_code == 1
        assert "--prerelease requires" in result.output


class TestOutsideRepository:
    """Tests for running outside a git work tree."""

    @pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")
    def test_not_a_git_repository(self, runner, tmp_path, monkeypatch):
        """Commands that need git report a clean error."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))

        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 1
        assert "Not a git repository" in result.output

    def test_bad_config_file(self, runner, tmp_path, monkeypatch):
        """A missing --config file is reported before git is used."""
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ["--config", str(tmp_path / "missing.yml"), "version"])

        assert result.exit_code == 1
        assert "Config file not found" in result.output
