"""Tests for help text, examples, and global flags."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from expctl import __version__
from expctl.cli import cli


class TestRootHelp:
    def test_no_args_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        for name in ("column", "tag", "experience", "search", "export", "upgrade"):
            assert name in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestExamples:
    @pytest.mark.parametrize(
        "args",
        [
            ["column"],
            ["column", "move"],
            ["tag", "add"],
            ["experience", "edit"],
            ["search"],
            ["export", "csv"],
            ["upgrade"],
        ],
    )
    def test_examples_flag(self, cli_runner: CliRunner, args: list[str]) -> None:
        result = cli_runner.invoke(cli, [*args, "--examples"])
        assert result.exit_code == 0
        assert "Examples for" in result.output
        assert "expctl" in result.output

    def test_examples_do_not_create_workspace(self, cli_runner: CliRunner, tmp_path) -> None:
        with cli_runner.isolated_filesystem(temp_dir=tmp_path) as root:
            cli_runner.invoke(cli, ["column", "list", "--examples"])
            assert not (tmp_path / root / ".expctl").exists()

    def test_help_lists_options(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["column", "add", "--help"])
        assert result.exit_code == 0
        for flag in ("--key", "--type", "--option", "--multiple", "--hidden", "--order"):
            assert flag in result.output
