"""Tests for the column command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from expctl.cli import cli


def _json(cli_runner: CliRunner, *args: str) -> dict:
    result = cli_runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


@pytest.mark.usefixtures("_isolated_workspace")
class TestColumnList:
    def test_defaults_seeded_on_first_use(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "list")
        assert data["ok"] is True
        assert [c["key"] for c in data["data"]["items"]] == [
            "startDate",
            "endDate",
            "client",
            "project",
            "skills",
            "notes",
        ]

    def test_seeding_happens_once(self, cli_runner: CliRunner) -> None:
        _json(cli_runner, "column", "list")
        data = _json(cli_runner, "column", "list")
        assert data["data"]["count"] == 6

    def test_no_seeding_when_disabled(self, cli_runner: CliRunner, workspace_root: Path) -> None:
        (workspace_root / "expctl.toml").write_text("[columns]\nseed_defaults = false\n")
        data = _json(cli_runner, "column", "list")
        assert data["data"]["count"] == 0

    def test_table_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["column", "list"])
        assert result.exit_code == 0
        assert "Skills" in result.output
        assert "6 columns" in result.output

    def test_quiet_prints_ids(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "column", "list"])
        assert result.stdout.split() == ["1", "2", "3", "4", "5", "6"]


@pytest.mark.usefixtures("_isolated_workspace")
class TestColumnAddEdit:
    def test_add(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "add", "Team Size")
        col = data["data"]["column"]
        assert col["key"] == "teamsize"
        assert col["order"] == 7

    def test_add_dropdown(self, cli_runner: CliRunner) -> None:
        data = _json(
            cli_runner,
            "column", "add", "Stack",
            "--type", "dropdown",
            "--option", "Go",
            "--option", "Rust",
            "--multiple",
            "--hidden",
        )
        col = data["data"]["column"]
        assert col["type"] == "dropdown"
        assert col["dropdown_options"] == ["Go", "Rust"]
        assert col["allow_multiple"] is True
        assert col["is_visible"] is False

    def test_add_warning_on_stderr(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["column", "add", "Level", "--type", "dropdown"])
        assert result.exit_code == 0
        assert "WARNING: Dropdown column 'Level' has no options" in result.stderr

    def test_add_duplicate_key_fails(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "column", "add", "Client"])
        assert result.exit_code == 1
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "KEY_CONFLICT"

    def test_bad_type_rejected_by_click(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["column", "add", "Rating", "--type", "stars"])
        assert result.exit_code == 2

    def test_edit_name(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "edit", "3", "--name", "Customer")
        assert data["data"]["column"]["name"] == "Customer"
        assert data["data"]["column"]["key"] == "client"

    def test_edit_rederive_key(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "edit", "3", "--name", "Customer", "--rederive-key")
        assert data["data"]["column"]["key"] == "customer"

    def test_edit_options(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "edit", "5", "--option", "Go", "--single")
        col = data["data"]["column"]
        assert col["dropdown_options"] == ["Go"]
        assert col["allow_multiple"] is False

    def test_edit_needs_an_option(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["column", "edit", "3"])
        assert result.exit_code == 2
        assert "Nothing to change" in result.output

    def test_get_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["column", "get", "99"])
        assert result.exit_code == 1
        assert "No column found with ID: 99" in result.stderr

    def test_remove(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "remove", "6")
        assert data["data"]["key"] == "notes"
        listed = _json(cli_runner, "column", "list")
        assert listed["data"]["count"] == 5


@pytest.mark.usefixtures("_isolated_workspace")
class TestColumnMoveVisibility:
    def test_move_up(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "move", "3", "up")
        assert data["data"]["order"] == 2
        assert data["data"]["swapped_with"] == {"id": 2, "order": 3}
        keys = [c["key"] for c in _json(cli_runner, "column", "list")["data"]["items"]]
        assert keys[:3] == ["startDate", "client", "endDate"]

    def test_move_direction_case_insensitive(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "column", "move", "3", "DOWN")
        assert data["data"]["direction"] == "down"

    def test_cannot_move_past_edge(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["column", "move", "1", "up"])
        assert result.exit_code == 1
        assert "already first" in result.stderr

    def test_hide_and_show(self, cli_runner: CliRunner) -> None:
        hidden = _json(cli_runner, "column", "hide", "6")
        assert hidden["data"]["column"]["is_visible"] is False
        visible = _json(cli_runner, "column", "list", "--visible")
        assert visible["data"]["count"] == 5
        shown = _json(cli_runner, "column", "show", "6")
        assert shown["data"]["column"]["is_visible"] is True


@pytest.mark.usefixtures("_isolated_workspace")
class TestColumnConfigFiles:
    def test_export_and_import(self, cli_runner: CliRunner, workspace_root: Path) -> None:
        path = workspace_root / "columns.yaml"
        exported = _json(cli_runner, "column", "export", str(path))
        assert exported["data"]["count"] == 6
        assert path.exists()

        _json(cli_runner, "column", "add", "Extra")
        imported = _json(cli_runner, "column", "import", str(path))
        assert imported["data"]["count"] == 6
        assert imported["data"]["removed"] == ["extra"]

    def test_import_missing_file(self, cli_runner: CliRunner, workspace_root: Path) -> None:
        result = cli_runner.invoke(cli, ["column", "import", str(workspace_root / "nope.yaml")])
        assert result.exit_code == 2
