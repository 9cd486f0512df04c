"""Tests for ExpSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from expctl.config.settings import CONFIG_FILENAME, ExpSettings, find_config


class TestExpSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = ExpSettings.from_cli(workspace_root=tmp_path)
        assert settings.workspace_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.verbose is False
        assert settings.workspace.name == "my-experiences"
        assert settings.columns.seed_defaults is True
        assert settings.export.visible_only is False
        assert settings.export.list_separator == ", "
        assert settings.upgrade.backup_max_count == 10

    def test_frozen(self, tmp_path: Path) -> None:
        settings = ExpSettings.from_cli(workspace_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]

    def test_cli_flags_applied(self, tmp_path: Path) -> None:
        settings = ExpSettings.from_cli(workspace_root=tmp_path, json_output=True, verbose=True)
        assert settings.json_output is True
        assert settings.verbose is True


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "expctl.toml").write_text(
            '[workspace]\nname = "consulting"\n[export]\nvisible_only = true\n'
        )
        settings = ExpSettings.from_cli(workspace_root=tmp_path)
        assert settings.workspace.name == "consulting"
        assert settings.export.visible_only is True
        assert settings.export.list_separator == ", "
        assert settings.config_path == tmp_path / "expctl.toml"

    def test_empty_toml_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "expctl.toml").write_text("")
        settings = ExpSettings.from_cli(workspace_root=tmp_path)
        assert settings.columns.seed_defaults is True

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("[columns]\nseed_defaults = false\n")
        settings = ExpSettings.from_cli(config_path=str(custom), workspace_root=tmp_path)
        assert settings.columns.seed_defaults is False
        assert settings.config_path == custom

    def test_missing_explicit_path_ignored(self, tmp_path: Path) -> None:
        settings = ExpSettings.from_cli(
            config_path=str(tmp_path / "absent.toml"), workspace_root=tmp_path
        )
        assert settings.config_path is None

    def test_root_from_config_parent(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / "expctl.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = ExpSettings.from_cli()
        assert settings.workspace_root == tmp_path.resolve()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "expctl.toml").write_text("[workspace\nname = ")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            ExpSettings.from_cli(workspace_root=tmp_path)


class TestEnvOverrides:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / "expctl.toml").write_text("[upgrade]\nbackup_max_count = 3\n")
        monkeypatch.setenv("EXPCTL_UPGRADE__BACKUP_MAX_COUNT", "7")
        settings = ExpSettings.from_cli(workspace_root=tmp_path)
        assert settings.upgrade.backup_max_count == 7

    def test_cli_beats_env(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("EXPCTL_QUIET", "true")
        settings = ExpSettings.from_cli(workspace_root=tmp_path, quiet=False)
        assert settings.quiet is False


class TestFindConfig:
    def test_in_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert find_config(tmp_path) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_nearest_parent_wins(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        nested = tmp_path / "clients" / "acme"
        nested.mkdir(parents=True)
        (nested.parent / CONFIG_FILENAME).write_text("")
        assert find_config(nested) == (nested.parent / CONFIG_FILENAME).resolve()

    def test_env_var_wins(self, tmp_path: Path, monkeypatch) -> None:
        custom = tmp_path / "elsewhere.toml"
        custom.write_text("")
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv("EXPCTL_CONFIG", str(custom))
        assert find_config(tmp_path) == custom

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv("EXPCTL_CONFIG", str(tmp_path / "nope.toml"))
        assert find_config(tmp_path) is None
