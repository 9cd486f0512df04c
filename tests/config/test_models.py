"""Tests for the configuration section models."""

import pytest
from pydantic import ValidationError

from expctl.config.models import ExpConfig, ExportConfig


class TestExpConfig:
    def test_defaults(self) -> None:
        config = ExpConfig()
        assert config.workspace.name == "my-experiences"
        assert config.columns.seed_defaults is True
        assert config.export.visible_only is False
        assert config.upgrade.backup_max_count == 10

    def test_sparse_validate(self) -> None:
        config = ExpConfig.model_validate({"columns": {"seed_defaults": False}})
        assert config.columns.seed_defaults is False
        assert config.export == ExportConfig()

    def test_bad_type(self) -> None:
        with pytest.raises(ValidationError):
            ExpConfig.model_validate({"upgrade": {"backup_max_count": "many"}})

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            ExportConfig().visible_only = True  # type: ignore[misc]
