"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, expctl.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class WorkspaceConfig(BaseModel):
    """[workspace] section."""

    model_config = {"frozen": True}

    name: str = "my-experiences"


class ColumnsConfig(BaseModel):
    """[columns] section."""

    model_config = {"frozen": True}

    seed_defaults: bool = True


class ExportConfig(BaseModel):
    """[export] section."""

    model_config = {"frozen": True}

    visible_only: bool = False
    list_separator: str = ", "


class UpgradeConfig(BaseModel):
    """[upgrade] section."""

    model_config = {"frozen": True}

    backup_max_count: int = 10


class ExpConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    upgrade: UpgradeConfig = Field(default_factory=UpgradeConfig)
