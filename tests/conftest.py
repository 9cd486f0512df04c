"""Shared pytest fixtures for expctl tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from expctl.config.settings import ExpSettings
from expctl.domain.experiences import Experience, Tag
from expctl.infrastructure.database.engine import init_database
from expctl.infrastructure.workspace import Workspace


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's EXPCTL_* environment out of the tests."""
    monkeypatch.delenv("EXPCTL_CONFIG", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary workspace directory shared by workspace fixtures."""
    return tmp_path


@pytest.fixture
def workspace(workspace_root: Path) -> Iterator[Workspace]:
    """Workspace on a temp directory with an empty column schema."""
    ws = Workspace(ExpSettings.from_cli(workspace_root=workspace_root))
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def seeded_workspace(workspace: Workspace) -> Workspace:
    """Workspace holding the six default columns."""
    from expctl.services.columns import ColumnService

    result = ColumnService(workspace).ensure_defaults()
    assert result.ok, result.error
    return workspace


@pytest.fixture
def _isolated_workspace(workspace_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp root so the CLI creates an isolated workspace.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(workspace_root)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_experience() -> Callable[..., Experience]:
    """Build in-memory Experience snapshots for filter tests."""
    counter = iter(range(1, 10_000))

    def _make(
        start: str = "2022-01-01",
        end: str | None = None,
        *,
        tags: list[tuple[int, str]] | None = None,
        **fields: Any,
    ) -> Experience:
        return Experience(
            id=next(counter),
            start_date=date.fromisoformat(start),
            end_date=date.fromisoformat(end) if end else None,
            custom_fields=fields,
            tags=tuple(Tag(id=tid, name=name) for tid, name in tags or []),
        )

    return _make


@pytest.fixture
def add_experience(seeded_workspace: Workspace) -> Callable[..., dict[str, Any]]:
    """Create a stored experience via ExperienceService, asserting success."""
    from expctl.services.experiences import ExperienceService

    def _add(start: str = "2022-01-01", **kwargs: Any) -> dict[str, Any]:
        result = ExperienceService(seeded_workspace).create_experience(start, **kwargs)
        assert result.ok, result.error
        return result.data["experience"]

    return _add


@pytest.fixture
def add_tag(workspace: Workspace) -> Callable[[str], int]:
    """Create a tag via TagService and return its id."""
    from expctl.services.tags import TagService

    def _add(name: str) -> int:
        result = TagService(workspace).create_tag(name)
        assert result.ok, result.error
        return int(result.data["tag"]["id"])

    return _add


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Iterator[None]:
    """``-v`` invocations switch telemetry on for the current context."""
    yield
    from expctl.services.telemetry import disable_telemetry

    disable_telemetry()
