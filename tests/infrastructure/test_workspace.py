"""Tests for Workspace — engine ownership and transactions."""

from pathlib import Path

import pytest
from sqlalchemy import func, insert, select, text

from expctl.config.settings import ExpSettings
from expctl.infrastructure.database.schema import experiences, tags
from expctl.infrastructure.workspace import Workspace, dump_json


def _experience_count(ws: Workspace) -> int:
    with ws.engine.connect() as conn:
        return int(conn.execute(select(func.count()).select_from(experiences)).scalar_one())


class TestWorkspaceInit:
    def test_creates_database(self, workspace: Workspace) -> None:
        assert workspace.db_path == workspace.root / ".expctl" / "expctl.db"
        assert workspace.db_path.exists()

    def test_root_and_settings(self, workspace: Workspace, workspace_root: Path) -> None:
        assert workspace.root == workspace_root
        assert workspace.settings.workspace.name == "my-experiences"

    def test_existing_db_reused(self, tmp_path: Path) -> None:
        settings = ExpSettings.from_cli(workspace_root=tmp_path)
        first = Workspace(settings)
        second = Workspace(settings)
        try:
            with second.engine.connect() as conn:
                version = conn.execute(text("SELECT version_num FROM alembic_version")).scalar()
            assert version == "002_experience_timestamps"
        finally:
            first.close()
            second.close()

    def test_columns_not_seeded(self, workspace: Workspace) -> None:
        assert workspace.columns.load() == []


class TestTransaction:
    def test_commits(self, workspace: Workspace) -> None:
        with workspace.transaction() as txn:
            txn.conn.execute(insert(experiences).values(start_date="2021-01-01"))
        assert _experience_count(workspace) == 1

    def test_rolls_back_on_error(self, workspace: Workspace) -> None:
        with pytest.raises(RuntimeError), workspace.transaction() as txn:
            txn.conn.execute(insert(experiences).values(start_date="2021-01-01"))
            raise RuntimeError("abort")
        assert _experience_count(workspace) == 0


class TestTagLinkHelpers:
    @pytest.fixture
    def ids(self, workspace: Workspace) -> tuple[int, list[int]]:
        with workspace.transaction() as txn:
            exp_id = txn.conn.execute(
                insert(experiences).values(start_date="2021-01-01")
            ).inserted_primary_key[0]
            tag_ids = [
                txn.conn.execute(insert(tags).values(name=n)).inserted_primary_key[0]
                for n in ("a", "b", "c")
            ]
        return int(exp_id), [int(t) for t in tag_ids]

    def test_existing_tag_ids(self, workspace: Workspace, ids) -> None:
        _, tag_ids = ids
        with workspace.transaction() as txn:
            assert txn.existing_tag_ids([tag_ids[0], 999]) == {tag_ids[0]}
            assert txn.existing_tag_ids([]) == set()

    def test_link_skips_existing(self, workspace: Workspace, ids) -> None:
        exp_id, tag_ids = ids
        with workspace.transaction() as txn:
            assert txn.link_tags(exp_id, tag_ids[:2]) == 2
            assert txn.link_tags(exp_id, tag_ids) == 1
            assert txn.linked_tag_ids(exp_id) == set(tag_ids)

    def test_unlink(self, workspace: Workspace, ids) -> None:
        exp_id, tag_ids = ids
        with workspace.transaction() as txn:
            txn.link_tags(exp_id, tag_ids)
            assert txn.unlink_tags(exp_id, [tag_ids[1], 999]) == 1
            assert txn.unlink_tags(exp_id, []) == 0
            assert txn.linked_tag_ids(exp_id) == {tag_ids[0], tag_ids[2]}


class TestDumpJson:
    def test_compact_sorted(self) -> None:
        assert dump_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
