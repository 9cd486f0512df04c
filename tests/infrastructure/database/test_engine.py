"""Tests for database engine setup and initialization."""

from pathlib import Path

from sqlalchemy import inspect, text

from expctl.infrastructure.database.engine import create_db_engine, db_path_for, init_database


class TestCreateDbEngine:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def test_foreign_keys_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestInitDatabase:
    def test_creates_state_directory(self, tmp_path: Path) -> None:
        init_database(tmp_path)
        assert (tmp_path / ".expctl").is_dir()
        assert (tmp_path / ".expctl" / "backups").is_dir()

    def test_creates_db_file(self, tmp_path: Path) -> None:
        init_database(tmp_path)
        assert db_path_for(tmp_path) == tmp_path / ".expctl" / "expctl.db"
        assert db_path_for(tmp_path).exists()

    def test_creates_all_tables(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        table_names = set(inspect(engine).get_table_names())
        assert {"columns", "experiences", "tags", "experience_tags"} <= table_names

    def test_does_not_seed_columns(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        with engine.connect() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM columns")).scalar() == 0

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path)
        engine = init_database(tmp_path)
        with engine.connect() as conn:
            assert conn.execute(text("SELECT 1")).scalar() == 1
