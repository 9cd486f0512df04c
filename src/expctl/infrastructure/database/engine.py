"""Database engine setup for SQLite with WAL mode.

The DB is stored at {workspace_root}/.expctl/expctl.db. Foreign keys are
switched on per connection so deleting an experience or a tag cascades
to its ``experience_tags`` rows.

SQLAlchemy Core (not ORM) is used because expctl is a short-lived
CLI process — no benefit from session management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from expctl.infrastructure.database.schema import metadata

STATE_DIRNAME = ".expctl"
DB_FILENAME = "expctl.db"


def db_path_for(workspace_root: Path) -> Path:
    """Location of the database file for *workspace_root*."""
    return workspace_root / STATE_DIRNAME / DB_FILENAME


def set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    event.listen(engine, "connect", set_sqlite_pragma)
    return engine


def init_database(workspace_root: Path) -> Engine:
    """Initialize the database at ``{workspace_root}/.expctl/expctl.db``.

    Creates the ``.expctl/`` directory structure and all tables from
    :data:`schema.metadata`. Column seeding is a separate, explicit step
    (``ColumnService.ensure_defaults``).

    Idempotent — safe to call on an existing workspace.
    """
    state_dir = workspace_root / STATE_DIRNAME
    state_dir.mkdir(parents=True, exist_ok=True)
    (state_dir / "backups").mkdir(exist_ok=True)

    engine = create_db_engine(db_path_for(workspace_root))
    metadata.create_all(engine)
    return engine
