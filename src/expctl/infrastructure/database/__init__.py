"""SQLite database engine and schema via SQLAlchemy Core."""

from expctl.infrastructure.database.engine import create_db_engine, db_path_for, init_database
from expctl.infrastructure.database.schema import (
    columns,
    experience_tags,
    experiences,
    metadata,
    tags,
)

__all__ = [
    "columns",
    "create_db_engine",
    "db_path_for",
    "experience_tags",
    "experiences",
    "init_database",
    "metadata",
    "tags",
]
