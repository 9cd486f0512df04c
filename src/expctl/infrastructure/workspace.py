"""Workspace — repository owning the database and its transactions.

The Workspace is the single dependency injected into every service. It
owns the SQLAlchemy engine and hands out transactions via
:meth:`transaction`; the connection wrapper it yields carries the small
write helpers shared by several services.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select

from expctl.infrastructure.database.engine import db_path_for, init_database
from expctl.infrastructure.database.migrations import stamp_head
from expctl.infrastructure.database.schema import experience_tags, tags
from expctl.infrastructure.repositories.columns import ColumnRepository
from expctl.infrastructure.repositories.experiences import ExperienceRepository

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from expctl.config.settings import ExpSettings

logger = logging.getLogger(__name__)


def dump_json(value: Any) -> str:
    """Serialize a JSON column value (compact, stable key order)."""
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


# ---------------------------------------------------------------------------
# WorkspaceTransaction — yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class WorkspaceTransaction:
    """Active transaction context wrapping a DB connection."""

    conn: Connection

    def existing_tag_ids(self, tag_ids: Iterable[int]) -> set[int]:
        """Subset of *tag_ids* that exist in the ``tags`` table."""
        wanted = set(tag_ids)
        if not wanted:
            return set()
        rows = self.conn.execute(select(tags.c.id).where(tags.c.id.in_(wanted))).fetchall()
        return {int(r.id) for r in rows}

    def linked_tag_ids(self, experience_id: int) -> set[int]:
        rows = self.conn.execute(
            select(experience_tags.c.tag_id).where(experience_tags.c.experience_id == experience_id)
        ).fetchall()
        return {int(r.tag_id) for r in rows}

    def link_tags(self, experience_id: int, tag_ids: Iterable[int]) -> int:
        """Link tags to an experience, skipping existing pairs. Returns count linked."""
        already = self.linked_tag_ids(experience_id)
        count = 0
        for tag_id in sorted(set(tag_ids) - already):
            self.conn.execute(
                insert(experience_tags).values(experience_id=experience_id, tag_id=tag_id)
            )
            count += 1
        return count

    def unlink_tags(self, experience_id: int, tag_ids: Iterable[int]) -> int:
        """Remove links between an experience and *tag_ids*. Returns count removed."""
        wanted = set(tag_ids)
        if not wanted:
            return 0
        result = self.conn.execute(
            delete(experience_tags).where(
                experience_tags.c.experience_id == experience_id,
                experience_tags.c.tag_id.in_(wanted),
            )
        )
        return int(result.rowcount or 0)


# ---------------------------------------------------------------------------
# Workspace — the repository
# ---------------------------------------------------------------------------


class Workspace:
    """Repository encapsulating database access for one workspace root.

    Constructed once at CLI startup from :class:`ExpSettings` and stored
    on the click context. Services receive it via :class:`BaseService`.
    Construction creates tables (and stamps a brand-new database at the
    latest migration); seeding default columns is an explicit step run
    by the caller.
    """

    def __init__(self, settings: ExpSettings) -> None:
        self._settings = settings
        fresh = not db_path_for(self.root).exists()
        self._engine: Engine = init_database(self.root)
        if fresh:
            stamp_head(self.root)
        self._columns = ColumnRepository(self._engine)
        self._experiences = ExperienceRepository(self._engine)

    @property
    def root(self) -> Path:
        """The workspace root directory."""
        return self._settings.workspace_root

    @property
    def db_path(self) -> Path:
        return db_path_for(self.root)

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> ExpSettings:
        """The resolved settings for this workspace."""
        return self._settings

    @property
    def columns(self) -> ColumnRepository:
        """Read-side repository for the column schema."""
        return self._columns

    @property
    def experiences(self) -> ExperienceRepository:
        """Read-side repository for experiences with their tags."""
        return self._experiences

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[WorkspaceTransaction]:
        """Atomic unit of work: commit on success, rollback on any exception.

        Usage::

            with workspace.transaction() as txn:
                txn.conn.execute(update(columns)...)
                txn.conn.execute(update(columns)...)
                # Both commit together or not at all.
        """
        with self._engine.begin() as conn:
            try:
                yield WorkspaceTransaction(conn=conn)
            except BaseException:
                logger.debug("Workspace transaction rolled back", exc_info=True)
                raise
