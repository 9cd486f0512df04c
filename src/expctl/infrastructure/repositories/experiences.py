"""Read-oriented repository for experiences pre-joined with their tags."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from expctl.domain.experiences import Experience, Tag
from expctl.infrastructure.database.schema import experience_tags, experiences, tags

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def _load_fields(raw: str | None, experience_id: int) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Unreadable custom_fields on experience %s", experience_id)
        return {}
    return data if isinstance(data, dict) else {}


def _to_experience(row: Row[Any], exp_tags: list[Tag]) -> Experience:
    return Experience(
        id=row.id,
        start_date=date.fromisoformat(row.start_date),
        end_date=date.fromisoformat(row.end_date) if row.end_date else None,
        custom_fields=_load_fields(row.custom_fields, row.id),
        tags=tuple(exp_tags),
        created=row.created,
        modified=row.modified,
    )


class ExperienceRepository:
    """Encapsulates SQL for hydrating :class:`Experience` snapshots."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _tags_by_experience(
        self, conn: Connection, experience_id: int | None = None
    ) -> dict[int, list[Tag]]:
        stmt = (
            select(experience_tags.c.experience_id, tags.c.id, tags.c.name)
            .join(tags, tags.c.id == experience_tags.c.tag_id)
            .order_by(tags.c.name)
        )
        if experience_id is not None:
            stmt = stmt.where(experience_tags.c.experience_id == experience_id)

        grouped: dict[int, list[Tag]] = defaultdict(list)
        for r in conn.execute(stmt).fetchall():
            grouped[int(r.experience_id)].append(Tag(id=r.id, name=r.name))
        return grouped

    def load_all(self) -> list[Experience]:
        """All experiences in id order, each with its resolved tags."""
        with self._engine.connect() as conn:
            rows = conn.execute(select(experiences).order_by(experiences.c.id)).fetchall()
            grouped = self._tags_by_experience(conn)
        return [_to_experience(r, grouped.get(int(r.id), [])) for r in rows]

    def get(self, experience_id: int, *, conn: Connection | None = None) -> Experience | None:
        """A single experience with tags, or None when missing.

        Pass *conn* to read inside an open transaction.
        """
        if conn is not None:
            return self._get(conn, experience_id)
        with self._engine.connect() as own:
            return self._get(own, experience_id)

    def _get(self, conn: Connection, experience_id: int) -> Experience | None:
        row = conn.execute(select(experiences).where(experiences.c.id == experience_id)).first()
        if row is None:
            return None
        grouped = self._tags_by_experience(conn, experience_id)
        return _to_experience(row, grouped.get(experience_id, []))
