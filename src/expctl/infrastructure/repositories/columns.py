"""Read-oriented repository for column definitions."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from expctl.domain.columns import Column, ColumnType
from expctl.infrastructure.database.schema import columns

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def _load_options(raw: str | None, key: str) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Unreadable dropdown_options on column %s", key)
        return ()
    if not isinstance(data, list):
        return ()
    return tuple(str(o) for o in data if o is not None)


def to_column(row: Row[Any]) -> Column:
    """Hydrate a :class:`Column` from a ``columns`` row."""
    try:
        column_type = ColumnType(row.type)
    except ValueError:
        logger.warning("Unknown type %r on column %s, reading as short-text", row.type, row.key)
        column_type = ColumnType.SHORT_TEXT
    return Column(
        id=row.id,
        name=row.name,
        key=row.key,
        type=column_type,
        dropdown_options=_load_options(row.dropdown_options, row.key),
        allow_multiple=bool(row.allow_multiple),
        is_visible=bool(row.is_visible),
        order=row.order,
    )


class ColumnRepository:
    """Encapsulates SQL for reading the column schema."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def load(self, *, visible_only: bool = False, conn: Connection | None = None) -> list[Column]:
        """Columns sorted by display order (ties broken by id)."""
        stmt = select(columns).order_by(columns.c.order, columns.c.id)
        if visible_only:
            stmt = stmt.where(columns.c.is_visible == 1)
        if conn is not None:
            return [to_column(r) for r in conn.execute(stmt).fetchall()]
        with self._engine.connect() as own:
            return [to_column(r) for r in own.execute(stmt).fetchall()]

    def get(self, column_id: int, *, conn: Connection | None = None) -> Column | None:
        stmt = select(columns).where(columns.c.id == column_id)
        if conn is not None:
            row = conn.execute(stmt).first()
        else:
            with self._engine.connect() as own:
                row = own.execute(stmt).first()
        return to_column(row) if row is not None else None
