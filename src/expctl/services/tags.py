"""TagService — the shared tag vocabulary."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, insert, select

from expctl.infrastructure.database.schema import experience_tags, tags
from expctl.services.base import BaseService
from expctl.services.result import ServiceError, ServiceResult
from expctl.services.telemetry import traced

logger = logging.getLogger(__name__)


class TagService(BaseService):
    """List, create (get-or-create), and delete tags."""

    @traced
    def list_tags(self) -> ServiceResult:
        """Every tag ordered by name, with how many experiences use it."""
        stmt = (
            select(tags.c.id, tags.c.name, func.count(experience_tags.c.id).label("usage"))
            .select_from(tags.outerjoin(experience_tags, experience_tags.c.tag_id == tags.c.id))
            .group_by(tags.c.id)
            .order_by(tags.c.name)
        )
        with self._workspace.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()

        items = [{"id": r.id, "name": r.name, "usage": int(r.usage)} for r in rows]
        return ServiceResult(
            ok=True,
            op="list_tags",
            data={"count": len(items), "items": items},
        )

    @traced
    def create_tag(self, name: str) -> ServiceResult:
        """Create a tag, or return the existing one with the same name."""
        op = "create_tag"
        clean = name.strip()
        if not clean:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="VALIDATION_FAILED", message="Tag name is required"),
            )

        with self._workspace.transaction() as txn:
            row = txn.conn.execute(select(tags).where(tags.c.name == clean)).first()
            if row is not None:
                return ServiceResult(
                    ok=True,
                    op=op,
                    data={"tag": {"id": row.id, "name": row.name}, "created": False},
                )
            result = txn.conn.execute(insert(tags).values(name=clean))
            tag_id = int(result.inserted_primary_key[0])

        logger.info("Created tag %s (%s)", clean, tag_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={"tag": {"id": tag_id, "name": clean}, "created": True},
        )

    @traced
    def delete_tag(self, tag_id: int) -> ServiceResult:
        """Delete a tag; its links to experiences go with it."""
        op = "delete_tag"
        with self._workspace.transaction() as txn:
            row = txn.conn.execute(select(tags).where(tags.c.id == tag_id)).first()
            if row is None:
                return ServiceResult(
                    ok=False,
                    op=op,
                    error=ServiceError(
                        code="NOT_FOUND",
                        message=f"No tag found with ID: {tag_id}",
                        detail={"id": tag_id},
                    ),
                )
            unlinked = txn.conn.execute(
                select(func.count()).select_from(experience_tags).where(
                    experience_tags.c.tag_id == tag_id
                )
            ).scalar_one()
            txn.conn.execute(delete(tags).where(tags.c.id == tag_id))

        return ServiceResult(
            ok=True,
            op=op,
            data={"id": tag_id, "name": row.name, "unlinked": int(unlinked)},
        )
