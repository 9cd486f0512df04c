"""ExperienceService — experiences, their custom fields, and tag links.

Pipeline for writes: VALIDATE → APPLY → LINK → RESPOND. Custom-field
problems (unknown keys, values outside a dropdown's options) are advisory
and come back as warnings; only malformed dates, a non-mapping field bag
and unknown tag ids are rejected.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import delete, insert, select, update

from expctl.domain.columns import RECORD_DATE_KEYS
from expctl.domain.fields import check_custom_fields
from expctl.infrastructure.database.schema import experiences, tags
from expctl.infrastructure.workspace import WorkspaceTransaction, dump_json
from expctl.services._helpers import now_iso, parse_iso_date
from expctl.services.base import BaseService
from expctl.services.result import ServiceError, ServiceResult
from expctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

EDITABLE_ATTRIBUTES: tuple[str, ...] = ("start_date", "end_date", "custom_fields", "tag_ids")


def _invalid(op: str, message: str) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code="VALIDATION_FAILED", message=message),
    )


def _not_found(op: str, what: str, ident: int) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="NOT_FOUND",
            message=f"No {what} found with ID: {ident}",
            detail={"id": ident},
        ),
    )


def _date_order_warning(start: date, end: date | None) -> list[str]:
    if end is not None and end < start:
        return [f"End date {end.isoformat()} is before start date {start.isoformat()}"]
    return []


def _split_record_dates(fields: dict[str, Any], warnings: list[str]) -> dict[str, Any]:
    """Drop startDate/endDate from a field bag; those live on the record."""
    kept: dict[str, Any] = {}
    for key, value in fields.items():
        if key in RECORD_DATE_KEYS:
            warnings.append(f"Field '{key}' is stored on the experience itself and was ignored")
            continue
        kept[key] = value
    return kept


class ExperienceService(BaseService):
    """CRUD for experiences plus tag linking."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def list_experiences(self) -> ServiceResult:
        """Every experience with its tags, in id order."""
        with trace_span("load_snapshot") as span:
            items = self._workspace.experiences.load_all()
            if span is not None:
                span.annotate("count", len(items))
        visible = self._workspace.columns.load(visible_only=True)
        return ServiceResult(
            ok=True,
            op="list_experiences",
            data={
                "count": len(items),
                "items": [e.to_dict() for e in items],
                "columns": [c.model_dump(mode="json") for c in visible],
            },
        )

    @traced
    def get_experience(self, experience_id: int) -> ServiceResult:
        op = "get_experience"
        experience = self._workspace.experiences.get(experience_id)
        if experience is None:
            return _not_found(op, "experience", experience_id)
        all_columns = self._workspace.columns.load()
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "experience": experience.to_dict(),
                "columns": [c.model_dump(mode="json") for c in all_columns],
            },
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @traced
    def create_experience(
        self,
        start_date: date | str,
        *,
        end_date: date | str | None = None,
        custom_fields: dict[str, Any] | None = None,
        tag_ids: list[int] | None = None,
    ) -> ServiceResult:
        """Record a new experience.

        *end_date* may be omitted for ongoing work. Every id in *tag_ids*
        must name an existing tag.
        """
        op = "create_experience"
        warnings: list[str] = []

        # ── VALIDATE ─────────────────────────────────────────
        start, error = parse_iso_date(start_date, label="Start date")
        if start is None:
            return _invalid(op, error or "Start date is required")
        end: date | None = None
        if end_date is not None and end_date != "":
            end, error = parse_iso_date(end_date, label="End date")
            if end is None:
                return _invalid(op, error or "Invalid end date")
        warnings.extend(_date_order_warning(start, end))

        if custom_fields is not None and not isinstance(custom_fields, dict):
            return _invalid(op, "Custom fields must be a mapping of column key to value")
        fields = _split_record_dates(dict(custom_fields or {}), warnings)
        warnings.extend(check_custom_fields(self._workspace.columns.load(), fields))

        wanted_tags = set(tag_ids or [])
        now = now_iso()

        with self._workspace.transaction() as txn:
            missing = wanted_tags - txn.existing_tag_ids(wanted_tags)
            if missing:
                return _invalid(op, f"Unknown tag IDs: {', '.join(map(str, sorted(missing)))}")

            # ── APPLY ────────────────────────────────────────────
            result = txn.conn.execute(
                insert(experiences).values(
                    start_date=start.isoformat(),
                    end_date=end.isoformat() if end else None,
                    custom_fields=dump_json(fields),
                    created=now,
                    modified=now,
                )
            )
            experience_id = int(result.inserted_primary_key[0])

            # ── LINK ─────────────────────────────────────────────
            txn.link_tags(experience_id, wanted_tags)
            created = self._workspace.experiences.get(experience_id, conn=txn.conn)

        assert created is not None
        logger.info("Created experience %s starting %s", experience_id, start.isoformat())
        return ServiceResult(
            ok=True,
            op=op,
            data={"experience": created.to_dict()},
            warnings=warnings,
        )

    @traced
    def update_experience(self, experience_id: int, changes: dict[str, Any]) -> ServiceResult:
        """Apply a partial update.

        ``end_date=None`` clears the end date, ``custom_fields`` replaces
        the whole bag and ``tag_ids`` synchronises links (adding missing,
        removing extra). Other attributes are reported as warnings.
        """
        op = "update_experience"
        warnings: list[str] = []

        with self._workspace.transaction() as txn:
            existing = self._workspace.experiences.get(experience_id, conn=txn.conn)
            if existing is None:
                return _not_found(op, "experience", experience_id)

            # ── VALIDATE ─────────────────────────────────────────
            values: dict[str, Any] = {}
            fields_changed: list[str] = []
            start, end = existing.start_date, existing.end_date
            new_tags: set[int] | None = None

            for attr, value in changes.items():
                if attr not in EDITABLE_ATTRIBUTES:
                    warnings.append(f"Unknown experience attribute: {attr}")
                    continue
                if attr == "start_date":
                    parsed, error = parse_iso_date(value, label="Start date")
                    if parsed is None:
                        return _invalid(op, error or "Invalid start date")
                    start = parsed
                    values["start_date"] = start.isoformat()
                elif attr == "end_date":
                    if value is None or value == "":
                        end = None
                    else:
                        parsed, error = parse_iso_date(value, label="End date")
                        if parsed is None:
                            return _invalid(op, error or "Invalid end date")
                        end = parsed
                    values["end_date"] = end.isoformat() if end else None
                elif attr == "custom_fields":
                    if not isinstance(value, dict):
                        return _invalid(
                            op, "Custom fields must be a mapping of column key to value"
                        )
                    fields = _split_record_dates(dict(value), warnings)
                    known = self._workspace.columns.load(conn=txn.conn)
                    warnings.extend(check_custom_fields(known, fields))
                    values["custom_fields"] = dump_json(fields)
                else:
                    new_tags = set(value or [])
                    missing = new_tags - txn.existing_tag_ids(new_tags)
                    if missing:
                        return _invalid(
                            op, f"Unknown tag IDs: {', '.join(map(str, sorted(missing)))}"
                        )
                fields_changed.append(attr)

            warnings.extend(_date_order_warning(start, end))

            # ── APPLY ────────────────────────────────────────────
            values["modified"] = now_iso()
            txn.conn.execute(
                update(experiences).where(experiences.c.id == experience_id).values(**values)
            )

            # ── LINK ─────────────────────────────────────────────
            if new_tags is not None:
                current = txn.linked_tag_ids(experience_id)
                txn.unlink_tags(experience_id, current - new_tags)
                txn.link_tags(experience_id, new_tags - current)

            updated = self._workspace.experiences.get(experience_id, conn=txn.conn)

        assert updated is not None
        return ServiceResult(
            ok=True,
            op=op,
            data={"experience": updated.to_dict(), "fields_changed": fields_changed},
            warnings=warnings,
        )

    @traced
    def delete_experience(self, experience_id: int) -> ServiceResult:
        """Delete an experience; its tag links cascade."""
        op = "delete_experience"
        with self._workspace.transaction() as txn:
            result = txn.conn.execute(delete(experiences).where(experiences.c.id == experience_id))
            if not result.rowcount:
                return _not_found(op, "experience", experience_id)

        logger.info("Deleted experience %s", experience_id)
        return ServiceResult(ok=True, op=op, data={"id": experience_id})

    # ------------------------------------------------------------------
    # Tag links
    # ------------------------------------------------------------------

    @traced
    def add_tag(self, experience_id: int, tag_id: int) -> ServiceResult:
        """Link a tag; linking an already linked tag is a no-op."""
        op = "add_tag"
        with self._workspace.transaction() as txn:
            failure = self._check_link_targets(txn, op, experience_id, tag_id)
            if failure is not None:
                return failure
            linked = txn.link_tags(experience_id, [tag_id])
            experience = self._workspace.experiences.get(experience_id, conn=txn.conn)

        assert experience is not None
        return ServiceResult(
            ok=True,
            op=op,
            data={"experience": experience.to_dict(), "tag_id": tag_id, "changed": bool(linked)},
        )

    @traced
    def remove_tag(self, experience_id: int, tag_id: int) -> ServiceResult:
        """Unlink a tag from an experience."""
        op = "remove_tag"
        warnings: list[str] = []
        with self._workspace.transaction() as txn:
            failure = self._check_link_targets(txn, op, experience_id, tag_id)
            if failure is not None:
                return failure
            removed = txn.unlink_tags(experience_id, [tag_id])
            if not removed:
                warnings.append(f"Tag {tag_id} was not linked to experience {experience_id}")
            experience = self._workspace.experiences.get(experience_id, conn=txn.conn)

        assert experience is not None
        return ServiceResult(
            ok=True,
            op=op,
            data={"experience": experience.to_dict(), "tag_id": tag_id, "changed": bool(removed)},
            warnings=warnings,
        )

    @staticmethod
    def _check_link_targets(
        txn: WorkspaceTransaction, op: str, experience_id: int, tag_id: int
    ) -> ServiceResult | None:
        row = txn.conn.execute(
            select(experiences.c.id).where(experiences.c.id == experience_id)
        ).first()
        if row is None:
            return _not_found(op, "experience", experience_id)
        if txn.conn.execute(select(tags.c.id).where(tags.c.id == tag_id)).first() is None:
            return _not_found(op, "tag", tag_id)
        return None

