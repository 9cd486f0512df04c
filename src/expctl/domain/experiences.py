"""Experience and Tag models."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from expctl.domain.fields import FieldValue, classify


class Tag(BaseModel):
    """A named label attachable to many experiences."""

    model_config = {"frozen": True}

    id: int
    name: str


class Experience(BaseModel):
    """A dated work experience with its custom fields and resolved tags.

    ``end_date`` is ``None`` for ongoing experiences. Nothing here checks
    that it falls on or after ``start_date``.
    """

    model_config = {"frozen": True}

    id: int
    start_date: date
    end_date: date | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    tags: tuple[Tag, ...] = ()
    created: str | None = None
    modified: str | None = None

    def value_of(self, key: str) -> FieldValue:
        """Classified value stored under *key* (``Absent`` when missing)."""
        return classify(self.custom_fields.get(key))

    @property
    def tag_ids(self) -> frozenset[int]:
        return frozenset(t.id for t in self.tags)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly payload used in service results."""
        return {
            "id": self.id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "custom_fields": dict(self.custom_fields),
            "tags": [{"id": t.id, "name": t.name} for t in self.tags],
            "created": self.created,
            "modified": self.modified,
        }
