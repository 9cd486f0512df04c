"""Column schema — user-defined typed fields attached to experiences.

A column's ``key`` is the stable identifier used inside every experience's
``custom_fields`` bag; ``order`` drives display and CSV export order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

_NON_KEY_CHARS = re.compile(r"[^a-z0-9]")


class ColumnType(StrEnum):
    """Value shapes a column can hold."""

    DATE = "date"
    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    DROPDOWN = "dropdown"


class Column(BaseModel):
    """A stored column definition."""

    model_config = {"frozen": True}

    id: int
    name: str
    key: str
    type: ColumnType
    dropdown_options: tuple[str, ...] = ()
    allow_multiple: bool = False
    is_visible: bool = True
    order: int

    @property
    def is_multi_select(self) -> bool:
        return self.type == ColumnType.DROPDOWN and self.allow_multiple


class ColumnSpec(BaseModel):
    """Validated input for creating or importing a column.

    ``key`` and ``order`` are optional: the service derives the key from
    the name and appends the column after the current last one.
    """

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    key: str | None = None
    type: ColumnType = ColumnType.SHORT_TEXT
    dropdown_options: tuple[str, ...] = ()
    allow_multiple: bool = False
    is_visible: bool = True
    order: int | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "Name is required"
            raise ValueError(msg)
        return value

    @field_validator("dropdown_options", mode="before")
    @classmethod
    def _none_options(cls, value: object) -> object:
        return () if value is None else value

    @field_validator("allow_multiple", mode="before")
    @classmethod
    def _none_multiple(cls, value: object) -> object:
        return False if value is None else value


def derive_key(name: str) -> str:
    """Derive a column key from a display name.

    Lower-cases, drops everything outside ``[a-z0-9]`` and trims.
    Uniqueness is not guaranteed here; storage rejects duplicates.

    Examples:
        >>> derive_key("Client Name!!")
        'clientname'
        >>> derive_key("  Foo_Bar ")
        'foobar'
    """
    return _NON_KEY_CHARS.sub("", name.lower()).strip()


def next_order(existing: Iterable[int]) -> int:
    """Order for a column appended after *existing* (1 when empty)."""
    orders = list(existing)
    return max(orders) + 1 if orders else 1


DEFAULT_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec(name="Start Date", key="startDate", type=ColumnType.DATE, order=1),
    ColumnSpec(name="End Date", key="endDate", type=ColumnType.DATE, order=2),
    ColumnSpec(name="Client", key="client", type=ColumnType.SHORT_TEXT, order=3),
    ColumnSpec(name="Project", key="project", type=ColumnType.SHORT_TEXT, order=4),
    ColumnSpec(
        name="Skills",
        key="skills",
        type=ColumnType.DROPDOWN,
        dropdown_options=("React", "TypeScript", "Next.js", "MongoDB", "Python"),
        allow_multiple=True,
        order=5,
    ),
    ColumnSpec(name="Notes", key="notes", type=ColumnType.LONG_TEXT, order=6),
)

# Keys whose values live on the experience record itself, not in custom_fields.
RECORD_DATE_KEYS: frozenset[str] = frozenset({"startDate", "endDate"})
