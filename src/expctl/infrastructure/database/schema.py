"""SQLAlchemy Core table definitions for the expctl database.

Dates are stored as ISO ``YYYY-MM-DD`` text and JSON payloads
(dropdown options, custom fields) as serialized text.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

columns = Table(
    "columns",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("key", Text, nullable=False, unique=True),
    Column("type", Text, nullable=False),  # date | short-text | long-text | dropdown
    Column("dropdown_options", Text),  # JSON array
    Column("allow_multiple", Integer, default=0, server_default="0"),
    Column("is_visible", Integer, default=1, server_default="1"),
    Column("order", Integer, nullable=False),
)

experiences = Table(
    "experiences",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("start_date", Text, nullable=False),
    Column("end_date", Text),
    Column("custom_fields", Text, nullable=False, default="{}", server_default="{}"),  # JSON
    Column("created", Text),
    Column("modified", Text),
)

tags = Table(
    "tags",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
)

experience_tags = Table(
    "experience_tags",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "experience_id",
        Integer,
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("experience_id", "tag_id", name="uq_experience_tag"),
)

Index("ix_columns_order", columns.c.order)
Index("ix_experiences_start_date", experiences.c.start_date)
Index("ix_experience_tags_tag", experience_tags.c.tag_id)
