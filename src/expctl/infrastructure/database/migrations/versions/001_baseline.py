"""Baseline schema — columns, experiences, tags and their links.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-09-14
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "columns",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("key", sa.Text, nullable=False, unique=True),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("dropdown_options", sa.Text),
        sa.Column("allow_multiple", sa.Integer, server_default="0"),
        sa.Column("is_visible", sa.Integer, server_default="1"),
        sa.Column("order", sa.Integer, nullable=False),
    )
    op.create_index("ix_columns_order", "columns", ["order"])

    op.create_table(
        "experiences",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("start_date", sa.Text, nullable=False),
        sa.Column("end_date", sa.Text),
        sa.Column("custom_fields", sa.Text, nullable=False, server_default="{}"),
    )
    op.create_index("ix_experiences_start_date", "experiences", ["start_date"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False, unique=True),
    )

    op.create_table(
        "experience_tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "experience_id",
            sa.Integer,
            sa.ForeignKey("experiences.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "tag_id",
            sa.Integer,
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("experience_id", "tag_id", name="uq_experience_tag"),
    )
    op.create_index("ix_experience_tags_tag", "experience_tags", ["tag_id"])


def downgrade() -> None:
    op.drop_table("experience_tags")
    op.drop_table("tags")
    op.drop_table("experiences")
    op.drop_table("columns")
