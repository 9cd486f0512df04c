"""Add created/modified audit timestamps to experiences.

Revision ID: 002_experience_timestamps
Revises: 001_baseline
Create Date: 2026-10-02
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "002_experience_timestamps"
down_revision: str | None = "001_baseline"
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.add_column("experiences", sa.Column("created", sa.Text(), nullable=True))
    op.add_column("experiences", sa.Column("modified", sa.Text(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("experiences") as batch:
        batch.drop_column("modified")
        batch.drop_column("created")
