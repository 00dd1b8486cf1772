"""Baseline schema — the tables written by the first xLog releases.

Revision ID: 001_baseline
Revises: None
Create Date: 2025-09-02

Databases created before Alembic tracking get stamped at this revision
without running it; fresh databases get it applied during ``xlog upgrade``.
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
        "user",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.CheckConstraint("id = 1", name="ck_user_singleton"),
    )

    op.create_table(
        "domains",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False, unique=True),
    )

    op.create_table(
        "elements",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "domain_id",
            sa.Integer,
            sa.ForeignKey("domains.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("is_focus", sa.Integer, nullable=False, server_default="0"),
        sa.Column("xp", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("domain_id", "name"),
    )
    op.create_index("ix_elements_domain", "elements", ["domain_id"])
    op.create_index("ix_elements_name", "elements", ["name"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False, unique=True),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("frequency", sa.Integer, nullable=False),
        sa.Column("major_elem", sa.Integer, sa.ForeignKey("elements.id"), nullable=False),
        sa.Column("minor_elem", sa.Integer, sa.ForeignKey("elements.id"), nullable=False),
        sa.Column("last_done", sa.Text),
        sa.Column("streak", sa.Integer, nullable=False, server_default="0"),
        sa.Column("active", sa.Integer, nullable=False, server_default="1"),
    )
    op.create_index("ix_tasks_active", "tasks", ["active"])

    op.create_table(
        "xp_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("date", sa.Text, nullable=False, unique=True),
        sa.Column("profile_xp", sa.REAL, nullable=False),
        sa.Column("domain1_xp", sa.REAL, nullable=False),
        sa.Column("domain2_xp", sa.REAL, nullable=False),
        sa.Column("domain3_xp", sa.REAL, nullable=False),
        sa.Column("domain4_xp", sa.REAL, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("xp_log")
    op.drop_index("ix_tasks_active", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_elements_name", table_name="elements")
    op.drop_index("ix_elements_domain", table_name="elements")
    op.drop_table("elements")
    op.drop_table("domains")
    op.drop_table("user")
