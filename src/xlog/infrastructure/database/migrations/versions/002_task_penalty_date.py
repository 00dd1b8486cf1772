"""Track the last overdue penalty per task.

Revision ID: 002_task_penalty_date
Revises: 001_baseline
Create Date: 2025-10-14
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "002_task_penalty_date"
down_revision: str | None = "001_baseline"
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    # NULL means "never penalized": the first sweep after upgrading may
    # penalize tasks that are already overdue.
    op.add_column("tasks", sa.Column("last_penalty_date", sa.Text(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("tasks") as batch:
        batch.drop_column("last_penalty_date")
