# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Add application processing locks.

Revision ID: 002_add_application_processing_locks
Revises: 001_initial_schema
Create Date: 2025-06-16

One row per application currently being approved or rejected.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "002_add_application_processing_locks"
down_revision: Union[str, None] = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the application_processing_locks table."""
    op.create_table(
        "application_processing_locks",
        sa.Column(
            "application_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("locked_by", sa.String(64), nullable=False),
        sa.Column("action", sa.String(16), nullable=False),
        sa.Column(
            "locked_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "action IN ('approve','reject')",
            name="ck_application_processing_locks_action",
        ),
    )
    op.create_index(
        "ix_application_processing_locks_locked_by",
        "application_processing_locks",
        ["locked_by"],
    )


def downgrade() -> None:
    """Drop the application_processing_locks table."""
    op.drop_index(
        "ix_application_processing_locks_locked_by",
        table_name="application_processing_locks",
    )
    op.drop_table("application_processing_locks")
