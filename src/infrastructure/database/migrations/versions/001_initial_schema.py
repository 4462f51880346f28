# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-06-02

Creates the enrollment tables (applications, child and parent profiles,
relationships), the admin access log and the progress board tables.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # 1. applications
    # ==========================================================================
    op.create_table(
        "applications",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        # Child
        sa.Column("child_first_name", sa.String(100), nullable=False),
        sa.Column("child_last_name", sa.String(100), nullable=False),
        sa.Column("child_date_of_birth", sa.Date, nullable=False),
        sa.Column("child_gender", sa.String(20), nullable=True),
        sa.Column("preferred_start_date", sa.Date, nullable=True),
        sa.Column("special_needs", sa.Text, nullable=True),
        sa.Column("medical_conditions", sa.Text, nullable=True),
        # Parent 1
        sa.Column("parent1_first_name", sa.String(100), nullable=False),
        sa.Column("parent1_last_name", sa.String(100), nullable=False),
        sa.Column("parent1_email", sa.String(255), nullable=False),
        sa.Column("parent1_phone", sa.String(30), nullable=True),
        sa.Column("parent1_relationship", sa.String(16), nullable=False),
        # Parent 2
        sa.Column("parent2_first_name", sa.String(100), nullable=True),
        sa.Column("parent2_last_name", sa.String(100), nullable=True),
        sa.Column("parent2_email", sa.String(255), nullable=True),
        sa.Column("parent2_phone", sa.String(30), nullable=True),
        sa.Column("parent2_relationship", sa.String(16), nullable=True),
        # Processing
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_by_admin_id", sa.String(64), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('PENDING','APPROVED','REJECTED')",
            name="ck_applications_status",
        ),
    )
    op.create_index("ix_applications_school_status", "applications", ["school_id", "status"])

    # ==========================================================================
    # 2. child_profiles
    # ==========================================================================
    op.create_table(
        "child_profiles",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "application_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("applications.id", ondelete="SET NULL"),
            unique=True,
            nullable=True,
        ),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=False),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("special_needs", sa.Text, nullable=True),
        sa.Column("medical_conditions", sa.Text, nullable=True),
        sa.Column("enrollment_status", sa.String(16), nullable=False, server_default="ACTIVE"),
        sa.Column("created_by_admin_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "enrollment_status IN ('ACTIVE','INACTIVE','WAITLISTED')",
            name="ck_child_profiles_enrollment_status",
        ),
    )
    op.create_index("ix_child_profiles_school_id", "child_profiles", ["school_id"])

    # ==========================================================================
    # 3. parent_profiles
    # ==========================================================================
    op.create_table(
        "parent_profiles",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_parent_profiles_school_email",
        "parent_profiles",
        ["school_id", sa.text("lower(email)")],
        unique=True,
    )

    # ==========================================================================
    # 4. parent_child_relationships
    # ==========================================================================
    op.create_table(
        "parent_child_relationships",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "parent_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("parent_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "child_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("child_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("relationship_type", sa.String(16), nullable=False),
        sa.Column("primary_contact", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("pickup_authorized", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.UniqueConstraint("parent_id", "child_id", name="uq_parent_child"),
        sa.CheckConstraint(
            "relationship_type IN ('MOTHER','FATHER','GUARDIAN','OTHER')",
            name="ck_parent_child_relationship_type",
        ),
    )
    op.create_index(
        "ix_parent_child_relationships_child_id",
        "parent_child_relationships",
        ["child_id"],
    )

    # ==========================================================================
    # 5. admin_access_logs
    # ==========================================================================
    op.create_table(
        "admin_access_logs",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("admin_user_id", sa.String(64), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_type", sa.String(30), nullable=False),
        sa.Column("target_id", sa.String(64), nullable=False),
        sa.Column(
            "details",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_admin_access_logs_school_timestamp",
        "admin_access_logs",
        ["school_id", "timestamp"],
    )
    op.create_index(
        "ix_admin_access_logs_target",
        "admin_access_logs",
        ["target_type", "target_id"],
    )

    # ==========================================================================
    # 6. lessons
    # ==========================================================================
    op.create_table(
        "lessons",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_lessons_school_id", "lessons", ["school_id"])

    # ==========================================================================
    # 7. progress_columns
    # ==========================================================================
    op.create_table(
        "progress_columns",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("status_value", sa.String(50), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("color", sa.String(7), nullable=False, server_default="#6B7280"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint(
            "school_id", "status_value", name="uq_progress_columns_school_status"
        ),
    )

    # ==========================================================================
    # 8. lesson_progress
    # ==========================================================================
    op.create_table(
        "lesson_progress",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("teacher_id", sa.String(64), nullable=False),
        sa.Column(
            "lesson_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("lessons.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("child_profiles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("locked_by", sa.String(64), nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("updated_by", sa.String(64), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_lesson_progress_lesson_id", "lesson_progress", ["lesson_id"])
    op.create_index(
        "ix_lesson_progress_board",
        "lesson_progress",
        ["school_id", "teacher_id", "status", "position"],
    )
    op.create_index("ix_lesson_progress_lock", "lesson_progress", ["locked_by", "locked_at"])
    op.create_index(
        "ix_lesson_progress_school_student",
        "lesson_progress",
        ["school_id", "student_id"],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("lesson_progress")
    op.drop_table("progress_columns")
    op.drop_table("lessons")
    op.drop_table("admin_access_logs")
    op.drop_table("parent_child_relationships")
    op.drop_table("parent_profiles")
    op.drop_table("child_profiles")
    op.drop_table("applications")
