# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment application model.

An application carries the child's details and up to two parent blocks
until an admin approves or rejects it. Once processed the row is frozen.
"""

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, generate_uuid
from src.utils.datetime import utc_now


class Application(Base):
    """Submitted enrollment request awaiting an admin decision."""

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=generate_uuid
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")

    # Child
    child_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    child_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    child_date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    child_gender: Mapped[str | None] = mapped_column(String(20))
    preferred_start_date: Mapped[date | None] = mapped_column(Date)
    special_needs: Mapped[str | None] = mapped_column(Text)
    medical_conditions: Mapped[str | None] = mapped_column(Text)

    # Parent 1 (required)
    parent1_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent1_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent1_email: Mapped[str] = mapped_column(String(255), nullable=False)
    parent1_phone: Mapped[str | None] = mapped_column(String(30))
    parent1_relationship: Mapped[str] = mapped_column(String(16), nullable=False)

    # Parent 2 (optional)
    parent2_first_name: Mapped[str | None] = mapped_column(String(100))
    parent2_last_name: Mapped[str | None] = mapped_column(String(100))
    parent2_email: Mapped[str | None] = mapped_column(String(255))
    parent2_phone: Mapped[str | None] = mapped_column(String(30))
    parent2_relationship: Mapped[str | None] = mapped_column(String(16))

    # Processing
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    processed_by_admin_id: Mapped[str | None] = mapped_column(String(64))
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        Index("ix_applications_school_status", "school_id", "status"),
        CheckConstraint(
            "status IN ('PENDING','APPROVED','REJECTED')",
            name="ck_applications_status",
        ),
    )

    @property
    def is_pending(self) -> bool:
        """Whether the application still awaits a decision."""
        return self.status == "PENDING"

    def __repr__(self) -> str:
        return f"<Application {self.id} status={self.status}>"


class ApplicationProcessingLock(Base):
    """Marks an application as being approved or rejected by one admin.

    At most one row per application. A row older than the configured TTL
    no longer blocks other admins and is replaced on their next attempt.
    """

    __tablename__ = "application_processing_locks"

    application_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("applications.id", ondelete="CASCADE"),
        primary_key=True,
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    locked_by: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    locked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            "action IN ('approve','reject')",
            name="ck_application_processing_locks_action",
        ),
        Index("ix_application_processing_locks_locked_by", "locked_by"),
    )
