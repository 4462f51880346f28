# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher progress board models.

Cards live in columns keyed by status. Within one (school, teacher, status)
partition, card positions form a dense 0..N-1 sequence. The integer version
column is the optimistic-concurrency token and increases on every write.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, generate_uuid


class Lesson(Base, TimestampMixin):
    """Lesson that progress cards track."""

    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=generate_uuid
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)


class ProgressColumn(Base, TimestampMixin):
    """Admin-configured column template for a school's progress boards."""

    __tablename__ = "progress_columns"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=generate_uuid
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status_value: Mapped[str] = mapped_column(String(50), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6B7280")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("school_id", "status_value", name="uq_progress_columns_school_status"),
    )


class ProgressCard(Base, TimestampMixin):
    """Lesson assignment card on a teacher's progress board.

    A card without a student is a template card.
    """

    __tablename__ = "lesson_progress"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=generate_uuid
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(64), nullable=False)
    lesson_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("child_profiles.id", ondelete="SET NULL"),
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    locked_by: Mapped[str | None] = mapped_column(String(64))
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_by: Mapped[str] = mapped_column(String(64), nullable=False)

    lesson: Mapped[Lesson] = relationship(lazy="raise")

    __table_args__ = (
        Index(
            "ix_lesson_progress_board",
            "school_id",
            "teacher_id",
            "status",
            "position",
        ),
        Index("ix_lesson_progress_lock", "locked_by", "locked_at"),
        Index("ix_lesson_progress_school_student", "school_id", "student_id"),
    )

    def __repr__(self) -> str:
        return f"<ProgressCard {self.id} {self.status}@{self.position} v{self.version}>"
