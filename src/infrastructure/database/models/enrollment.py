# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment models: child profiles, parent profiles and their links.

After approval these rows are owned independently of the originating
application; deleting an application never cascades into them.
"""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, generate_uuid
from src.utils.datetime import utc_now


class ChildProfile(Base, TimestampMixin):
    """Enrolled child, created once per approved application."""

    __tablename__ = "child_profiles"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=generate_uuid
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    application_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("applications.id", ondelete="SET NULL"),
        unique=True,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str | None] = mapped_column(String(20))
    start_date: Mapped[date | None] = mapped_column(Date)
    special_needs: Mapped[str | None] = mapped_column(Text)
    medical_conditions: Mapped[str | None] = mapped_column(Text)
    enrollment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="ACTIVE")
    created_by_admin_id: Mapped[str | None] = mapped_column(String(64))

    relationships: Mapped[list["ParentChildRelationship"]] = relationship(
        back_populates="child",
    )

    __table_args__ = (
        CheckConstraint(
            "enrollment_status IN ('ACTIVE','INACTIVE','WAITLISTED')",
            name="ck_child_profiles_enrollment_status",
        ),
    )


class ParentProfile(Base, TimestampMixin):
    """Parent identity, at most one per (school, email)."""

    __tablename__ = "parent_profiles"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=generate_uuid
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))

    relationships: Mapped[list["ParentChildRelationship"]] = relationship(
        back_populates="parent",
    )

    __table_args__ = (
        Index(
            "uq_parent_profiles_school_email",
            "school_id",
            text("lower(email)"),
            unique=True,
        ),
    )


class ParentChildRelationship(Base):
    """Link between a parent profile and a child profile."""

    __tablename__ = "parent_child_relationships"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=generate_uuid
    )
    school_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    parent_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("parent_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    child_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    relationship_type: Mapped[str] = mapped_column(String(16), nullable=False)
    primary_contact: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pickup_authorized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    parent: Mapped[ParentProfile] = relationship(back_populates="relationships")
    child: Mapped[ChildProfile] = relationship(back_populates="relationships")

    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_parent_child"),
        CheckConstraint(
            "relationship_type IN ('MOTHER','FATHER','GUARDIAN','OTHER')",
            name="ck_parent_child_relationship_type",
        ),
    )
