# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parent profile resolution for application approval.

An application carries up to two parent blocks. Each block resolves to at
most one ParentProfile per (school, email): an existing profile is reused
as-is, otherwise a new one is inserted. The unique index on
(school_id, lower(email)) is the final arbiter when two approvals race to
create the same parent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Application, ParentProfile, generate_uuid
from src.models.common import RelationshipType
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MAX_PARENTS_PER_CHILD = 2


def normalize_email(email: str) -> str:
    """Lower-case and trim an email for identity comparison."""
    return email.strip().lower()


@dataclass(frozen=True)
class ParentBlock:
    """One parent's details as submitted on an application."""

    first_name: str
    last_name: str
    email: str
    phone: str | None
    relationship_type: RelationshipType
    primary_contact: bool = False

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)


def parent_blocks_from_application(application: Application) -> list[ParentBlock]:
    """Extract the parent blocks from an application.

    Parent 1 is always present and is the primary contact. Parent 2 is
    included only when both its first name and email are filled in. A second
    block sharing parent 1's email is dropped, since both would resolve to
    the same profile.

    Args:
        application: Application to read.

    Returns:
        List of at most two parent blocks.
    """
    blocks = [
        ParentBlock(
            first_name=application.parent1_first_name,
            last_name=application.parent1_last_name,
            email=application.parent1_email,
            phone=application.parent1_phone,
            relationship_type=RelationshipType(application.parent1_relationship),
            primary_contact=True,
        )
    ]

    if application.parent2_first_name and application.parent2_email:
        second = ParentBlock(
            first_name=application.parent2_first_name,
            last_name=application.parent2_last_name or "",
            email=application.parent2_email,
            phone=application.parent2_phone,
            relationship_type=RelationshipType(
                application.parent2_relationship or RelationshipType.OTHER.value
            ),
        )
        if second.normalized_email != blocks[0].normalized_email:
            blocks.append(second)
        else:
            logger.info(
                "Application %s: parent 2 shares parent 1 email, linking once",
                application.id,
            )

    return blocks


class ParentProfileLinker:
    """Resolve-or-create parent profiles keyed by (school, email).

    Attributes:
        db: Async database session. Writes join the caller's transaction.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def resolve_or_create(
        self,
        school_id: str,
        block: ParentBlock,
    ) -> tuple[ParentProfile, bool]:
        """Return the parent profile for a block, creating it if needed.

        An existing profile is returned unchanged; its stored name and phone
        win over the block's.

        Args:
            school_id: School the profile belongs to.
            block: Submitted parent details.

        Returns:
            Tuple of (profile, created).
        """
        email = block.normalized_email

        existing = await self._find(school_id, email)
        if existing is not None:
            logger.debug("Reusing parent profile %s for %s", existing.id, email)
            return existing, False

        now = utc_now()
        profile = ParentProfile(
            id=generate_uuid(),
            school_id=school_id,
            first_name=block.first_name.strip(),
            last_name=block.last_name.strip(),
            email=email,
            phone=block.phone,
            created_at=now,
            updated_at=now,
        )

        savepoint = await self.db.begin_nested()
        try:
            self.db.add(profile)
            await self.db.flush()
        except IntegrityError:
            await savepoint.rollback()
            winner = await self._find(school_id, email)
            if winner is None:
                raise
            logger.info("Parent profile for %s created concurrently, reusing %s", email, winner.id)
            return winner, False

        await savepoint.commit()
        logger.info("Created parent profile %s for %s", profile.id, email)
        return profile, True

    async def _find(self, school_id: str, email: str) -> ParentProfile | None:
        result = await self.db.execute(
            select(ParentProfile).where(
                ParentProfile.school_id == school_id,
                func.lower(ParentProfile.email) == email,
            )
        )
        return result.scalar_one_or_none()
