# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Card lock service.

A teacher takes a short-lived lock on a card while dragging or editing it.
Locks expire after the configured TTL; an expired lock is treated as
released and may be taken over without an explicit unlock.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import ProgressBoardSettings, get_settings
from src.core.errors import (
    InternalError,
    LockedError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from src.infrastructure.database.models import ProgressCard
from src.models.progress_board import CardLockResponse
from src.utils.datetime import is_expired, seconds_ago, utc_now

if TYPE_CHECKING:
    from src.api.middleware.auth import AuthContext

logger = logging.getLogger(__name__)


def is_locked_by_other(card: ProgressCard, user_id: str, ttl_seconds: int) -> bool:
    """Check whether another user holds an unexpired lock on the card."""
    if card.locked_by is None or card.locked_by == user_id:
        return False
    return not is_expired(card.locked_at, ttl_seconds)


class CardLockService:
    """Service for acquiring and releasing card locks.

    Attributes:
        db: Async database session.
        settings: Board settings holding the lock TTL and limits.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ProgressBoardSettings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings().board

    async def lock_card(self, card_id: str, auth: AuthContext) -> CardLockResponse:
        """Acquire or refresh a lock on a card.

        Args:
            card_id: Card to lock.
            auth: Acting user.

        Returns:
            The lock now held by the caller.

        Raises:
            NotFoundError: If the card does not exist in the school.
            LockedError: If another user holds an unexpired lock.
            ValidationError: If the caller already holds too many locks.
        """
        try:
            card = await self._get_card_for_update(card_id, auth)

            if is_locked_by_other(card, auth.user_id, self.settings.lock_ttl_seconds):
                raise LockedError(
                    f"Card is locked by {card.locked_by}", code="CARD_LOCKED"
                )

            if card.locked_by != auth.user_id:
                held = await self._count_active_locks(auth)
                if held >= self.settings.max_concurrent_locks:
                    raise ValidationError(
                        f"Cannot hold more than {self.settings.max_concurrent_locks} card locks",
                        code="TOO_MANY_LOCKS",
                    )

            now = utc_now()
            card.locked_by = auth.user_id
            card.locked_at = now
            await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Locking card %s failed", card_id)
            raise InternalError("Failed to lock card") from e

        logger.debug("Card %s locked by %s", card_id, auth.user_id)

        return CardLockResponse(
            card_id=card.id,
            locked_by=auth.user_id,
            locked_at=now,
            expires_at=now + timedelta(seconds=self.settings.lock_ttl_seconds),
        )

    async def unlock_card(self, card_id: str, auth: AuthContext) -> None:
        """Release the caller's lock on a card.

        Unlocking a card that is not locked, or whose lock expired, succeeds.

        Raises:
            NotFoundError: If the card does not exist in the school.
            LockedError: If another user holds an unexpired lock.
        """
        try:
            card = await self._get_card_for_update(card_id, auth)

            if is_locked_by_other(card, auth.user_id, self.settings.lock_ttl_seconds):
                raise LockedError("Card is not locked by this user", code="CARD_LOCKED")

            if card.locked_by is not None:
                card.locked_by = None
                card.locked_at = None
                await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Unlocking card %s failed", card_id)
            raise InternalError("Failed to unlock card") from e

        logger.debug("Card %s unlocked by %s", card_id, auth.user_id)

    async def _get_card_for_update(self, card_id: str, auth: AuthContext) -> ProgressCard:
        query = select(ProgressCard).where(
            ProgressCard.id == card_id,
            ProgressCard.school_id == auth.school_id,
        )
        if not auth.is_admin:
            query = query.where(ProgressCard.teacher_id == auth.user_id)

        result = await self.db.execute(query.with_for_update())
        card = result.scalar_one_or_none()
        if card is None:
            raise NotFoundError(f"Card {card_id} not found", code="CARD_NOT_FOUND")
        return card

    async def _count_active_locks(self, auth: AuthContext) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ProgressCard)
            .where(
                ProgressCard.school_id == auth.school_id,
                ProgressCard.locked_by == auth.user_id,
                ProgressCard.locked_at > seconds_ago(self.settings.lock_ttl_seconds),
            )
        )
        return result.scalar() or 0
