# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress board service.

This module validates and persists card moves between status columns of a
teacher's progress board. Every write keeps the positions of each
(school, teacher, status) partition dense and bumps the version of every
card whose status or position changed. A move carrying a stale version is
rejected; nothing is retried server-side.

Example:
    service = ProgressBoardService(db)
    result = await service.move_card(card_id, "completed", 0, version=3, auth=auth)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import ProgressBoardSettings, get_settings
from src.core.errors import (
    ConflictError,
    InternalError,
    LockedError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from src.domains.progress_board.locks import is_locked_by_other
from src.domains.progress_board.ordering import changed_positions, move_between
from src.infrastructure.database.models import (
    ChildProfile,
    Lesson,
    ProgressCard,
    ProgressColumn,
    generate_uuid,
)
from src.models.common import ProgressStatus
from src.models.progress_board import (
    BatchMoveItem,
    BatchMoveResponse,
    BoardColumn,
    BoardResponse,
    ColumnState,
    CreateCardRequest,
    FailedMove,
    MoveResultResponse,
    ProgressCardResponse,
)
from src.utils.datetime import utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from src.api.middleware.auth import AuthContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnDefinition:
    """One board column: its status key and how it is displayed."""

    status: str
    name: str
    color: str
    position: int


DEFAULT_COLUMNS: tuple[ColumnDefinition, ...] = (
    ColumnDefinition(ProgressStatus.NOT_STARTED.value, "Not Started", "#6B7280", 0),
    ColumnDefinition(ProgressStatus.IN_PROGRESS.value, "In Progress", "#3B82F6", 1),
    ColumnDefinition(ProgressStatus.COMPLETED.value, "Completed", "#10B981", 2),
    ColumnDefinition(ProgressStatus.ON_HOLD.value, "On Hold", "#F59E0B", 3),
)


class ProgressBoardService:
    """Service for reading and changing teacher progress boards.

    Attributes:
        db: Async database session.
        settings: Board settings.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ProgressBoardSettings | None = None,
    ) -> None:
        """Initialize progress board service.

        Args:
            db: Async database session.
            settings: Board settings. Defaults to application settings.
        """
        self.db = db
        self.settings = settings or get_settings().board

    async def get_board(
        self,
        auth: AuthContext,
        teacher_id: str | None = None,
        student_id: str | None = None,
    ) -> BoardResponse:
        """Get a teacher's board, columns in display order.

        Args:
            auth: Acting user.
            teacher_id: Board owner. Only admins may read another teacher's board.
            student_id: Optional filter on the student of each card.

        Returns:
            Board with each column's cards ordered by position.
        """
        owner = teacher_id if (teacher_id and auth.is_admin) else auth.user_id
        columns = await self.get_columns(auth.school_id)

        query = select(ProgressCard).where(
            ProgressCard.school_id == auth.school_id,
            ProgressCard.teacher_id == owner,
        )
        if student_id:
            query = query.where(ProgressCard.student_id == student_id)
        result = await self.db.execute(
            query.order_by(ProgressCard.position, ProgressCard.created_at)
        )
        cards = result.scalars().all()

        by_status: dict[str, list[ProgressCardResponse]] = {c.status: [] for c in columns}
        for card in cards:
            if card.status in by_status:
                by_status[card.status].append(ProgressCardResponse.model_validate(card))
            else:
                logger.warning("Card %s has unknown status %s", card.id, card.status)

        return BoardResponse(
            teacher_id=owner,
            columns=[
                BoardColumn(
                    status=c.status,
                    name=c.name,
                    color=c.color,
                    position=c.position,
                    cards=by_status[c.status],
                )
                for c in columns
            ],
        )

    async def get_columns(self, school_id: str) -> list[ColumnDefinition]:
        """Get the active columns of a school, or the defaults if none are set."""
        result = await self.db.execute(
            select(ProgressColumn)
            .where(
                ProgressColumn.school_id == school_id,
                ProgressColumn.is_active.is_(True),
            )
            .order_by(ProgressColumn.position)
        )
        rows = result.scalars().all()
        if not rows:
            return list(DEFAULT_COLUMNS)

        return [
            ColumnDefinition(
                status=row.status_value,
                name=row.name,
                color=row.color,
                position=row.position,
            )
            for row in rows
        ]

    async def create_card(
        self,
        auth: AuthContext,
        request: CreateCardRequest,
    ) -> ProgressCardResponse:
        """Create a card at the end of a column on the caller's board.

        Raises:
            ValidationError: Unknown column, foreign lesson or student, or a full column.
            ConflictError: The lesson/student pair already sits in that column.
        """
        try:
            await self._ensure_valid_status(auth.school_id, request.status)

            lesson = await self.db.execute(
                select(Lesson.id).where(
                    Lesson.id == request.lesson_id,
                    Lesson.school_id == auth.school_id,
                )
            )
            if lesson.scalar_one_or_none() is None:
                raise ValidationError(f"Lesson {request.lesson_id} not found in school")

            if request.student_id:
                student = await self.db.execute(
                    select(ChildProfile.id).where(
                        ChildProfile.id == request.student_id,
                        ChildProfile.school_id == auth.school_id,
                    )
                )
                if student.scalar_one_or_none() is None:
                    raise ValidationError(f"Student {request.student_id} not found in school")

                duplicate = await self.db.execute(
                    select(ProgressCard.id).where(
                        ProgressCard.school_id == auth.school_id,
                        ProgressCard.teacher_id == auth.user_id,
                        ProgressCard.lesson_id == request.lesson_id,
                        ProgressCard.student_id == request.student_id,
                        ProgressCard.status == request.status,
                    )
                )
                if duplicate.scalar_one_or_none() is not None:
                    raise ConflictError(
                        "Lesson is already assigned to this student in that column"
                    )

            count_result = await self.db.execute(
                select(func.count())
                .select_from(ProgressCard)
                .where(
                    ProgressCard.school_id == auth.school_id,
                    ProgressCard.teacher_id == auth.user_id,
                    ProgressCard.status == request.status,
                )
            )
            position = count_result.scalar() or 0
            if position >= self.settings.max_cards_per_column:
                raise ValidationError(
                    f"Column {request.status} already holds "
                    f"{self.settings.max_cards_per_column} cards"
                )

            now = utc_now()
            card = ProgressCard(
                id=generate_uuid(),
                school_id=auth.school_id,
                teacher_id=auth.user_id,
                lesson_id=request.lesson_id,
                student_id=request.student_id,
                status=request.status,
                position=position,
                version=1,
                created_by=auth.user_id,
                updated_by=auth.user_id,
                created_at=now,
                updated_at=now,
            )
            self.db.add(card)
            await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Creating card for lesson %s failed", request.lesson_id)
            raise InternalError("Failed to create card") from e

        logger.info("Created card %s in %s at %d", card.id, card.status, card.position)
        return ProgressCardResponse.model_validate(card)

    async def delete_card(self, card_id: str, auth: AuthContext) -> None:
        """Delete a card and close the gap in its column.

        Raises:
            NotFoundError: If the card does not exist on a board the caller may edit.
            LockedError: If another user holds the card's lock.
        """
        try:
            card = await self._get_card_for_update(card_id, auth)
            if is_locked_by_other(card, auth.user_id, self.settings.lock_ttl_seconds):
                raise LockedError(f"Card is locked by {card.locked_by}", code="CARD_LOCKED")

            result = await self.db.execute(
                select(ProgressCard)
                .where(
                    ProgressCard.school_id == card.school_id,
                    ProgressCard.teacher_id == card.teacher_id,
                    ProgressCard.status == card.status,
                )
                .order_by(ProgressCard.position, ProgressCard.created_at)
                .with_for_update()
            )
            column = list(result.scalars().all())

            await self.db.delete(card)
            remaining = [c for c in column if c.id != card.id]
            self._renumber(remaining, auth.user_id, utc_now())
            await self.db.commit()
        except ServiceError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Deleting card %s failed", card_id)
            raise InternalError("Failed to delete card") from e

        logger.info("Deleted card %s", card_id)

    async def move_card(
        self,
        card_id: str,
        new_status: str,
        new_position: int,
        version: int,
        auth: AuthContext,
    ) -> MoveResultResponse:
        """Move a card to another column.

        Args:
            card_id: Card to move.
            new_status: Destination column key.
            new_position: Requested index in the destination; clamped.
            version: Card version the caller last saw.
            auth: Acting user.

        Returns:
            Canonical card plus the new order of both affected columns.

        Raises:
            NotFoundError: If the card does not exist on a board the caller may edit.
            ValidationError: Unknown destination column, or a same-column move.
            LockedError: If another user holds the card's lock.
            ConflictError: If ``version`` is stale.
            InternalError: If the transaction fails.
        """
        try:
            result = await self._apply_move(card_id, new_status, new_position, version, auth)
            await self.db.commit()
        except ServiceError as e:
            await self.db.rollback()
            logger.info("Move of card %s rejected: %s", card_id, e.message)
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Move of card %s failed", card_id)
            raise InternalError("Failed to move card") from e

        logger.info(
            "Moved card %s to %s@%d (v%d)",
            card_id,
            result.card.status,
            result.card.position,
            result.card.version,
        )
        return result

    async def batch_move(
        self,
        moves: Sequence[BatchMoveItem],
        auth: AuthContext,
    ) -> BatchMoveResponse:
        """Apply independent moves, each in its own savepoint.

        A rejected move is reported in ``failed_moves`` and leaves the other
        moves untouched.

        Args:
            moves: Moves to apply, in order.
            auth: Acting user.

        Returns:
            Updated cards and failed moves.
        """
        response = BatchMoveResponse()
        try:
            for move in moves:
                savepoint = await self.db.begin_nested()
                try:
                    result = await self._apply_move(
                        move.card_id, move.new_status, move.new_position, move.version, auth
                    )
                except ServiceError as e:
                    await savepoint.rollback()
                    response.failed_moves.append(
                        FailedMove(card_id=move.card_id, code=e.code, error=e.message)
                    )
                    continue
                await savepoint.commit()
                response.updated_cards.append(result.card)

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Batch move failed")
            raise InternalError("Failed to apply batch move") from e

        logger.info(
            "Batch move: %d applied, %d failed",
            len(response.updated_cards),
            len(response.failed_moves),
        )
        return response

    async def _apply_move(
        self,
        card_id: str,
        new_status: str,
        new_position: int,
        version: int,
        auth: AuthContext,
    ) -> MoveResultResponse:
        """Validate and write one move without committing."""
        card = await self._get_card_for_update(card_id, auth)

        await self._ensure_valid_status(auth.school_id, new_status)

        if new_status == card.status:
            raise ValidationError("Card is already in that column")

        if is_locked_by_other(card, auth.user_id, self.settings.lock_ttl_seconds):
            raise LockedError(f"Card is locked by {card.locked_by}", code="CARD_LOCKED")

        if version != card.version:
            raise ConflictError(
                f"Card was modified (version {card.version}, got {version})",
                code="VERSION_CONFLICT",
            )

        source_status = card.status
        result = await self.db.execute(
            select(ProgressCard)
            .where(
                ProgressCard.school_id == card.school_id,
                ProgressCard.teacher_id == card.teacher_id,
                ProgressCard.status.in_([source_status, new_status]),
            )
            .order_by(ProgressCard.status, ProgressCard.position, ProgressCard.created_at)
            .with_for_update()
        )
        partition = result.scalars().all()
        source = [c for c in partition if c.status == source_status]
        destination = [c for c in partition if c.status == new_status and c.id != card.id]
        if card.id not in {c.id for c in source}:
            source.append(card)

        source_ids, destination_ids = move_between(
            [c.id for c in source],
            [c.id for c in destination],
            card.id,
            new_position,
        )

        now = utc_now()
        card.status = new_status
        card.position = destination_ids.index(card.id)
        card.version += 1
        card.updated_at = now
        card.updated_by = auth.user_id

        by_id = {c.id: c for c in source + destination}
        source_cards = [by_id[i] for i in source_ids]
        destination_cards = [by_id[i] for i in destination_ids]
        self._renumber(source_cards, auth.user_id, now)
        self._renumber(
            [c for c in destination_cards if c.id != card.id],
            auth.user_id,
            now,
            order=destination_ids,
        )
        await self.db.flush()

        return MoveResultResponse(
            card=ProgressCardResponse.model_validate(card),
            source_column=ColumnState(
                status=source_status,
                cards=[ProgressCardResponse.model_validate(c) for c in source_cards],
            ),
            destination_column=ColumnState(
                status=new_status,
                cards=[ProgressCardResponse.model_validate(c) for c in destination_cards],
            ),
        )

    def _renumber(
        self,
        cards: Sequence[ProgressCard],
        user_id: str,
        now: datetime,
        order: Sequence[str] | None = None,
    ) -> None:
        """Write dense positions, bumping the version of each card that moved.

        Args:
            cards: Cards to renumber.
            user_id: Acting user.
            now: Write timestamp.
            order: Full column order to index into; defaults to ``cards`` order.
        """
        sequence = list(order) if order is not None else [c.id for c in cards]
        changed = changed_positions(sequence, {c.id: c.position for c in cards})
        for card in cards:
            if card.id in changed:
                card.position = changed[card.id]
                card.version += 1
                card.updated_at = now
                card.updated_by = user_id

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

    async def _ensure_valid_status(self, school_id: str, status: str) -> None:
        columns = await self.get_columns(school_id)
        if status not in {c.status for c in columns}:
            raise ValidationError(f"Invalid status: {status}")
