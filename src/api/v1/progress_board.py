# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher progress board API endpoints.

This module provides endpoints for the lesson progress board:
- GET / - Get the board
- POST /cards - Create a card
- DELETE /cards/{card_id} - Delete a card
- PATCH /cards/{card_id}/move - Move a card to another column
- POST /batch-move - Apply several moves
- POST /cards/{card_id}/lock - Acquire or refresh a card lock
- DELETE /cards/{card_id}/lock - Release a card lock

Teachers work on their own board; admins may act on any board of their school.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_teacher_or_admin
from src.api.errors import to_http_exception
from src.api.middleware.auth import AuthContext
from src.core.errors import ServiceError
from src.domains.progress_board import CardLockService, ProgressBoardService
from src.models.progress_board import (
    BatchMoveRequest,
    BatchMoveResponse,
    BoardResponse,
    CardLockResponse,
    CreateCardRequest,
    MoveCardRequest,
    MoveResultResponse,
    ProgressCardResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ProgressBoardService:
    """Get progress board service instance."""
    return ProgressBoardService(db=db)


def _get_lock_service(db: AsyncSession) -> CardLockService:
    """Get card lock service instance."""
    return CardLockService(db=db)


@router.get(
    "",
    response_model=BoardResponse,
    summary="Get progress board",
)
async def get_board(
    teacher_id: Annotated[
        str | None, Query(description="Board owner (admins only)")
    ] = None,
    student_id: Annotated[str | None, Query(description="Filter by student")] = None,
    auth: AuthContext = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> BoardResponse:
    """Get a board with columns in display order."""
    service = _get_service(db)
    return await service.get_board(auth, teacher_id=teacher_id, student_id=student_id)


@router.post(
    "/cards",
    response_model=ProgressCardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create card",
)
async def create_card(
    data: CreateCardRequest,
    auth: AuthContext = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> ProgressCardResponse:
    """Create a card at the end of a column."""
    service = _get_service(db)

    try:
        return await service.create_card(auth, data)
    except ServiceError as e:
        raise to_http_exception(e) from e


@router.delete(
    "/cards/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete card",
)
async def delete_card(
    card_id: str,
    auth: AuthContext = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a card."""
    service = _get_service(db)

    try:
        await service.delete_card(card_id, auth)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/cards/{card_id}/move",
    response_model=MoveResultResponse,
    summary="Move card",
    description=(
        "Move a card to another column. The request carries the card version "
        "the client last saw; a stale version is rejected with 409."
    ),
)
async def move_card(
    card_id: str,
    data: MoveCardRequest,
    auth: AuthContext = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> MoveResultResponse:
    """Move a card.

    Args:
        card_id: Card to move.
        data: Destination column, position and expected version.
        auth: Authenticated teacher or admin.
        db: Database session.

    Returns:
        Canonical card and both affected columns.

    Raises:
        HTTPException: 400 invalid move, 404 unknown card, 409 stale version,
            423 locked by another user.
    """
    service = _get_service(db)

    try:
        return await service.move_card(
            card_id,
            new_status=data.new_status,
            new_position=data.new_position,
            version=data.version,
            auth=auth,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/batch-move",
    response_model=BatchMoveResponse,
    summary="Move several cards",
)
async def batch_move(
    data: BatchMoveRequest,
    auth: AuthContext = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> BatchMoveResponse:
    """Apply independent moves; failures are reported per move."""
    service = _get_service(db)

    try:
        return await service.batch_move(data.moves, auth)
    except ServiceError as e:
        raise to_http_exception(e) from e


@router.post(
    "/cards/{card_id}/lock",
    response_model=CardLockResponse,
    summary="Lock card",
)
async def lock_card(
    card_id: str,
    auth: AuthContext = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> CardLockResponse:
    """Acquire or refresh a lock on a card."""
    service = _get_lock_service(db)

    try:
        return await service.lock_card(card_id, auth)
    except ServiceError as e:
        raise to_http_exception(e) from e


@router.delete(
    "/cards/{card_id}/lock",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unlock card",
)
async def unlock_card(
    card_id: str,
    auth: AuthContext = Depends(require_teacher_or_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Release the caller's lock on a card."""
    service = _get_lock_service(db)

    try:
        await service.unlock_card(card_id, auth)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)
