# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress board request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProgressCardResponse(BaseModel):
    """Canonical server state of one card."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    lesson_id: str
    student_id: str | None = None
    status: str
    position: int
    version: int
    locked_by: str | None = None
    locked_at: datetime | None = None
    updated_at: datetime


class ColumnState(BaseModel):
    """Ordered cards of one column after a write."""

    status: str
    cards: list[ProgressCardResponse] = Field(default_factory=list)


class BoardColumn(ColumnState):
    """Column as rendered on the board."""

    name: str
    color: str
    position: int


class BoardResponse(BaseModel):
    """Full board for one teacher."""

    teacher_id: str
    columns: list[BoardColumn]


class CreateCardRequest(BaseModel):
    """Create a card at the end of a column."""

    lesson_id: str = Field(min_length=1)
    student_id: str | None = None
    status: str = Field(min_length=1, max_length=50)


class MoveCardRequest(BaseModel):
    """Move a card to another column.

    ``new_position`` is clamped to the destination column's bounds.
    """

    new_status: str = Field(min_length=1, max_length=50)
    new_position: int
    version: int = Field(ge=1, description="Card version the client last saw")


class MoveResultResponse(BaseModel):
    """Canonical card and both affected columns after a move."""

    card: ProgressCardResponse
    source_column: ColumnState
    destination_column: ColumnState


class BatchMoveItem(MoveCardRequest):
    """One move inside a batch."""

    card_id: str = Field(min_length=1)


class BatchMoveRequest(BaseModel):
    """Several independent moves."""

    moves: list[BatchMoveItem] = Field(min_length=1, max_length=50)


class FailedMove(BaseModel):
    """A move from a batch that was not applied."""

    card_id: str
    code: str
    error: str


class BatchMoveResponse(BaseModel):
    """Outcome of a batch move."""

    updated_cards: list[ProgressCardResponse] = Field(default_factory=list)
    failed_moves: list[FailedMove] = Field(default_factory=list)


class CardLockResponse(BaseModel):
    """Lock held on a card."""

    card_id: str
    locked_by: str
    locked_at: datetime
    expires_at: datetime
