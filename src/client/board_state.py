# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Immutable client-side board state and its reducers.

A BoardState is never mutated. Each move produces a new state, so the state
captured before an optimistic move can be restored exactly when the server
rejects it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from src.domains.progress_board.ordering import move_between
from src.models.progress_board import (
    BoardResponse,
    MoveResultResponse,
    ProgressCardResponse,
)


@dataclass(frozen=True)
class CardView:
    """What the client knows about one card."""

    id: str
    status: str
    position: int
    version: int

    @classmethod
    def from_response(cls, card: ProgressCardResponse) -> CardView:
        return cls(id=card.id, status=card.status, position=card.position, version=card.version)


@dataclass(frozen=True)
class BoardState:
    """Snapshot of a board: column key to its ordered cards.

    Attributes:
        order: Column keys in display order.
        columns: Cards of each column, ordered by position.
    """

    order: tuple[str, ...]
    columns: Mapping[str, tuple[CardView, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoardState):
            return NotImplemented
        return self.order == other.order and dict(self.columns) == dict(other.columns)

    def column(self, status: str) -> tuple[CardView, ...]:
        """Cards of one column; empty for an unknown key."""
        return self.columns.get(status, ())

    def find(self, card_id: str) -> CardView | None:
        """Find a card anywhere on the board."""
        for cards in self.columns.values():
            for card in cards:
                if card.id == card_id:
                    return card
        return None

    def with_columns(self, updates: Mapping[str, tuple[CardView, ...]]) -> BoardState:
        """Return a new state with some columns replaced."""
        columns = dict(self.columns)
        columns.update(updates)
        order = self.order + tuple(k for k in updates if k not in self.order)
        return BoardState(order=order, columns=columns)

    @classmethod
    def from_response(cls, board: BoardResponse) -> BoardState:
        """Build a state from the server's board."""
        return cls(
            order=tuple(c.status for c in board.columns),
            columns={c.status: _views(c.cards) for c in board.columns},
        )


def _views(cards: Iterable[ProgressCardResponse]) -> tuple[CardView, ...]:
    return tuple(CardView.from_response(c) for c in sorted(cards, key=lambda c: c.position))


def apply_optimistic_move(
    state: BoardState,
    card_id: str,
    from_status: str,
    to_status: str,
    new_position: int,
) -> BoardState:
    """Move a card locally, exactly as the server will order it.

    The card leaves ``from_status``, enters ``to_status`` at the clamped
    position, and both columns are renumbered densely. Versions are left
    untouched; only the server issues versions.

    Raises:
        ValueError: If the card is not in ``from_status``.
    """
    source = state.column(from_status)
    destination = state.column(to_status)
    by_id = {c.id: c for c in source + destination}

    source_ids, destination_ids = move_between(
        [c.id for c in source],
        [c.id for c in destination],
        card_id,
        new_position,
    )

    return state.with_columns(
        {
            from_status: tuple(
                replace(by_id[i], position=index) for index, i in enumerate(source_ids)
            ),
            to_status: tuple(
                replace(by_id[i], status=to_status, position=index)
                for index, i in enumerate(destination_ids)
            ),
        }
    )


def commit_or_rollback(
    previous: BoardState,
    optimistic: BoardState,
    outcome: MoveResultResponse | BaseException,
) -> BoardState:
    """Settle an optimistic move.

    Args:
        previous: State captured before the optimistic move.
        optimistic: State after the optimistic move.
        outcome: Server result, or the error that ended the request.

    Returns:
        ``previous`` itself on error; otherwise the optimistic state with
        both affected columns replaced by the server's canonical order.
    """
    if isinstance(outcome, BaseException):
        return previous

    return optimistic.with_columns(
        {
            outcome.source_column.status: _views(outcome.source_column.cards),
            outcome.destination_column.status: _views(outcome.destination_column.cards),
        }
    )
