# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Optimistic move reconciliation for the progress board.

The reconciler owns the board state shown to the user. A move is applied
locally at once, then sent to the server. The server's answer either heals
the local state with the canonical order or restores the snapshot taken
before the move. When the outcome is unknown (timeout, transport failure)
the board is refetched, as it is after a rejection that shows the local
copy is stale and after any unexpected failure.
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

import httpx

from src.client.board_client import ProgressBoardClient
from src.client.board_state import BoardState, apply_optimistic_move, commit_or_rollback
from src.core.config import get_settings
from src.core.errors import ConflictError, LockedError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

STALE_CARD_ERRORS = (ConflictError, LockedError, NotFoundError)


class MoveOutcome(str, Enum):
    """How a move request ended on the client."""

    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    IGNORED = "ignored"


class BoardReconciler:
    """Owns a board state and reconciles optimistic moves with the server.

    Attributes:
        state: Current board state.
    """

    def __init__(
        self,
        client: ProgressBoardClient,
        state: BoardState | None = None,
        timeout: float | None = None,
        on_change: Callable[[BoardState], None] | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            client: Board API client.
            state: Initial state. Call refresh() to load it from the server.
            timeout: Seconds to wait for a move. Defaults to the board settings.
            on_change: Called with every new state.
        """
        self._client = client
        self._state = state or BoardState(order=())
        self._timeout = timeout if timeout is not None else get_settings().board.move_timeout_seconds
        self._on_change = on_change
        self._in_flight: set[str] = set()
        self._refresh_pending = False
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> BoardState:
        return self._state

    @property
    def in_flight(self) -> frozenset[str]:
        """Ids of cards with a move awaiting the server."""
        return frozenset(self._in_flight)

    @property
    def refresh_task(self) -> asyncio.Task[None] | None:
        """The most recently scheduled forced refetch, if any."""
        return self._refresh_task

    async def refresh(self) -> None:
        """Replace the state with the server's board."""
        try:
            board = await self._client.get_board()
        except (ServiceError, httpx.HTTPError, ValueError) as e:
            logger.warning("Board refresh failed: %s", e)
            return
        self._set_state(BoardState.from_response(board))

    async def move_card(self, card_id: str, to_status: str, new_position: int) -> MoveOutcome:
        """Move a card optimistically and settle it with the server.

        A card whose previous move is still in flight ignores the request,
        as does a move into the card's own column.

        Args:
            card_id: Card to move.
            to_status: Destination column key.
            new_position: Requested index in the destination.

        Returns:
            How the move ended.

        Raises:
            Exception: Any failure other than a timeout, transport error or
                service error, after the snapshot is restored.
        """
        if card_id in self._in_flight:
            logger.debug("Ignoring move of %s: previous move in flight", card_id)
            return MoveOutcome.IGNORED

        card = self._state.find(card_id)
        if card is None or card.status == to_status:
            return MoveOutcome.IGNORED

        previous = self._state
        optimistic = apply_optimistic_move(previous, card_id, card.status, to_status, new_position)
        self._set_state(optimistic)
        self._in_flight.add(card_id)

        try:
            async with asyncio.timeout(self._timeout):
                result = await self._client.move_card(
                    card_id, to_status, new_position, card.version
                )
        except (TimeoutError, httpx.TransportError) as e:
            logger.warning("Move of %s has unknown outcome (%s), refetching board", card_id, e)
            self._set_state(commit_or_rollback(previous, optimistic, e))
            self._refresh_pending = True
            return MoveOutcome.ROLLED_BACK
        except ServiceError as e:
            logger.info("Move of %s rejected: %s", card_id, e.message)
            overlapped = self._state is not optimistic or bool(self._in_flight - {card_id})
            self._set_state(commit_or_rollback(previous, optimistic, e))
            # Local version or lock state is stale
            if isinstance(e, STALE_CARD_ERRORS) or overlapped:
                self._refresh_pending = True
            return MoveOutcome.ROLLED_BACK
        except BaseException as e:
            logger.warning("Move of %s failed unexpectedly (%r), refetching board", card_id, e)
            self._set_state(commit_or_rollback(previous, optimistic, e))
            self._refresh_pending = True
            raise
        finally:
            self._in_flight.discard(card_id)
            self._maybe_schedule_refresh()

        # Heal the state shown now, which may include other settled moves
        self._set_state(commit_or_rollback(previous, self._state, result))
        return MoveOutcome.COMMITTED

    def _maybe_schedule_refresh(self) -> None:
        if self._refresh_pending and not self._in_flight:
            self._refresh_pending = False
            self._refresh_task = asyncio.create_task(self.refresh())

    def _set_state(self, state: BoardState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)
