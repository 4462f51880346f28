# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress board client.

Exports:
    BoardState: Immutable board snapshot.
    BoardReconciler: Optimistic moves with rollback.
    ProgressBoardClient: httpx client for the board API.
"""

from src.client.board_client import ProgressBoardClient
from src.client.board_state import (
    BoardState,
    CardView,
    apply_optimistic_move,
    commit_or_rollback,
)
from src.client.reconciler import BoardReconciler, MoveOutcome

__all__ = [
    "BoardReconciler",
    "BoardState",
    "CardView",
    "MoveOutcome",
    "ProgressBoardClient",
    "apply_optimistic_move",
    "commit_or_rollback",
]
