# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher progress board domain.

Exports:
    ProgressBoardService: Board reads, card creation, moves and batch moves.
    CardLockService: TTL card locks.
"""

from src.domains.progress_board.locks import CardLockService, is_locked_by_other
from src.domains.progress_board.service import (
    DEFAULT_COLUMNS,
    ColumnDefinition,
    ProgressBoardService,
)

__all__ = [
    "DEFAULT_COLUMNS",
    "CardLockService",
    "ColumnDefinition",
    "ProgressBoardService",
    "is_locked_by_other",
]
