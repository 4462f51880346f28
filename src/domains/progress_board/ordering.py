# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pure ordering helpers for board columns.

Columns are ordered sequences of card ids. Positions are list indexes, so a
column is always dense 0..N-1 once rebuilt from its sequence. Both the
server persister and the client reducer splice through these helpers, which
keeps optimistic and canonical ordering identical.
"""

from collections.abc import Iterable, Sequence


def clamp_position(position: int, length: int) -> int:
    """Clamp an insert position into [0, length]."""
    return max(0, min(position, length))


def move_between(
    source: Sequence[str],
    destination: Sequence[str],
    card_id: str,
    position: int,
) -> tuple[list[str], list[str]]:
    """Move a card id from one column sequence into another.

    Args:
        source: Ordered ids of the column the card leaves.
        destination: Ordered ids of the column the card enters.
        card_id: Card to move.
        position: Requested index in the destination; clamped.

    Returns:
        Tuple of (new source ids, new destination ids).

    Raises:
        ValueError: If the card is not in the source sequence.
    """
    if card_id not in source:
        raise ValueError(f"Card {card_id} is not in the source column")

    new_source = [c for c in source if c != card_id]
    new_destination = [c for c in destination if c != card_id]
    new_destination.insert(clamp_position(position, len(new_destination)), card_id)
    return new_source, new_destination


def changed_positions(sequence: Sequence[str], current: dict[str, int]) -> dict[str, int]:
    """Return the ids whose index in ``sequence`` differs from ``current``.

    Args:
        sequence: New column order.
        current: Mapping of card id to its stored position.

    Returns:
        Mapping of card id to new position, only for cards that moved.
    """
    return {
        card_id: index
        for index, card_id in enumerate(sequence)
        if current.get(card_id) != index
    }


def is_contiguous(positions: Iterable[int]) -> bool:
    """Check positions form exactly 0..N-1."""
    ordered = sorted(positions)
    return ordered == list(range(len(ordered)))
