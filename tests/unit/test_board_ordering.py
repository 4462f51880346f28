# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for board column ordering helpers."""

import pytest

from src.domains.progress_board.ordering import (
    changed_positions,
    clamp_position,
    is_contiguous,
    move_between,
)


class TestClampPosition:
    """Tests for clamp_position."""

    @pytest.mark.parametrize(
        ("position", "length", "expected"),
        [(-3, 4, 0), (0, 4, 0), (2, 4, 2), (4, 4, 4), (99, 4, 4), (5, 0, 0)],
    )
    def test_clamps_into_bounds(self, position: int, length: int, expected: int) -> None:
        assert clamp_position(position, length) == expected


class TestMoveBetween:
    """Tests for move_between."""

    def test_moves_card_into_position(self) -> None:
        source, destination = move_between(["a", "b", "c"], ["x", "y"], "b", 1)

        assert source == ["a", "c"]
        assert destination == ["x", "b", "y"]

    def test_position_past_end_appends(self) -> None:
        _, destination = move_between(["a"], ["x", "y"], "a", 10)

        assert destination == ["x", "y", "a"]

    def test_negative_position_prepends(self) -> None:
        _, destination = move_between(["a"], ["x"], "a", -1)

        assert destination == ["a", "x"]

    def test_into_empty_column(self) -> None:
        source, destination = move_between(["a"], [], "a", 3)

        assert source == []
        assert destination == ["a"]

    def test_unknown_card_raises(self) -> None:
        with pytest.raises(ValueError):
            move_between(["a"], ["x"], "z", 0)

    def test_positions_stay_contiguous(self) -> None:
        source, destination = move_between(list("abcde"), list("vwxyz"), "c", 2)

        assert is_contiguous(range(len(source)))
        assert is_contiguous(range(len(destination)))
        assert sorted(source + destination) == sorted(list("abcde") + list("vwxyz"))


class TestChangedPositions:
    """Tests for changed_positions."""

    def test_reports_only_moved_cards(self) -> None:
        current = {"a": 0, "b": 1, "c": 2}

        assert changed_positions(["a", "c"], current) == {"c": 1}

    def test_new_card_is_reported(self) -> None:
        assert changed_positions(["n", "a"], {"a": 0}) == {"n": 0, "a": 1}


class TestIsContiguous:
    """Tests for is_contiguous."""

    def test_detects_gaps_and_duplicates(self) -> None:
        assert is_contiguous([2, 0, 1])
        assert is_contiguous([])
        assert not is_contiguous([0, 2])
        assert not is_contiguous([0, 0, 1])
