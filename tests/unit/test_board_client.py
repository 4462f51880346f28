# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the client-side board state, reconciler and HTTP client."""

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from src.client import (
    BoardReconciler,
    BoardState,
    CardView,
    MoveOutcome,
    ProgressBoardClient,
    apply_optimistic_move,
    commit_or_rollback,
)
from src.core.errors import ConflictError, LockedError, ValidationError
from src.models.progress_board import (
    BoardColumn,
    BoardResponse,
    ColumnState,
    MoveResultResponse,
    ProgressCardResponse,
)

NOW = datetime(2025, 4, 2, 8, 30, tzinfo=timezone.utc)


def _state() -> BoardState:
    return BoardState(
        order=("not_started", "in_progress"),
        columns={
            "not_started": (
                CardView("a", "not_started", 0, 1),
                CardView("b", "not_started", 1, 1),
                CardView("c", "not_started", 2, 1),
            ),
            "in_progress": (CardView("x", "in_progress", 0, 4),),
        },
    )


def _card(card_id: str, status: str, position: int, version: int) -> ProgressCardResponse:
    return ProgressCardResponse(
        id=card_id,
        lesson_id="lesson-1",
        status=status,
        position=position,
        version=version,
        updated_at=NOW,
    )


def _move_result() -> MoveResultResponse:
    """Server answer to moving b into in_progress at 0."""
    return MoveResultResponse(
        card=_card("b", "in_progress", 0, 2),
        source_column=ColumnState(
            status="not_started",
            cards=[_card("a", "not_started", 0, 1), _card("c", "not_started", 1, 2)],
        ),
        destination_column=ColumnState(
            status="in_progress",
            cards=[_card("b", "in_progress", 0, 2), _card("x", "in_progress", 1, 5)],
        ),
    )


COLUMN_META = {
    "not_started": ("Not Started", "#6B7280"),
    "in_progress": ("In Progress", "#3B82F6"),
    "completed": ("Completed", "#10B981"),
    "on_hold": ("On Hold", "#F59E0B"),
}


def _board(columns: dict[str, list[ProgressCardResponse]]) -> BoardResponse:
    return BoardResponse(
        teacher_id="teacher-1",
        columns=[
            BoardColumn(
                status=status,
                name=COLUMN_META[status][0],
                color=COLUMN_META[status][1],
                position=index,
                cards=cards,
            )
            for index, (status, cards) in enumerate(columns.items())
        ],
    )


def _server_board(b_version: int = 3) -> BoardResponse:
    """Server board after another session touched b."""
    return _board(
        {
            "not_started": [
                _card("a", "not_started", 0, 1),
                _card("b", "not_started", 1, b_version),
                _card("c", "not_started", 2, 1),
            ],
            "in_progress": [_card("x", "in_progress", 0, 4)],
        }
    )


class TestApplyOptimisticMove:
    """Tests for the pure optimistic reducer."""

    def test_splices_and_renumbers(self) -> None:
        state = _state()

        moved = apply_optimistic_move(state, "b", "not_started", "in_progress", 0)

        assert [c.id for c in moved.column("not_started")] == ["a", "c"]
        assert [c.position for c in moved.column("not_started")] == [0, 1]
        assert [c.id for c in moved.column("in_progress")] == ["b", "x"]
        assert moved.find("b") == CardView("b", "in_progress", 0, 1)
        assert state == _state()

    def test_clamps_position(self) -> None:
        moved = apply_optimistic_move(_state(), "a", "not_started", "in_progress", 50)

        assert moved.find("a").position == 1

    def test_unknown_card_raises(self) -> None:
        with pytest.raises(ValueError):
            apply_optimistic_move(_state(), "zz", "not_started", "in_progress", 0)


class TestCommitOrRollback:
    """Tests for settling optimistic moves."""

    def test_error_restores_exact_snapshot(self) -> None:
        previous = _state()
        optimistic = apply_optimistic_move(previous, "b", "not_started", "in_progress", 0)

        settled = commit_or_rollback(previous, optimistic, ConflictError("stale"))

        assert settled is previous

    def test_success_heals_with_server_columns(self) -> None:
        previous = _state()
        optimistic = apply_optimistic_move(previous, "b", "not_started", "in_progress", 0)

        settled = commit_or_rollback(previous, optimistic, _move_result())

        assert settled.find("b").version == 2
        assert settled.find("c") == CardView("c", "not_started", 1, 2)
        assert settled.find("x").version == 5
        assert settled.order == previous.order


class TestBoardReconciler:
    """Tests for BoardReconciler."""

    @pytest.mark.asyncio
    async def test_committed_move(self) -> None:
        client = AsyncMock()
        client.move_card.return_value = _move_result()
        seen: list[BoardState] = []
        reconciler = BoardReconciler(client, _state(), timeout=1, on_change=seen.append)

        outcome = await reconciler.move_card("b", "in_progress", 0)

        assert outcome is MoveOutcome.COMMITTED
        client.move_card.assert_awaited_once_with("b", "in_progress", 0, 1)
        assert reconciler.state.find("b").version == 2
        assert len(seen) == 2
        assert seen[0].find("b").status == "in_progress"

    @pytest.mark.asyncio
    async def test_rejected_move_rolls_back_and_refetches(self) -> None:
        client = AsyncMock()
        client.move_card.side_effect = LockedError("Card is locked by teacher-2")
        client.get_board.return_value = _server_board()
        initial = _state()
        reconciler = BoardReconciler(client, initial, timeout=1)

        outcome = await reconciler.move_card("b", "in_progress", 0)

        assert outcome is MoveOutcome.ROLLED_BACK
        assert reconciler.state is initial
        assert reconciler.refresh_task is not None

        await reconciler.refresh_task

        client.get_board.assert_awaited_once()
        assert reconciler.state.find("b") == CardView("b", "not_started", 1, 3)

    @pytest.mark.asyncio
    async def test_validation_rejection_keeps_board(self) -> None:
        client = AsyncMock()
        client.move_card.side_effect = ValidationError("Column is full")
        initial = _state()
        reconciler = BoardReconciler(client, initial, timeout=1)

        outcome = await reconciler.move_card("b", "in_progress", 0)

        assert outcome is MoveOutcome.ROLLED_BACK
        assert reconciler.state is initial
        assert reconciler.refresh_task is None
        client.get_board.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retry_after_conflict_sends_refetched_version(self) -> None:
        client = AsyncMock()
        client.move_card.side_effect = [ConflictError("Card was modified"), _move_result()]
        client.get_board.return_value = _server_board(b_version=3)
        reconciler = BoardReconciler(client, _state(), timeout=1)

        first = await reconciler.move_card("b", "in_progress", 0)
        await reconciler.refresh_task
        second = await reconciler.move_card("b", "in_progress", 0)

        assert first is MoveOutcome.ROLLED_BACK
        assert second is MoveOutcome.COMMITTED
        assert [call.args[3] for call in client.move_card.await_args_list] == [1, 3]

    @pytest.mark.asyncio
    async def test_overlapping_moves_settle_independently(self) -> None:
        release_x = asyncio.Event()
        release_b = asyncio.Event()
        client = AsyncMock()

        async def move(card_id, to_status, new_position, version):
            if card_id == "x":
                await release_x.wait()
                raise ValidationError("Column is full")
            await release_b.wait()
            return MoveResultResponse(
                card=_card("b", "on_hold", 0, 2),
                source_column=ColumnState(
                    status="not_started", cards=[_card("a", "not_started", 0, 1)]
                ),
                destination_column=ColumnState(
                    status="on_hold", cards=[_card("b", "on_hold", 0, 2)]
                ),
            )

        client.move_card.side_effect = move
        client.get_board.return_value = _board(
            {
                "not_started": [_card("a", "not_started", 0, 1)],
                "in_progress": [_card("x", "in_progress", 0, 4)],
                "completed": [],
                "on_hold": [_card("b", "on_hold", 0, 2)],
            }
        )
        initial = BoardState(
            order=("not_started", "in_progress", "completed", "on_hold"),
            columns={
                "not_started": (
                    CardView("a", "not_started", 0, 1),
                    CardView("b", "not_started", 1, 1),
                ),
                "in_progress": (CardView("x", "in_progress", 0, 4),),
            },
        )
        reconciler = BoardReconciler(client, initial, timeout=5)

        first = asyncio.create_task(reconciler.move_card("x", "completed", 0))
        await asyncio.sleep(0)
        second = asyncio.create_task(reconciler.move_card("b", "on_hold", 0))
        await asyncio.sleep(0)
        assert reconciler.in_flight == {"x", "b"}

        release_x.set()
        assert await first is MoveOutcome.ROLLED_BACK
        assert reconciler.refresh_task is None
        assert reconciler.state.find("x") == CardView("x", "in_progress", 0, 4)

        release_b.set()
        assert await second is MoveOutcome.COMMITTED
        assert reconciler.state.find("b") == CardView("b", "on_hold", 0, 2)
        assert reconciler.state.find("x") == CardView("x", "in_progress", 0, 4)
        assert [c.id for c in reconciler.state.column("not_started")] == ["a"]
        assert reconciler.refresh_task is not None

        await reconciler.refresh_task

        client.get_board.assert_awaited_once()
        assert reconciler.state.column("completed") == ()
        assert reconciler.state.find("b") == CardView("b", "on_hold", 0, 2)

    @pytest.mark.asyncio
    async def test_unexpected_response_rolls_back_and_refetches(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "PATCH":
                return httpx.Response(200, text="<html>proxy</html>")
            return httpx.Response(200, json=_server_board().model_dump(mode="json"))

        initial = _state()
        async with ProgressBoardClient(
            token="tok", base_url="http://test", transport=httpx.MockTransport(handler)
        ) as client:
            reconciler = BoardReconciler(client, initial, timeout=1)

            with pytest.raises(ValueError):
                await reconciler.move_card("b", "in_progress", 0)

            assert reconciler.state is initial
            assert reconciler.in_flight == frozenset()
            assert reconciler.refresh_task is not None

            await reconciler.refresh_task

        assert reconciler.state.find("b") == CardView("b", "not_started", 1, 3)

    @pytest.mark.asyncio
    async def test_cancelled_move_rolls_back(self) -> None:
        client = AsyncMock()
        client.get_board.return_value = _server_board()

        async def hang(*args):
            await asyncio.Event().wait()

        client.move_card.side_effect = hang
        initial = _state()
        reconciler = BoardReconciler(client, initial, timeout=5)

        task = asyncio.create_task(reconciler.move_card("b", "in_progress", 0))
        await asyncio.sleep(0)
        assert reconciler.state.find("b").status == "in_progress"

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert reconciler.state is initial
        await reconciler.refresh_task
        client.get_board.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_in_flight_card_ignores_new_moves(self) -> None:
        release = asyncio.Event()
        client = AsyncMock()

        async def slow_move(*args):
            await release.wait()
            return _move_result()

        client.move_card.side_effect = slow_move
        reconciler = BoardReconciler(client, _state(), timeout=5)

        first = asyncio.create_task(reconciler.move_card("b", "in_progress", 0))
        await asyncio.sleep(0)
        assert reconciler.in_flight == {"b"}

        second = await reconciler.move_card("b", "not_started", 0)
        release.set()

        assert second is MoveOutcome.IGNORED
        assert await first is MoveOutcome.COMMITTED
        client.move_card.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_same_column_move_is_ignored(self) -> None:
        client = AsyncMock()
        reconciler = BoardReconciler(client, _state(), timeout=1)

        outcome = await reconciler.move_card("a", "not_started", 2)

        assert outcome is MoveOutcome.IGNORED
        client.move_card.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_rolls_back_and_refetches(self) -> None:
        client = AsyncMock()

        async def hang(*args):
            await asyncio.Event().wait()

        client.move_card.side_effect = hang
        client.get_board.return_value = BoardResponse(
            teacher_id="teacher-1",
            columns=[
                BoardColumn(
                    status="not_started",
                    name="Not Started",
                    color="#6B7280",
                    position=0,
                    cards=[_card("a", "not_started", 0, 1)],
                ),
                BoardColumn(
                    status="in_progress",
                    name="In Progress",
                    color="#3B82F6",
                    position=1,
                    cards=[_card("b", "in_progress", 0, 2)],
                ),
            ],
        )
        initial = _state()
        reconciler = BoardReconciler(client, initial, timeout=0.01)

        outcome = await reconciler.move_card("b", "in_progress", 0)

        assert outcome is MoveOutcome.ROLLED_BACK
        assert reconciler.state is initial
        assert reconciler.refresh_task is not None

        await reconciler.refresh_task

        client.get_board.assert_awaited_once()
        assert reconciler.state.find("b") == CardView("b", "in_progress", 0, 2)
        assert reconciler.state.find("c") is None

    @pytest.mark.asyncio
    async def test_transport_error_refetches(self) -> None:
        client = AsyncMock()
        client.move_card.side_effect = httpx.ConnectError("connection refused")
        client.get_board.side_effect = httpx.ConnectError("connection refused")
        initial = _state()
        reconciler = BoardReconciler(client, initial, timeout=1)

        outcome = await reconciler.move_card("b", "in_progress", 0)
        await reconciler.refresh_task

        assert outcome is MoveOutcome.ROLLED_BACK
        assert reconciler.state is initial


class TestProgressBoardClient:
    """Tests for the httpx board client."""

    @pytest.mark.asyncio
    async def test_move_success(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_move_result().model_dump(mode="json"))

        async with ProgressBoardClient(
            token="tok", base_url="http://test", transport=httpx.MockTransport(handler)
        ) as client:
            result = await client.move_card("b", "in_progress", 0, 1)

        assert result.card.version == 2
        assert requests[0].method == "PATCH"
        assert requests[0].url.path == "/api/v1/progress-board/cards/b/move"
        assert requests[0].headers["Authorization"] == "Bearer tok"
        assert json.loads(requests[0].content) == {
            "new_status": "in_progress",
            "new_position": 0,
            "version": 1,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status_code", "error_cls"),
        [(409, ConflictError), (423, LockedError), (400, ValidationError)],
    )
    async def test_error_statuses_map_to_errors(self, status_code, error_cls) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                status_code,
                json={"detail": "nope"},
                headers={"X-Error-Code": "SOME_CODE"},
            )

        async with ProgressBoardClient(
            token="tok", base_url="http://test", transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(error_cls) as exc_info:
                await client.move_card("b", "in_progress", 0, 1)

        assert exc_info.value.message == "nope"
        assert exc_info.value.code == "SOME_CODE"
