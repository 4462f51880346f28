# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for progress board API endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import get_db, require_teacher_or_admin
from src.api.middleware.auth import AuthContext
from src.api.v1 import router as v1_router
from src.core.errors import ConflictError, LockedError, ValidationError
from src.models.progress_board import (
    BatchMoveResponse,
    ColumnState,
    FailedMove,
    MoveResultResponse,
    ProgressCardResponse,
)

NOW = datetime(2025, 5, 2, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def teacher() -> AuthContext:
    return AuthContext(user_id="teacher-1", role="teacher", school_id="school-1")


@pytest.fixture
def app(teacher):
    """Create test FastAPI app."""
    app = FastAPI()
    app.include_router(v1_router)

    async def fake_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = fake_db
    app.dependency_overrides[require_teacher_or_admin] = lambda: teacher
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def _card(card_id: str, status: str, position: int, version: int) -> ProgressCardResponse:
    return ProgressCardResponse(
        id=card_id,
        lesson_id="lesson-1",
        status=status,
        position=position,
        version=version,
        updated_at=NOW,
    )


class TestProgressBoardAPIRouting:
    """Tests for progress board API routing."""

    def test_routes_registered(self, app):
        routes = [route.path for route in app.routes]

        assert "/api/v1/progress-board" in routes
        assert "/api/v1/progress-board/cards" in routes
        assert "/api/v1/progress-board/cards/{card_id}" in routes
        assert "/api/v1/progress-board/cards/{card_id}/move" in routes
        assert "/api/v1/progress-board/cards/{card_id}/lock" in routes
        assert "/api/v1/progress-board/batch-move" in routes


class TestMoveEndpoint:
    """Tests for PATCH /cards/{card_id}/move."""

    @patch("src.api.v1.progress_board._get_service")
    def test_move_success(self, mock_get_service, client, teacher):
        service = MagicMock()
        service.move_card = AsyncMock(
            return_value=MoveResultResponse(
                card=_card("b", "completed", 0, 2),
                source_column=ColumnState(status="in_progress", cards=[]),
                destination_column=ColumnState(
                    status="completed", cards=[_card("b", "completed", 0, 2)]
                ),
            )
        )
        mock_get_service.return_value = service

        response = client.patch(
            "/api/v1/progress-board/cards/b/move",
            json={"new_status": "completed", "new_position": 0, "version": 1},
        )

        assert response.status_code == 200
        assert response.json()["card"]["version"] == 2
        service.move_card.assert_awaited_once_with(
            "b", new_status="completed", new_position=0, version=1, auth=teacher
        )

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (ConflictError("Card was modified", code="VERSION_CONFLICT"), 409),
            (LockedError("Card is locked by teacher-2", code="CARD_LOCKED"), 423),
            (ValidationError("Card is already in that column"), 400),
        ],
    )
    @patch("src.api.v1.progress_board._get_service")
    def test_move_errors(self, mock_get_service, client, error, status_code):
        service = MagicMock()
        service.move_card = AsyncMock(side_effect=error)
        mock_get_service.return_value = service

        response = client.patch(
            "/api/v1/progress-board/cards/b/move",
            json={"new_status": "completed", "new_position": 0, "version": 1},
        )

        assert response.status_code == status_code
        assert response.json()["detail"] == error.message

    def test_move_requires_version(self, client):
        response = client.patch(
            "/api/v1/progress-board/cards/b/move",
            json={"new_status": "completed", "new_position": 0},
        )

        assert response.status_code == 422


class TestOtherBoardEndpoints:
    """Tests for batch move and locks."""

    @patch("src.api.v1.progress_board._get_service")
    def test_batch_move_reports_failures(self, mock_get_service, client):
        service = MagicMock()
        service.batch_move = AsyncMock(
            return_value=BatchMoveResponse(
                updated_cards=[_card("a", "completed", 0, 2)],
                failed_moves=[FailedMove(card_id="c", code="CARD_LOCKED", error="locked")],
            )
        )
        mock_get_service.return_value = service

        response = client.post(
            "/api/v1/progress-board/batch-move",
            json={
                "moves": [
                    {"card_id": "a", "new_status": "completed", "new_position": 0, "version": 1},
                    {"card_id": "c", "new_status": "completed", "new_position": 1, "version": 1},
                ]
            },
        )

        assert response.status_code == 200
        assert response.json()["failed_moves"][0]["code"] == "CARD_LOCKED"

    @patch("src.api.v1.progress_board._get_lock_service")
    def test_lock_held_by_other_returns_423(self, mock_get_service, client):
        service = MagicMock()
        service.lock_card = AsyncMock(side_effect=LockedError("Card is locked by teacher-2"))
        mock_get_service.return_value = service

        response = client.post("/api/v1/progress-board/cards/c/lock")

        assert response.status_code == 423

    @patch("src.api.v1.progress_board._get_lock_service")
    def test_unlock_returns_204(self, mock_get_service, client):
        service = MagicMock()
        service.unlock_card = AsyncMock(return_value=None)
        mock_get_service.return_value = service

        response = client.delete("/api/v1/progress-board/cards/c/lock")

        assert response.status_code == 204
