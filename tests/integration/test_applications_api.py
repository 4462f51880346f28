# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for application and access log API endpoints."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import get_db, require_admin
from src.api.middleware.auth import AuthContext
from src.api.v1 import router as v1_router
from src.core.errors import ConflictError, InternalError, LockedError, NotFoundError
from src.models.application import (
    AccessLogResponse,
    ApplicationResponse,
    RejectionResponse,
)

NOW = datetime(2025, 5, 2, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def admin() -> AuthContext:
    return AuthContext(user_id="admin-1", role="admin", school_id="school-1")


@pytest.fixture
def app(admin):
    """Create test FastAPI app."""
    app = FastAPI()
    app.include_router(v1_router)

    async def fake_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = fake_db
    app.dependency_overrides[require_admin] = lambda: admin
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def _application(status: str = "PENDING") -> ApplicationResponse:
    return ApplicationResponse(
        id="app-1",
        school_id="school-1",
        status=status,
        child_first_name="Ada",
        child_last_name="Lovelace",
        child_date_of_birth=date(2020, 12, 10),
        parent1_first_name="Anne",
        parent1_last_name="Lovelace",
        parent1_email="anne@example.com",
        parent1_relationship="MOTHER",
        submitted_at=NOW,
    )


class TestApplicationsAPIRouting:
    """Tests for applications API routing."""

    def test_routes_registered(self, app):
        """Test that application routes are registered."""
        routes = [route.path for route in app.routes]

        assert "/api/v1/applications" in routes
        assert "/api/v1/applications/{application_id}" in routes
        assert "/api/v1/applications/{application_id}/approve" in routes
        assert "/api/v1/applications/{application_id}/reject" in routes
        assert "/api/v1/access-logs" in routes
        assert "/api/v1/application-locks" in routes


class TestApplicationsAPIEndpoints:
    """Tests for applications API endpoints."""

    @patch("src.api.v1.applications._get_service")
    def test_approve_already_processed_returns_409(self, mock_get_service, client):
        service = MagicMock()
        service.approve_application = AsyncMock(
            side_effect=ConflictError("Application already processed", code="ALREADY_PROCESSED")
        )
        mock_get_service.return_value = service

        response = client.post("/api/v1/applications/app-1/approve")

        assert response.status_code == 409
        assert "already processed" in response.json()["detail"]
        assert response.headers["X-Error-Code"] == "ALREADY_PROCESSED"

    @patch("src.api.v1.applications._get_service")
    def test_approve_locked_by_other_admin_returns_423(self, mock_get_service, client):
        service = MagicMock()
        service.approve_application = AsyncMock(
            side_effect=LockedError(
                "Application is locked for approve by admin-2", code="APPLICATION_LOCKED"
            )
        )
        mock_get_service.return_value = service

        response = client.post("/api/v1/applications/app-1/approve")

        assert response.status_code == 423
        assert response.headers["X-Error-Code"] == "APPLICATION_LOCKED"

    @patch("src.api.v1.applications._get_service")
    def test_approve_missing_returns_404(self, mock_get_service, client):
        service = MagicMock()
        service.approve_application = AsyncMock(side_effect=NotFoundError("Application x not found"))
        mock_get_service.return_value = service

        response = client.post("/api/v1/applications/x/approve")

        assert response.status_code == 404

    @patch("src.api.v1.applications._get_service")
    def test_approve_storage_failure_returns_500(self, mock_get_service, client):
        service = MagicMock()
        service.approve_application = AsyncMock(
            side_effect=InternalError("Failed to approve application")
        )
        mock_get_service.return_value = service

        response = client.post("/api/v1/applications/app-1/approve")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to approve application"

    @patch("src.api.v1.applications._get_service")
    def test_reject_passes_reason(self, mock_get_service, client, admin):
        service = MagicMock()
        service.reject_application = AsyncMock(
            return_value=RejectionResponse(
                application=_application("REJECTED"),
                access_log=AccessLogResponse(
                    id="log-1",
                    admin_user_id="admin-1",
                    action_type="APPLICATION_REJECTED",
                    target_type="APPLICATION",
                    target_id="app-1",
                    details={"reason": "Full"},
                    timestamp=NOW,
                ),
            )
        )
        mock_get_service.return_value = service

        response = client.post("/api/v1/applications/app-1/reject", json={"reason": "Full"})

        assert response.status_code == 200
        assert response.json()["application"]["status"] == "REJECTED"
        service.reject_application.assert_awaited_once_with("app-1", admin, reason="Full")

    @patch("src.api.v1.applications._get_service")
    def test_list_applications(self, mock_get_service, client):
        service = MagicMock()
        service.list_applications = AsyncMock(return_value=([], 0))
        mock_get_service.return_value = service

        response = client.get("/api/v1/applications", params={"status": "PENDING", "limit": 10})

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0, "limit": 10, "offset": 0}

    def test_non_admin_is_forbidden(self, app):
        """Test the real role check rejects teachers."""
        del app.dependency_overrides[require_admin]

        @app.middleware("http")
        async def as_teacher(request, call_next):
            request.state.auth = AuthContext(user_id="t1", role="teacher", school_id="school-1")
            return await call_next(request)

        response = TestClient(app).post("/api/v1/applications/app-1/approve")

        assert response.status_code == 403

    def test_unauthenticated_is_rejected(self, app):
        del app.dependency_overrides[require_admin]

        response = TestClient(app).get("/api/v1/applications")

        assert response.status_code == 401


class TestAccessLogsAPI:
    """Tests for the access log endpoint."""

    @patch("src.api.v1.access_logs.AccessLogService")
    def test_list_access_logs(self, mock_service_cls, client):
        service = MagicMock()
        service.list_logs = AsyncMock(return_value=([], 0))
        mock_service_cls.return_value = service

        response = client.get("/api/v1/access-logs", params={"action_type": "APPLICATION_APPROVED"})

        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert service.list_logs.await_args.kwargs["school_id"] == "school-1"
