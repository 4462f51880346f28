# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and the AuthContext built from its claims.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from jose import jwt
from pydantic import SecretStr

from src.api.middleware.auth import AuthContext
from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_decode_access_token_returns_payload(self, jwt_manager: JWTManager) -> None:
        """Test that decode_token returns the issued claims."""
        user_id = str(uuid4())
        school_id = str(uuid4())

        token = jwt_manager.create_access_token(user_id=user_id, role="teacher", school_id=school_id)
        payload = jwt_manager.decode_token(token)

        assert isinstance(payload, TokenPayload)
        assert payload.sub == user_id
        assert payload.role == "teacher"
        assert payload.school_id == school_id
        assert payload.exp - payload.iat == 30 * 60

    def test_expired_token_raises(self, jwt_manager: JWTManager) -> None:
        """Test that an expired token is rejected."""
        token = jwt_manager.create_access_token(
            user_id="u1", role="admin", school_id="s1", expires_in_minutes=-1
        )

        with pytest.raises(TokenExpiredError):
            jwt_manager.decode_token(token)

    def test_wrong_signature_raises(self, jwt_manager: JWTManager) -> None:
        """Test that a token signed with another key is rejected."""
        token = jwt.encode(
            {"sub": "u1", "type": "access", "role": "admin", "school_id": "s1"},
            "another-key",
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_missing_school_claim_raises(self, jwt_manager: JWTManager, jwt_settings) -> None:
        """Test that tokens without a school are rejected."""
        token = jwt.encode(
            {"sub": "u1", "type": "access", "role": "admin", "exp": 4102444800, "iat": 0},
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="missing role or school"):
            jwt_manager.decode_token(token)


class TestAuthContext:
    """Tests for AuthContext roles."""

    def test_from_token(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(user_id="u1", role="super_admin", school_id="s1")

        auth = AuthContext.from_token(jwt_manager.decode_token(token))

        assert auth.user_id == "u1"
        assert auth.is_admin
        assert not auth.is_teacher
        assert auth.school_id == "s1"

    @pytest.mark.parametrize(
        ("role", "is_admin", "is_teacher"),
        [("admin", True, False), ("teacher", False, True), ("parent", False, False)],
    )
    def test_roles(self, role: str, is_admin: bool, is_teacher: bool) -> None:
        auth = AuthContext(user_id="u1", role=role, school_id="s1")

        assert auth.is_admin is is_admin
        assert auth.is_teacher is is_teacher
