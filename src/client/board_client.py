# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP client for the progress board API.

Error responses are mapped back onto the service error taxonomy so that
callers handle a rejected move the same way on both sides of the wire.
Transport failures are left as httpx exceptions: their outcome is unknown.
"""

import logging
from types import TracebackType
from typing import Any

import httpx

from src.core.config import get_settings
from src.core.errors import (
    ConflictError,
    InternalError,
    LockedError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from src.models.progress_board import BoardResponse, MoveResultResponse

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[ServiceError]] = {
    400: ValidationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    423: LockedError,
}


class ProgressBoardClient:
    """Async client for the progress board endpoints.

    Example:
        async with ProgressBoardClient(token=token) as client:
            board = await client.get_board()
    """

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Bearer token of the acting user.
            base_url: API base URL. Defaults to the board settings.
            transport: Optional httpx transport, e.g. for tests.
        """
        self._client = httpx.AsyncClient(
            base_url=base_url or get_settings().board.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self) -> "ProgressBoardClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get_board(
        self,
        teacher_id: str | None = None,
        student_id: str | None = None,
    ) -> BoardResponse:
        """Fetch the board."""
        params = {
            k: v for k, v in {"teacher_id": teacher_id, "student_id": student_id}.items() if v
        }
        response = await self._client.get("/api/v1/progress-board", params=params)
        return BoardResponse.model_validate(self._handle_response(response, "get_board"))

    async def move_card(
        self,
        card_id: str,
        new_status: str,
        new_position: int,
        version: int,
    ) -> MoveResultResponse:
        """Request a card move.

        Raises:
            ValidationError: 400 or 422.
            NotFoundError: 404.
            ConflictError: 409, stale version.
            LockedError: 423.
            InternalError: Any other error status.
            httpx.TransportError: The request outcome is unknown.
        """
        response = await self._client.patch(
            f"/api/v1/progress-board/cards/{card_id}/move",
            json={
                "new_status": new_status,
                "new_position": new_position,
                "version": version,
            },
        )
        return MoveResultResponse.model_validate(self._handle_response(response, "move_card"))

    def _handle_response(self, response: httpx.Response, operation: str) -> Any:
        """Return the JSON body or raise the matching service error."""
        if response.is_success:
            return response.json()

        try:
            error_detail = response.json().get("detail", response.text)
        except ValueError:
            error_detail = response.text
        if not isinstance(error_detail, str):
            error_detail = str(error_detail)

        logger.info("%s failed with %d: %s", operation, response.status_code, error_detail)

        error_cls = _STATUS_ERRORS.get(response.status_code, InternalError)
        code = response.headers.get("X-Error-Code")
        raise error_cls(error_detail, code=code)
