"""Typed failures raised by league operations.

Each error carries a machine-readable ``code`` and the HTTP status the API
layer answers with, so routers can raise them directly and a single handler
renders the response.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class LeagueError(Exception):
    """Base class for every league operation failure."""

    code = "internal"
    status_code = 500
    default_message = "Unexpected server error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.code, "message": self.message}


class InvalidArgument(LeagueError):
    code = "invalid-argument"
    status_code = 400
    default_message = "Malformed or missing input."


class Unauthenticated(LeagueError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Login required."


class PermissionDenied(LeagueError):
    code = "permission-denied"
    status_code = 403
    default_message = "Not allowed."


class NotFound(LeagueError):
    code = "not-found"
    status_code = 404
    default_message = "Not found."


class AlreadyUsed(LeagueError):
    code = "already-used"
    status_code = 409
    default_message = "Code used."


class Expired(LeagueError):
    code = "expired"
    status_code = 410
    default_message = "Code expired."


class Mismatch(LeagueError):
    code = "mismatch"
    status_code = 400
    default_message = "Invalid code."


class FailedPrecondition(LeagueError):
    code = "failed-precondition"
    status_code = 412
    default_message = "System not configured for this operation."


class Internal(LeagueError):
    pass


class RateLimited(LeagueError):
    """Too many attempts; retry once ``retry_after_seconds`` have passed."""

    code = "resource-exhausted"
    status_code = 429

    def __init__(self, retry_after_seconds: float, message: Optional[str] = None):
        self.retry_after_seconds = max(0, int(math.ceil(retry_after_seconds)))
        if message is None:
            minutes = max(1, int(math.ceil(self.retry_after_seconds / 60)))
            message = f"Too many attempts. Please try again in {minutes} minutes."
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["retryAfterSeconds"] = self.retry_after_seconds
        return payload


async def league_error_handler(request: Request, exc: LeagueError) -> JSONResponse:
    """Render a :class:`LeagueError` as a JSON response."""

    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)


__all__ = [
    "AlreadyUsed",
    "Expired",
    "FailedPrecondition",
    "Internal",
    "InvalidArgument",
    "LeagueError",
    "Mismatch",
    "NotFound",
    "PermissionDenied",
    "RateLimited",
    "Unauthenticated",
    "league_error_handler",
]
