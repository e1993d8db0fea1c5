"""
Error kinds raised by the service layer.

Each kind carries the HTTP status it is reported with; the application
installs a single handler that renders any ClubError as {"detail": ...}.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class ClubError(Exception):
    """Base class for every business-rule or infrastructure failure."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ClubError):
    status_code = 404


class Forbidden(ClubError):
    status_code = 403


class Conflict(ClubError):
    status_code = 409


class InvalidState(ClubError):
    status_code = 400


class InvalidArgument(ClubError):
    status_code = 400


class Unauthorized(ClubError):
    status_code = 401


class InternalError(ClubError):
    status_code = 500


async def club_error_handler(request: Request, exc: ClubError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
