# src/channel_gate/errors.py

from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


class GateError(Exception):
    """
    Base for errors that are answered directly to the client.
    The message is deliberately generic; callers never learn which check failed.
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class InvalidOrExpiredToken(GateError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid or expired token"


class Unauthorized(GateError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class NotFound(GateError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class InternalParseError(GateError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Channels file error"


NO_STORE_HEADERS = {"Cache-Control": "no-store"}


async def gate_error_handler(request: Request, exc: GateError) -> JSONResponse:
    print(f"MAIN: {request.method} {request.url.path} -> {exc.status_code} ({type(exc).__name__})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
        headers=NO_STORE_HEADERS,
    )
