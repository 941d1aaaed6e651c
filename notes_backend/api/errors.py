"""
Error taxonomy of the notes service and its HTTP rendering.

Every error carries a fixed public message. `reason` is for logs only and is
never sent to the client.
"""
import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class NotesError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_detail = "Internal server error."
    headers: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None, *, reason: Optional[str] = None):
        self.detail = detail or self.public_detail
        self.reason = reason
        super().__init__(reason or self.detail)


class ValidationError(NotesError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    public_detail = "Invalid input."


class ConflictError(NotesError):
    status_code = status.HTTP_409_CONFLICT
    public_detail = "Username already taken."


class AuthenticationError(NotesError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_detail = "Invalid credentials."


class AuthorizationError(NotesError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_detail = "Could not validate credentials."
    headers = {"WWW-Authenticate": "Bearer"}


class NotFoundError(NotesError):
    status_code = status.HTTP_404_NOT_FOUND
    public_detail = "Note not found."


class InternalError(NotesError):
    pass


class StorageError(InternalError):
    pass


def notes_error_handler(request: Request, exc: NotesError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.reason)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


# PUBLIC_INTERFACE
def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotesError, notes_error_handler)
