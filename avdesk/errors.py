"""Error taxonomy and exception handlers."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from avdesk.log import get_logger

logger = get_logger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class ValidationFailed(HTTPException):
    """Malformed input or an out-of-range value."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Unauthorized(HTTPException):
    """Missing or unknown admin bearer token."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFound(HTTPException):
    """Unknown equipment or no matching active checkout."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Forbidden(HTTPException):
    """PIN mismatch."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class Conflict(HTTPException):
    """Insufficient quantity or a state that forbids the operation."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


async def _stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    """Answer a lost optimistic-concurrency race.

    Parameters
    ----------
    request : Request
        Incoming request.
    exc : StaleDataError
        Raised when a versioned row changed underneath the flush.

    Returns
    -------
    JSONResponse
        409 response asking the caller to resubmit.
    """
    logger.warning("concurrent_modification", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Equipment was modified concurrently; please resubmit"},
    )


async def _storage_error_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Log a storage failure and answer with an opaque message.

    Parameters
    ----------
    request : Request
        Incoming request.
    exc : SQLAlchemyError
        Underlying database error.

    Returns
    -------
    JSONResponse
        500 response without internal details.
    """
    logger.error(
        "storage_failure",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": UNEXPECTED_ERROR_MESSAGE},
    )


def install_exception_handlers(app: FastAPI) -> None:
    """Register storage-related exception handlers.

    Parameters
    ----------
    app : FastAPI
        Application to configure.

    Returns
    -------
    None
        Handlers are attached to ``app``.
    """
    app.add_exception_handler(StaleDataError, _stale_data_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_error_handler)
