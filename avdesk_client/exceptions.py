"""SDK exception types."""

from __future__ import annotations


class AvDeskError(Exception):
    """Base SDK error."""


class AvDeskAPIError(AvDeskError):
    """API request failed.

    Parameters
    ----------
    message : str
        Error message.
    status_code : int | None, default=None
        HTTP status code if available.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AvDeskAuthError(AvDeskAPIError):
    """Admin authentication failed or no admin token was configured."""


class AvDeskValidationError(AvDeskAPIError):
    """Request payload was rejected."""


class AvDeskForbiddenError(AvDeskAPIError):
    """PIN did not match the active checkout."""


class AvDeskNotFoundError(AvDeskAPIError):
    """Equipment or an active checkout was not found."""


class AvDeskConflictError(AvDeskAPIError):
    """Not enough units on hand, or the record state forbids the request."""


class AvDeskRateLimitError(AvDeskAPIError):
    """Caller hit a rate limit."""
