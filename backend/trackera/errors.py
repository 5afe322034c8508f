"""
Domain errors raised by services and mapped to HTTP responses.

Only three categories exist: not found (404), bad request (400) and
generic failure (500).
"""
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError


class TrackeraError(Exception):
    """Base class for errors surfaced to API clients."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TrackeraError):
    """Referenced record does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class BadRequestError(TrackeraError):
    """Request is well-formed but cannot be honoured."""
    status_code = status.HTTP_400_BAD_REQUEST


class ServiceError(TrackeraError):
    """A platform call failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def db_error_message(error: Exception) -> str:
    """Short message for ``error``; database errors lose their SQL statement and parameters."""
    orig = getattr(error, "orig", None)
    if orig is not None:
        return str(orig)
    if isinstance(error, SQLAlchemyError):
        return type(error).__name__
    return str(error)
