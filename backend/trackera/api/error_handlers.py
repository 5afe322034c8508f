"""
Global exception handlers shared by the public and admin applications.

Domain errors render as ``{"detail": message}`` with their own status code,
request validation errors as 400 with per-field details, and anything else as
a generic 500.
"""
import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import TrackeraError

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(TrackeraError)
    async def trackera_error_handler(request: Request, exc: TrackeraError):
        """Handle domain errors raised by services."""
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Report invalid input as a bad request."""
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": [
                    {
                        "loc": list(error.get("loc", ())),
                        "msg": error.get("msg", ""),
                        "type": error.get("type", "")
                    }
                    for error in exc.errors()
                ]
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )
