"""Global exception handlers for the Heartline API.

Every failure leaves the API as ``{"success": false, "error": ..., "code": ...}``:
- DomainError: its own status, message and code
- HTTPException (authentication): same shape, detail as the message
- RequestValidationError: 400 with field details
- OperationalError (timeouts, lost connections): 500, marked retryable
- Exception (catch-all): 500, never leaks internal details
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from heartline.core.errors import DomainError

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "INTERNAL_ERROR"


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_operational_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        """Expected lifecycle failures: bad input, conflicts, locked chats."""
        logger.info(
            f"{exc.code}: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Authentication failures and unknown routes."""
        code = "UNAUTHORIZED" if exc.status_code == status.HTTP_401_UNAUTHORIZED else "HTTP_ERROR"
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail, "code": code},
            headers=getattr(exc, "headers", None),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_operational_error_handler(app: FastAPI) -> None:

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError):
        """Store timeouts and lost connections; the transaction was rolled back."""
        logger.error(
            f"Database unavailable on {request.url.path}: {exc.orig}",
            extra={"error_code": INTERNAL_ERROR, "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Service temporarily unavailable",
                "code": INTERNAL_ERROR,
                "retryable": True,
            },
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "An unexpected error occurred",
                "code": INTERNAL_ERROR,
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "success": False,
        "error": "Invalid request data",
        "code": "VALIDATION_ERROR",
        "details": [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ],
    }
