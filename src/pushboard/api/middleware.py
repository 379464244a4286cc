"""API error handling middleware — consistent error responses.

Registers FastAPI exception handlers that convert domain exceptions into
standardised ``{"error": {"code": "...", "message": "..."}}`` JSON responses.

Status code mapping:
- ``RequestValidationError`` (bad body, path or query) → 400 Bad Request
- ``ValueError`` → 400 Bad Request
- ``NotificationNotFoundError`` → 404 Not Found
- ``StoreUnavailableError`` → 503 Service Unavailable
- Any other ``Exception`` → 500 Internal Server Error
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from pushboard.api.models import ErrorDetail, ErrorResponse
from pushboard.storage import NotificationNotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)


def format_validation_errors(exc: RequestValidationError) -> str:
    """Render pydantic errors as one readable line.

    ``Validation error: Field required at "body.title"; ...``
    """
    parts: list[str] = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        message = err.get("msg", "Invalid value")
        parts.append(f'{message} at "{location}"' if location else message)
    return "Validation error: " + "; ".join(parts)


async def _handle_request_validation(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Return 400 when a request body, path or query parameter fails validation."""
    message = format_validation_errors(exc)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    body = ErrorResponse(
        error=ErrorDetail(
            code="VALIDATION_ERROR",
            message=message,
        )
    )
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


async def _handle_value_error(
    request: Request,
    exc: ValueError,
) -> JSONResponse:
    """Return 400 for value errors raised by handlers (bad range, unknown zone)."""
    logger.info("Validation error: %s", exc)
    body = ErrorResponse(
        error=ErrorDetail(
            code="VALIDATION_ERROR",
            message=str(exc),
        )
    )
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


async def _handle_not_found(
    request: Request,
    exc: NotificationNotFoundError,
) -> JSONResponse:
    """Return 404 when an update targets an unknown notification."""
    logger.info("Notification not found: %s", exc.notification_id)
    body = ErrorResponse(
        error=ErrorDetail(
            code="NOTIFICATION_NOT_FOUND",
            message=str(exc),
            details={"id": exc.notification_id},
        )
    )
    return JSONResponse(status_code=404, content=body.model_dump(exclude_none=True))


async def _handle_store_unavailable(
    request: Request,
    exc: StoreUnavailableError,
) -> JSONResponse:
    """Return 503 while the database pool is not available."""
    logger.warning("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    body = ErrorResponse(
        error=ErrorDetail(
            code="STORE_UNAVAILABLE",
            message=str(exc),
        )
    )
    return JSONResponse(status_code=503, content=body.model_dump(exclude_none=True))


class CatchAllErrorMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that catches any unhandled exception and returns a 500.

    Sits above the Starlette exception handler layer so that exceptions not
    covered by ``add_exception_handler`` still produce the standard error
    envelope instead of a plain-text 500.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error(
                "Unhandled exception on %s %s",
                request.method,
                request.url.path,
                exc_info=True,
            )
            body = ErrorResponse(
                error=ErrorDetail(
                    code="INTERNAL_ERROR",
                    message="Internal server error",
                )
            )
            return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


def register_error_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI application.

    Call this from ``create_app()`` after constructing the ``FastAPI`` instance.
    """
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(ValueError, _handle_value_error)  # type: ignore[arg-type]
    app.add_exception_handler(NotificationNotFoundError, _handle_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(StoreUnavailableError, _handle_store_unavailable)  # type: ignore[arg-type]
    app.add_middleware(CatchAllErrorMiddleware)
