"""Error Handlers — global exception handlers for the VIDA API.

Invariants:
    - VidaError → {"error": {code, message, category, severity, timestamp, context}}
    - RequestValidationError → 400 with one detail per offending field
    - Exception (catch-all) → 500, never leaks internal details

Design Decisions:
    - Three-layer handler: domain (VidaError), validation (Pydantic), catch-all (Exception)
    - Client errors (4xx) log at WARNING, server-side failures at ERROR
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from vida.core.errors import ErrorCategory, ErrorSeverity, VidaError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_vida_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_vida_error_handler(app: FastAPI) -> None:

    @app.exception_handler(VidaError)
    async def vida_error_handler(request: Request, exc: VidaError):
        level = logging.WARNING if exc.http_status < 500 else logging.ERROR
        logger.log(
            level,
            f"{exc.code}: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "user_id": exc.context.user_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {len(exc.errors())} field(s)",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_validation_error_body(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — the client sees a generic message, the log gets the trace."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": ErrorCategory.INTERNAL.value,
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _validation_error_body(exc: RequestValidationError) -> dict:
    details = []
    for e in exc.errors():
        # drop the "body"/"query" prefix: clients name fields, not locations
        loc = [str(part) for part in e["loc"]]
        if len(loc) > 1 and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        details.append({"field": ".".join(loc), "message": e["msg"], "type": e["type"]})
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": ErrorCategory.VALIDATION.value,
            "severity": ErrorSeverity.WARNING.value,
            "details": details,
        },
    }
