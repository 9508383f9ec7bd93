"""Error Handlers — every failure leaves the API in one JSON envelope.

Invariants:
    - MemeVaultError -> its own status and to_response() body
    - RequestValidationError -> 400 VALIDATION_ERROR with field-level details
    - Framework HTTP errors (unknown route, wrong method) -> same envelope, same status
    - Anything else -> 500 INTERNAL_ERROR, logged with traceback, no internals in the body

Design Decisions:
    - Extracted from main.py (ADR: ExMA import fan-out < 10)
    - 4xx domain errors logged at WARNING, 5xx at ERROR: client mistakes are not incidents
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import ErrorSeverity, MemeVaultError

logger = logging.getLogger(__name__)


def error_body(
    code: str, message: str, category: str, severity: ErrorSeverity, **extra,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category,
            "severity": severity.value,
            **extra,
        },
    }


async def handle_memevault_error(request: Request, exc: MemeVaultError):
    level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
    logger.log(
        level,
        f"{request.method} {request.url.path} -> {exc.code}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "game_id": exc.context.game_id,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected request body on {request.url.path}: "
        f"{[d['field'] for d in details]}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "VALIDATION_ERROR", "Invalid request data", "validation",
            ErrorSeverity.ERROR, details=details,
        ),
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            f"HTTP_{exc.status_code}", str(exc.detail), "http",
            ErrorSeverity.WARNING,
        ),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "INTERNAL_ERROR", "An unexpected error occurred", "internal",
            ErrorSeverity.CRITICAL,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the handlers, most specific first."""
    app.add_exception_handler(MemeVaultError, handle_memevault_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
