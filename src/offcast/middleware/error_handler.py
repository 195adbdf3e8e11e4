"""Exception handlers: every error leaves the API as ``{"detail": ...}`` JSON."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from offcast.errors import AppError

logger = structlog.get_logger()


def _error(status_code: int, detail: Any, headers: dict[str, str] | None = None, **extra: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra}, headers=headers)


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without ``ctx``, which may hold the raised exception object."""
    return [{key: value for key, value in error.items() if key != "ctx"} for error in exc.errors()]


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    """Domain rule violations raised by services (400/403/404/409/502)."""
    log = logger.warning if exc.status_code >= 500 else logger.info
    log("request_rejected", method=request.method, path=request.url.path, status_code=exc.status_code, detail=exc.detail)
    return _error(exc.status_code, exc.detail)


async def handle_http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(422, "Validation error", errors=jsonable_errors(exc))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", method=request.method, path=request.url.path, exc_info=exc)
    return _error(500, "Internal server error")


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppError, handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected)
