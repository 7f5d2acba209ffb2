from __future__ import annotations

import logging
import uuid

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging_config import request_id_ctx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error Response Schema
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    code: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: list[ErrorDetail] | None = None


# ---------------------------------------------------------------------------
# Custom Exception Hierarchy
# ---------------------------------------------------------------------------

class AppBaseException(Exception):
    """Base for all application-level exceptions."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class BadRequestException(AppBaseException):
    http_status = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"


class UnauthorizedException(AppBaseException):
    http_status = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"


class ForbiddenException(AppBaseException):
    http_status = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class NotFoundException(AppBaseException):
    http_status = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class BackendException(AppBaseException):
    """A storage call failed; ``message`` is the user-facing summary."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "BACKEND_ERROR"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_request_id(request: Request) -> str:
    """Extract or generate a unique request ID."""
    state_id = getattr(request.state, "request_id", None)
    return (
        state_id
        or request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or str(uuid.uuid4())
    )


def _build_response(
    request: Request,
    *,
    http_status: int,
    error_code: str,
    message: str,
    details: list[ErrorDetail] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    body = ErrorResponse(error=message, code=error_code, details=details)
    return JSONResponse(
        status_code=http_status,
        content=body.model_dump(exclude_none=True),
        headers={"X-Request-ID": request_id},
    )


def _log_error(
    request: Request,
    exc: BaseException,
    *,
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    request_id = _get_request_id(request)
    extra = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_host": request.client.host if request.client else "unknown",
        "exception_type": type(exc).__name__,
    }
    logger.log(
        level,
        "[%s] %s: %s",
        request_id,
        type(exc).__name__,
        exc,
        extra=extra,
        exc_info=exc if include_traceback else None,
    )


# ---------------------------------------------------------------------------
# Exception Handlers
# ---------------------------------------------------------------------------

async def _handle_app_exception(request: Request, exc: AppBaseException) -> JSONResponse:
    if exc.http_status >= 500:
        cause = exc.__cause__ or exc
        _log_error(request, cause, level=logging.ERROR, include_traceback=True)
        sentry_sdk.capture_exception(cause)
    else:
        _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=exc.http_status,
        error_code=exc.error_code,
        message=exc.message,
    )


async def _handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=exc.status_code,
        error_code=f"HTTP_{exc.status_code}",
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
    )


async def _handle_validation_exception(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        ErrorDetail(
            code=err.get("type", "value_error"),
            message=err.get("msg", "Validation error"),
            field=".".join(str(part) for part in err.get("loc", [])[1:]) or None,
        )
        for err in exc.errors()
    ]
    _log_error(request, exc, level=logging.INFO, include_traceback=False)
    return _build_response(
        request,
        http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_code="VALIDATION_ERROR",
        message="Request validation failed.",
        details=details,
    )


async def _handle_backend_error(request: Request, exc: APIError) -> JSONResponse:
    _log_error(request, exc, level=logging.ERROR, include_traceback=True)
    sentry_sdk.capture_exception(exc)
    return _build_response(
        request,
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="BACKEND_ERROR",
        message="A database error occurred. Please try again later.",
    )


async def _handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=status.HTTP_429_TOO_MANY_REQUESTS,
        error_code="RATE_LIMIT_EXCEEDED",
        message=f"Too many requests: {exc.detail}",
    )


async def _handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    _log_error(request, exc, level=logging.ERROR, include_traceback=True)
    sentry_sdk.capture_exception(exc)
    return _build_response(
        request,
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred. Please try again later.",
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def add_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application."""
    app.add_exception_handler(AppBaseException, _handle_app_exception)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_exception)
    app.add_exception_handler(APIError, _handle_backend_error)
    app.add_exception_handler(RateLimitExceeded, _handle_rate_limit)
    app.add_exception_handler(Exception, _handle_unhandled_exception)

    logger.info("Exception handlers registered.")


async def request_id_middleware(request: Request, call_next):
    """Stamp every request with a unique ID, expose it to log records and echo it back."""
    request_id = _get_request_id(request)
    request.state.request_id = request_id
    token = request_id_ctx.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_ctx.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response
