"""Translation of layered errors into JSON error responses.

Every error body has the shape ``{"error": CODE, "detail": text, ...extra}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskboard.adapter.error import AdapterError
from taskboard.domain.error import (
    AccessDeniedError,
    ConflictError,
    DomainError,
    NotFoundError,
    RateLimitedError,
    UpstreamFailureError,
)
from taskboard.interface.error import InterfaceError

logger = logging.getLogger(__name__)

# Codes answered with 400 even though they derive from ConflictError
BAD_REQUEST_CODES = {
    "VALIDATION_ERROR",
    "ALREADY_ACTIVE",
    "ALREADY_ACCEPTED",
    "ALREADY_REGISTERED",
    "ALREADY_REVOKED",
    "CANNOT_RESEND",
    "EXPIRED",
    "REVOKED",
}


def status_for(error: DomainError) -> int:
    """HTTP status for a domain error."""
    if error.code in BAD_REQUEST_CODES:
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, RateLimitedError):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(error, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, AccessDeniedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(error, UpstreamFailureError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def error_response(status_code: int, code: str, detail: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": code, "detail": detail, **extra},
    )


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc}")
    return error_response(status_code, exc.code, str(exc), **exc.extra())


async def handle_interface_error(request: Request, exc: InterfaceError) -> JSONResponse:
    return error_response(exc.status_code, exc.code, str(exc))


async def handle_adapter_error(request: Request, exc: AdapterError) -> JSONResponse:
    logger.error(f"Upstream failure on {request.url.path}: {exc}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, UpstreamFailureError.code, str(exc)
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", detail)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on an app."""
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(InterfaceError, handle_interface_error)
    app.add_exception_handler(AdapterError, handle_adapter_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
