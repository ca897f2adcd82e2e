"""RFC 7807 Problem Details exception handlers for FastAPI."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from cloudbuild_gcp.core.exceptions import (
    CloudBuildGcpError,
    PoolClosedError,
    PoolNotInitializedError,
    PoolTimeoutError,
)

_ERROR_TYPES = {
    400: "urn:cloudbuild-gcp:error:bad-request",
    404: "urn:cloudbuild-gcp:error:not-found",
    422: "urn:cloudbuild-gcp:error:validation",
    500: "urn:cloudbuild-gcp:error:internal-server",
    503: "urn:cloudbuild-gcp:error:service-unavailable",
}

_ERROR_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    422: "Validation Error",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

# Errors that mean the database cannot serve this request right now
_UNAVAILABLE_ERRORS = (PoolTimeoutError, PoolNotInitializedError, PoolClosedError)


def _problem(request: Request, status_code: int, detail: str, **extra) -> JSONResponse:
    content = {
        "type": _ERROR_TYPES.get(status_code, f"urn:cloudbuild-gcp:error:http-{status_code}"),
        "title": _ERROR_TITLES.get(status_code, "Error"),
        "status": status_code,
        "detail": detail,
        "instance": request.url.path,
        **extra,
    }
    return JSONResponse(
        status_code=status_code, content=content, media_type="application/problem+json"
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert HTTPException to RFC 7807 Problem Details format."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    response = _problem(request, exc.status_code, detail)
    for name, value in (getattr(exc, "headers", None) or {}).items():
        response.headers[name] = value
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert Pydantic validation errors to RFC 7807 format."""
    errors = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors[field] = error["msg"]
    return _problem(request, 422, "Request validation failed", errors=errors)


async def application_error_handler(request: Request, exc: CloudBuildGcpError) -> JSONResponse:
    """Surface application errors as failed requests instead of crashing the process."""
    status_code = 503 if isinstance(exc, _UNAVAILABLE_ERRORS) else 500
    logger.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return _problem(
        request,
        status_code,
        exc.message,
        error=exc.__class__.__name__,
        recoverable=exc.recoverable,
    )
