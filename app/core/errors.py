"""API error types and the handlers that render every failure as the JSON envelope.

Every error response has the shape::

    {"success": false, "message": "<human readable>", "errors": {"field": ["msg", ...]}}

``errors`` is an empty object when there are no field-level messages. Stack
traces and internal exception text are logged, never returned.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

FieldErrors = dict[str, list[str]]


class ApiError(Exception):
    """Error raised by handlers and services that maps directly onto an HTTP response."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        errors: FieldErrors | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}
        self.headers = headers


class ValidationFailed(ApiError):
    """Record validation failed; carries a field -> messages map (422)."""

    def __init__(self, errors: FieldErrors, message: str = "Validation failed") -> None:
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


class NotFound(ApiError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


def error_response(
    status_code: int,
    message: str,
    errors: FieldErrors | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": errors or {}},
        headers=headers,
    )


def _validation_errors_to_fields(exc: RequestValidationError) -> FieldErrors:
    fields: FieldErrors = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if not isinstance(part, int)]
        key = loc[-1] if loc else "body"
        fields.setdefault(key, []).append(err.get("msg", "is invalid"))
    return fields


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers that render ApiError, HTTPException and validation errors as envelopes."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("API error on %s %s: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message, exc.errors, exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation failed",
            _validation_errors_to_fields(exc),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
