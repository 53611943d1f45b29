"""API middleware -- CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  ``create_app``
adds ``ErrorHandlingMiddleware`` before ``RequestLoggingMiddleware``, so a
request flows:

    Client -> RequestLogging -> ErrorHandling -> route handler

and RequestLoggingMiddleware logs the final status code, including the
ones ErrorHandlingMiddleware produced.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from docqa.api.schemas import ActionFailure
from docqa.utils.errors import (
    DocQAError,
    ExtractionError,
    IngestionError,
    QueryError,
    ServiceTimeoutError,
)
from docqa.utils.logging import bind_request_context, clear_request_context, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_GENERIC_ERROR_MESSAGE = "An unexpected error occurred"

REQUEST_ID_HEADER = "X-Request-ID"


def status_code_for(exc: DocQAError) -> int:
    """Map a docqa error to its HTTP status code."""
    if isinstance(exc, QueryError):
        return 400
    if isinstance(exc, (ExtractionError, IngestionError)):
        return 422
    if isinstance(exc, ServiceTimeoutError):
        return 504
    return 500


def failure_response(status_code: int, message: str, error_type: str) -> JSONResponse:
    body = ActionFailure(error=message, error_type=error_type)
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; all origins are allowed unless *allowed_origins* is given."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration.

    A ``request_id`` (the caller's ``X-Request-ID`` header, or a fresh one)
    is bound to the logging context for the whole request and echoed back
    in the response header.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        clear_request_context()
        bind_request_context(request_id=request_id, path=str(request.url.path))

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                status=response.status_code if response else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            clear_request_context()


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn exceptions escaping a route into the :class:`ActionFailure` body.

    ``DocQAError`` messages are passed to the client verbatim.  Any other
    exception is logged with its traceback and answered with a generic
    message; internals never reach the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except DocQAError as exc:
            status_code = status_code_for(exc)
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status_code,
            )
            return failure_response(status_code, exc.message, type(exc).__name__)
        except Exception as exc:
            _logger.exception(
                "unhandled_error",
                error_type=type(exc).__name__,
                path=str(request.url.path),
            )
            return failure_response(500, _GENERIC_ERROR_MESSAGE, type(exc).__name__)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    _logger.warning("request_validation_failed", path=str(request.url.path), errors=messages)
    return failure_response(422, messages or "Invalid request", "RequestValidationError")


def register_exception_handlers(app: FastAPI) -> None:
    """Give malformed requests the same failure body as action errors."""
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
