"""HTTP middleware: CORS, request logging and engine-error mapping.

Starlette runs the last-added middleware first.  ``main.create_app`` adds
:class:`ErrorHandlingMiddleware` before :class:`RequestLoggingMiddleware`,
so the request log sees the status code after error mapping.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from lifeos_memory.api.schemas import ErrorResponse
from lifeos_memory.utils.errors import MemoryEngineError, QueueError, ValidationError
from lifeos_memory.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Allow cross-origin calls from the LifeOS front end (``*`` by default)."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def error_status(exc: MemoryEngineError) -> int:
    """HTTP status for an engine error that escaped a route."""
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, QueueError):
        return 503
    return 500


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one ``http_request`` line per request.

    A request id (taken from ``X-Request-ID`` or generated) is bound into
    structlog's context vars, so every line the request produces, including
    ingestion and retrieval logs, carries it.  The id is echoed back in the
    response header.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id)
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
                path=request.url.path,
                owner_id=request.query_params.get("owner_id"),
                status=response.status_code if response else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn an escaped ``MemoryEngineError`` into an :class:`ErrorResponse`.

    The body carries only the error class name and message; the provider
    name stays in the server log.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except MemoryEngineError as exc:
            status_code = error_status(exc)
            _logger.error(
                "request_failed",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=request.url.path,
                status=status_code,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=status_code, content=body.model_dump())
