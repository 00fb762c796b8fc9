"""
API middleware stack.

- Request context: X-Request-ID in and out, bound into every log line
  emitted while the request is handled (cascade and provider logs included)
- Exception handlers returning the ``{success: false, ...}`` envelope
- CORS configuration
"""
from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from shared.config import get_settings
from shared.utils.errors import FallbackExhausted
from shared.utils.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
UNLOGGED_PATHS = frozenset({"/health", "/metrics"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, binds it to the log context and logs the outcome."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request.state.request_id = request_id
        path = request.url.path
        started = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "http_request_error",
                    method=request.method,
                    path=path,
                    elapsed_ms=_elapsed_ms(started),
                    error=str(exc),
                    exc_info=True,
                )
                raise

            if path not in UNLOGGED_PATHS:
                logger.info(
                    "http_request",
                    method=request.method,
                    path=path,
                    query=str(request.url.query) or None,
                    status=response.status_code,
                    elapsed_ms=_elapsed_ms(started),
                )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers. Every error body carries ``success: false``."""

    @app.exception_handler(FallbackExhausted)
    async def fallback_exhausted_handler(request: Request, exc: FallbackExhausted) -> JSONResponse:
        logger.error("fallback_exhausted", path=request.url.path, season=exc.season, detail=exc.detail)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "No match data available", "details": exc.detail},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "internal_server_error",
                "request_id": _request_id(request),
            },
        )


def setup_middleware(app: FastAPI) -> None:
    """Install CORS and request context middleware, then the exception handlers."""
    settings = get_settings()
    app.add_middleware(RequestContextMiddleware)
    # Added last so it wraps everything, including preflight requests.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    setup_exception_handlers(app)
