"""
Middleware for FastAPI application.

This module provides middleware for request tracking, security headers and
the catch-all error response.
"""

import time
from uuid import uuid4

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()

SERVER_ERROR_BODY = {"error": "Server error"}


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Logs each request with an id and its processing time."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        )

        response = await call_next(request)

        processing_time = time.time() - start_time
        logger.info(
            "Request completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            processing_time=processing_time,
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time:.6f}"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Listings reflect the latest import, never serve them from cache.
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns any unhandled exception into a generic server error."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "Unexpected error",
                path=request.url.path,
                method=request.method,
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(status_code=500, content=SERVER_ERROR_BODY)
