"""Middleware for security headers and request logging."""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from orgtree.core.config import get_settings
from orgtree.core.metrics import observe_http_request
from orgtree.core.request_context import new_request_id, request_id_context, sanitize_request_id
from orgtree.core.structured_logging import log_json

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add basic security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")

        if get_settings().environment == "production":
            forwarded_proto = request.headers.get("x-forwarded-proto")
            scheme = forwarded_proto or request.url.scheme
            if scheme == "https":
                response.headers.setdefault(
                    "Strict-Transport-Security",
                    "max-age=63072000; includeSubDomains",
                )

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request logging middleware with structured logging.

    Logs method, path, status code, duration and client IP as one JSON line
    and records the request in the HTTP metrics. The ``X-Request-ID`` header
    is honoured when present and echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = (
            sanitize_request_id(request.headers.get("X-Request-ID"))
            or sanitize_request_id(request.headers.get("X-Correlation-ID"))
            or new_request_id()
        )
        request.state.request_id = request_id

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        with request_id_context(request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * 1000
                log_json(
                    logger,
                    logging.ERROR,
                    "request_error",
                    method=method,
                    path=path,
                    status_code=500,
                    duration_ms=round(duration_ms, 2),
                    client_ip=client_ip,
                    error=str(exc),
                    exception=exc.__class__.__name__,
                )
                raise

            response.headers.setdefault("X-Request-ID", request_id)
            duration_ms = (time.perf_counter() - start_time) * 1000

            route_obj = request.scope.get("route")
            route_template = getattr(route_obj, "path", None) or "unmatched"

            observe_http_request(
                method=method,
                route=route_template,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO

            log_json(
                logger,
                level,
                "request",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
            )

            return response
