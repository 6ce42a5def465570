"""
Tienda Services: Access Log Middleware
========================================

What:  One access-log line per request on the "tienda.access" logger.

Line format:
    POST /productos 201 12.4ms [a1b2c3d4] from 10.0.0.7 user=-
    GET /usuarios 200 3.1ms [9f8e7d6c] from 10.0.0.7 user=ana@correo.cl

Level by status: 5xx ERROR, 4xx WARNING, anything else INFO. GET /health is
not logged. Request bodies are never logged since they carry passwords and
buyer data.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tienda.middleware.request_id import request_id_var

logger = logging.getLogger("tienda.access")

UNLOGGED_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, duration, request ID, client and token user."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in UNLOGGED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        # set by tienda.security.require_token on protected routes
        usuario = getattr(request.state, "usuario", None) or "-"
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s user=%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            usuario,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
