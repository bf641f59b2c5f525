"""
YelpCamp Backend - Request Logging Middleware
===============================================

What:  One access-log line per HTTP request.
How:   Times the request, then logs method, path, status, duration, request
       id, client IP and the signed-in user id (if any) on the
       "yelpcamp.access" logger. Runs inside SessionMiddleware so the
       session is already decoded.

Log levels:
    5xx → ERROR, 4xx → WARNING, everything else (incl. 303 redirects) → INFO

Not logged: request bodies (passwords travel in /login and /register forms)
and cookies.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("yelpcamp.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs status and duration of every request except /health probes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        session = request.scope.get("session") or {}
        user_id = session.get("user_id") or "-"

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )

        return response
