# roomy/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings

log = logging.getLogger("roomy.access")

_QUIET_PATHS = ("/api/health",)


def resource_of(path: str) -> Optional[str]:
    """/api/owners/3/bank-details -> owners"""
    parts = [p for p in path.split("/") if p]
    if parts and parts[0] == "api":
        parts = parts[1:]
    return parts[0] if parts else None


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One access line per request.

    5xx responses log at ERROR, 4xx at WARNING, the rest at INFO; health
    checks only log when they fail.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            path = request.url.path
            if status_code >= 500:
                level = logging.ERROR
            elif status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO

            if not (path in _QUIET_PATHS and level == logging.INFO):
                log.log(
                    level,
                    "%s %s -> %s",
                    request.method,
                    path,
                    status_code,
                    extra={
                        "method": request.method,
                        "path": path,
                        "resource": resource_of(path),
                        "status_code": status_code,
                        "latency_ms": round((time.perf_counter() - started) * 1000, 1),
                        "actor": request.headers.get(settings.actor_header),
                    },
                )
