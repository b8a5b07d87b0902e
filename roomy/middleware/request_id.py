# roomy/middleware/request_id.py
from __future__ import annotations

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# callers may pass their own id; anything odd is replaced rather than logged verbatim
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


def new_request_id() -> str:
    return uuid.uuid4().hex


def incoming_request_id(request: Request) -> Optional[str]:
    v = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return v if _SAFE_ID.match(v) else None


class RequestIDFilter(logging.Filter):
    """Stamps the current request id onto every record logged while a request is in flight."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds one id per request (ContextVar + request.state) and echoes it on the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = incoming_request_id(request) or new_request_id()
        request.state.request_id = rid

        token = request_id_ctx.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
