# roomy/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db import init_db
from .domain.errors import DomainError
from .logging_config import configure_logging
from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware
from .schemas import ErrorEnvelope

from .routers.health import router as health_router
from .routers.agents import router as agents_router
from .routers.owners import router as owners_router
from .routers.cleaning import router as cleaning_router
from .routers.maintenance import router as maintenance_router
from .routers.files import router as files_router
from .routers.chat import router as chat_router

API_PREFIX = "/api"

log = logging.getLogger("roomy")


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def _failure(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    body = ErrorEnvelope(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for e in exc.errors():
        loc = ".".join(str(x) for x in e.get("loc", ()) if x != "body")
        parts.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
    return "; ".join(parts) or "invalid request"


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _failure(exc.status_code, str(exc.detail))

    @app.exception_handler(DomainError)
    async def _domain_error(request: Request, exc: DomainError):
        log.info("domain error: %s", exc.message, extra={"error_kind": type(exc).__name__, "path": request.url.path})
        return _failure(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return _failure(422, _validation_message(exc), "Validation failed")

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        log.exception("unhandled error", extra={"error_kind": type(exc).__name__, "path": request.url.path})
        return _failure(500, "Internal server error")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Roomy Back-Office API", version=settings.app_version, lifespan=_lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # last added runs first: request id must be set before the access log line
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    _install_error_handlers(app)

    app.include_router(health_router, prefix=API_PREFIX)

    app.include_router(agents_router, prefix=API_PREFIX)
    app.include_router(owners_router, prefix=API_PREFIX)
    app.include_router(cleaning_router, prefix=API_PREFIX)
    app.include_router(maintenance_router, prefix=API_PREFIX)

    app.include_router(files_router, prefix=API_PREFIX)
    app.include_router(chat_router, prefix=API_PREFIX)

    return app


app = create_app()
