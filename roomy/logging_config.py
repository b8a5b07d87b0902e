# roomy/logging_config.py
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from .config import settings
from .middleware.request_id import RequestIDFilter

# record attributes promoted to top-level JSON keys
_FIELDS = (
    "request_id",
    "method",
    "path",
    "resource",
    "status_code",
    "latency_ms",
    "actor",
    "entity_type",
    "entity_id",
    "error_kind",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "env": settings.app_env,
        }
        for k in _FIELDS:
            v = getattr(record, k, None)
            if v is not None:
                line[k] = v
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: Optional[str] = None) -> None:
    """
    One JSON handler on the root logger.

    Safe to call repeatedly (app reloads, tests); uvicorn's own loggers are
    routed through the root handler instead of printing plain text.
    """
    lvl = (level or settings.log_level or "INFO").upper()

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIDFilter())
    root.addHandler(handler)
    root.setLevel(lvl)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = []
        lg.propagate = True
    # access lines come from StructuredLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(settings.sql_log_level.upper())
