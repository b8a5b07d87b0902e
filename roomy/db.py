# roomy/db.py
from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import settings


class Base(DeclarativeBase):
    def to_dict(self) -> dict[str, Any]:
        """Column snapshot used for audit before/after payloads."""
        out: dict[str, Any] = {}
        for col in inspect(self).mapper.column_attrs:
            v = getattr(self, col.key)
            if isinstance(v, (date, datetime)):
                v = v.isoformat()
            out[col.key] = v
        return out


def _connect_args(url: str) -> dict[str, Any]:
    # sqlite connections are shared with the threadpool that runs sync routes
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
    future=True,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def alembic_config() -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent / "alembic"))
    return cfg


def init_db() -> None:
    """Upgrade the configured database to the latest migration."""
    command.upgrade(alembic_config(), "head")


def get_db():
    """
    Request-scoped session.

    Rolls back on any exception so a failed statement never leaks an aborted
    transaction into later queries on the same connection.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
