# roomy/actor.py
from __future__ import annotations

from fastapi import Request

from .config import settings


def get_actor(request: Request) -> str:
    """
    Who is making the change, for attribution fields and the audit trail.

    Identification only: the header is trusted as-is.
    """
    v = (request.headers.get(settings.actor_header) or "").strip()
    return v or settings.default_actor_email
