# roomy/domain/audit.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models import AuditEvent, OwnerActivity

log = logging.getLogger("roomy.audit")


def _dumps(v: Optional[dict[str, Any]]) -> Optional[str]:
    if v is None:
        return None
    return json.dumps(v, sort_keys=True, default=str)


def audit_write(
    db: Session,
    *,
    actor: Optional[str],
    action: str,
    entity_type: str,
    entity_id: Any,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    """
    Record one mutation.

    - Does NOT commit (routers bundle the audit row with the write it describes).
    - Returns the AuditEvent row for tests / introspection.
    """
    row = AuditEvent(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_json=_dumps(before),
        after_json=_dumps(after),
        created_at=datetime.utcnow(),
    )
    db.add(row)
    log.info(
        "audit %s",
        action,
        extra={"entity_type": entity_type, "entity_id": str(entity_id), "actor": actor},
    )
    return row


def owner_activity(
    db: Session,
    *,
    owner_id: int,
    actor: Optional[str],
    action: str,
    description: str,
    type: str = "system",
) -> OwnerActivity:
    """Human-readable line on the owner's activity log. Does NOT commit."""
    row = OwnerActivity(
        owner_id=owner_id,
        action=action,
        description=description,
        type=type,
        user=actor,
        timestamp=datetime.utcnow(),
    )
    db.add(row)
    return row


def stamp_created(row: Any, actor: Optional[str]) -> None:
    now = datetime.utcnow()
    row.created_at = now
    row.created_by = actor
    row.last_modified_at = now
    row.last_modified_by = actor


def stamp_modified(row: Any, actor: Optional[str]) -> None:
    row.last_modified_at = datetime.utcnow()
    row.last_modified_by = actor
