# roomy/services/bulk.py
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.audit import audit_write, stamp_modified
from ..domain.errors import DomainError, RuleViolation
from ..schemas import BulkFailure, BulkRequest, BulkResultOut

log = logging.getLogger("roomy.bulk")

Mutator = Callable[[Any], None]


def run_bulk(
    db: Session,
    model: Any,
    req: BulkRequest,
    *,
    entity_type: str,
    actor: Optional[str],
    mutators: dict[str, Mutator],
    serialize: Callable[[Any], dict[str, Any]],
    on_delete: Optional[Callable[[Any], None]] = None,
) -> BulkResultOut:
    """
    Best-effort bulk action.

    Every id is reported either in `succeeded` or in `failed`; one bad id never
    blocks the rest. `export` is read-only and returns rows in request order.
    """
    action = req.action
    if action not in mutators and action not in ("delete", "export"):
        raise RuleViolation(f"bulk action {action!r} is not supported for {entity_type}")

    ids = list(dict.fromkeys(req.ids))
    found = {r.id: r for r in db.scalars(select(model).where(model.id.in_(ids))).all()}

    out = BulkResultOut(action=action)
    rows: list[dict[str, Any]] = []

    for row_id in ids:
        row = found.get(row_id)
        if row is None:
            out.failed.append(BulkFailure(id=row_id, error=f"{entity_type} not found"))
            continue

        if action == "export":
            rows.append(serialize(row))
            out.succeeded.append(row_id)
            continue

        before = row.to_dict()
        try:
            if action == "delete":
                if on_delete is not None:
                    on_delete(row)
                db.delete(row)
                after = None
            else:
                mutators[action](row)
                stamp_modified(row, actor)
                after = row.to_dict()
        except DomainError as e:
            out.failed.append(BulkFailure(id=row_id, error=e.message))
            continue

        audit_write(
            db,
            actor=actor,
            action=f"{entity_type}.bulk_{action}",
            entity_type=entity_type,
            entity_id=row_id,
            before=before,
            after=after,
        )
        out.succeeded.append(row_id)

    if action == "export":
        out.rows = rows
    elif out.succeeded:
        db.commit()

    log.info(
        "bulk %s: %d ok, %d failed",
        action,
        len(out.succeeded),
        len(out.failed),
        extra={"entity_type": entity_type},
    )
    return out
