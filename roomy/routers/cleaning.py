# roomy/routers/cleaning.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..actor import get_actor
from ..db import get_db
from ..domain.audit import audit_write, stamp_created, stamp_modified
from ..domain.checklist import (
    available_options,
    ensure_not_duplicate,
    normalize_item,
    toggle_static,
    validate_static_flags,
)
from ..models import STATIC_CHECKLIST_LEN, CleaningChecklistItem, CleaningComment, CleaningTask
from ..schemas import (
    BulkRequest,
    BulkResultOut,
    ChecklistItemCreate,
    ChecklistItemOut,
    ChecklistItemUpdate,
    ChecklistOut,
    CleaningCommentCreate,
    CleaningCreate,
    CleaningOut,
    CleaningStatsOut,
    CleaningUpdate,
    CommentOut,
    Envelope,
    ListEnvelope,
    NotesUpdate,
    StaticChecklistUpdate,
)
from ..services.bulk import run_bulk
from ..services.lookups import must_get_child, must_get_cleaning
from ..services.query import apply_search, apply_sort, fetch_page

router = APIRouter(prefix="/cleaning", tags=["cleaning"])

SORTABLE = {
    "id": CleaningTask.id,
    "unit": CleaningTask.unit,
    "type": CleaningTask.type,
    "status": CleaningTask.status,
    "priority": CleaningTask.priority,
    "scheduledDate": CleaningTask.scheduled_date,
    "scheduledTime": CleaningTask.scheduled_time,
    "cleaner": CleaningTask.cleaner,
    "cost": CleaningTask.cost,
    "createdAt": CleaningTask.created_at,
}


def _checklist(task: CleaningTask) -> ChecklistOut:
    return ChecklistOut(
        static_checklist=task.static_checklist,
        checklist=[ChecklistItemOut.model_validate(i) for i in task.checklist],
    )


def _export(task: CleaningTask) -> dict:
    return CleaningOut.model_validate(task).model_dump(mode="json", by_alias=True)


@router.get("", response_model=ListEnvelope[CleaningOut])
def list_cleaning(
    search: Optional[str] = Query(default=None),
    status: Optional[list[str]] = Query(default=None),
    type: Optional[list[str]] = Query(default=None),
    cleaner: Optional[list[str]] = Query(default=None),
    priority: Optional[list[str]] = Query(default=None),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_dir: Optional[str] = Query(default="asc", alias="sortDir"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
):
    q = select(CleaningTask).options(selectinload(CleaningTask.comments), selectinload(CleaningTask.checklist))
    q = apply_search(q, [CleaningTask.unit, CleaningTask.cleaner, CleaningTask.notes], search)
    if status:
        q = q.where(CleaningTask.status.in_(status))
    if type:
        q = q.where(CleaningTask.type.in_(type))
    if cleaner:
        q = q.where(CleaningTask.cleaner.in_(cleaner))
    if priority:
        q = q.where(CleaningTask.priority.in_(priority))
    q = apply_sort(q, CleaningTask, SORTABLE, sort_by, sort_dir)

    rows, total, page, limit = fetch_page(db, q, page, limit)
    return ListEnvelope[CleaningOut](data=[CleaningOut.model_validate(r) for r in rows], total=total, page=page, limit=limit)


@router.get("/stats", response_model=Envelope[CleaningStatsOut])
def cleaning_stats(db: Session = Depends(get_db)):
    counts = dict(db.execute(select(CleaningTask.status, func.count(CleaningTask.id)).group_by(CleaningTask.status)).all())
    return Envelope(
        data=CleaningStatsOut(
            total_tasks=int(sum(counts.values())),
            scheduled_tasks=int(counts.get("Scheduled", 0)),
            in_progress_tasks=int(counts.get("In Progress", 0)),
            completed_tasks=int(counts.get("Completed", 0)),
            cancelled_tasks=int(counts.get("Cancelled", 0)),
        )
    )


@router.post("/bulk", response_model=Envelope[BulkResultOut])
def bulk_cleaning(payload: BulkRequest, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    result = run_bulk(
        db,
        CleaningTask,
        payload,
        entity_type="cleaning",
        actor=actor,
        mutators={
            "complete": lambda r: setattr(r, "status", "Completed"),
            "cancel": lambda r: setattr(r, "status", "Cancelled"),
        },
        serialize=_export,
    )
    return Envelope(data=result)


@router.post("", response_model=Envelope[CleaningOut])
def create_cleaning(payload: CleaningCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = CleaningTask(**payload.model_dump())
    row.static_checklist = [False] * STATIC_CHECKLIST_LEN
    stamp_created(row, actor)
    db.add(row)
    db.flush()

    audit_write(db, actor=actor, action="cleaning.create", entity_type="cleaning", entity_id=row.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=CleaningOut.model_validate(row), message="Cleaning task created")


@router.get("/{task_id}", response_model=Envelope[CleaningOut])
def get_cleaning(task_id: int, db: Session = Depends(get_db)):
    return Envelope(data=CleaningOut.model_validate(must_get_cleaning(db, task_id=task_id)))


@router.put("/{task_id}", response_model=Envelope[CleaningOut])
def update_cleaning(task_id: int, payload: CleaningUpdate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_cleaning(db, task_id=task_id)
    before = row.to_dict()

    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(row, k, v)
    stamp_modified(row, actor)

    audit_write(db, actor=actor, action="cleaning.update", entity_type="cleaning", entity_id=row.id, before=before, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=CleaningOut.model_validate(row), message="Cleaning task updated")


@router.put("/{task_id}/notes", response_model=Envelope[CleaningOut])
def update_notes(task_id: int, payload: NotesUpdate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_cleaning(db, task_id=task_id)
    before = {"notes": row.notes}
    row.notes = payload.notes
    stamp_modified(row, actor)

    audit_write(db, actor=actor, action="cleaning.notes", entity_type="cleaning", entity_id=row.id, before=before, after={"notes": row.notes})
    db.commit()
    db.refresh(row)
    return Envelope(data=CleaningOut.model_validate(row))


@router.delete("/{task_id}", response_model=Envelope[dict])
def delete_cleaning(task_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_cleaning(db, task_id=task_id)

    audit_write(db, actor=actor, action="cleaning.delete", entity_type="cleaning", entity_id=row.id, before=row.to_dict())
    db.delete(row)
    db.commit()
    return Envelope(data={"id": task_id}, message="Cleaning task deleted")


# -------------------- comments --------------------

@router.get("/{task_id}/comments", response_model=Envelope[list[CommentOut]])
def list_comments(task_id: int, db: Session = Depends(get_db)):
    task = must_get_cleaning(db, task_id=task_id)
    return Envelope(data=[CommentOut.model_validate(c) for c in task.comments])


@router.post("/{task_id}/comments", response_model=Envelope[CommentOut])
def add_comment(task_id: int, payload: CleaningCommentCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_cleaning(db, task_id=task_id)
    comment = CleaningComment(author=actor, text=payload.text, type=payload.type, posted_at=datetime.utcnow())
    task.comments.append(comment)
    stamp_modified(task, actor)
    db.flush()

    audit_write(db, actor=actor, action="cleaning.comment.add", entity_type="cleaning", entity_id=task.id, after=comment.to_dict())
    db.commit()
    db.refresh(comment)
    return Envelope(data=CommentOut.model_validate(comment))


# -------------------- checklist --------------------

@router.get("/{task_id}/checklist", response_model=Envelope[ChecklistOut])
def get_checklist(task_id: int, db: Session = Depends(get_db)):
    return Envelope(data=_checklist(must_get_cleaning(db, task_id=task_id)))


@router.get("/{task_id}/checklist/options", response_model=Envelope[list[str]])
def checklist_options(task_id: int, db: Session = Depends(get_db)):
    task = must_get_cleaning(db, task_id=task_id)
    return Envelope(data=available_options(task.checklist))


@router.post("/{task_id}/checklist", response_model=Envelope[ChecklistOut])
def add_checklist_item(task_id: int, payload: ChecklistItemCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_cleaning(db, task_id=task_id)
    text = normalize_item(payload.item)
    ensure_not_duplicate(task.checklist, text)

    item = CleaningChecklistItem(item=text, completed=False, created_at=datetime.utcnow())
    task.checklist.append(item)
    stamp_modified(task, actor)
    db.flush()

    audit_write(db, actor=actor, action="cleaning.checklist.add", entity_type="cleaning", entity_id=task.id, after=item.to_dict())
    db.commit()
    db.refresh(task)
    return Envelope(data=_checklist(task))


def _set_item(db: Session, task: CleaningTask, item: CleaningChecklistItem, completed: bool, actor: str) -> None:
    before = item.to_dict()
    item.completed = completed
    stamp_modified(task, actor)
    audit_write(
        db,
        actor=actor,
        action="cleaning.checklist.set",
        entity_type="cleaning",
        entity_id=task.id,
        before=before,
        after=item.to_dict(),
    )
    db.commit()
    db.refresh(task)


@router.put("/{task_id}/checklist/{item_id}", response_model=Envelope[ChecklistOut])
def update_checklist_item(
    task_id: int,
    item_id: int,
    payload: ChecklistItemUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    task = must_get_cleaning(db, task_id=task_id)
    item = must_get_child(db, CleaningChecklistItem, parent_field="task_id", parent_id=task.id, child_id=item_id, label="checklist item")
    _set_item(db, task, item, payload.completed, actor)
    return Envelope(data=_checklist(task))


@router.post("/{task_id}/checklist/{item_id}/toggle", response_model=Envelope[ChecklistOut])
def toggle_checklist_item(task_id: int, item_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_cleaning(db, task_id=task_id)
    item = must_get_child(db, CleaningChecklistItem, parent_field="task_id", parent_id=task.id, child_id=item_id, label="checklist item")
    _set_item(db, task, item, not item.completed, actor)
    return Envelope(data=_checklist(task))


@router.delete("/{task_id}/checklist/{item_id}", response_model=Envelope[ChecklistOut])
def remove_checklist_item(task_id: int, item_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_cleaning(db, task_id=task_id)
    item = must_get_child(db, CleaningChecklistItem, parent_field="task_id", parent_id=task.id, child_id=item_id, label="checklist item")

    audit_write(db, actor=actor, action="cleaning.checklist.remove", entity_type="cleaning", entity_id=task.id, before=item.to_dict())
    task.checklist.remove(item)
    stamp_modified(task, actor)
    db.commit()
    db.refresh(task)
    return Envelope(data=_checklist(task))


@router.put("/{task_id}/static-checklist", response_model=Envelope[ChecklistOut])
def replace_static_checklist(
    task_id: int,
    payload: StaticChecklistUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    task = must_get_cleaning(db, task_id=task_id)
    flags = validate_static_flags(payload.static_checklist)
    before = {"static_checklist": task.static_checklist}

    task.static_checklist = flags
    stamp_modified(task, actor)
    audit_write(db, actor=actor, action="cleaning.static_checklist", entity_type="cleaning", entity_id=task.id, before=before, after={"static_checklist": flags})
    db.commit()
    db.refresh(task)
    return Envelope(data=_checklist(task))


@router.post("/{task_id}/static-checklist/{index}/toggle", response_model=Envelope[ChecklistOut])
def toggle_static_item(task_id: int, index: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_cleaning(db, task_id=task_id)
    before = task.static_checklist
    flags = toggle_static(before, index)

    task.static_checklist = flags
    stamp_modified(task, actor)
    audit_write(
        db,
        actor=actor,
        action="cleaning.static_checklist",
        entity_type="cleaning",
        entity_id=task.id,
        before={"static_checklist": before},
        after={"static_checklist": flags},
    )
    db.commit()
    db.refresh(task)
    return Envelope(data=_checklist(task))
