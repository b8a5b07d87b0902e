# roomy/routers/maintenance.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..actor import get_actor
from ..db import get_db
from ..domain.audit import audit_write, stamp_created, stamp_modified
from ..models import MaintenanceAttachment, MaintenanceComment, MaintenancePhoto, MaintenanceTask
from ..schemas import (
    AttachmentCreate,
    AttachmentOut,
    BulkRequest,
    BulkResultOut,
    CommentOut,
    Envelope,
    ListEnvelope,
    MaintenanceCommentCreate,
    MaintenanceCreate,
    MaintenanceOut,
    MaintenanceStatsOut,
    MaintenanceUpdate,
    PhotoCreate,
    PhotoKind,
    PhotoOut,
)
from ..services.bulk import run_bulk
from ..services.lookups import must_get_child, must_get_maintenance
from ..services.file_store import LocalFileStore, get_file_store
from ..services.query import apply_search, apply_sort, fetch_page

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

SORTABLE = {
    "id": MaintenanceTask.id,
    "title": MaintenanceTask.title,
    "unit": MaintenanceTask.unit,
    "technician": MaintenanceTask.technician,
    "status": MaintenanceTask.status,
    "priority": MaintenanceTask.priority,
    "type": MaintenanceTask.type,
    "scheduledDate": MaintenanceTask.scheduled_date,
    "cost": MaintenanceTask.cost,
    "createdAt": MaintenanceTask.created_at,
}


def _with_children(q):
    return q.options(
        selectinload(MaintenanceTask.comments),
        selectinload(MaintenanceTask.attachments),
        selectinload(MaintenanceTask.photos),
    )


def _export(task: MaintenanceTask) -> dict:
    return MaintenanceOut.model_validate(task).model_dump(mode="json", by_alias=True)


@router.get("", response_model=ListEnvelope[MaintenanceOut])
def list_maintenance(
    search: Optional[str] = Query(default=None),
    status: Optional[list[str]] = Query(default=None),
    priority: Optional[list[str]] = Query(default=None),
    type: Optional[list[str]] = Query(default=None),
    technician: Optional[list[str]] = Query(default=None),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_dir: Optional[str] = Query(default="asc", alias="sortDir"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
):
    q = _with_children(select(MaintenanceTask))
    q = apply_search(
        q,
        [MaintenanceTask.title, MaintenanceTask.unit, MaintenanceTask.technician, MaintenanceTask.description],
        search,
    )
    if status:
        q = q.where(MaintenanceTask.status.in_(status))
    if priority:
        q = q.where(MaintenanceTask.priority.in_(priority))
    if type:
        q = q.where(MaintenanceTask.type.in_(type))
    if technician:
        q = q.where(MaintenanceTask.technician.in_(technician))
    q = apply_sort(q, MaintenanceTask, SORTABLE, sort_by, sort_dir)

    rows, total, page, limit = fetch_page(db, q, page, limit)
    return ListEnvelope[MaintenanceOut](
        data=[MaintenanceOut.model_validate(r) for r in rows], total=total, page=page, limit=limit
    )


@router.get("/stats", response_model=Envelope[MaintenanceStatsOut])
def maintenance_stats(db: Session = Depends(get_db)):
    counts = dict(
        db.execute(select(MaintenanceTask.status, func.count(MaintenanceTask.id)).group_by(MaintenanceTask.status)).all()
    )
    # urgent = still open and flagged Urgent
    urgent = db.scalar(
        select(func.count(MaintenanceTask.id)).where(
            MaintenanceTask.priority == "Urgent",
            MaintenanceTask.status.notin_(["Completed", "Cancelled"]),
        )
    )
    return Envelope(
        data=MaintenanceStatsOut(
            total_tasks=int(sum(counts.values())),
            scheduled_tasks=int(counts.get("Scheduled", 0)),
            in_progress_tasks=int(counts.get("In Progress", 0)),
            completed_tasks=int(counts.get("Completed", 0)),
            cancelled_tasks=int(counts.get("Cancelled", 0)),
            on_hold_tasks=int(counts.get("On Hold", 0)),
            urgent_tasks=int(urgent or 0),
        )
    )


@router.post("/bulk", response_model=Envelope[BulkResultOut])
def bulk_maintenance(payload: BulkRequest, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    result = run_bulk(
        db,
        MaintenanceTask,
        payload,
        entity_type="maintenance",
        actor=actor,
        mutators={
            "complete": lambda r: setattr(r, "status", "Completed"),
            "cancel": lambda r: setattr(r, "status", "Cancelled"),
        },
        serialize=_export,
    )
    return Envelope(data=result)


@router.post("", response_model=Envelope[MaintenanceOut])
def create_maintenance(payload: MaintenanceCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = MaintenanceTask(**payload.model_dump())
    stamp_created(row, actor)
    db.add(row)
    db.flush()

    audit_write(db, actor=actor, action="maintenance.create", entity_type="maintenance", entity_id=row.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=MaintenanceOut.model_validate(row), message="Maintenance task created")


@router.get("/{task_id}", response_model=Envelope[MaintenanceOut])
def get_maintenance(task_id: int, db: Session = Depends(get_db)):
    return Envelope(data=MaintenanceOut.model_validate(must_get_maintenance(db, task_id=task_id)))


@router.put("/{task_id}", response_model=Envelope[MaintenanceOut])
def update_maintenance(
    task_id: int,
    payload: MaintenanceUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    row = must_get_maintenance(db, task_id=task_id)
    before = row.to_dict()

    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(row, k, v)
    stamp_modified(row, actor)

    audit_write(db, actor=actor, action="maintenance.update", entity_type="maintenance", entity_id=row.id, before=before, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=MaintenanceOut.model_validate(row), message="Maintenance task updated")


@router.delete("/{task_id}", response_model=Envelope[dict])
def delete_maintenance(task_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_maintenance(db, task_id=task_id)

    audit_write(db, actor=actor, action="maintenance.delete", entity_type="maintenance", entity_id=row.id, before=row.to_dict())
    db.delete(row)
    db.commit()
    return Envelope(data={"id": task_id}, message="Maintenance task deleted")


# -------------------- comments --------------------

@router.get("/{task_id}/comments", response_model=Envelope[list[CommentOut]])
def list_comments(task_id: int, db: Session = Depends(get_db)):
    task = must_get_maintenance(db, task_id=task_id)
    return Envelope(data=[CommentOut.model_validate(c) for c in task.comments])


@router.post("/{task_id}/comments", response_model=Envelope[CommentOut])
def add_comment(task_id: int, payload: MaintenanceCommentCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_maintenance(db, task_id=task_id)
    comment = MaintenanceComment(author=actor, text=payload.text, type=payload.type, posted_at=datetime.utcnow())
    task.comments.append(comment)
    stamp_modified(task, actor)
    db.flush()

    audit_write(db, actor=actor, action="maintenance.comment.add", entity_type="maintenance", entity_id=task.id, after=comment.to_dict())
    db.commit()
    db.refresh(comment)
    return Envelope(data=CommentOut.model_validate(comment))


# -------------------- attachments --------------------

@router.get("/{task_id}/attachments", response_model=Envelope[list[AttachmentOut]])
def list_attachments(task_id: int, db: Session = Depends(get_db)):
    task = must_get_maintenance(db, task_id=task_id)
    return Envelope(data=[AttachmentOut.model_validate(a) for a in task.attachments])


@router.post("/{task_id}/attachments", response_model=Envelope[AttachmentOut])
def add_attachment(task_id: int, payload: AttachmentCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_maintenance(db, task_id=task_id)
    ref = payload.file
    row = MaintenanceAttachment(
        **payload.model_dump(exclude={"file"}),
        file_key=ref.key if ref else None,
        file_url=ref.url if ref else None,
        uploaded_at=datetime.utcnow(),
        uploaded_by=actor,
    )
    task.attachments.append(row)
    stamp_modified(task, actor)
    db.flush()

    audit_write(db, actor=actor, action="maintenance.attachment.add", entity_type="maintenance", entity_id=task.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=AttachmentOut.model_validate(row))


@router.delete("/{task_id}/attachments/{attachment_id}", response_model=Envelope[dict])
def remove_attachment(
    task_id: int,
    attachment_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
    store: LocalFileStore = Depends(get_file_store),
):
    task = must_get_maintenance(db, task_id=task_id)
    row = must_get_child(db, MaintenanceAttachment, parent_field="task_id", parent_id=task.id, child_id=attachment_id, label="attachment")

    audit_write(db, actor=actor, action="maintenance.attachment.remove", entity_type="maintenance", entity_id=task.id, before=row.to_dict())
    task.attachments.remove(row)
    stamp_modified(task, actor)
    db.commit()
    store.discard(row.file_key)
    return Envelope(data={"id": attachment_id}, message="Attachment removed")


# -------------------- photos --------------------

@router.get("/{task_id}/photos", response_model=Envelope[list[PhotoOut]])
def list_photos(
    task_id: int,
    kind: Optional[PhotoKind] = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
):
    task = must_get_maintenance(db, task_id=task_id)
    photos = [p for p in task.photos if kind is None or p.kind == kind]
    return Envelope(data=[PhotoOut.model_validate(p) for p in photos])


@router.post("/{task_id}/photos", response_model=Envelope[PhotoOut])
def add_photo(task_id: int, payload: PhotoCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    task = must_get_maintenance(db, task_id=task_id)
    ref = payload.file
    row = MaintenancePhoto(
        **payload.model_dump(exclude={"file"}),
        file_key=ref.key if ref else None,
        file_url=ref.url if ref else None,
        uploaded_at=datetime.utcnow(),
        uploaded_by=actor,
    )
    task.photos.append(row)
    stamp_modified(task, actor)
    db.flush()

    audit_write(db, actor=actor, action="maintenance.photo.add", entity_type="maintenance", entity_id=task.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=PhotoOut.model_validate(row))


@router.delete("/{task_id}/photos/{photo_id}", response_model=Envelope[dict])
def remove_photo(
    task_id: int,
    photo_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
    store: LocalFileStore = Depends(get_file_store),
):
    task = must_get_maintenance(db, task_id=task_id)
    row = must_get_child(db, MaintenancePhoto, parent_field="task_id", parent_id=task.id, child_id=photo_id, label="photo")

    audit_write(db, actor=actor, action="maintenance.photo.remove", entity_type="maintenance", entity_id=task.id, before=row.to_dict())
    task.photos.remove(row)
    stamp_modified(task, actor)
    db.commit()
    store.discard(row.file_key)
    return Envelope(data={"id": photo_id}, message="Photo removed")
