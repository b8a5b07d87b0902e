# roomy/routers/files.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..actor import get_actor
from ..db import get_db
from ..domain.audit import audit_write
from ..schemas import Envelope, FileListOut, SignedUrlOut, UploadOut
from ..services.file_store import LocalFileStore, clean_folder, get_file_store

router = APIRouter(tags=["files"])


@router.post("/upload", response_model=Envelope[UploadOut])
def upload_file(
    file: UploadFile = File(...),
    folder: str = Form(default="documents"),
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
    store: LocalFileStore = Depends(get_file_store),
):
    stored = store.save(file.file, folder=folder, filename=file.filename, content_type=file.content_type)
    url, _ = store.signed_url(stored.key)

    try:
        audit_write(
            db,
            actor=actor,
            action="file.upload",
            entity_type="file",
            entity_id=stored.key,
            after={"key": stored.key, "size": stored.size, "content_type": stored.content_type},
        )
        db.commit()
    except Exception:
        # no audit row, no blob
        db.rollback()
        store.delete(stored.key)
        raise
    return Envelope(
        data=UploadOut(key=stored.key, url=url, name=stored.name, size=stored.size, content_type=stored.content_type),
        message="File uploaded",
    )


@router.get("/files/signed-url", response_model=Envelope[SignedUrlOut])
def signed_url(key: str = Query(..., min_length=1), store: LocalFileStore = Depends(get_file_store)):
    if not store.exists(key):
        raise HTTPException(status_code=404, detail="file not found")
    url, expires_at = store.signed_url(key)
    return Envelope(data=SignedUrlOut(key=key, url=url, expires_at=expires_at))


@router.get("/files/list", response_model=Envelope[FileListOut])
def list_files(folder: Optional[str] = Query(default=None), store: LocalFileStore = Depends(get_file_store)):
    return Envelope(data=FileListOut(folder=clean_folder(folder) if folder else "", files=store.list(folder)))


@router.get("/files/raw/{key:path}")
def download_file(
    key: str,
    expires: int = Query(...),
    signature: str = Query(...),
    store: LocalFileStore = Depends(get_file_store),
):
    if not store.verify(key, expires, signature):
        raise HTTPException(status_code=403, detail="invalid or expired signature")
    if not store.exists(key):
        raise HTTPException(status_code=404, detail="file not found")
    return FileResponse(store.path_for(key))


@router.delete("/files/{key:path}", response_model=Envelope[dict])
def delete_file(
    key: str,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
    store: LocalFileStore = Depends(get_file_store),
):
    if not store.delete(key):
        raise HTTPException(status_code=404, detail="file not found")

    audit_write(db, actor=actor, action="file.delete", entity_type="file", entity_id=key, before={"key": key})
    db.commit()
    return Envelope(data={"key": key}, message="File deleted")
