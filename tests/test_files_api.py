# tests/test_files_api.py
from __future__ import annotations

from urllib.parse import urlsplit

import pytest
from sqlalchemy import select

from roomy.db import SessionLocal
from roomy.models import AuditEvent
from roomy.routers import files as files_router
from roomy.services.file_store import get_file_store


def _upload(client, name="passport.pdf", content=b"%PDF-1.4 test", folder="agents/7"):
    return client.post(
        "/api/upload",
        files={"file": (name, content, "application/pdf")},
        data={"folder": folder},
    )


def _fetch(client, url: str):
    parts = urlsplit(url)
    return client.get(f"{parts.path}?{parts.query}")


def test_upload_returns_key_and_signed_url(client):
    r = _upload(client)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["key"].startswith("agents/7/")
    assert data["key"].endswith("passport.pdf")
    assert data["size"] == len(b"%PDF-1.4 test")
    assert "signature=" in data["url"]

    raw = _fetch(client, data["url"])
    assert raw.status_code == 200
    assert raw.content == b"%PDF-1.4 test"


def test_signed_url_for_existing_and_missing_keys(client):
    key = _upload(client).json()["data"]["key"]

    r = client.get("/api/files/signed-url", params={"key": key})
    data = r.json()["data"]
    assert data["key"] == key
    assert "expiresAt" in data
    assert _fetch(client, data["url"]).status_code == 200

    r = client.get("/api/files/signed-url", params={"key": "agents/7/nope.pdf"})
    assert r.status_code == 404


def test_tampered_signature_is_forbidden(client):
    url = _upload(client).json()["data"]["url"]
    r = _fetch(client, url.replace("signature=", "signature=0"))
    assert r.status_code == 403
    assert r.json()["success"] is False


def test_folder_must_be_safe(client):
    r = _upload(client, folder="../etc")
    assert r.status_code == 422
    assert r.json()["success"] is False


def test_oversized_upload_is_rejected(client, monkeypatch):
    monkeypatch.setattr(get_file_store(), "max_bytes", 8)
    r = _upload(client, content=b"0123456789abcdef")
    assert r.status_code == 413


def test_list_and_delete(client):
    key = _upload(client, folder="owners/3").json()["data"]["key"]

    files = client.get("/api/files/list", params={"folder": "owners/3"}).json()["data"]["files"]
    assert key in files

    assert client.delete(f"/api/files/{key}").status_code == 200
    assert client.delete(f"/api/files/{key}").status_code == 404
    files = client.get("/api/files/list", params={"folder": "owners/3"}).json()["data"]["files"]
    assert key not in files


def test_long_keys_are_audited_in_full(client):
    name = "inspection-report-kitchen-sink-leak-2024.pdf"
    key = _upload(client, name=name, folder="maintenance/12/attachments").json()["data"]["key"]
    assert len(key) > 80

    with SessionLocal() as db:
        ev = db.scalars(select(AuditEvent).where(AuditEvent.action == "file.upload")).one()
    assert ev.entity_id == key


def test_failed_audit_commit_removes_the_stored_blob(client, monkeypatch):
    def broken_audit(*a, **kw):
        raise RuntimeError("audit table unavailable")

    monkeypatch.setattr(files_router, "audit_write", broken_audit)
    with pytest.raises(RuntimeError):
        _upload(client, folder="maintenance/99/attachments")

    assert get_file_store().list("maintenance/99/attachments") == []
