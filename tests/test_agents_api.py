# tests/test_agents_api.py
from __future__ import annotations

from sqlalchemy import func, select

from roomy.db import SessionLocal
from roomy.models import AgentPayout, AgentUnit, AuditEvent
from roomy.services.file_store import get_file_store

H = {"X-User-Email": "sarah@roomy.local"}


def _mk_agent(client, **over) -> dict:
    payload = {"name": "Sarah Johnson", "email": "sarah@agents.local", "nationality": "UK"}
    payload.update(over)
    r = client.post("/api/agents", json=payload, headers=H)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_create_and_get_agent_uses_envelope_and_attribution(client):
    a = _mk_agent(client)
    assert a["status"] == "Active"
    assert a["createdBy"] == "sarah@roomy.local"
    assert a["unitsAttracted"] == 0
    assert a["totalPayouts"] == 0
    assert a["lastPayoutDate"] is None

    r = client.get(f"/api/agents/{a['id']}")
    body = r.json()
    assert body["success"] is True
    assert body["data"]["email"] == "sarah@agents.local"


def test_unknown_agent_is_404_failure_envelope(client):
    r = client.get("/api/agents/999")
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert "not found" in body["error"]


def test_invalid_payload_is_422_failure_envelope(client):
    r = client.post("/api/agents", json={"email": "x@y.z"})
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert "name" in body["error"]


def test_partial_update_only_touches_given_fields(client):
    a = _mk_agent(client, phone="+971 50 000 0000")
    r = client.put(f"/api/agents/{a['id']}", json={"status": "Inactive"}, headers={"X-User-Email": "ops@roomy.local"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] == "Inactive"
    assert data["phone"] == "+971 50 000 0000"
    assert data["lastModifiedBy"] == "ops@roomy.local"


def test_null_for_required_field_is_422_and_changes_nothing(client):
    a = _mk_agent(client, comments="keep")

    r = client.put(f"/api/agents/{a['id']}", json={"name": None})
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert "name cannot be null" in body["error"]
    assert client.get(f"/api/agents/{a['id']}").json()["data"]["name"] == "Sarah Johnson"

    # optional columns can still be cleared
    r = client.put(f"/api/agents/{a['id']}", json={"comments": None})
    assert r.status_code == 200
    assert r.json()["data"]["comments"] is None


def test_unit_aggregate_follows_confirmed_collection_and_never_goes_negative(client):
    a = _mk_agent(client)
    u1 = client.post(f"/api/agents/{a['id']}/units", json={"name": "Marina 1204", "revenue": 1000}).json()["data"]
    u2 = client.post(f"/api/agents/{a['id']}/units", json={"name": "Downtown 8"}).json()["data"]
    assert u2["aggregates"]["unitsAttracted"] == 2

    r = client.delete(f"/api/agents/{a['id']}/units/{u1['item']['id']}")
    assert r.json()["data"]["aggregates"]["unitsAttracted"] == 1

    r = client.delete(f"/api/agents/{a['id']}/units/{u2['item']['id']}")
    assert r.json()["data"]["aggregates"]["unitsAttracted"] == 0

    r = client.delete(f"/api/agents/{a['id']}/units/{u2['item']['id']}")
    assert r.status_code == 404
    assert client.get(f"/api/agents/{a['id']}").json()["data"]["unitsAttracted"] == 0


def test_payouts_drive_total_and_last_date(client):
    a = _mk_agent(client)
    client.post(f"/api/agents/{a['id']}/payouts", json={"date": "2024-03-01", "amount": 1200.5, "units": ["Marina 1204"]})
    r = client.post(f"/api/agents/{a['id']}/payouts", json={"date": "2024-05-10", "amount": 800, "status": "Completed"})
    data = r.json()["data"]
    assert data["item"]["date"] == "2024-05-10"
    assert data["aggregates"]["totalPayouts"] == 2000.5
    assert data["aggregates"]["lastPayoutDate"] == "2024-05-10"

    detail = client.get(f"/api/agents/{a['id']}").json()["data"]
    assert detail["payouts"][0]["units"] == ["Marina 1204"]
    assert detail["totalPayouts"] == 2000.5


def test_payout_amount_must_be_positive(client):
    a = _mk_agent(client)
    r = client.post(f"/api/agents/{a['id']}/payouts", json={"date": "2024-03-01", "amount": 0})
    assert r.status_code == 422


def test_document_accepts_legacy_s3_keys(client):
    a = _mk_agent(client)
    r = client.post(
        f"/api/agents/{a['id']}/documents",
        json={"name": "contract.pdf", "type": "Contract", "s3Key": "agents/1/contract.pdf", "s3Url": "http://x/contract.pdf"},
    )
    item = r.json()["data"]["item"]
    assert item["file"] == {"key": "agents/1/contract.pdf", "url": "http://x/contract.pdf"}
    assert "s3Key" not in item


def test_list_search_filter_sort_and_paging(client):
    _mk_agent(client, name="bob", email="bob@a.io", nationality="UAE")
    _mk_agent(client, name="Alice", email="alice@a.io", nationality="UK")
    _mk_agent(client, name="carol", email="carol@a.io", nationality="UAE", status="Inactive")

    r = client.get("/api/agents", params={"search": "ALI"})
    assert [a["name"] for a in r.json()["data"]] == ["Alice"]

    r = client.get("/api/agents", params={"sortBy": "name", "sortDir": "asc"})
    assert [a["name"] for a in r.json()["data"]] == ["Alice", "bob", "carol"]

    r = client.get("/api/agents", params={"nationality": "UAE", "status": "Active"})
    assert [a["name"] for a in r.json()["data"]] == ["bob"]

    r = client.get("/api/agents", params={"sortBy": "name", "sortDir": "desc", "page": 2, "limit": 2})
    body = r.json()
    assert body["total"] == 3
    assert body["page"] == 2
    assert body["limit"] == 2
    assert [a["name"] for a in body["data"]] == ["Alice"]


def test_stats(client):
    a = _mk_agent(client)
    _mk_agent(client, name="Omar", email="omar@a.io", status="Inactive")
    client.post(f"/api/agents/{a['id']}/units", json={"name": "U1"})
    client.post(f"/api/agents/{a['id']}/payouts", json={"date": "2024-01-01", "amount": 100})

    s = client.get("/api/agents/stats").json()["data"]
    assert s == {"totalAgents": 2, "activeAgents": 1, "totalUnits": 1, "totalPayouts": 100.0}


def test_bulk_is_best_effort_and_reports_failures(client):
    a = _mk_agent(client)
    b = _mk_agent(client, name="Omar", email="omar@a.io")

    r = client.post("/api/agents/bulk", json={"ids": [a["id"], 999, b["id"]], "action": "deactivate"})
    data = r.json()["data"]
    assert data["succeeded"] == [a["id"], b["id"]]
    assert data["failed"] == [{"id": 999, "error": "agent not found"}]
    assert client.get(f"/api/agents/{b['id']}").json()["data"]["status"] == "Inactive"

    r = client.post("/api/agents/bulk", json={"ids": [b["id"], a["id"]], "action": "export"})
    rows = r.json()["data"]["rows"]
    assert [x["id"] for x in rows] == [b["id"], a["id"]]

    r = client.post("/api/agents/bulk", json={"ids": [a["id"]], "action": "complete"})
    assert r.status_code == 422


def test_every_mutation_is_audited(client):
    a = _mk_agent(client)
    client.put(f"/api/agents/{a['id']}", json={"comments": "top performer"}, headers=H)
    client.delete(f"/api/agents/{a['id']}", headers=H)

    db = SessionLocal()
    try:
        actions = [e.action for e in db.query(AuditEvent).order_by(AuditEvent.id).all()]
        actors = {e.actor for e in db.query(AuditEvent).all()}
    finally:
        db.close()
    assert actions == ["agent.create", "agent.update", "agent.delete"]
    assert actors == {"sarah@roomy.local"}


def test_request_id_is_echoed(client):
    r = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert r.status_code == 200
    assert r.headers["X-Request-ID"] == "abc-123"


def test_bulk_delete_is_best_effort(client):
    a = _mk_agent(client)
    b = _mk_agent(client, name="Omar", email="omar@a.io")
    client.post(f"/api/agents/{a['id']}/units", json={"name": "Marina 1204"})
    client.post(f"/api/agents/{a['id']}/payouts", json={"date": "2024-05-01", "amount": 300})

    r = client.post("/api/agents/bulk", json={"ids": [a["id"], 999], "action": "delete"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["succeeded"] == [a["id"]]
    assert data["failed"] == [{"id": 999, "error": "agent not found"}]

    assert client.get(f"/api/agents/{a['id']}").status_code == 404
    assert client.get(f"/api/agents/{b['id']}").status_code == 200
    with SessionLocal() as db:
        assert db.scalar(select(func.count()).select_from(AgentUnit)) == 0
        assert db.scalar(select(func.count()).select_from(AgentPayout)) == 0


def test_removing_a_document_deletes_its_blob(client):
    a = _mk_agent(client)
    up = client.post(
        "/api/upload",
        files={"file": ("passport.pdf", b"%PDF-1.4", "application/pdf")},
        data={"folder": f"agents/{a['id']}"},
    ).json()["data"]
    doc = client.post(
        f"/api/agents/{a['id']}/documents",
        json={"name": "passport.pdf", "type": "Passport", "file": {"key": up["key"], "url": up["url"]}},
    ).json()["data"]["item"]
    assert get_file_store().exists(up["key"])

    assert client.delete(f"/api/agents/{a['id']}/documents/{doc['id']}").status_code == 200
    assert not get_file_store().exists(up["key"])


def test_removing_a_document_with_a_foreign_key_still_succeeds(client):
    a = _mk_agent(client)
    doc = client.post(
        f"/api/agents/{a['id']}/documents", json={"name": "old.pdf", "s3Key": "../legacy/bucket/old.pdf"}
    ).json()["data"]["item"]
    assert client.delete(f"/api/agents/{a['id']}/documents/{doc['id']}").status_code == 200
