# tests/test_owners_api.py
from __future__ import annotations


def _mk_owner(client, **over) -> dict:
    payload = {"firstName": "Layla", "lastName": "Haddad", "email": "layla@owners.local", "nationality": "UAE"}
    payload.update(over)
    r = client.post("/api/owners", json=payload)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def _add_bank(client, owner_id: int, name: str, **over) -> dict:
    payload = {"bankName": name, "accountHolderName": "Layla Haddad", "accountNumber": f"{name}-001"}
    payload.update(over)
    r = client.post(f"/api/owners/{owner_id}/bank-details", json=payload)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def _banks(client, owner_id: int) -> list[dict]:
    return client.get(f"/api/owners/{owner_id}/bank-details").json()["data"]


def test_first_bank_account_becomes_primary(client):
    o = _mk_owner(client)
    first = _add_bank(client, o["id"], "ENBD")
    assert first["item"]["isPrimary"] is True
    assert first["aggregates"]["primaryBankDetailId"] == first["item"]["id"]

    second = _add_bank(client, o["id"], "ADCB")
    assert second["item"]["isPrimary"] is False
    assert second["aggregates"]["primaryBankDetailId"] == first["item"]["id"]


def test_set_primary_then_delete_other_keeps_single_primary(client):
    o = _mk_owner(client)
    a = _add_bank(client, o["id"], "ENBD")["item"]
    b = _add_bank(client, o["id"], "ADCB")["item"]

    r = client.post(f"/api/owners/{o['id']}/bank-details/{b['id']}/primary")
    assert r.status_code == 200
    assert r.json()["data"]["aggregates"]["primaryBankDetailId"] == b["id"]
    assert [(x["id"], x["isPrimary"]) for x in _banks(client, o["id"])] == [(a["id"], False), (b["id"], True)]

    r = client.delete(f"/api/owners/{o['id']}/bank-details/{a['id']}")
    assert r.status_code == 200
    assert [(x["id"], x["isPrimary"]) for x in _banks(client, o["id"])] == [(b["id"], True)]


def test_set_primary_is_idempotent(client):
    o = _mk_owner(client)
    a = _add_bank(client, o["id"], "ENBD")["item"]

    for _ in range(2):
        r = client.post(f"/api/owners/{o['id']}/bank-details/{a['id']}/primary")
        assert r.status_code == 200
        assert r.json()["data"]["item"]["isPrimary"] is True

    actions = [x["action"] for x in client.get(f"/api/owners/{o['id']}/activity").json()["data"]]
    assert "Primary Bank Changed" not in actions


def test_deleting_primary_promotes_oldest_remaining(client):
    o = _mk_owner(client)
    a = _add_bank(client, o["id"], "ENBD")["item"]
    b = _add_bank(client, o["id"], "ADCB")["item"]
    c = _add_bank(client, o["id"], "FAB")["item"]

    r = client.delete(f"/api/owners/{o['id']}/bank-details/{a['id']}")
    assert r.json()["data"]["aggregates"]["primaryBankDetailId"] == b["id"]
    assert [x["id"] for x in _banks(client, o["id"]) if x["isPrimary"]] == [b["id"]]
    assert c["id"] != b["id"]


def test_explicit_primary_on_add_demotes_existing(client):
    o = _mk_owner(client)
    a = _add_bank(client, o["id"], "ENBD")["item"]
    b = _add_bank(client, o["id"], "ADCB", isPrimary=True)["item"]
    assert [(x["id"], x["isPrimary"]) for x in _banks(client, o["id"])] == [(a["id"], False), (b["id"], True)]


def test_bank_detail_of_another_owner_is_404(client):
    o1 = _mk_owner(client)
    o2 = _mk_owner(client, firstName="Omar", email="omar@owners.local")
    foreign = _add_bank(client, o2["id"], "ENBD")["item"]

    r = client.post(f"/api/owners/{o1['id']}/bank-details/{foreign['id']}/primary")
    assert r.status_code == 404

    r = client.post(
        f"/api/owners/{o1['id']}/transactions",
        json={"type": "payment", "amount": 100, "bankDetailId": foreign["id"]},
    )
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_balance_counts_completed_transactions_only(client):
    o = _mk_owner(client)
    bank = _add_bank(client, o["id"], "ENBD")["item"]

    r = client.post(
        f"/api/owners/{o['id']}/transactions",
        json={"type": "payment", "amount": 1000, "status": "completed", "bankDetailId": bank["id"], "currency": "usd"},
    )
    data = r.json()["data"]
    assert data["item"]["currency"] == "USD"
    assert data["aggregates"]["balance"] == 1000

    client.post(f"/api/owners/{o['id']}/transactions", json={"type": "refund", "amount": -200, "status": "completed"})
    r = client.post(f"/api/owners/{o['id']}/transactions", json={"type": "payment", "amount": 500})
    data = r.json()["data"]
    assert data["item"]["status"] == "pending"
    assert data["item"]["currency"] == "AED"
    assert data["aggregates"]["balance"] == 800

    r = client.put(f"/api/owners/{o['id']}/transactions/{data['item']['id']}", json={"status": "completed"})
    assert r.json()["data"]["aggregates"]["balance"] == 1300

    stats = client.get("/api/owners/stats").json()["data"]
    assert stats["totalTransactions"] == 3
    assert stats["totalAmount"] == 1300


def test_zero_amount_is_rejected(client):
    o = _mk_owner(client)
    r = client.post(f"/api/owners/{o['id']}/transactions", json={"type": "payment", "amount": 0})
    assert r.status_code == 422

    t = client.post(f"/api/owners/{o['id']}/transactions", json={"amount": 10}).json()["data"]["item"]
    r = client.put(f"/api/owners/{o['id']}/transactions/{t['id']}", json={"amount": 0})
    assert r.status_code == 422


def test_cash_payment_never_references_a_bank(client):
    o = _mk_owner(client)
    bank = _add_bank(client, o["id"], "ENBD")["item"]
    r = client.post(
        f"/api/owners/{o['id']}/transactions",
        json={"type": "cash_payment", "amount": 300, "bankDetailId": bank["id"]},
    )
    assert r.json()["data"]["item"]["bankDetailId"] is None


def test_deleting_bank_detaches_transactions(client):
    o = _mk_owner(client)
    bank = _add_bank(client, o["id"], "ENBD")["item"]
    client.post(f"/api/owners/{o['id']}/transactions", json={"amount": 50, "bankDetailId": bank["id"]})

    client.delete(f"/api/owners/{o['id']}/bank-details/{bank['id']}")
    txns = client.get(f"/api/owners/{o['id']}/transactions").json()["data"]
    assert len(txns) == 1
    assert txns[0]["bankDetailId"] is None


def test_units_drive_total_units(client):
    o = _mk_owner(client)
    u = client.post(f"/api/owners/{o['id']}/units", json={"name": "JBR 22"}).json()["data"]
    assert u["aggregates"]["totalUnits"] == 1
    r = client.delete(f"/api/owners/{o['id']}/units/{u['item']['id']}")
    assert r.json()["data"]["aggregates"]["totalUnits"] == 0


def test_activity_log_is_newest_first(client):
    o = _mk_owner(client, isVip=True)
    client.post(f"/api/owners/{o['id']}/units", json={"name": "JBR 22"})
    client.post(f"/api/owners/{o['id']}/activity", json={"action": "Call", "description": "Discussed renewal"})

    log = client.get(f"/api/owners/{o['id']}/activity").json()["data"]
    assert [x["action"] for x in log] == ["Call", "Unit Added", "Owner Created"]
    assert log[0]["type"] == "note"


def test_list_filters_and_stats(client):
    _mk_owner(client, isVip=True)
    _mk_owner(client, firstName="Omar", email="omar@owners.local", isActive=False)

    r = client.get("/api/owners", params={"isVip": "true"})
    assert [o["firstName"] for o in r.json()["data"]] == ["Layla"]

    r = client.get("/api/owners", params={"search": "omar"})
    assert r.json()["total"] == 1

    stats = client.get("/api/owners/stats").json()["data"]
    assert stats["totalOwners"] == 2
    assert stats["activeOwners"] == 1
    assert stats["inactiveOwners"] == 1
    assert stats["vipOwners"] == 1


def test_bulk_deactivate_logs_activity(client):
    o = _mk_owner(client)
    r = client.post("/api/owners/bulk", json={"ids": [o["id"]], "action": "deactivate"})
    assert r.json()["data"]["succeeded"] == [o["id"]]
    assert client.get(f"/api/owners/{o['id']}").json()["data"]["isActive"] is False

    log = client.get(f"/api/owners/{o['id']}/activity").json()["data"]
    assert log[0]["description"] == "Owner deactivated"


def test_null_for_required_fields_is_422(client):
    o = _mk_owner(client)
    bank = _add_bank(client, o["id"], "ENBD")["item"]
    txn = client.post(f"/api/owners/{o['id']}/transactions", json={"amount": 250}).json()["data"]["item"]

    r = client.put(f"/api/owners/{o['id']}", json={"isActive": None})
    assert r.status_code == 422
    assert "isActive cannot be null" in r.json()["error"]

    r = client.put(f"/api/owners/{o['id']}/bank-details/{bank['id']}", json={"accountNumber": None})
    assert r.status_code == 422
    assert "accountNumber cannot be null" in r.json()["error"]

    r = client.put(f"/api/owners/{o['id']}/transactions/{txn['id']}", json={"amount": None, "status": None})
    assert r.status_code == 422
    assert "amount, status cannot be null" in r.json()["error"]

    detail = client.get(f"/api/owners/{o['id']}").json()["data"]
    assert detail["isActive"] is True
    assert detail["bankDetails"][0]["accountNumber"] == "ENBD-001"

    r = client.put(f"/api/owners/{o['id']}/transactions/{txn['id']}", json={"reference": None})
    assert r.status_code == 200


def test_bulk_delete_removes_owner_and_children(client):
    o = _mk_owner(client)
    _add_bank(client, o["id"], "ENBD")
    client.post(f"/api/owners/{o['id']}/units", json={"name": "Marina 1204"})

    r = client.post("/api/owners/bulk", json={"ids": [404, o["id"]], "action": "delete"})
    data = r.json()["data"]
    assert data["succeeded"] == [o["id"]]
    assert [f["id"] for f in data["failed"]] == [404]
    assert client.get(f"/api/owners/{o['id']}").status_code == 404
    assert client.get(f"/api/owners/{o['id']}/bank-details").status_code == 404
