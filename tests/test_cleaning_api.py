# tests/test_cleaning_api.py
from __future__ import annotations


def _mk_task(client, **over) -> dict:
    payload = {"unit": "Marina Gate 1204", "scheduledDate": "2024-06-01", "cleaner": "Maria"}
    payload.update(over)
    r = client.post("/api/cleaning", json=payload)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def _add_item(client, task_id: int, text: str):
    return client.post(f"/api/cleaning/{task_id}/checklist", json={"item": text})


def test_new_task_starts_with_empty_static_checklist(client):
    t = _mk_task(client)
    assert t["staticChecklist"] == [False] * 6
    assert t["progress"] == {"total": 6, "completed": 0, "percent": 0.0}


def test_progress_over_static_and_dynamic_items(client):
    t = _mk_task(client)
    _add_item(client, t["id"], "Floors mopped")
    r = _add_item(client, t["id"], "Trash emptied")
    items = r.json()["data"]["checklist"]

    r = client.post(f"/api/cleaning/{t['id']}/checklist/{items[1]['id']}/toggle")
    data = r.json()["data"]
    assert data["progress"] == {"total": 8, "completed": 1, "percent": 12.5}
    assert len(data["staticItems"]) == 6

    assert client.get(f"/api/cleaning/{t['id']}").json()["data"]["progress"]["percent"] == 12.5


def test_toggle_twice_restores_state(client):
    t = _mk_task(client)
    item = _add_item(client, t["id"], "Floors mopped").json()["data"]["checklist"][0]
    client.post(f"/api/cleaning/{t['id']}/checklist/{item['id']}/toggle")
    r = client.post(f"/api/cleaning/{t['id']}/checklist/{item['id']}/toggle")
    assert r.json()["data"]["checklist"][0]["completed"] is False

    client.post(f"/api/cleaning/{t['id']}/static-checklist/2/toggle")
    r = client.post(f"/api/cleaning/{t['id']}/static-checklist/2/toggle")
    assert r.json()["data"]["staticChecklist"] == [False] * 6


def test_set_item_completed(client):
    t = _mk_task(client)
    item = _add_item(client, t["id"], "Floors mopped").json()["data"]["checklist"][0]
    r = client.put(f"/api/cleaning/{t['id']}/checklist/{item['id']}", json={"completed": True})
    assert r.json()["data"]["checklist"][0]["completed"] is True


def test_duplicate_item_is_conflict(client):
    t = _mk_task(client)
    _add_item(client, t["id"], "Floors mopped")

    r = _add_item(client, t["id"], "  floors   MOPPED ")
    assert r.status_code == 409
    assert r.json()["success"] is False

    r = _add_item(client, t["id"], "bathroom sanitized")
    assert r.status_code == 409


def test_options_exclude_items_already_added(client):
    t = _mk_task(client)
    before = client.get(f"/api/cleaning/{t['id']}/checklist/options").json()["data"]
    assert "Floors mopped" in before

    _add_item(client, t["id"], "Floors mopped")
    after = client.get(f"/api/cleaning/{t['id']}/checklist/options").json()["data"]
    assert "Floors mopped" not in after
    assert len(after) == len(before) - 1


def test_remove_item(client):
    t = _mk_task(client)
    item = _add_item(client, t["id"], "Floors mopped").json()["data"]["checklist"][0]
    r = client.delete(f"/api/cleaning/{t['id']}/checklist/{item['id']}")
    assert r.json()["data"]["checklist"] == []
    r = client.delete(f"/api/cleaning/{t['id']}/checklist/{item['id']}")
    assert r.status_code == 404


def test_static_checklist_must_have_six_entries(client):
    t = _mk_task(client)
    r = client.put(f"/api/cleaning/{t['id']}/static-checklist", json={"staticChecklist": [True, False]})
    assert r.status_code == 422

    r = client.put(f"/api/cleaning/{t['id']}/static-checklist", json={"staticChecklist": [True] * 6})
    assert r.json()["data"]["progress"]["percent"] == 100.0

    r = client.post(f"/api/cleaning/{t['id']}/static-checklist/6/toggle")
    assert r.status_code == 422


def test_notes_and_comments(client):
    t = _mk_task(client)
    r = client.put(f"/api/cleaning/{t['id']}/notes", json={"notes": "Guest checks in at 3pm"})
    assert r.json()["data"]["notes"] == "Guest checks in at 3pm"

    r = client.post(
        f"/api/cleaning/{t['id']}/comments",
        json={"text": "Keys at reception", "type": "cleaner"},
        headers={"X-User-Email": "maria@roomy.local"},
    )
    c = r.json()["data"]
    assert c["author"] == "maria@roomy.local"
    assert "date" in c
    assert len(client.get(f"/api/cleaning/{t['id']}/comments").json()["data"]) == 1


def test_multi_value_status_filter_and_stats(client):
    a = _mk_task(client)
    _mk_task(client, unit="Downtown 8", status="In Progress")
    _mk_task(client, unit="JBR 3", status="Completed")

    r = client.get("/api/cleaning", params=[("status", "Scheduled"), ("status", "Completed")])
    assert sorted(t["unit"] for t in r.json()["data"]) == ["JBR 3", "Marina Gate 1204"]

    r = client.post("/api/cleaning/bulk", json={"ids": [a["id"]], "action": "cancel"})
    assert r.json()["data"]["succeeded"] == [a["id"]]

    stats = client.get("/api/cleaning/stats").json()["data"]
    assert stats == {
        "totalTasks": 3,
        "scheduledTasks": 0,
        "inProgressTasks": 1,
        "completedTasks": 1,
        "cancelledTasks": 1,
    }


def test_bad_schedule_time_is_rejected(client):
    r = client.post("/api/cleaning", json={"unit": "X", "scheduledDate": "2024-06-01", "scheduledTime": "3pm"})
    assert r.status_code == 422


def test_null_for_required_fields_is_422(client):
    t = _mk_task(client)
    r = client.put(f"/api/cleaning/{t['id']}", json={"scheduledDate": None})
    assert r.status_code == 422
    assert "scheduledDate cannot be null" in r.json()["error"]

    r = client.put(f"/api/cleaning/{t['id']}", json={"cleaner": None})
    assert r.status_code == 200
    assert r.json()["data"]["cleaner"] is None
    assert r.json()["data"]["scheduledDate"] == "2024-06-01"


def test_bulk_complete_delete_and_export(client):
    a = _mk_task(client)
    b = _mk_task(client, unit="JBR 2201")
    _add_item(client, b["id"], "Change bed linens")

    r = client.post("/api/cleaning/bulk", json={"ids": [a["id"], 77], "action": "complete"})
    data = r.json()["data"]
    assert data["succeeded"] == [a["id"]]
    assert [f["id"] for f in data["failed"]] == [77]
    assert client.get(f"/api/cleaning/{a['id']}").json()["data"]["status"] == "Completed"

    r = client.post("/api/cleaning/bulk", json={"ids": [b["id"], a["id"]], "action": "export"})
    assert [row["unit"] for row in r.json()["data"]["rows"]] == ["JBR 2201", "Marina Gate 1204"]

    r = client.post("/api/cleaning/bulk", json={"ids": [b["id"]], "action": "delete"})
    assert r.json()["data"]["succeeded"] == [b["id"]]
    assert client.get(f"/api/cleaning/{b['id']}").status_code == 404
    assert client.get(f"/api/cleaning/{a['id']}").status_code == 200
