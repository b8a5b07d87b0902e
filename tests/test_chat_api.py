# tests/test_chat_api.py
from __future__ import annotations


def _start(client, name="John Smith", **over) -> dict:
    payload = {"guestName": name, "platform": "airbnb", "propertyName": "Marina Gate 1204"}
    payload.update(over)
    r = client.post("/api/chat/conversations", json=payload)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def _send(client, cid: int, text: str, sender: str) -> dict:
    r = client.post(f"/api/chat/conversations/{cid}/messages", json={"text": text, "sender": sender})
    assert r.status_code == 200, r.text
    return r.json()["data"]


def _get(client, cid: int) -> dict:
    return client.get(f"/api/chat/conversations/{cid}").json()["data"]


def test_guest_messages_raise_unread_and_read_clears(client):
    c = _start(client)
    assert c["status"] == "read"
    assert c["unreadCount"] == 0

    m = _send(client, c["id"], "What time is check-in?", "guest")
    assert m["author"] == "John Smith"
    _send(client, c["id"], "Also, is parking included?", "guest")

    c2 = _get(client, c["id"])
    assert c2["unreadCount"] == 2
    assert c2["status"] == "unread"
    assert c2["lastMessage"] == "Also, is parking included?"

    r = client.post(f"/api/chat/conversations/{c['id']}/read")
    assert r.json()["data"]["unreadCount"] == 0
    assert r.json()["data"]["status"] == "read"


def test_host_reply_marks_replied_and_read_keeps_it(client):
    c = _start(client)
    _send(client, c["id"], "Hi!", "guest")
    m = _send(client, c["id"], "Check-in is from 3pm.", "host")
    assert m["sender"] == "host"

    assert _get(client, c["id"])["status"] == "replied"
    r = client.post(f"/api/chat/conversations/{c['id']}/read")
    assert r.json()["data"]["status"] == "replied"

    msgs = client.get(f"/api/chat/conversations/{c['id']}/messages").json()["data"]
    assert [x["text"] for x in msgs] == ["Hi!", "Check-in is from 3pm."]


def test_conversations_ordered_by_latest_activity(client):
    a = _start(client, "Alice")
    b = _start(client, "Bob", platform="booking")
    _send(client, a["id"], "ping", "guest")

    r = client.get("/api/chat/conversations")
    assert [x["guestName"] for x in r.json()["data"]] == ["Alice", "Bob"]

    r = client.get("/api/chat/conversations", params={"unread": "true"})
    assert [x["id"] for x in r.json()["data"]] == [a["id"]]

    r = client.get("/api/chat/conversations", params={"platform": "booking"})
    assert [x["id"] for x in r.json()["data"]] == [b["id"]]


def test_unknown_conversation_is_404(client):
    assert client.get("/api/chat/conversations/42").status_code == 404
