# roomy/client/services.py
from __future__ import annotations

from typing import Any, Iterable, Optional

from .http import ApiClient, ListPage, MalformedResponseError


class _EntityService:
    """CRUD, stats, bulk and child collections for one top-level entity."""

    base = ""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    def _path(self, *parts: Any) -> str:
        return "/".join([self.base, *(str(p) for p in parts)])

    def list(self, **filters: Any) -> ListPage:
        return self.api.list(self.base, **filters)

    def stats(self) -> dict[str, Any]:
        return self.api.get(self._path("stats"))

    def get(self, entity_id: int) -> dict[str, Any]:
        return self.api.get(self._path(entity_id))

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self.api.post(self.base, payload)

    def update(self, entity_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return self.api.put(self._path(entity_id), changes)

    def delete(self, entity_id: int) -> Any:
        return self.api.delete(self._path(entity_id))

    def bulk(self, ids: Iterable[int], action: str) -> dict[str, Any]:
        return self.api.post(self._path("bulk"), {"ids": list(ids), "action": action})

    # ---- child collections ----

    def children(self, entity_id: int, kind: str, **params: Any) -> list[dict[str, Any]]:
        return self.api.get(self._path(entity_id, kind), **params)

    def add_child(self, entity_id: int, kind: str, item: dict[str, Any]) -> dict[str, Any]:
        return self.api.post(self._path(entity_id, kind), item)

    def update_child(self, entity_id: int, kind: str, child_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return self.api.put(self._path(entity_id, kind, child_id), changes)

    def remove_child(self, entity_id: int, kind: str, child_id: int) -> dict[str, Any]:
        return self.api.delete(self._path(entity_id, kind, child_id))


class FileService:
    def __init__(self, api: ApiClient) -> None:
        self.api = api

    def upload(
        self,
        filename: str,
        content: bytes,
        *,
        folder: str = "documents",
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        """Store a blob; the result always carries a non-empty `key` and `url`."""
        up = self.api.call(
            "POST",
            "/upload",
            files={"file": (filename, content, content_type)},
            data={"folder": folder},
        )
        if not isinstance(up, dict) or not up.get("key") or not up.get("url"):
            raise MalformedResponseError("upload response without a file key and url")
        return up

    def signed_url(self, key: str) -> dict[str, Any]:
        return self.api.get("/files/signed-url", key=key)

    def delete(self, key: str) -> Any:
        return self.api.delete(f"/files/{key}")

    def list(self, folder: Optional[str] = None) -> dict[str, Any]:
        return self.api.get("/files/list", folder=folder)


def _upload_then(files: FileService, filename: str, content: bytes, folder: str, content_type: str) -> dict[str, str]:
    # a failed or empty upload raises here, so the metadata add is never attempted
    up = files.upload(filename, content, folder=folder, content_type=content_type)
    return {"key": up["key"], "url": up["url"]}


class AgentService(_EntityService):
    base = "/agents"

    def add_unit(self, agent_id: int, unit: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(agent_id, "units", unit)

    def remove_unit(self, agent_id: int, unit_id: int) -> dict[str, Any]:
        return self.remove_child(agent_id, "units", unit_id)

    def add_payout(self, agent_id: int, payout: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(agent_id, "payouts", payout)

    def remove_payout(self, agent_id: int, payout_id: int) -> dict[str, Any]:
        return self.remove_child(agent_id, "payouts", payout_id)

    def add_document(self, agent_id: int, doc: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(agent_id, "documents", doc)

    def remove_document(self, agent_id: int, doc_id: int) -> dict[str, Any]:
        return self.remove_child(agent_id, "documents", doc_id)

    def upload_and_add_document(
        self,
        files: FileService,
        agent_id: int,
        filename: str,
        content: bytes,
        *,
        doc_type: str = "Other",
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        ref = _upload_then(files, filename, content, f"agents/{agent_id}", content_type)
        return self.add_document(agent_id, {"name": filename, "type": doc_type, "size": str(len(content)), "file": ref})


class OwnerService(_EntityService):
    base = "/owners"

    def add_unit(self, owner_id: int, unit: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(owner_id, "units", unit)

    def remove_unit(self, owner_id: int, unit_id: int) -> dict[str, Any]:
        return self.remove_child(owner_id, "units", unit_id)

    def add_bank_detail(self, owner_id: int, bank: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(owner_id, "bank-details", bank)

    def update_bank_detail(self, owner_id: int, bank_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return self.update_child(owner_id, "bank-details", bank_id, changes)

    def remove_bank_detail(self, owner_id: int, bank_id: int) -> dict[str, Any]:
        return self.remove_child(owner_id, "bank-details", bank_id)

    def set_primary_bank_detail(self, owner_id: int, bank_id: int) -> dict[str, Any]:
        return self.api.post(self._path(owner_id, "bank-details", bank_id, "primary"))

    def add_transaction(self, owner_id: int, txn: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(owner_id, "transactions", txn)

    def update_transaction(self, owner_id: int, txn_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return self.update_child(owner_id, "transactions", txn_id, changes)

    def remove_transaction(self, owner_id: int, txn_id: int) -> dict[str, Any]:
        return self.remove_child(owner_id, "transactions", txn_id)

    def add_document(self, owner_id: int, doc: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(owner_id, "documents", doc)

    def remove_document(self, owner_id: int, doc_id: int) -> dict[str, Any]:
        return self.remove_child(owner_id, "documents", doc_id)

    def upload_and_add_document(
        self,
        files: FileService,
        owner_id: int,
        filename: str,
        content: bytes,
        *,
        doc_type: str = "Other",
        description: Optional[str] = None,
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        ref = _upload_then(files, filename, content, f"owners/{owner_id}", content_type)
        return self.add_document(
            owner_id,
            {"name": filename, "type": doc_type, "size": str(len(content)), "description": description, "file": ref},
        )

    def activity(self, owner_id: int) -> list[dict[str, Any]]:
        return self.children(owner_id, "activity")

    def log_activity(self, owner_id: int, action: str, description: str = "", type: str = "note") -> dict[str, Any]:
        return self.api.post(self._path(owner_id, "activity"), {"action": action, "description": description, "type": type})


class CleaningService(_EntityService):
    base = "/cleaning"

    def update_notes(self, task_id: int, notes: str) -> dict[str, Any]:
        return self.api.put(self._path(task_id, "notes"), {"notes": notes})

    def comments(self, task_id: int) -> list[dict[str, Any]]:
        return self.children(task_id, "comments")

    def add_comment(self, task_id: int, text: str, type: str = "user") -> dict[str, Any]:
        return self.add_child(task_id, "comments", {"text": text, "type": type})

    def get_checklist(self, task_id: int) -> dict[str, Any]:
        return self.api.get(self._path(task_id, "checklist"))

    def checklist_options(self, task_id: int) -> list[str]:
        return self.api.get(self._path(task_id, "checklist", "options"))

    def add_checklist_item(self, task_id: int, item: str) -> dict[str, Any]:
        return self.api.post(self._path(task_id, "checklist"), {"item": item})

    def set_checklist_item(self, task_id: int, item_id: int, completed: bool) -> dict[str, Any]:
        return self.api.put(self._path(task_id, "checklist", item_id), {"completed": completed})

    def toggle_checklist_item(self, task_id: int, item_id: int) -> dict[str, Any]:
        return self.api.post(self._path(task_id, "checklist", item_id, "toggle"))

    def remove_checklist_item(self, task_id: int, item_id: int) -> dict[str, Any]:
        return self.api.delete(self._path(task_id, "checklist", item_id))

    def set_static_checklist(self, task_id: int, flags: list[bool]) -> dict[str, Any]:
        return self.api.put(self._path(task_id, "static-checklist"), {"staticChecklist": list(flags)})

    def toggle_static_item(self, task_id: int, index: int) -> dict[str, Any]:
        return self.api.post(self._path(task_id, "static-checklist", index, "toggle"))


class MaintenanceService(_EntityService):
    base = "/maintenance"

    def comments(self, task_id: int) -> list[dict[str, Any]]:
        return self.children(task_id, "comments")

    def add_comment(self, task_id: int, text: str, type: str = "user") -> dict[str, Any]:
        return self.add_child(task_id, "comments", {"text": text, "type": type})

    def attachments(self, task_id: int) -> list[dict[str, Any]]:
        return self.children(task_id, "attachments")

    def add_attachment(self, task_id: int, attachment: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(task_id, "attachments", attachment)

    def remove_attachment(self, task_id: int, attachment_id: int) -> dict[str, Any]:
        return self.remove_child(task_id, "attachments", attachment_id)

    def photos(self, task_id: int, kind: Optional[str] = None) -> list[dict[str, Any]]:
        return self.children(task_id, "photos", type=kind)

    def add_photo(self, task_id: int, photo: dict[str, Any]) -> dict[str, Any]:
        return self.add_child(task_id, "photos", photo)

    def remove_photo(self, task_id: int, photo_id: int) -> dict[str, Any]:
        return self.remove_child(task_id, "photos", photo_id)

    def upload_and_add_attachment(
        self,
        files: FileService,
        task_id: int,
        filename: str,
        content: bytes,
        *,
        attachment_type: str = "Other",
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        ref = _upload_then(files, filename, content, f"maintenance/{task_id}/attachments", content_type)
        return self.add_attachment(
            task_id, {"name": filename, "type": attachment_type, "size": str(len(content)), "file": ref}
        )

    def upload_and_add_photo(
        self,
        files: FileService,
        task_id: int,
        filename: str,
        content: bytes,
        *,
        kind: str = "before",
        content_type: str = "image/jpeg",
    ) -> dict[str, Any]:
        ref = _upload_then(files, filename, content, f"maintenance/{task_id}/photos", content_type)
        return self.add_photo(task_id, {"name": filename, "kind": kind, "size": str(len(content)), "file": ref})


class ChatService:
    def __init__(self, api: ApiClient) -> None:
        self.api = api

    def conversations(self, **filters: Any) -> ListPage:
        return self.api.list("/chat/conversations", **filters)

    def start(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self.api.post("/chat/conversations", payload)

    def get(self, conversation_id: int) -> dict[str, Any]:
        return self.api.get(f"/chat/conversations/{conversation_id}")

    def messages(self, conversation_id: int) -> list[dict[str, Any]]:
        return self.api.get(f"/chat/conversations/{conversation_id}/messages")

    def send(self, conversation_id: int, text: str, sender: str = "host") -> dict[str, Any]:
        return self.api.post(f"/chat/conversations/{conversation_id}/messages", {"text": text, "sender": sender})

    def mark_read(self, conversation_id: int) -> dict[str, Any]:
        return self.api.post(f"/chat/conversations/{conversation_id}/read")
