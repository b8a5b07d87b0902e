# roomy/client/detail.py
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence

from ..domain.aggregates import nudge
from ..domain.checklist import STATIC_CHECKLIST_ITEMS, checklist_progress, ensure_not_duplicate
from ..domain.errors import ConflictError
from .http import ApiError

log = logging.getLogger("roomy.client.detail")

NATIONALITIES = (
    "UAE", "UK", "Egypt", "Australia", "USA", "India", "Pakistan", "Philippines", "Canada", "Germany",
    "France", "Italy", "Spain", "Netherlands", "Sweden", "Norway", "Denmark", "Finland", "Japan",
    "South Korea", "China", "Thailand", "Malaysia", "Singapore", "Indonesia", "Brazil", "Argentina",
    "Mexico", "South Africa", "Nigeria", "Kenya", "Morocco", "Algeria", "Tunisia", "Lebanon", "Jordan",
    "Saudi Arabia", "Kuwait", "Qatar", "Bahrain", "Oman",
)


@dataclass(frozen=True)
class Notice:
    level: str  # error|success
    message: str


@dataclass(frozen=True)
class FieldSpec:
    kind: str  # text|textarea|date|select
    options: tuple[Any, ...] = ()


TEXT = FieldSpec("text")
TEXTAREA = FieldSpec("textarea")
DATE = FieldSpec("date")
YES_NO = FieldSpec("select", (True, False))

AGENT_FIELDS = {
    "name": TEXT,
    "email": TEXT,
    "phone": TEXT,
    "nationality": FieldSpec("select", NATIONALITIES),
    "birthday": DATE,
    "joinDate": DATE,
    "status": FieldSpec("select", ("Active", "Inactive")),
    "comments": TEXTAREA,
}

OWNER_FIELDS = {
    "firstName": TEXT,
    "lastName": TEXT,
    "email": TEXT,
    "phone": TEXT,
    "nationality": FieldSpec("select", NATIONALITIES),
    "dateOfBirth": DATE,
    "isActive": YES_NO,
    "isVip": YES_NO,
    "comments": TEXTAREA,
}

CLEANING_FIELDS = {
    "unit": TEXT,
    "type": FieldSpec(
        "select", ("Regular Clean", "Deep Clean", "Office Clean", "Post-Checkout", "Pre-Arrival", "Mid-Stay")
    ),
    "status": FieldSpec("select", ("Scheduled", "In Progress", "Completed", "Cancelled")),
    "priority": FieldSpec("select", ("Low", "Normal", "High", "Urgent")),
    "scheduledDate": DATE,
    "scheduledTime": TEXT,
    "duration": TEXT,
    "cleaner": TEXT,
    "cost": TEXT,
    "notes": TEXTAREA,
    "includesLaundry": YES_NO,
    "laundryCount": TEXT,
    "linenComments": TEXTAREA,
}

MAINTENANCE_FIELDS = {
    "title": TEXT,
    "unit": TEXT,
    "technician": TEXT,
    "status": FieldSpec("select", ("Scheduled", "In Progress", "Completed", "Cancelled", "On Hold")),
    "priority": FieldSpec("select", ("Low", "Normal", "High", "Urgent")),
    "type": FieldSpec("select", ("Plumbing", "Electrical", "HVAC", "General", "Emergency", "Preventive")),
    "scheduledDate": DATE,
    "estimatedDuration": TEXT,
    "description": TEXTAREA,
    "cost": TEXT,
    "notes": TEXTAREA,
    "contractor": TEXT,
    "inspector": TEXT,
}


def _wire(v: Any) -> Any:
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return v


class DetailView:
    """
    View model of one entity's detail page.

    `confirmed` is the last snapshot the server agreed with; `entity` is what
    is displayed and may hold optimistic changes. Every mutation follows the
    same policy: apply to `entity`, send, then either rebuild `entity` from the
    server echo or revert it to `confirmed` and push an error notice.

    Each request takes a generation token. A load result is applied only if no
    newer request started since and the view is still open.
    """

    def __init__(self, service: Any, entity_id: int, *, fields: Optional[dict[str, FieldSpec]] = None, label: str = "record"):
        self.service = service
        self.entity_id = entity_id
        self.label = label

        self.confirmed: Optional[dict[str, Any]] = None
        self.entity: Optional[dict[str, Any]] = None
        self.notices: list[Notice] = []
        self.load_error: Optional[str] = None
        self.loading = False
        self.modal: Optional[str] = None
        self.closed = False

        self.editor = InlineEditor(self, fields or {})
        self.collections: dict[str, ChildCollection] = {}

        self._generation = 0
        self._temp_ids = 0

    # ---- lifecycle ----

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return not self.closed and token == self._generation

    def load(self) -> bool:
        token = self._begin()
        self.loading = True
        self.load_error = None
        try:
            data = self.service.get(self.entity_id)
        except ApiError as e:
            if self.is_current(token):
                self.loading = False
                self.load_error = e.message
            log.warning("load %s %s failed: %s", self.label, self.entity_id, e.message, extra={"error_kind": e.kind})
            return False

        if not self.is_current(token):
            log.debug("discarding stale load of %s %s", self.label, self.entity_id)
            return False

        self.loading = False
        self.confirmed = data
        self.entity = copy.deepcopy(data)
        return True

    def retry(self) -> bool:
        return self.load()

    def close(self) -> None:
        """Unmount: every in-flight response is ignored from now on."""
        self.closed = True
        self._generation += 1
        self.editor.cancel()
        self.modal = None

    # ---- transient UI state ----

    def notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))

    def take_notices(self) -> list[Notice]:
        out, self.notices = self.notices, []
        return out

    def open_modal(self, name: str) -> None:
        self.modal = name

    def close_modal(self) -> None:
        self.modal = None

    def next_temp_id(self) -> int:
        # negative ids never collide with server ids
        self._temp_ids -= 1
        return self._temp_ids

    def add_collection(self, collection: "ChildCollection") -> "ChildCollection":
        self.collections[collection.key] = collection
        return collection

    def collection(self, key: str) -> "ChildCollection":
        return self.collections[key]

    # ---- mutations ----

    def mutate(
        self,
        label: str,
        *,
        optimistic: Callable[[dict[str, Any]], None],
        request: Callable[[], Any],
        reconcile: Callable[[dict[str, Any], Any], None],
    ) -> bool:
        if self.entity is None or self.confirmed is None:
            raise RuntimeError(f"{self.label} {self.entity_id} is not loaded")
        if self.closed:
            return False

        token = self._begin()
        optimistic(self.entity)

        try:
            result = request()
        except ApiError as e:
            log.warning("%s failed: %s", label, e.message, extra={"error_kind": e.kind, "entity_id": self.entity_id})
            if self.closed:
                return False
            if self.is_current(token):
                self.entity = copy.deepcopy(self.confirmed)
            self.notify("error", f"{label} failed: {e.message}")
            return False

        if self.closed:
            return False

        # the server applied it either way; only the display waits for the newest request
        reconcile(self.confirmed, result)
        if self.is_current(token):
            self.entity = copy.deepcopy(self.confirmed)
        return True

    def update_fields(self, changes: dict[str, Any]) -> bool:
        wire = {k: _wire(v) for k, v in changes.items()}

        def reconcile(confirmed: dict[str, Any], server: Any) -> None:
            confirmed.clear()
            confirmed.update(server)

        return self.mutate(
            f"Update {self.label}",
            optimistic=lambda e: e.update(wire),
            request=lambda: self.service.update(self.entity_id, wire),
            reconcile=reconcile,
        )


class InlineEditor:
    """One field at a time: start_edit -> set_value -> save | cancel."""

    def __init__(self, view: DetailView, fields: dict[str, FieldSpec]):
        self.view = view
        self.fields = fields
        self.field: Optional[str] = None
        self.value: Any = None
        self.original: Any = None

    @property
    def active(self) -> bool:
        return self.field is not None

    def input_kind(self, field: str) -> FieldSpec:
        return self.fields.get(field, TEXT)

    def start_edit(self, field: str, current: Any = None) -> None:
        if self.field is not None and self.field != field:
            self.cancel()
        if current is None and self.view.entity is not None:
            current = self.view.entity.get(field)
        self.field = field
        self.value = current
        self.original = current

    def set_value(self, value: Any) -> None:
        if self.field is None:
            raise RuntimeError("no field is being edited")
        spec = self.input_kind(self.field)
        if spec.kind == "select" and spec.options and value not in spec.options:
            raise ValueError(f"{value!r} is not an option for {self.field}")
        self.value = value

    def cancel(self) -> None:
        self.field = None
        self.value = None
        self.original = None

    def save(self) -> bool:
        if self.field is None:
            return False
        field, value, original = self.field, self.value, self.original
        self.cancel()
        if value == original:
            return True
        return self.view.update_fields({field: value})


@dataclass(frozen=True)
class Nudge:
    """Optimistic adjustment of one aggregate per added/removed child."""

    field: str
    delta: Callable[[dict[str, Any]], float]
    clamp: bool = True

    def apply(self, entity: dict[str, Any], item: dict[str, Any], sign: int) -> None:
        current = entity.get(self.field) or 0
        d = sign * self.delta(item)
        entity[self.field] = nudge(current, d) if self.clamp else current + d


def merge_child_echo(confirmed: dict[str, Any], key: str, op: str, arg: Any, result: Any) -> None:
    """Fold a `{item, aggregates}` echo (or a bare item) into the confirmed snapshot."""
    rows = confirmed.setdefault(key, [])
    echo = result if isinstance(result, dict) else {}
    item = echo.get("item") if ("item" in echo or "aggregates" in echo) else echo

    if op == "remove":
        confirmed[key] = [r for r in rows if r.get("id") != arg]
    elif item:
        for i, r in enumerate(rows):
            if r.get("id") == item.get("id"):
                rows[i] = item
                break
        else:
            rows.append(item)

    aggs = echo.get("aggregates")
    if aggs:
        confirmed.update(aggs)


def merge_bank_echo(confirmed: dict[str, Any], key: str, op: str, arg: Any, result: Any) -> None:
    merge_child_echo(confirmed, key, op, arg, result)
    # demotion/promotion happens server side; the aggregate names the survivor
    primary = confirmed.get("primaryBankDetailId")
    for b in confirmed.get(key, []):
        b["isPrimary"] = b.get("id") == primary


def merge_checklist_echo(confirmed: dict[str, Any], key: str, op: str, arg: Any, result: Any) -> None:
    confirmed["checklist"] = result.get("checklist", [])
    confirmed["staticChecklist"] = result.get("staticChecklist", [])
    if "progress" in result:
        confirmed["progress"] = result["progress"]


Merge = Callable[[dict[str, Any], str, str, Any, Any], None]


class ChildCollection:
    """
    Add / remove / toggle on one child list of a DetailView.

    Aggregates are nudged optimistically (clamped at zero) and replaced by the
    server's recomputed values on success.
    """

    def __init__(
        self,
        view: DetailView,
        key: str,
        *,
        label: str,
        add: Optional[Callable[[int, dict[str, Any]], Any]] = None,
        remove: Optional[Callable[[int, int], Any]] = None,
        toggle: Optional[Callable[[int, int], Any]] = None,
        upload: Optional[Callable[[str, bytes], dict[str, Any]]] = None,
        nudges: Sequence[Nudge] = (),
        merge: Merge = merge_child_echo,
    ):
        self.view = view
        self.key = key
        self.label = label
        self._add = add
        self._remove = remove
        self._toggle = toggle
        self._upload = upload
        self.nudges = tuple(nudges)
        self.merge = merge

    @property
    def items(self) -> list[dict[str, Any]]:
        return list((self.view.entity or {}).get(self.key) or [])

    def _find(self, entity: dict[str, Any], child_id: int) -> Optional[dict[str, Any]]:
        for r in entity.get(self.key) or []:
            if r.get("id") == child_id:
                return r
        return None

    def add(self, item: dict[str, Any]) -> bool:
        if self._add is None:
            raise NotImplementedError(f"{self.label} cannot be added here")
        payload = {k: _wire(v) for k, v in item.items()}
        temp = {**payload, "id": self.view.next_temp_id()}

        def optimistic(e: dict[str, Any]) -> None:
            e.setdefault(self.key, []).append(temp)
            for n in self.nudges:
                n.apply(e, payload, +1)

        ok = self.view.mutate(
            f"Add {self.label}",
            optimistic=optimistic,
            request=lambda: self._add(self.view.entity_id, payload),
            reconcile=lambda c, r: self.merge(c, self.key, "add", payload, r),
        )
        if ok:
            self.view.close_modal()
            self.view.notify("success", f"{self.label.capitalize()} added")
        return ok

    def add_file(self, filename: str, content: bytes, meta: Optional[dict[str, Any]] = None) -> bool:
        """Upload first; the record is only added once the blob is stored."""
        if self._upload is None:
            raise NotImplementedError(f"{self.label} is not file-backed")
        try:
            ref = self._upload(filename, content)
        except ApiError as e:
            log.warning("upload of %s failed: %s", filename, e.message, extra={"error_kind": e.kind})
            self.view.notify("error", f"Upload failed: {e.message}")
            return False

        item = {"name": filename, "size": str(len(content)), **(meta or {})}
        item["file"] = {"key": ref["key"], "url": ref["url"]}
        return self.add(item)

    def remove(self, child_id: int) -> bool:
        if self._remove is None:
            raise NotImplementedError(f"{self.label} cannot be removed here")
        if self.view.entity is None or self._find(self.view.entity, child_id) is None:
            self.view.notify("error", f"{self.label.capitalize()} {child_id} not found")
            return False

        def optimistic(e: dict[str, Any]) -> None:
            gone = self._find(e, child_id) or {}
            e[self.key] = [r for r in e.get(self.key) or [] if r.get("id") != child_id]
            for n in self.nudges:
                n.apply(e, gone, -1)

        ok = self.view.mutate(
            f"Remove {self.label}",
            optimistic=optimistic,
            request=lambda: self._remove(self.view.entity_id, child_id),
            reconcile=lambda c, r: self.merge(c, self.key, "remove", child_id, r),
        )
        if ok:
            self.view.notify("success", f"{self.label.capitalize()} removed")
        return ok

    def toggle(self, child_id: int, field: str = "completed") -> bool:
        if self._toggle is None:
            raise NotImplementedError(f"{self.label} cannot be toggled here")

        def optimistic(e: dict[str, Any]) -> None:
            row = self._find(e, child_id)
            if row is not None:
                row[field] = not row.get(field)

        return self.view.mutate(
            f"Update {self.label}",
            optimistic=optimistic,
            request=lambda: self._toggle(self.view.entity_id, child_id),
            reconcile=lambda c, r: self.merge(c, self.key, "toggle", child_id, r),
        )


class BankDetailsCollection(ChildCollection):
    def __init__(self, view: DetailView, *, set_primary: Callable[[int, int], Any], **kw: Any):
        kw.setdefault("merge", merge_bank_echo)
        super().__init__(view, "bankDetails", label="bank account", **kw)
        self._set_primary = set_primary

    def set_primary(self, bank_id: int) -> bool:
        """Dedicated endpoint; the server flips every flag in one transaction."""

        def optimistic(e: dict[str, Any]) -> None:
            for b in e.get(self.key) or []:
                b["isPrimary"] = b.get("id") == bank_id
            e["primaryBankDetailId"] = bank_id

        return self.view.mutate(
            "Set primary account",
            optimistic=optimistic,
            request=lambda: self._set_primary(self.view.entity_id, bank_id),
            reconcile=lambda c, r: self.merge(c, self.key, "primary", bank_id, r),
        )


class ChecklistState:
    """Fixed six-item list (positional flags) plus the task's own items."""

    def __init__(self, view: DetailView, service: Any):
        self.view = view
        self.service = service
        self.items_collection = ChildCollection(
            view,
            "checklist",
            label="checklist item",
            add=lambda task_id, item: service.add_checklist_item(task_id, item["item"]),
            remove=service.remove_checklist_item,
            toggle=service.toggle_checklist_item,
            merge=merge_checklist_echo,
        )

    @property
    def static_items(self) -> tuple[str, ...]:
        return STATIC_CHECKLIST_ITEMS

    @property
    def static_flags(self) -> list[bool]:
        flags = list((self.view.entity or {}).get("staticChecklist") or [])
        return (flags + [False] * len(STATIC_CHECKLIST_ITEMS))[: len(STATIC_CHECKLIST_ITEMS)]

    @property
    def items(self) -> list[dict[str, Any]]:
        return self.items_collection.items

    @property
    def progress(self):
        return checklist_progress(self.static_flags, self.items)

    def add_item(self, text: str) -> bool:
        try:
            ensure_not_duplicate(self.items, text)
        except ConflictError as e:
            self.view.notify("error", e.message)
            return False
        return self.items_collection.add({"item": text, "completed": False})

    def remove_item(self, item_id: int) -> bool:
        return self.items_collection.remove(item_id)

    def toggle_item(self, item_id: int) -> bool:
        return self.items_collection.toggle(item_id)

    def toggle_static(self, index: int) -> bool:
        if not 0 <= index < len(STATIC_CHECKLIST_ITEMS):
            raise IndexError(index)

        def optimistic(e: dict[str, Any]) -> None:
            flags = self.static_flags
            flags[index] = not flags[index]
            e["staticChecklist"] = flags

        return self.view.mutate(
            "Update checklist",
            optimistic=optimistic,
            request=lambda: self.service.toggle_static_item(self.view.entity_id, index),
            reconcile=lambda c, r: merge_checklist_echo(c, "checklist", "toggle", index, r),
        )


# -------------------- factories --------------------

def agent_detail(agents: Any, agent_id: int, *, files: Any = None) -> DetailView:
    view = DetailView(agents, agent_id, fields=AGENT_FIELDS, label="agent")
    view.add_collection(
        ChildCollection(
            view, "units", label="unit", add=agents.add_unit, remove=agents.remove_unit,
            nudges=(Nudge("unitsAttracted", lambda i: 1),),
        )
    )
    view.add_collection(
        ChildCollection(
            view, "payouts", label="payout", add=agents.add_payout, remove=agents.remove_payout,
            nudges=(Nudge("totalPayouts", lambda i: float(i.get("amount") or 0)),),
        )
    )
    view.add_collection(
        ChildCollection(
            view, "documents", label="document", add=agents.add_document, remove=agents.remove_document,
            upload=(lambda name, content: files.upload(name, content, folder=f"agents/{agent_id}")) if files else None,
        )
    )
    return view


def _completed_amount(txn: dict[str, Any]) -> float:
    if (txn.get("status") or "").lower() != "completed":
        return 0.0
    return float(txn.get("amount") or 0)


def owner_detail(owners: Any, owner_id: int, *, files: Any = None) -> DetailView:
    view = DetailView(owners, owner_id, fields=OWNER_FIELDS, label="owner")
    view.add_collection(
        ChildCollection(
            view, "units", label="unit", add=owners.add_unit, remove=owners.remove_unit,
            nudges=(Nudge("totalUnits", lambda i: 1),),
        )
    )
    view.add_collection(
        BankDetailsCollection(
            view, add=owners.add_bank_detail, remove=owners.remove_bank_detail,
            set_primary=owners.set_primary_bank_detail,
        )
    )
    # balance is signed, so no clamping
    view.add_collection(
        ChildCollection(
            view, "transactions", label="transaction", add=owners.add_transaction, remove=owners.remove_transaction,
            nudges=(Nudge("balance", _completed_amount, clamp=False),),
        )
    )
    view.add_collection(
        ChildCollection(
            view, "documents", label="document", add=owners.add_document, remove=owners.remove_document,
            upload=(lambda name, content: files.upload(name, content, folder=f"owners/{owner_id}")) if files else None,
        )
    )
    return view


def cleaning_detail(cleaning: Any, task_id: int) -> tuple[DetailView, ChecklistState]:
    view = DetailView(cleaning, task_id, fields=CLEANING_FIELDS, label="cleaning task")
    view.add_collection(
        ChildCollection(
            view, "comments", label="comment",
            add=lambda tid, c: cleaning.add_comment(tid, c["text"], c.get("type", "user")),
        )
    )
    checklist = ChecklistState(view, cleaning)
    view.add_collection(checklist.items_collection)
    return view, checklist


def maintenance_detail(maintenance: Any, task_id: int, *, files: Any = None) -> DetailView:
    view = DetailView(maintenance, task_id, fields=MAINTENANCE_FIELDS, label="maintenance task")
    view.add_collection(
        ChildCollection(
            view, "comments", label="comment",
            add=lambda tid, c: maintenance.add_comment(tid, c["text"], c.get("type", "user")),
        )
    )
    view.add_collection(
        ChildCollection(
            view, "attachments", label="attachment",
            add=maintenance.add_attachment, remove=maintenance.remove_attachment,
            upload=(
                lambda name, content: files.upload(name, content, folder=f"maintenance/{task_id}/attachments")
            ) if files else None,
        )
    )
    view.add_collection(
        ChildCollection(
            view, "photos", label="photo",
            add=maintenance.add_photo, remove=maintenance.remove_photo,
            upload=(
                lambda name, content: files.upload(name, content, folder=f"maintenance/{task_id}/photos")
            ) if files else None,
        )
    )
    return view
