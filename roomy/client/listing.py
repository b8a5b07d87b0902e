# roomy/client/listing.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from ..config import settings
from ..domain.fields import field_value
from ..domain.listing import SortState, search_rows, sort_rows
from .http import ApiError, ListPage

log = logging.getLogger("roomy.client.listing")

Clock = Callable[[], float]

_UNSET = object()


class Debouncer:
    """
    Holds the latest value until `delay_ms` have passed without a newer one.

    Time comes from `clock` (seconds, monotonic) so tests can drive it.
    """

    def __init__(self, delay_ms: int, clock: Clock = time.monotonic):
        self.delay = delay_ms / 1000.0
        self.clock = clock
        self._pending: Any = _UNSET
        self._due: float = 0.0

    @property
    def pending(self) -> bool:
        return self._pending is not _UNSET

    def push(self, value: Any) -> None:
        self._pending = value
        self._due = self.clock() + self.delay

    def poll(self) -> tuple[bool, Any]:
        if self._pending is _UNSET or self.clock() < self._due:
            return False, None
        value, self._pending = self._pending, _UNSET
        return True, value

    def flush(self) -> tuple[bool, Any]:
        if self._pending is _UNSET:
            return False, None
        value, self._pending = self._pending, _UNSET
        return True, value


def _is_blank(v: Any) -> bool:
    return v is None or v == "" or v == [] or v == ()


class FilterPanel:
    """
    Draft filters edited in the panel, committed on apply().

    Any change to the committed filters (apply, clear, a debounced search)
    puts the list back on page 1.
    """

    def __init__(
        self,
        *,
        limit: Optional[int] = None,
        debounce_ms: Optional[int] = None,
        clock: Clock = time.monotonic,
        on_change: Optional[Callable[[dict[str, Any]], None]] = None,
    ):
        self.draft: dict[str, Any] = {}
        self.committed: dict[str, Any] = {}
        self.search = ""
        self.page = 1
        self.limit = limit or settings.default_page_size
        self.on_change = on_change
        self._debounce = Debouncer(settings.search_debounce_ms if debounce_ms is None else debounce_ms, clock)

    # ---- draft ----

    def set_draft(self, key: str, value: Any) -> None:
        if _is_blank(value):
            self.draft.pop(key, None)
        else:
            self.draft[key] = value

    def apply(self) -> dict[str, Any]:
        merged = {**self.committed, **self.draft}
        self.committed = {k: v for k, v in merged.items() if not _is_blank(v)}
        self.draft = {}
        return self._changed()

    def clear(self) -> dict[str, Any]:
        self.draft = {}
        self.committed = {}
        self.search = ""
        self._debounce.flush()
        return self._changed()

    @property
    def active_count(self) -> int:
        return len(self.committed)

    # ---- search ----

    def type_search(self, text: str) -> None:
        self._debounce.push(text or "")

    def tick(self) -> bool:
        """Call from the UI loop; fires the search once the user stops typing."""
        fired, value = self._debounce.poll()
        if not fired or value == self.search:
            return False
        self.search = value
        self._changed()
        return True

    # ---- paging ----

    def set_page(self, page: int) -> dict[str, Any]:
        self.page = max(1, int(page))
        q = self.query()
        if self.on_change:
            self.on_change(q)
        return q

    def query(self) -> dict[str, Any]:
        q = dict(self.committed)
        if self.search.strip():
            q["search"] = self.search.strip()
        q["page"] = self.page
        q["limit"] = self.limit
        return q

    def _changed(self) -> dict[str, Any]:
        self.page = 1
        q = self.query()
        if self.on_change:
            self.on_change(q)
        return q


@dataclass
class BulkOutcome:
    action: str
    succeeded: list[int] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)
    rows: Optional[list[dict[str, Any]]] = None
    error: Optional[str] = None

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)


class ListView:
    """
    Rows of one page with client-side search, single-column sort and selection.

    Sorting is stable and case-insensitive with missing values last; select-all
    covers exactly the visible rows.
    """

    def __init__(self, rows: Iterable[dict[str, Any]] = (), *, search_fields: Sequence[str] = (), id_field: str = "id"):
        self.rows: list[dict[str, Any]] = list(rows)
        self.search_fields = tuple(search_fields)
        self.id_field = id_field
        self.term = ""
        self.sort = SortState()
        self.selected: set[Any] = set()
        self.total = len(self.rows)
        self.page = 1
        self.limit = len(self.rows)
        self.load_error: Optional[str] = None
        self.last_bulk: Optional[BulkOutcome] = None

    # ---- data ----

    def load_page(self, page: ListPage) -> None:
        self.rows = list(page.data)
        self.total, self.page, self.limit = page.total, page.page, page.limit
        ids = {self._id(r) for r in self.rows}
        self.selected &= ids

    def refresh(self, fetch: Callable[[], ListPage]) -> bool:
        try:
            page = fetch()
        except ApiError as e:
            log.warning("list load failed: %s", e.message, extra={"error_kind": e.kind})
            self.load_error = e.message
            return False
        self.load_error = None
        self.load_page(page)
        return True

    def _id(self, row: Any) -> Any:
        return field_value(row, self.id_field)

    # ---- search / sort ----

    def search(self, term: str) -> None:
        self.term = term or ""

    def sort_by(self, column: str) -> SortState:
        self.sort = self.sort.clicked(column)
        return self.sort

    @property
    def visible(self) -> list[dict[str, Any]]:
        return sort_rows(search_rows(self.rows, self.term, self.search_fields), self.sort)

    # ---- selection ----

    def toggle_select(self, row_id: Any) -> None:
        if row_id in self.selected:
            self.selected.discard(row_id)
        else:
            self.selected.add(row_id)

    def select_all(self) -> None:
        self.selected = {self._id(r) for r in self.visible}

    def clear_selection(self) -> None:
        self.selected = set()

    @property
    def all_selected(self) -> bool:
        visible = {self._id(r) for r in self.visible}
        return bool(visible) and visible <= self.selected

    @property
    def selected_ids(self) -> list[Any]:
        return [self._id(r) for r in self.visible if self._id(r) in self.selected]

    # ---- bulk ----

    def run_bulk(self, action: str, runner: Callable[[list[Any], str], dict[str, Any]]) -> BulkOutcome:
        """
        Dispatch a bulk action over the selection and keep the partial result.

        Succeeded ids leave the selection (and the rows, for delete); failed
        ids stay selected so the user can retry them.
        """
        ids = self.selected_ids
        if not ids:
            self.last_bulk = BulkOutcome(action=action, error="nothing selected")
            return self.last_bulk

        try:
            res = runner(ids, action)
        except ApiError as e:
            log.warning("bulk %s failed: %s", action, e.message, extra={"error_kind": e.kind})
            self.last_bulk = BulkOutcome(action=action, error=e.message)
            return self.last_bulk

        out = BulkOutcome(
            action=action,
            succeeded=list(res.get("succeeded") or []),
            failed=list(res.get("failed") or []),
            rows=res.get("rows"),
        )
        done = set(out.succeeded)
        if action == "delete":
            self.rows = [r for r in self.rows if self._id(r) not in done]
            self.total = max(0, self.total - len(done))
        if action != "export":
            self.selected -= done
        self.last_bulk = out
        return out
