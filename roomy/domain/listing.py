# roomy/domain/listing.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from .fields import field_value


@dataclass(frozen=True)
class SortState:
    field: Optional[str] = None
    direction: str = "asc"  # asc|desc

    def clicked(self, field: str) -> "SortState":
        """Same header flips direction; a new header starts ascending."""
        if self.field == field:
            return SortState(field=field, direction="desc" if self.direction == "asc" else "asc")
        return SortState(field=field, direction="asc")


def matches_search(row: Any, term: str, fields: Sequence[str]) -> bool:
    needle = (term or "").strip().lower()
    if not needle:
        return True
    for f in fields:
        v = field_value(row, f)
        if v is None:
            continue
        if needle in str(v).lower():
            return True
    return False


def search_rows(rows: Iterable[Any], term: str, fields: Sequence[str]) -> list[Any]:
    rows = list(rows or [])
    if not (term or "").strip():
        return rows
    return [r for r in rows if matches_search(r, term, fields)]


def _sort_key(v: Any) -> tuple:
    # None sorts after everything; strings compare case-insensitively
    if v is None:
        return (2, "")
    if isinstance(v, bool):
        return (0, int(v))
    if isinstance(v, (int, float)):
        return (0, v)
    if isinstance(v, str):
        return (1, v.casefold())
    return (1, str(v))


def sort_rows(rows: Iterable[Any], state: SortState) -> list[Any]:
    """
    Stable single-column sort.

    Ties keep their input order in both directions, and `None` stays last
    regardless of direction.
    """
    rows = list(rows or [])
    if not state.field:
        return rows

    present = [r for r in rows if field_value(r, state.field) is not None]
    missing = [r for r in rows if field_value(r, state.field) is None]

    ordered = sorted(
        present,
        key=lambda r: _sort_key(field_value(r, state.field)),
        reverse=(state.direction == "desc"),
    )
    return ordered + missing


@dataclass(frozen=True)
class Page:
    items: list[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 1
        return max(1, -(-self.total // self.limit))


def clamp_paging(page: Optional[int], limit: Optional[int], *, default_limit: int, max_limit: int) -> tuple[int, int]:
    p = int(page or 1)
    l = int(limit or default_limit)
    return max(1, p), max(1, min(l, max_limit))


def paginate(rows: Sequence[Any], page: int, limit: int) -> Page:
    rows = list(rows or [])
    start = (page - 1) * limit
    return Page(items=rows[start:start + limit], total=len(rows), page=page, limit=limit)
