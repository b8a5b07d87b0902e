# roomy/services/query.py
from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import String, Text, Select, asc, desc, func, or_, select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.listing import clamp_paging


def apply_search(q: Select, columns: Sequence[Any], term: Optional[str]) -> Select:
    """Case-insensitive substring match over any of `columns`."""
    needle = (term or "").strip().lower()
    if not needle:
        return q
    return q.where(or_(*[func.lower(c).contains(needle, autoescape=True) for c in columns]))


def apply_sort(q: Select, model: Any, sort_map: dict[str, Any], sort_by: Optional[str], sort_dir: Optional[str]) -> Select:
    """
    Single-column sort with the primary key as a stable tiebreaker.

    `sort_by` is a wire field name; unknown names fall back to id order.
    """
    col = sort_map.get(sort_by or "")
    direction = desc if (sort_dir or "asc").lower() == "desc" else asc
    if col is None:
        return q.order_by(direction(model.id))

    key = func.lower(col) if isinstance(col.type, (String, Text)) else col
    # NULLs last in both directions
    return q.order_by(col.is_(None), direction(key), asc(model.id))


def fetch_page(db: Session, q: Select, page: Optional[int], limit: Optional[int]) -> tuple[list[Any], int, int, int]:
    p, l = clamp_paging(page, limit, default_limit=settings.default_page_size, max_limit=settings.max_page_size)
    total = int(db.scalar(select(func.count()).select_from(q.order_by(None).subquery())) or 0)
    rows = list(db.scalars(q.offset((p - 1) * l).limit(l)).unique().all())
    return rows, total, p, l
