# tests/test_listing_rules.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from roomy.domain.listing import SortState, clamp_paging, paginate, search_rows, sort_rows


@dataclass
class Row:
    id: int
    name: Optional[str]
    email: Optional[str] = None
    revenue: Optional[float] = None


ROWS = [
    {"id": 1, "name": "bob", "email": "bob@a.io", "revenue": 10.0},
    {"id": 2, "name": "Alice", "email": "alice@a.io", "revenue": None},
    {"id": 3, "name": None, "email": "anon@a.io", "revenue": 30.0},
    {"id": 4, "name": "alice", "email": "alice2@a.io", "revenue": 20.0},
]


def _ids(rows):
    return [r["id"] for r in rows]


def test_empty_search_returns_everything_in_order():
    assert _ids(search_rows(ROWS, "", ["name"])) == [1, 2, 3, 4]
    assert _ids(search_rows(ROWS, "   ", ["name"])) == [1, 2, 3, 4]


def test_search_is_case_insensitive_substring_over_fields():
    assert _ids(search_rows(ROWS, "ALICE", ["name"])) == [2, 4]
    assert _ids(search_rows(ROWS, "anon", ["name", "email"])) == [3]
    assert search_rows(ROWS, "zzz", ["name", "email"]) == []


def test_search_reads_objects_as_well_as_wire_dicts():
    rows = [Row(1, "Sarah", "s@x.io"), Row(2, "Omar", None)]
    assert [r.id for r in search_rows(rows, "sar", ["name", "email"])] == [1]


def test_sort_is_case_insensitive_and_stable():
    got = sort_rows(ROWS, SortState("name", "asc"))
    # Alice/alice tie keeps input order; None last
    assert _ids(got) == [2, 4, 1, 3]


def test_missing_values_stay_last_in_both_directions():
    asc = sort_rows(ROWS, SortState("revenue", "asc"))
    desc = sort_rows(ROWS, SortState("revenue", "desc"))
    assert _ids(asc) == [1, 4, 3, 2]
    assert _ids(desc) == [3, 4, 1, 2]


def test_desc_reverses_asc_for_distinct_values():
    rows = [{"id": i, "v": v} for i, v in enumerate([5, 3, 9, 1])]
    asc = sort_rows(rows, SortState("v", "asc"))
    desc = sort_rows(rows, SortState("v", "desc"))
    assert desc == list(reversed(asc))


def test_no_sort_field_keeps_input_order():
    assert _ids(sort_rows(ROWS, SortState())) == [1, 2, 3, 4]


def test_header_clicks_toggle_direction():
    s = SortState().clicked("name")
    assert s == SortState("name", "asc")
    s = s.clicked("name")
    assert s == SortState("name", "desc")
    assert s.clicked("email") == SortState("email", "asc")


def test_paging_is_clamped():
    assert clamp_paging(None, None, default_limit=50, max_limit=500) == (1, 50)
    assert clamp_paging(0, 10_000, default_limit=50, max_limit=500) == (1, 500)

    page = paginate(list(range(7)), 2, 3)
    assert page.items == [3, 4, 5]
    assert page.total == 7
    assert page.pages == 3
