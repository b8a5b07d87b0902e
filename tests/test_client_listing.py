# tests/test_client_listing.py
from __future__ import annotations

from roomy.client.http import ApplicationError, ListPage
from roomy.client.listing import Debouncer, FilterPanel, ListView
from roomy.client.services import AgentService


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_debouncer_fires_once_after_quiet_period():
    clock = FakeClock()
    d = Debouncer(300, clock)
    d.push("m")
    clock.now = 0.2
    d.push("ma")
    clock.now = 0.45
    assert d.poll() == (False, None)
    clock.now = 0.55
    assert d.poll() == (True, "ma")
    assert d.poll() == (False, None)


def test_search_debounce_resets_page():
    clock = FakeClock()
    queries = []
    panel = FilterPanel(limit=20, debounce_ms=300, clock=clock, on_change=queries.append)
    panel.set_page(3)

    panel.type_search("mar")
    clock.now = 0.1
    panel.type_search("mari")
    clock.now = 0.3
    assert panel.tick() is False
    clock.now = 0.5
    assert panel.tick() is True

    assert panel.page == 1
    assert queries[-1] == {"search": "mari", "page": 1, "limit": 20}

    # same text again is not a change
    panel.type_search("mari")
    clock.now = 1.0
    assert panel.tick() is False


def test_apply_and_clear_filters():
    panel = FilterPanel(limit=10, debounce_ms=0)
    panel.set_page(4)
    panel.set_draft("status", "Active")
    panel.set_draft("nationality", "")
    assert panel.active_count == 0

    q = panel.apply()
    assert q == {"status": "Active", "page": 1, "limit": 10}
    assert panel.active_count == 1

    panel.set_draft("status", None)
    panel.set_draft("nationality", "UK")
    assert panel.apply() == {"status": "Active", "nationality": "UK", "page": 1, "limit": 10}

    panel.set_page(2)
    assert panel.clear() == {"page": 1, "limit": 10}


ROWS = [
    {"id": 1, "name": "bob", "status": "Active"},
    {"id": 2, "name": "Alice", "status": "Inactive"},
    {"id": 3, "name": "Carol", "status": "Active"},
]


def test_select_all_covers_visible_rows_only():
    view = ListView(ROWS, search_fields=["name"])
    view.search("o")
    assert [r["id"] for r in view.visible] == [1, 3]

    view.select_all()
    assert view.selected == {1, 3}
    assert view.all_selected

    view.search("")
    assert not view.all_selected
    view.toggle_select(2)
    view.sort_by("name")
    assert view.selected_ids == [2, 1, 3]


def test_sort_by_twice_flips_direction():
    view = ListView(ROWS)
    view.sort_by("name")
    assert [r["id"] for r in view.visible] == [2, 1, 3]
    view.sort_by("name")
    assert [r["id"] for r in view.visible] == [3, 1, 2]


def test_bulk_partial_result_keeps_failures_selected():
    view = ListView(ROWS)
    view.select_all()

    def runner(ids, action):
        return {"action": action, "succeeded": [1, 3], "failed": [{"id": 2, "error": "agent not found"}]}

    out = view.run_bulk("delete", runner)
    assert out.partial
    assert [r["id"] for r in view.rows] == [2]
    assert view.selected == {2}


def test_bulk_with_empty_selection_or_error():
    view = ListView(ROWS)
    assert view.run_bulk("delete", lambda ids, a: {}).error == "nothing selected"

    def broken(ids, action):
        raise ApplicationError("bulk disabled")

    view.toggle_select(1)
    out = view.run_bulk("activate", broken)
    assert out.error == "bulk disabled"
    assert view.selected == {1}


def test_load_page_prunes_selection():
    view = ListView(ROWS)
    view.select_all()
    view.load_page(ListPage(data=[ROWS[0]], total=3, page=2, limit=1))
    assert view.selected == {1}
    assert (view.total, view.page, view.limit) == (3, 2, 1)


def test_list_view_against_the_api(api):
    agents = AgentService(api)
    a = agents.create({"name": "Sarah", "email": "sarah@agents.local"})
    b = agents.create({"name": "Omar", "email": "omar@agents.local"})

    panel = FilterPanel(limit=10, debounce_ms=0)
    view = ListView(search_fields=["name", "email"])
    assert view.refresh(lambda: agents.list(**panel.query()))
    assert view.total == 2

    view.select_all()
    view.toggle_select(b["id"])
    out = view.run_bulk("deactivate", agents.bulk)
    assert out.succeeded == [a["id"]]
    assert agents.get(a["id"])["status"] == "Inactive"

    view.select_all()
    out = view.run_bulk("export", agents.bulk)
    assert [r["id"] for r in out.rows] == [a["id"], b["id"]]
    assert view.selected == {a["id"], b["id"]}
