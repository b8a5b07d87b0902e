# tests/test_domain_rules.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from roomy.domain import aggregates
from roomy.domain.bank import apply_primary, primary_flags, resolve_primary
from roomy.domain.checklist import (
    CHECKLIST_OPTIONS,
    available_options,
    checklist_progress,
    ensure_not_duplicate,
    toggle_static,
    validate_static_flags,
)
from roomy.domain.errors import ConflictError, RuleViolation


@dataclass
class FakeBank:
    id: int
    is_primary: bool = False


def test_nudge_never_goes_below_zero():
    assert aggregates.nudge(1, -1) == 0
    assert aggregates.nudge(0, -1) == 0
    assert aggregates.nudge(2, 1) == 3


def test_agent_aggregates_from_wire_dicts():
    payouts = [{"date": "2024-03-01", "amount": 100.25}, {"date": "2024-05-10", "amount": 50}]
    out = aggregates.agent_aggregates([{"id": 1}, {"id": 2}], payouts)
    assert out == {"units_attracted": 2, "total_payouts": 150.25, "last_payout_date": date(2024, 5, 10)}

    empty = aggregates.agent_aggregates([], [])
    assert empty == {"units_attracted": 0, "total_payouts": 0.0, "last_payout_date": None}


def test_owner_balance_is_signed_and_completed_only():
    txns = [
        {"amount": 1000, "status": "completed"},
        {"amount": -1500, "status": "completed"},
        {"amount": 999, "status": "pending"},
    ]
    assert aggregates.owner_balance(txns) == -500


def test_primary_flags_mark_exactly_one():
    assert primary_flags([1, 2, 3], 2) == {1: False, 2: True, 3: False}
    with pytest.raises(RuleViolation):
        primary_flags([1, 2], 9)


def test_resolve_primary_keeps_flagged_or_promotes_oldest():
    assert resolve_primary([]) is None
    assert resolve_primary([FakeBank(5), FakeBank(3, True)]) == 3
    assert resolve_primary([FakeBank(5), FakeBank(3)]) == 3
    # two flagged (legacy data): lowest id wins
    assert resolve_primary([FakeBank(7, True), FakeBank(4, True)]) == 4


def test_apply_primary_writes_flags_in_place():
    rows = [FakeBank(1, True), FakeBank(2), FakeBank(3, True)]
    apply_primary(rows, 2)
    assert [r.is_primary for r in rows] == [False, True, False]


def test_checklist_progress():
    flags = [False] * 6
    items = [{"item": "Floors mopped", "completed": True}, {"item": "Trash emptied", "completed": False}]
    p = checklist_progress(flags, items)
    assert (p.total, p.completed, p.percent) == (8, 1, 12.5)
    assert checklist_progress([], []).percent == 0.0


def test_static_flags_length_and_toggle_bounds():
    with pytest.raises(RuleViolation):
        validate_static_flags([True] * 5)
    assert validate_static_flags([1, 0, 0, 0, 0, 0]) == [True, False, False, False, False, False]

    flags = toggle_static([False] * 6, 0)
    assert flags[0] is True
    assert toggle_static(flags, 0) == [False] * 6
    with pytest.raises(RuleViolation):
        toggle_static(flags, -1)


def test_duplicates_are_detected_after_normalising():
    existing = [{"item": "Floors mopped"}]
    with pytest.raises(ConflictError):
        ensure_not_duplicate(existing, "  FLOORS   mopped")
    with pytest.raises(ConflictError):
        ensure_not_duplicate(existing, "Towels replaced")
    ensure_not_duplicate(existing, "Trash emptied")


def test_available_options_drop_taken_items():
    opts = available_options([{"item": "floors mopped"}])
    assert "Floors mopped" not in opts
    assert len(opts) == len(CHECKLIST_OPTIONS) - 1
