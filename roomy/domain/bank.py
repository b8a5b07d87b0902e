# roomy/domain/bank.py
from __future__ import annotations

from typing import Any, Optional, Sequence

from .errors import RuleViolation
from .fields import field_value


def primary_flags(ids: Sequence[int], target_id: int) -> dict[int, bool]:
    """Exactly one account flagged: the target."""
    if target_id not in ids:
        raise RuleViolation(f"bank detail {target_id} does not belong to this owner")
    return {i: (i == target_id) for i in ids}


def resolve_primary(rows: Sequence[Any]) -> Optional[int]:
    """
    Which account should be primary for a collection in any state.

    Keeps the first flagged account (lowest id); with none flagged the oldest
    account is promoted. Empty collection -> None.
    """
    if not rows:
        return None
    ordered = sorted(rows, key=lambda r: field_value(r, "id"))
    for r in ordered:
        if field_value(r, "is_primary"):
            return field_value(r, "id")
    return field_value(ordered[0], "id")


def apply_primary(rows: Sequence[Any], target_id: Optional[int]) -> None:
    """Write the flags onto ORM rows in place."""
    for r in rows:
        r.is_primary = r.id == target_id
