# roomy/domain/aggregates.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Optional

from .fields import field_value


def units_attracted(units: Iterable[Any]) -> int:
    return sum(1 for _ in units or [])


def total_payouts(payouts: Iterable[Any]) -> float:
    total = 0.0
    for p in payouts or []:
        total += float(field_value(p, "amount", 0.0) or 0.0)
    return round(total, 2)


def _as_date(v: Any) -> Optional[date]:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    try:
        return date.fromisoformat(str(v)[:10])
    except ValueError:
        return None


def last_payout_date(payouts: Iterable[Any]) -> Optional[date]:
    dates = []
    for p in payouts or []:
        # wire dicts carry the payout date as "date"
        d = _as_date(field_value(p, "payout_date") or field_value(p, "date"))
        if d is not None:
            dates.append(d)
    return max(dates) if dates else None


def owner_balance(transactions: Iterable[Any]) -> float:
    """Signed sum over completed transactions (credits positive, debits negative)."""
    total = 0.0
    for t in transactions or []:
        if (field_value(t, "status", "") or "").lower() != "completed":
            continue
        total += float(field_value(t, "amount", 0.0) or 0.0)
    return round(total, 2)


def primary_bank_detail_id(bank_details: Iterable[Any]) -> Optional[int]:
    for b in bank_details or []:
        if field_value(b, "is_primary"):
            return field_value(b, "id")
    return None


def agent_aggregates(units: Iterable[Any], payouts: Iterable[Any]) -> dict[str, Any]:
    payouts = list(payouts or [])
    return {
        "units_attracted": units_attracted(units),
        "total_payouts": total_payouts(payouts),
        "last_payout_date": last_payout_date(payouts),
    }


def owner_aggregates(units: Iterable[Any], transactions: Iterable[Any], bank_details: Iterable[Any]) -> dict[str, Any]:
    return {
        "total_units": units_attracted(units),
        "balance": owner_balance(transactions),
        "primary_bank_detail_id": primary_bank_detail_id(bank_details),
    }


def nudge(value: float, delta: float) -> float:
    """Optimistic aggregate adjustment; never drops below zero."""
    return max(0, value + delta)
