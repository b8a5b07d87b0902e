# roomy/domain/checklist.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from .errors import ConflictError, RuleViolation
from .fields import field_value

# Always shown on every cleaning task; completion is tracked by position.
STATIC_CHECKLIST_ITEMS: tuple[str, ...] = (
    "Kitchen appliances cleaned",
    "Bathroom sanitized",
    "Carpet cleaning",
    "Bed linens changed",
    "Towels replaced",
    "Windows cleaned",
)

# Suggestions offered when adding a dynamic item.
CHECKLIST_OPTIONS: tuple[str, ...] = (
    "Floors mopped",
    "Trash emptied",
    "Dust all surfaces",
    "Vacuum carpets",
    "Clean mirrors",
    "Disinfect doorknobs",
    "Clean light switches",
    "Wipe baseboards",
    "Clean air vents",
    "Sanitize remote controls",
    "Clean refrigerator",
    "Wipe down cabinets",
    "Clean stove top",
    "Empty dishwasher",
)


@dataclass(frozen=True)
class Progress:
    total: int
    completed: int
    percent: float


def checklist_progress(static_flags: Sequence[bool], items: Iterable[Any]) -> Progress:
    """
    Overall completion across the fixed and the dynamic list.

    6 static (0 done) + 2 dynamic (1 done) -> 1/8 -> 12.5
    """
    items = list(items or [])
    total = len(static_flags) + len(items)
    completed = sum(1 for f in static_flags if f) + sum(1 for i in items if field_value(i, "completed"))
    if total == 0:
        return Progress(total=0, completed=0, percent=0.0)
    return Progress(total=total, completed=completed, percent=round(100.0 * completed / total, 1))


def validate_static_flags(flags: Sequence[bool]) -> list[bool]:
    if len(flags) != len(STATIC_CHECKLIST_ITEMS):
        raise RuleViolation(
            f"staticChecklist must have exactly {len(STATIC_CHECKLIST_ITEMS)} entries (got {len(flags)})"
        )
    return [bool(f) for f in flags]


def toggle_static(flags: Sequence[bool], index: int) -> list[bool]:
    out = list(flags)
    if index < 0 or index >= len(out):
        raise RuleViolation(f"static checklist index out of range: {index}")
    out[index] = not out[index]
    return out


def normalize_item(text: str) -> str:
    return " ".join((text or "").split())


def ensure_not_duplicate(existing: Iterable[Any], item: str) -> None:
    needle = normalize_item(item).lower()
    for row in existing or []:
        if normalize_item(field_value(row, "item", "")).lower() == needle:
            raise ConflictError(f"checklist item already exists: {item!r}")
    if needle in {s.lower() for s in STATIC_CHECKLIST_ITEMS}:
        raise ConflictError(f"checklist item is part of the fixed list: {item!r}")


def available_options(existing: Iterable[Any]) -> list[str]:
    taken = {normalize_item(field_value(r, "item", "")).lower() for r in existing or []}
    return [o for o in CHECKLIST_OPTIONS if o.lower() not in taken]
