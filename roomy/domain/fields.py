# roomy/domain/fields.py
from __future__ import annotations

from typing import Any


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def field_value(obj: Any, name: str, default: Any = None) -> Any:
    """
    Read `name` from an ORM row, a pydantic model, or a wire dict.

    Wire dicts are camelCase, Python objects are snake_case; both are accepted
    so domain rules work on either side of the HTTP boundary.
    """
    if isinstance(obj, dict):
        if name in obj:
            return obj[name]
        return obj.get(_camel(name), default)
    return getattr(obj, name, default)
