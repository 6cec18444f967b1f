from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping


def to_json(obj: Any) -> Any:
    """Convert domain objects into JSON-safe structures for Flask responses."""
    if isinstance(obj, Enum):
        return obj.value
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        out = {f.name: to_json(getattr(obj, f.name)) for f in fields(obj)}
        for name in ("balance", "percentage", "display_name", "is_full"):
            if hasattr(type(obj), name) and isinstance(getattr(type(obj), name), property):
                out[name] = to_json(getattr(obj, name))
        return out
    if isinstance(obj, Mapping):
        return {str(to_json(k)): to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_json(v) for v in obj]
    return str(obj)
