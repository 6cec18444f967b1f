from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def _require_text(value, field_name: str) -> None:
    # JSON bodies can carry numbers, lists or objects where text is expected
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    _require_text(value, field_name)
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Optional[str], field_name: str = "Text") -> Optional[str]:
    _require_text(value, field_name)
    v = (value or "").strip()
    return v or None


def require_amount(value, field_name: str, *, allow_zero: bool = False) -> Decimal:
    """Parse a money amount into a 2-place Decimal."""
    try:
        amount = Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    if amount == 0 and not allow_zero:
        raise ValidationError(f"{field_name} must be greater than 0")
    return amount


def require_number_in_range(value, field_name: str, *, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number != number or number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low:g} and {high:g}")
    return number


def parse_enum(enum_cls: type[E], value, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def require_date_order(start: date, end: Optional[date], *, label: str = "End date") -> None:
    if end is not None and end < start:
        raise ValidationError(f"{label} must be on or after the start date")
