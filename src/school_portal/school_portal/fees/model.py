from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import parse_timestamp


def to_money(value) -> Decimal:
    return Decimal(str(value if value is not None else 0)).quantize(Decimal("0.01"))


def balance_of(total_fees, amount_paid) -> Decimal:
    """The single source of truth for an account balance."""
    return to_money(total_fees) - to_money(amount_paid)


@dataclass(frozen=True)
class FeeAccount:
    id: str
    student_id: str
    total_fees: Decimal
    amount_paid: Decimal
    academic_year: Optional[str]
    semester: Optional[str]
    updated_at: Optional[datetime] = None

    @property
    def balance(self) -> Decimal:
        return balance_of(self.total_fees, self.amount_paid)

    @classmethod
    def from_row(cls, row: dict) -> "FeeAccount":
        # Any stored ``balance`` column is a cached projection and is ignored on read.
        updated_at = row.get("updated_at")
        return cls(
            id=str(row["id"]),
            student_id=str(row["student_id"]),
            total_fees=to_money(row.get("total_fees")),
            amount_paid=to_money(row.get("amount_paid")),
            academic_year=row.get("academic_year"),
            semester=row.get("semester"),
            updated_at=parse_timestamp(updated_at) if updated_at else None,
        )
