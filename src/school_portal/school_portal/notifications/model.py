from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import parse_timestamp
from ..core.enums import Severity


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: str
    message: str
    severity: Severity
    is_read: bool
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "Notification":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            message=row["message"],
            severity=Severity(row.get("severity") or Severity.INFO.value),
            is_read=bool(row.get("is_read")),
            created_at=parse_timestamp(row["created_at"]),
        )
