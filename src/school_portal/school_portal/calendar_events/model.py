from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import parse_timestamp
from ..core.enums import EventType


def _as_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_timestamp(value).date()


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    event_type: EventType
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    created_by: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "CalendarEvent":
        return cls(
            id=str(row["id"]),
            title=row["title"],
            event_type=EventType(row["event_type"]),
            start_date=_as_date(row["start_date"]),
            end_date=_as_date(row.get("end_date")),
            description=row.get("description"),
            academic_year=row.get("academic_year"),
            semester=row.get("semester"),
            created_by=row.get("created_by"),
        )
