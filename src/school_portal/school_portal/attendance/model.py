from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceMark, BatchStatus


@dataclass(frozen=True)
class AttendanceEntry:
    """One line of the attendance sheet a lecturer fills in."""

    student_id: str
    mark: AttendanceMark = AttendanceMark.PRESENT
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: a persisted attendance row. Never modified after submission."""

    id: str
    student_id: str
    course_id: str
    lecturer_id: str
    session_date: date
    mark: AttendanceMark
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "AttendanceRecord":
        session_date = row["session_date"]
        if isinstance(session_date, datetime):
            session_date = session_date.date()
        elif isinstance(session_date, str):
            session_date = date.fromisoformat(session_date[:10])
        return cls(
            id=str(row["id"]),
            student_id=str(row["student_id"]),
            course_id=str(row["course_id"]),
            lecturer_id=str(row["lecturer_id"]),
            session_date=session_date,
            mark=AttendanceMark(row["mark"]),
            notes=row.get("notes"),
        )


@dataclass(frozen=True)
class AttendanceDetail:
    """Read-model for the admin review dialog."""

    record: AttendanceRecord
    student_name: str
    course_title: str


@dataclass(frozen=True)
class AttendanceFeedback:
    """Read-model for the lecturer's feedback list."""

    batch_id: str
    course_id: str
    course_title: str
    session_date: Optional[date]
    status: BatchStatus
    feedback: Optional[str]
    submitted_at: datetime
    reviewed_at: Optional[datetime]
    record_count: int
