from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_timestamp
from ..core.enums import BatchStatus, EnrollmentStatus


@dataclass(frozen=True)
class Course:
    id: str
    course_code: str
    title: str
    description: Optional[str] = None
    credits: Optional[int] = None
    semester: Optional[str] = None
    academic_year: Optional[str] = None
    lecturer_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Course":
        credits = row.get("credits")
        return cls(
            id=str(row["id"]),
            course_code=row["course_code"],
            title=row["title"],
            description=row.get("description"),
            credits=int(credits) if credits is not None else None,
            semester=row.get("semester"),
            academic_year=row.get("academic_year"),
            lecturer_id=row.get("lecturer_id"),
        )


@dataclass(frozen=True)
class Enrollment:
    id: str
    student_id: str
    course_id: str
    status: EnrollmentStatus
    enrollment_date: datetime
    final_grade: Optional[float] = None

    @classmethod
    def from_row(cls, row: dict) -> "Enrollment":
        final_grade = row.get("final_grade")
        return cls(
            id=str(row["id"]),
            student_id=str(row["student_id"]),
            course_id=str(row["course_id"]),
            status=EnrollmentStatus(row.get("status") or EnrollmentStatus.ACTIVE.value),
            enrollment_date=parse_timestamp(row["enrollment_date"]),
            final_grade=float(final_grade) if final_grade is not None else None,
        )


@dataclass(frozen=True)
class AvailableCourse:
    """Read-model for a student browsing courses they are not enrolled in."""

    course: Course
    lecturer_name: str
    request_status: Optional[BatchStatus] = None


@dataclass(frozen=True)
class RosterEntry:
    student_id: str
    full_name: str
    email: str
    course_id: str
    course_title: str
