from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..common.datetime_utils import parse_timestamp
from ..common.validators import require_number_in_range
from ..core.enums import ResultStatus


@dataclass(frozen=True)
class GradePoint:
    grade: str
    gpa: float


# Lower bounds are inclusive.
GRADE_SCALE: tuple[tuple[float, GradePoint], ...] = (
    (90, GradePoint("A", 4.0)),
    (80, GradePoint("B", 3.0)),
    (70, GradePoint("C", 2.0)),
    (60, GradePoint("D", 1.0)),
)
FAIL = GradePoint("F", 0.0)


def grade_for_points(points) -> GradePoint:
    value = require_number_in_range(points, "Points", low=0, high=100)
    for lower, grade in GRADE_SCALE:
        if value >= lower:
            return grade
    return FAIL


@dataclass(frozen=True)
class Result:
    id: str
    student_id: str
    course_id: str
    points: float
    grade: str
    gpa: float
    status: ResultStatus
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    audited_by: Optional[str] = None
    audited_at: Optional[datetime] = None
    published_by: Optional[str] = None
    published_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Result":
        audited_at = row.get("audited_at")
        published_at = row.get("published_at")
        return cls(
            id=str(row["id"]),
            student_id=str(row["student_id"]),
            course_id=str(row["course_id"]),
            points=float(row["points"]),
            grade=row["grade"],
            gpa=float(row["gpa"]),
            status=ResultStatus(row["status"]),
            academic_year=row.get("academic_year"),
            semester=row.get("semester"),
            audited_by=row.get("audited_by"),
            audited_at=parse_timestamp(audited_at) if audited_at else None,
            published_by=row.get("published_by"),
            published_at=parse_timestamp(published_at) if published_at else None,
        )


def cumulative_gpa(results: Iterable[Result]) -> Optional[float]:
    """Unweighted mean GPA of published results; None when nothing is published."""
    gpas = [r.gpa for r in results if r.status is ResultStatus.PUBLISHED]
    if not gpas:
        return None
    return round(sum(gpas) / len(gpas), 2)
