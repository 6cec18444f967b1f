from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_timestamp


@dataclass(frozen=True)
class Assignment:
    id: str
    course_id: str
    created_by: str
    title: str
    max_points: float
    description: Optional[str] = None
    due_date: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Assignment":
        due = row.get("due_date")
        return cls(
            id=str(row["id"]),
            course_id=str(row["course_id"]),
            created_by=str(row["created_by"]),
            title=row["title"],
            max_points=float(row.get("max_points") or 0),
            description=row.get("description"),
            due_date=parse_timestamp(due) if due else None,
        )


@dataclass(frozen=True)
class Submission:
    id: str
    assignment_id: str
    student_id: str
    content: str
    submitted_at: datetime
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_by: Optional[str] = None
    graded_at: Optional[datetime] = None

    @property
    def is_graded(self) -> bool:
        return self.grade is not None

    @classmethod
    def from_row(cls, row: dict) -> "Submission":
        grade = row.get("grade")
        graded_at = row.get("graded_at")
        return cls(
            id=str(row["id"]),
            assignment_id=str(row["assignment_id"]),
            student_id=str(row["student_id"]),
            content=row.get("content") or "",
            submitted_at=parse_timestamp(row["submitted_at"]),
            grade=float(grade) if grade is not None else None,
            feedback=row.get("feedback"),
            graded_by=row.get("graded_by"),
            graded_at=parse_timestamp(graded_at) if graded_at else None,
        )


@dataclass(frozen=True)
class StudentAssignment:
    """An assignment as a student sees it, with their own submission if any."""

    assignment: Assignment
    course_title: str
    submission: Optional[Submission]


@dataclass(frozen=True)
class GradedWork:
    assignment_title: str
    course_id: str
    course_title: str
    grade: float
    max_points: float
    feedback: Optional[str]

    @property
    def percentage(self) -> float:
        return round(self.grade / self.max_points * 100, 2) if self.max_points else 0.0


@dataclass(frozen=True)
class StudentGrades:
    items: list[GradedWork]
    course_averages: dict[str, float]
