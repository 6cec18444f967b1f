from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Optional

from ..common.context import RequestContext, require_role
from ..common.datetime_utils import now_utc, parse_timestamp
from ..common.validators import optional_text, require_non_empty, require_number_in_range
from ..core.constants import DEFAULT_MAX_POINTS
from ..core.enums import Role, Severity
from ..core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from ..courses.service import CourseService, EnrollmentService
from ..notifications.notifier import Notifier
from ..store.repository import RecordStore
from .model import Assignment, GradedWork, StudentAssignment, StudentGrades, Submission

logger = logging.getLogger(__name__)


def _due_date(value):
    if value in (None, ""):
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        raise ValidationError(f"Invalid due date: {value!r}")


class GradingService:
    """Assignments per course, student submissions and lecturer grading."""

    def __init__(
        self,
        store: RecordStore,
        courses: CourseService,
        enrollments: EnrollmentService,
        notifier: Notifier,
        *,
        clock: Callable = now_utc,
    ):
        self._store = store
        self._courses = courses
        self._enrollments = enrollments
        self._notifier = notifier
        self._clock = clock

    def get_assignment(self, assignment_id: str) -> Assignment:
        row = self._store.get("assignments", str(assignment_id))
        if not row:
            raise NotFoundError("Assignment not found")
        return Assignment.from_row(row)

    def create_assignment(
        self,
        ctx: RequestContext,
        *,
        course_id: str,
        title: str,
        description: Optional[str] = None,
        due_date=None,
        max_points=None,
    ) -> Assignment:
        course = self._courses.require_teaching(ctx, course_id)
        if max_points in (None, ""):
            max_points = DEFAULT_MAX_POINTS
        try:
            points = float(max_points)
        except (TypeError, ValueError):
            raise ValidationError("Max points must be a number")
        if not points > 0:
            raise ValidationError("Max points must be greater than 0")

        row = {
            "course_id": course.id,
            "created_by": ctx.user_id,
            "title": require_non_empty(title, "Title"),
            "description": optional_text(description),
            "due_date": _due_date(due_date),
            "max_points": points,
            "created_at": self._clock(),
        }
        assignment_id = self._store.insert("assignments", row)
        logger.info("Assignment %s created for course %s", assignment_id, course.id)
        return Assignment.from_row({**row, "id": assignment_id})

    def list_for_course(self, ctx: RequestContext, course_id: str) -> list[Assignment]:
        course = self._courses.require_teaching(ctx, course_id)
        rows = self._store.select("assignments", {"course_id": course.id}, order_by="created_at", descending=True)
        return [Assignment.from_row(r) for r in rows]

    def submissions_for(self, ctx: RequestContext, assignment_id: str) -> list[Submission]:
        assignment = self.get_assignment(assignment_id)
        self._courses.require_teaching(ctx, assignment.course_id)
        rows = self._store.select("submissions", {"assignment_id": assignment.id}, order_by="submitted_at")
        return [Submission.from_row(r) for r in rows]

    def list_for_student(self, ctx: RequestContext) -> list[StudentAssignment]:
        require_role(ctx, Role.STUDENT)
        course_ids = [e.course_id for e in self._enrollments.active_enrollments(student_id=ctx.user_id)]
        if not course_ids:
            return []
        courses = self._courses.courses_by_id(course_ids)
        assignments = [
            Assignment.from_row(r)
            for r in self._store.select("assignments", {"course_id": course_ids}, order_by="due_date")
        ]
        mine = {
            str(r["assignment_id"]): Submission.from_row(r)
            for r in self._store.select("submissions", {"student_id": ctx.user_id})
        }
        return [
            StudentAssignment(
                assignment=a,
                course_title=courses[a.course_id].title if a.course_id in courses else "",
                submission=mine.get(a.id),
            )
            for a in assignments
        ]

    def submit(self, ctx: RequestContext, assignment_id: str, content: str) -> Submission:
        require_role(ctx, Role.STUDENT)
        assignment = self.get_assignment(assignment_id)
        if not self._enrollments.is_actively_enrolled(ctx.user_id, assignment.course_id):
            raise AuthorizationError("You are not enrolled in this course")
        text = require_non_empty(content, "Submission content")

        with self._store.transaction():
            existing = self._store.select(
                "submissions", {"assignment_id": assignment.id, "student_id": ctx.user_id}, limit=1
            )
            if existing:
                current = Submission.from_row(existing[0])
                if current.is_graded:
                    raise InvalidStateError("This submission has already been graded")
                self._store.update("submissions", current.id, {"content": text, "submitted_at": self._clock()})
                submission_id = current.id
            else:
                submission_id = self._store.insert(
                    "submissions",
                    {
                        "assignment_id": assignment.id,
                        "student_id": ctx.user_id,
                        "content": text,
                        "grade": None,
                        "feedback": None,
                        "graded_by": None,
                        "graded_at": None,
                        "submitted_at": self._clock(),
                    },
                )

        logger.info("Submission %s for assignment %s by %s", submission_id, assignment.id, ctx.user_id)
        return Submission.from_row(self._store.get("submissions", submission_id))

    def grade(self, ctx: RequestContext, submission_id: str, grade, feedback: Optional[str] = None) -> Submission:
        row = self._store.get("submissions", str(submission_id))
        if not row:
            raise NotFoundError("Submission not found")
        submission = Submission.from_row(row)
        assignment = self.get_assignment(submission.assignment_id)
        self._courses.require_teaching(ctx, assignment.course_id)

        value = require_number_in_range(grade, "Grade", low=0, high=assignment.max_points)
        self._store.update(
            "submissions",
            submission.id,
            {
                "grade": value,
                "feedback": optional_text(feedback),
                "graded_by": ctx.user_id,
                "graded_at": self._clock(),
            },
        )
        self._notifier.notify(
            submission.student_id,
            f'Your submission for "{assignment.title}" was graded: {value:g}/{assignment.max_points:g}',
            Severity.INFO,
        )
        return Submission.from_row(self._store.get("submissions", submission.id))

    def student_grades(self, ctx: RequestContext) -> StudentGrades:
        require_role(ctx, Role.STUDENT)
        graded = [
            Submission.from_row(r)
            for r in self._store.select("submissions", {"student_id": ctx.user_id}, order_by="graded_at")
            if r.get("grade") is not None
        ]
        if not graded:
            return StudentGrades(items=[], course_averages={})

        assignments = {
            str(r["id"]): Assignment.from_row(r)
            for r in self._store.select("assignments", {"id": [s.assignment_id for s in graded]})
        }
        courses = self._courses.courses_by_id(a.course_id for a in assignments.values())

        items: list[GradedWork] = []
        for s in graded:
            a = assignments.get(s.assignment_id)
            if not a:
                continue
            items.append(
                GradedWork(
                    assignment_title=a.title,
                    course_id=a.course_id,
                    course_title=courses[a.course_id].title if a.course_id in courses else "",
                    grade=s.grade,
                    max_points=a.max_points,
                    feedback=s.feedback,
                )
            )

        by_course: dict[str, list[float]] = defaultdict(list)
        for item in items:
            by_course[item.course_id].append(item.percentage)
        averages = {cid: round(sum(p) / len(p), 2) for cid, p in by_course.items()}
        return StudentGrades(items=items, course_averages=averages)
