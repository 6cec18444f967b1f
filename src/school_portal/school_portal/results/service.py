from __future__ import annotations

import logging
from typing import Callable, Optional

from ..common.context import RequestContext, require_role
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, parse_enum
from ..core.enums import ResultStatus, Role, Severity
from ..core.exceptions import InvalidStateError, NotFoundError, ValidationError
from ..courses.service import CourseService
from ..notifications.notifier import Notifier
from ..store.repository import RecordStore
from ..users.service import UserService
from .model import Result, cumulative_gpa, grade_for_points

logger = logging.getLogger(__name__)


class ResultService:
    """Course results: admin drafts, audits and publishes; students see published ones."""

    def __init__(
        self,
        store: RecordStore,
        users: UserService,
        courses: CourseService,
        notifier: Notifier,
        *,
        clock: Callable = now_utc,
    ):
        self._store = store
        self._users = users
        self._courses = courses
        self._notifier = notifier
        self._clock = clock

    def get_result(self, result_id: str) -> Result:
        row = self._store.get("results", str(result_id))
        if not row:
            raise NotFoundError("Result not found")
        return Result.from_row(row)

    def create_result(
        self,
        ctx: RequestContext,
        *,
        student_id: str,
        course_id: str,
        points,
        academic_year: Optional[str] = None,
        semester: Optional[str] = None,
    ) -> Result:
        require_role(ctx, Role.ADMIN)
        self._users.require_profile_with_role(student_id, Role.STUDENT, "Student")
        course = self._courses.get_course(course_id)
        grade = grade_for_points(points)

        existing = self._store.select(
            "results",
            {"student_id": str(student_id), "course_id": course.id, "academic_year": optional_text(academic_year),
             "semester": optional_text(semester)},
            limit=1,
        )
        if existing:
            raise ValidationError("A result for this student and course already exists for the term")

        row = {
            "student_id": str(student_id),
            "course_id": course.id,
            "points": float(points),
            "grade": grade.grade,
            "gpa": grade.gpa,
            "academic_year": optional_text(academic_year),
            "semester": optional_text(semester),
            "status": ResultStatus.DRAFT.value,
            "audited_by": None,
            "audited_at": None,
            "published_by": None,
            "published_at": None,
            "created_at": self._clock(),
        }
        result_id = self._store.insert("results", row)
        return Result.from_row({**row, "id": result_id})

    def audit_result(self, ctx: RequestContext, result_id: str) -> Result:
        require_role(ctx, Role.ADMIN)
        result = self.get_result(result_id)
        swapped = self._store.update_if(
            "results",
            result.id,
            ResultStatus.DRAFT.value,
            {"audited_by": ctx.user_id, "audited_at": self._clock()},
        )
        if not swapped:
            raise InvalidStateError("Only draft results can be audited")
        return self.get_result(result.id)

    def publish_result(self, ctx: RequestContext, result_id: str) -> Result:
        require_role(ctx, Role.ADMIN)
        result = self.get_result(result_id)
        if result.status is not ResultStatus.DRAFT:
            raise InvalidStateError("Result has already been published")

        swapped = self._store.update_if(
            "results",
            result.id,
            ResultStatus.DRAFT.value,
            {
                "status": ResultStatus.PUBLISHED.value,
                "published_by": ctx.user_id,
                "published_at": self._clock(),
            },
        )
        if not swapped:
            raise InvalidStateError("Result has already been published")

        logger.info("Result %s published by %s", result.id, ctx.user_id)
        course = self._courses.get_course(result.course_id)
        self._notifier.notify(
            result.student_id,
            f"Your result for {course.title} has been published: {result.grade}",
            Severity.SUCCESS,
        )
        return self.get_result(result.id)

    def list_results(self, ctx: RequestContext, *, status=None) -> list[Result]:
        require_role(ctx, Role.ADMIN)
        filters = {"status": parse_enum(ResultStatus, status, "Status").value} if status else None
        rows = self._store.select("results", filters, order_by="created_at", descending=True)
        return [Result.from_row(r) for r in rows]

    def published_for_student(self, ctx: RequestContext) -> list[Result]:
        require_role(ctx, Role.STUDENT)
        rows = self._store.select(
            "results",
            {"student_id": ctx.user_id, "status": ResultStatus.PUBLISHED.value},
            order_by="published_at",
        )
        return [Result.from_row(r) for r in rows]

    def my_gpa(self, ctx: RequestContext) -> Optional[float]:
        return cumulative_gpa(self.published_for_student(ctx))
