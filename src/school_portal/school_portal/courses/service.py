from __future__ import annotations

import logging
from typing import Callable, Optional

from ..approvals.aggregator import BatchAggregator
from ..approvals.model import Batch, batch_from_row
from ..approvals.state_machine import ReviewStateMachine
from ..common.context import RequestContext, require_role
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, parse_enum, require_non_empty
from ..core.constants import DEFAULT_REVIEW_LIMIT
from ..core.enums import BatchKind, BatchStatus, EnrollmentStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..store.repository import RecordStore
from ..users.service import UserService
from .model import AvailableCourse, Course, Enrollment, RosterEntry

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("title", "description", "credits", "semester", "academic_year")


def _credits(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        credits = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Credits must be a whole number")
    if credits < 0:
        raise ValidationError("Credits cannot be negative")
    return credits


class CourseService:
    """Use case: course catalogue (admin) and lecturer course ownership."""

    def __init__(self, store: RecordStore, users: UserService, *, clock: Callable = now_utc):
        self._store = store
        self._users = users
        self._clock = clock

    def get_course(self, course_id: str) -> Course:
        row = self._store.get("courses", str(course_id))
        if not row:
            raise NotFoundError("Course not found")
        return Course.from_row(row)

    def courses_by_id(self, course_ids) -> dict[str, Course]:
        ids = sorted({str(i) for i in course_ids if i})
        if not ids:
            return {}
        return {str(r["id"]): Course.from_row(r) for r in self._store.select("courses", {"id": ids})}

    def require_teaching(self, ctx: RequestContext, course_id: str) -> Course:
        """Course the caller may manage: its lecturer, or any admin."""
        require_role(ctx, Role.LECTURER, Role.ADMIN)
        course = self.get_course(course_id)
        if ctx.role is Role.LECTURER and course.lecturer_id != ctx.user_id:
            raise AuthorizationError("You do not teach this course")
        return course

    def _ensure_unique_code(self, course_code: str, *, exclude_id: Optional[str] = None) -> None:
        for row in self._store.select("courses", {"course_code": course_code}):
            if str(row["id"]) != exclude_id:
                raise ValidationError(f"Course code {course_code} already exists")

    def create_course(
        self,
        ctx: RequestContext,
        *,
        course_code: str,
        title: str,
        description: Optional[str] = None,
        credits=None,
        semester: Optional[str] = None,
        academic_year: Optional[str] = None,
        lecturer_id: Optional[str] = None,
    ) -> Course:
        require_role(ctx, Role.ADMIN)
        course_code = require_non_empty(course_code, "Course code").upper()
        self._ensure_unique_code(course_code)
        if lecturer_id:
            self._users.require_profile_with_role(lecturer_id, Role.LECTURER, "Lecturer")

        now = self._clock()
        row = {
            "course_code": course_code,
            "title": require_non_empty(title, "Title"),
            "description": optional_text(description),
            "credits": _credits(credits),
            "semester": optional_text(semester),
            "academic_year": optional_text(academic_year),
            "lecturer_id": lecturer_id or None,
            "created_at": now,
            "updated_at": now,
        }
        course_id = self._store.insert("courses", row)
        return Course.from_row({**row, "id": course_id})

    def update_course(self, ctx: RequestContext, course_id: str, **changes) -> Course:
        require_role(ctx, Role.ADMIN)
        course = self.get_course(course_id)

        patch: dict = {}
        if "course_code" in changes:
            code = require_non_empty(changes["course_code"], "Course code").upper()
            self._ensure_unique_code(code, exclude_id=course.id)
            patch["course_code"] = code
        for name in _EDITABLE_FIELDS:
            if name not in changes:
                continue
            if name == "title":
                patch[name] = require_non_empty(changes[name], "Title")
            elif name == "credits":
                patch[name] = _credits(changes[name])
            else:
                patch[name] = optional_text(changes[name])

        if patch:
            patch["updated_at"] = self._clock()
            self._store.update("courses", course.id, patch)
        return self.get_course(course.id)

    def assign_lecturer(self, ctx: RequestContext, course_id: str, lecturer_id: Optional[str]) -> Course:
        require_role(ctx, Role.ADMIN)
        course = self.get_course(course_id)
        if lecturer_id:
            self._users.require_profile_with_role(lecturer_id, Role.LECTURER, "Lecturer")
        self._store.update("courses", course.id, {"lecturer_id": lecturer_id or None, "updated_at": self._clock()})
        return self.get_course(course.id)

    def delete_course(self, ctx: RequestContext, course_id: str) -> None:
        require_role(ctx, Role.ADMIN)
        course = self.get_course(course_id)
        active = self._store.select(
            "enrollments", {"course_id": course.id, "status": EnrollmentStatus.ACTIVE.value}, limit=1
        )
        if active:
            raise ValidationError("Cannot delete a course with active enrollments")
        self._store.delete("courses", course.id)
        logger.info("Deleted course %s (%s)", course.id, course.course_code)

    def list_courses(self) -> list[Course]:
        return [Course.from_row(r) for r in self._store.select("courses", order_by="title")]

    def list_for_lecturer(self, ctx: RequestContext) -> list[Course]:
        require_role(ctx, Role.LECTURER)
        rows = self._store.select("courses", {"lecturer_id": ctx.user_id}, order_by="title")
        return [Course.from_row(r) for r in rows]


class EnrollmentService:
    """Use case: students request enrollment, admins review, lecturers see their students."""

    def __init__(
        self,
        store: RecordStore,
        courses: CourseService,
        users: UserService,
        aggregator: BatchAggregator,
        reviews: ReviewStateMachine,
    ):
        self._store = store
        self._courses = courses
        self._users = users
        self._aggregator = aggregator
        self._reviews = reviews

    def active_enrollments(self, *, course_id: Optional[str] = None, student_id: Optional[str] = None) -> list[Enrollment]:
        filters: dict = {"status": EnrollmentStatus.ACTIVE.value}
        if course_id:
            filters["course_id"] = str(course_id)
        if student_id:
            filters["student_id"] = str(student_id)
        return [Enrollment.from_row(r) for r in self._store.select("enrollments", filters)]

    def is_actively_enrolled(self, student_id: str, course_id: str) -> bool:
        return bool(self.active_enrollments(course_id=course_id, student_id=student_id))

    def request_enrollment(self, ctx: RequestContext, course_id: str) -> Batch:
        require_role(ctx, Role.STUDENT)
        course = self._courses.get_course(course_id)

        if self.is_actively_enrolled(ctx.user_id, course.id):
            raise ValidationError("You are already enrolled in this course")
        pending = self._store.select(
            BatchKind.ENROLLMENT.value,
            {"submitter_id": ctx.user_id, "course_id": course.id, "status": BatchStatus.PENDING.value},
            limit=1,
        )
        if pending:
            raise ValidationError("You already have a pending request for this course")

        return self._aggregator.create_batch(ctx, BatchKind.ENROLLMENT, details={"course_id": course.id})

    def available_courses(self, ctx: RequestContext) -> list[AvailableCourse]:
        require_role(ctx, Role.STUDENT)
        enrolled = {e.course_id for e in self.active_enrollments(student_id=ctx.user_id)}

        latest: dict[str, BatchStatus] = {}
        rows = self._store.select(BatchKind.ENROLLMENT.value, {"submitter_id": ctx.user_id}, order_by="submitted_at")
        for row in rows:
            latest[str(row["course_id"])] = BatchStatus(row["status"])

        courses = [c for c in self._courses.list_courses() if c.id not in enrolled]
        lecturers = self._users.profiles_by_id(c.lecturer_id for c in courses)
        return [
            AvailableCourse(
                course=c,
                lecturer_name=lecturers[c.lecturer_id].display_name if c.lecturer_id in lecturers else "TBA",
                request_status=latest.get(c.id),
            )
            for c in courses
        ]

    def my_enrollments(self, ctx: RequestContext) -> list[tuple[Course, Enrollment]]:
        require_role(ctx, Role.STUDENT)
        enrollments = self.active_enrollments(student_id=ctx.user_id)
        courses = self._courses.courses_by_id(e.course_id for e in enrollments)
        return [(courses[e.course_id], e) for e in enrollments if e.course_id in courses]

    def list_requests(self, ctx: RequestContext, *, status=None) -> list[Batch]:
        require_role(ctx, Role.ADMIN)
        filters = {"status": parse_enum(BatchStatus, status, "Status").value} if status else None
        rows = self._store.select(
            BatchKind.ENROLLMENT.value, filters, order_by="submitted_at", descending=True, limit=DEFAULT_REVIEW_LIMIT
        )
        return [batch_from_row(BatchKind.ENROLLMENT, r) for r in rows]

    def review(self, ctx: RequestContext, request_id: str, decision, feedback: Optional[str] = None) -> Batch:
        return self._reviews.review(ctx, BatchKind.ENROLLMENT, request_id, decision, feedback)

    def course_roster(self, course: Course) -> list[RosterEntry]:
        enrollments = self.active_enrollments(course_id=course.id)
        students = self._users.profiles_by_id(e.student_id for e in enrollments)
        roster = [
            RosterEntry(
                student_id=e.student_id,
                full_name=students[e.student_id].display_name,
                email=students[e.student_id].email,
                course_id=course.id,
                course_title=course.title,
            )
            for e in enrollments
            if e.student_id in students
        ]
        roster.sort(key=lambda r: r.full_name.lower())
        return roster

    def students_for_lecturer(self, ctx: RequestContext) -> list[RosterEntry]:
        # a student taking several of the lecturer's courses is listed once, under the first
        seen: dict[str, RosterEntry] = {}
        for course in self._courses.list_for_lecturer(ctx):
            for entry in self.course_roster(course):
                seen.setdefault(entry.student_id, entry)
        out = list(seen.values())
        out.sort(key=lambda r: r.full_name.lower())
        return out
