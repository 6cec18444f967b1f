from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Sequence

from ..approvals.aggregator import BatchAggregator
from ..approvals.model import Batch, batch_from_row
from ..approvals.state_machine import ReviewStateMachine
from ..common.context import RequestContext, require_role
from ..common.datetime_utils import now_utc, parse_iso_date
from ..common.validators import optional_text, parse_enum, require_non_empty
from ..core.constants import DEFAULT_REVIEW_LIMIT
from ..core.enums import AttendanceMark, BatchKind, BatchStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..courses.service import CourseService, EnrollmentService
from ..store.repository import RecordStore
from ..users.service import UserService
from .model import AttendanceDetail, AttendanceEntry, AttendanceFeedback, AttendanceRecord


class AttendanceService:
    """Lecturers record attendance as a batch; admins approve or reject it."""

    def __init__(
        self,
        store: RecordStore,
        courses: CourseService,
        enrollments: EnrollmentService,
        users: UserService,
        aggregator: BatchAggregator,
        reviews: ReviewStateMachine,
        *,
        clock: Callable = now_utc,
    ):
        self._store = store
        self._courses = courses
        self._enrollments = enrollments
        self._users = users
        self._aggregator = aggregator
        self._reviews = reviews
        self._clock = clock

    def course_roster(self, ctx: RequestContext, course_id: str):
        course = self._courses.require_teaching(ctx, course_id)
        return self._enrollments.course_roster(course)

    def submit(
        self,
        ctx: RequestContext,
        *,
        course_id: str,
        session_date,
        entries: Sequence[AttendanceEntry],
    ) -> Batch:
        require_role(ctx, Role.LECTURER)
        course = self._courses.require_teaching(ctx, course_id)
        if not isinstance(session_date, date):
            session_date = parse_iso_date(session_date)
        if not entries:
            raise ValidationError("Attendance sheet is empty")

        enrolled = {e.student_id for e in self._enrollments.active_enrollments(course_id=course.id)}
        seen: set[str] = set()
        records = []
        now = self._clock()
        for entry in entries:
            student_id = require_non_empty(entry.student_id, "Student")
            if student_id in seen:
                raise ValidationError(f"Student {student_id} appears more than once")
            if student_id not in enrolled:
                raise ValidationError(f"Student {student_id} is not enrolled in {course.course_code}")
            seen.add(student_id)
            records.append(
                {
                    "student_id": student_id,
                    "course_id": course.id,
                    "lecturer_id": ctx.user_id,
                    "session_date": session_date,
                    "mark": parse_enum(AttendanceMark, entry.mark, "Attendance status").value,
                    "notes": optional_text(entry.notes),
                    "created_at": now,
                }
            )

        return self._aggregator.create_batch(
            ctx,
            BatchKind.ATTENDANCE,
            records=records,
            details={"course_id": course.id, "session_date": session_date},
        )

    def batch_details(self, ctx: RequestContext, batch_id: str) -> list[AttendanceDetail]:
        batch = self._reviews.get(BatchKind.ATTENDANCE, batch_id)
        if ctx.role is not Role.ADMIN and batch.submitter_id != ctx.user_id:
            raise AuthorizationError("You cannot view this attendance submission")

        if not batch.member_record_ids:
            return []
        rows = self._store.select("attendance", {"id": list(batch.member_record_ids)})
        records = [AttendanceRecord.from_row(r) for r in rows]
        students = self._users.profiles_by_id(r.student_id for r in records)
        courses = self._courses.courses_by_id(r.course_id for r in records)

        order = {rid: i for i, rid in enumerate(batch.member_record_ids)}
        records.sort(key=lambda r: order.get(r.id, len(order)))
        return [
            AttendanceDetail(
                record=r,
                student_name=students[r.student_id].display_name if r.student_id in students else "Unknown",
                course_title=courses[r.course_id].title if r.course_id in courses else "Unknown",
            )
            for r in records
        ]

    def feedback_for_lecturer(self, ctx: RequestContext) -> list[AttendanceFeedback]:
        require_role(ctx, Role.LECTURER)
        rows = self._store.select(
            BatchKind.ATTENDANCE.value, {"submitter_id": ctx.user_id}, order_by="submitted_at", descending=True
        )
        batches = [batch_from_row(BatchKind.ATTENDANCE, r) for r in rows]
        courses = self._courses.courses_by_id(b.details.get("course_id") for b in batches)

        out: list[AttendanceFeedback] = []
        for b in batches:
            course_id = str(b.details.get("course_id") or "")
            session_date = b.details.get("session_date")
            if isinstance(session_date, str):
                session_date = parse_iso_date(session_date[:10])
            out.append(
                AttendanceFeedback(
                    batch_id=b.id,
                    course_id=course_id,
                    course_title=courses[course_id].title if course_id in courses else "Unknown",
                    session_date=session_date,
                    status=b.status,
                    feedback=b.reviewer_feedback,
                    submitted_at=b.submitted_at,
                    reviewed_at=b.reviewed_at,
                    record_count=len(b.member_record_ids),
                )
            )
        return out

    def list_for_review(self, ctx: RequestContext, *, status=None) -> list[Batch]:
        require_role(ctx, Role.ADMIN)
        filters = {"status": parse_enum(BatchStatus, status, "Status").value} if status else None
        rows = self._store.select(
            BatchKind.ATTENDANCE.value, filters, order_by="submitted_at", descending=True, limit=DEFAULT_REVIEW_LIMIT
        )
        return [batch_from_row(BatchKind.ATTENDANCE, r) for r in rows]

    def review(self, ctx: RequestContext, batch_id: str, decision, feedback: Optional[str] = None) -> Batch:
        return self._reviews.review(ctx, BatchKind.ATTENDANCE, batch_id, decision, feedback)
