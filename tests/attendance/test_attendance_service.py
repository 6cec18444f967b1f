from __future__ import annotations

from datetime import date

import pytest

from src.school_portal.school_portal.attendance.model import AttendanceEntry
from src.school_portal.school_portal.core.enums import AttendanceMark, BatchStatus, Role, Severity
from src.school_portal.school_portal.core.exceptions import AuthorizationError, ValidationError

from tests.fakes import make_profile


@pytest.fixture
def roster(store, course, student, other_student, enroll):
    enroll(student, course)
    enroll(other_student, course)
    return [student, other_student]


def test_submit_creates_pending_batch_with_one_record_per_student(container, store, lecturer, course, roster):
    batch = container.attendance_service.submit(
        lecturer,
        course_id=course.id,
        session_date="2026-03-02",
        entries=[
            AttendanceEntry(roster[0].user_id, AttendanceMark.PRESENT),
            AttendanceEntry(roster[1].user_id, "late", notes="bus"),
        ],
    )

    assert batch.status is BatchStatus.PENDING
    assert batch.details["course_id"] == course.id
    assert batch.details["session_date"] == date(2026, 3, 2)
    assert len(batch.member_record_ids) == 2
    marks = sorted(r["mark"] for r in store.select("attendance"))
    assert marks == ["late", "present"]


def test_rejected_batch_keeps_records_and_notifies_lecturer(container, store, notifier, admin, lecturer, course, roster):
    batch = container.attendance_service.submit(
        lecturer,
        course_id=course.id,
        session_date=date(2026, 3, 2),
        entries=[AttendanceEntry(s.user_id) for s in roster],
    )
    before = store.select("attendance")

    reviewed = container.attendance_service.review(admin, batch.id, "rejected", "incomplete")

    assert reviewed.status is BatchStatus.REJECTED
    assert reviewed.reviewer_feedback == "incomplete"
    assert store.select("attendance") == before
    assert notifier.sent[-1] == (
        lecturer.user_id,
        "Your attendance submission was rejected. Feedback: incomplete",
        Severity.WARNING,
    )

    feedback = container.attendance_service.feedback_for_lecturer(lecturer)
    assert [(f.batch_id, f.status, f.feedback, f.record_count) for f in feedback] == [
        (batch.id, BatchStatus.REJECTED, "incomplete", 2)
    ]
    assert feedback[0].course_title == "Intro to Programming"


def test_only_the_course_lecturer_can_submit(container, store, course, roster):
    stranger = make_profile(store, Role.LECTURER, "other@school.test")

    with pytest.raises(AuthorizationError):
        container.attendance_service.submit(
            stranger, course_id=course.id, session_date="2026-03-02", entries=[AttendanceEntry(roster[0].user_id)]
        )


def test_sheet_must_list_enrolled_students_once(container, store, lecturer, course, roster):
    outsider = make_profile(store, Role.STUDENT, "outsider@school.test")
    svc = container.attendance_service

    with pytest.raises(ValidationError):
        svc.submit(lecturer, course_id=course.id, session_date="2026-03-02", entries=[])
    with pytest.raises(ValidationError):
        svc.submit(
            lecturer,
            course_id=course.id,
            session_date="2026-03-02",
            entries=[AttendanceEntry(roster[0].user_id), AttendanceEntry(roster[0].user_id)],
        )
    with pytest.raises(ValidationError):
        svc.submit(lecturer, course_id=course.id, session_date="2026-03-02", entries=[AttendanceEntry(outsider.user_id)])
    with pytest.raises(ValidationError):
        svc.submit(lecturer, course_id=course.id, session_date="02/03/2026", entries=[AttendanceEntry(roster[0].user_id)])

    assert store.count("attendance") == 0


def test_batch_details_follow_member_order(container, admin, lecturer, other_student, course, roster):
    batch = container.attendance_service.submit(
        lecturer,
        course_id=course.id,
        session_date="2026-03-02",
        entries=[AttendanceEntry(s.user_id) for s in reversed(roster)],
    )

    details = container.attendance_service.batch_details(admin, batch.id)

    assert [d.record.student_id for d in details] == [roster[1].user_id, roster[0].user_id]
    assert details[0].student_name == "Kim Student"
    with pytest.raises(AuthorizationError):
        container.attendance_service.batch_details(other_student, batch.id)
