from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import BatchStatus, Role
from src.school_portal.school_portal.core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    ValidationError,
)


def test_approved_request_creates_exactly_one_active_enrollment(container, store, admin, student, course):
    batch = container.enrollment_service.request_enrollment(student, course.id)

    container.enrollment_service.review(admin, batch.id, "approved")

    rows = store.select("enrollments", {"student_id": student.user_id, "course_id": course.id})
    assert len(rows) == 1
    assert rows[0]["status"] == "active"
    assert rows[0]["source_request_id"] == batch.id

    with pytest.raises(InvalidStateError):
        container.enrollment_service.review(admin, batch.id, "approved")
    assert store.count("enrollments") == 1


def test_duplicate_pending_request_is_refused(container, student, course):
    container.enrollment_service.request_enrollment(student, course.id)

    with pytest.raises(ValidationError):
        container.enrollment_service.request_enrollment(student, course.id)


def test_already_enrolled_student_cannot_request(container, student, course, enroll):
    enroll(student, course)

    with pytest.raises(ValidationError):
        container.enrollment_service.request_enrollment(student, course.id)


def test_approval_rolls_back_when_student_got_enrolled_meanwhile(container, store, admin, student, course, enroll):
    batch = container.enrollment_service.request_enrollment(student, course.id)
    enroll(student, course)

    with pytest.raises(ValidationError):
        container.enrollment_service.review(admin, batch.id, "approved")

    assert container.reviews.get(batch.kind, batch.id).status is BatchStatus.PENDING
    assert store.count("enrollments") == 1


def test_available_courses_show_latest_request_status(container, admin, student, course):
    other = container.course_service.create_course(admin, course_code="HIS100", title="World History")
    container.enrollment_service.request_enrollment(student, course.id)

    available = {a.course.course_code: a for a in container.enrollment_service.available_courses(student)}

    assert available["CS101"].request_status is BatchStatus.PENDING
    assert available["CS101"].lecturer_name == "Lee Lecturer"
    assert available["HIS100"].request_status is None
    assert available["HIS100"].lecturer_name == "TBA"
    assert other.course_code == "HIS100"


def test_lecturer_sees_roster_of_own_courses(container, lecturer, student, course, enroll):
    enroll(student, course)

    roster = container.enrollment_service.students_for_lecturer(lecturer)

    assert [(r.full_name, r.course_title) for r in roster] == [("Sam Student", "Intro to Programming")]


def test_student_in_two_of_the_lecturers_courses_is_listed_once(
    container, admin, lecturer, student, other_student, course, enroll
):
    second = container.course_service.create_course(
        admin, course_code="cs102", title="Data Structures", lecturer_id=lecturer.user_id
    )
    enroll(student, course)
    enroll(student, second)
    enroll(other_student, second)

    roster = container.enrollment_service.students_for_lecturer(lecturer)

    ids = [r.student_id for r in roster]
    assert len(ids) == len(set(ids)) == 2
    assert [r.full_name for r in roster] == ["Kim Student", "Sam Student"]


def test_course_codes_are_unique_and_uppercased(container, admin, course):
    assert course.course_code == "CS101"
    with pytest.raises(ValidationError):
        container.course_service.create_course(admin, course_code="Cs101", title="Duplicate")


def test_course_with_active_enrollments_cannot_be_deleted(container, admin, student, course, enroll):
    enroll(student, course)

    with pytest.raises(ValidationError):
        container.course_service.delete_course(admin, course.id)


def test_only_students_request_enrollment(container, lecturer, course):
    with pytest.raises(AuthorizationError):
        container.enrollment_service.request_enrollment(lecturer, course.id)
    assert lecturer.role is Role.LECTURER
