from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import ResultStatus, Severity
from src.school_portal.school_portal.core.exceptions import AuthorizationError, InvalidStateError, ValidationError
from src.school_portal.school_portal.results.model import cumulative_gpa


def test_publish_is_one_way_and_notifies(container, notifier, admin, student, course):
    svc = container.result_service
    result = svc.create_result(admin, student_id=student.user_id, course_id=course.id, points=91, academic_year="2025/2026")
    assert (result.grade, result.gpa, result.status) == ("A", 4.0, ResultStatus.DRAFT)
    assert svc.published_for_student(student) == []

    audited = svc.audit_result(admin, result.id)
    assert audited.audited_by == admin.user_id

    published = svc.publish_result(admin, result.id)
    assert published.status is ResultStatus.PUBLISHED
    assert notifier.sent == [
        (student.user_id, "Your result for Intro to Programming has been published: A", Severity.SUCCESS)
    ]

    with pytest.raises(InvalidStateError):
        svc.publish_result(admin, result.id)
    with pytest.raises(InvalidStateError):
        svc.audit_result(admin, result.id)
    assert [r.id for r in svc.published_for_student(student)] == [result.id]


def test_cumulative_gpa_uses_published_results_only(container, admin, student, course):
    svc = container.result_service
    other = container.course_service.create_course(admin, course_code="MA101", title="Calculus")
    first = svc.create_result(admin, student_id=student.user_id, course_id=course.id, points=85)
    svc.create_result(admin, student_id=student.user_id, course_id=other.id, points=40)
    svc.publish_result(admin, first.id)

    assert svc.my_gpa(student) == 3.0
    assert cumulative_gpa(svc.list_results(admin)) == 3.0
    assert cumulative_gpa([]) is None


def test_result_creation_rules(container, admin, lecturer, student, course):
    svc = container.result_service
    with pytest.raises(AuthorizationError):
        svc.create_result(lecturer, student_id=student.user_id, course_id=course.id, points=50)
    with pytest.raises(ValidationError):
        svc.create_result(admin, student_id=lecturer.user_id, course_id=course.id, points=50)
    with pytest.raises(ValidationError):
        svc.create_result(admin, student_id=student.user_id, course_id=course.id, points=101)

    svc.create_result(admin, student_id=student.user_id, course_id=course.id, points=50, semester="1")
    with pytest.raises(ValidationError):
        svc.create_result(admin, student_id=student.user_id, course_id=course.id, points=60, semester="1")
