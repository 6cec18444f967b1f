from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import Role
from src.school_portal.school_portal.core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    ValidationError,
)

from tests.fakes import make_profile


@pytest.fixture
def assignment(container, lecturer, course):
    return container.grading_service.create_assignment(
        lecturer, course_id=course.id, title="Lab 1", due_date="2026-03-10T23:59:00"
    )


def test_max_points_defaults_to_100(assignment):
    assert assignment.max_points == 100
    assert assignment.due_date.day == 10


@pytest.mark.parametrize("max_points", [0, -5, "lots"])
def test_max_points_must_be_positive(container, lecturer, course, max_points):
    with pytest.raises(ValidationError):
        container.grading_service.create_assignment(lecturer, course_id=course.id, title="Bad", max_points=max_points)


def test_other_lecturers_cannot_create_assignments(container, store, course):
    stranger = make_profile(store, Role.LECTURER, "x@school.test")
    with pytest.raises(AuthorizationError):
        container.grading_service.create_assignment(stranger, course_id=course.id, title="Nope")


def test_submit_requires_enrollment(container, student, assignment):
    with pytest.raises(AuthorizationError):
        container.grading_service.submit(student, assignment.id, "my answer")


def test_resubmission_replaces_content_until_graded(container, store, notifier, lecturer, student, assignment, course, enroll):
    enroll(student, course)
    svc = container.grading_service

    first = svc.submit(student, assignment.id, "draft")
    second = svc.submit(student, assignment.id, "final")
    assert second.id == first.id
    assert second.content == "final"
    assert store.count("submissions") == 1

    graded = svc.grade(lecturer, first.id, 88, "Nice work")
    assert graded.grade == 88
    assert notifier.sent[-1][0] == student.user_id
    assert "88/100" in notifier.sent[-1][1]

    with pytest.raises(InvalidStateError):
        svc.submit(student, assignment.id, "late fix")


@pytest.mark.parametrize("grade", [-1, 100.5, "A"])
def test_grade_must_be_within_max_points(container, lecturer, student, assignment, course, enroll, grade):
    enroll(student, course)
    submission = container.grading_service.submit(student, assignment.id, "answer")

    with pytest.raises(ValidationError):
        container.grading_service.grade(lecturer, submission.id, grade)


def test_student_grades_with_course_average(container, lecturer, student, course, enroll, assignment):
    enroll(student, course)
    svc = container.grading_service
    quiz = svc.create_assignment(lecturer, course_id=course.id, title="Quiz", max_points=20)

    svc.grade(lecturer, svc.submit(student, assignment.id, "a").id, 80)
    svc.grade(lecturer, svc.submit(student, quiz.id, "b").id, 10)

    grades = svc.student_grades(student)
    assert sorted(i.percentage for i in grades.items) == [50.0, 80.0]
    assert grades.course_averages == {course.id: 65.0}

    listed = svc.list_for_student(student)
    assert {a.assignment.title for a in listed} == {"Lab 1", "Quiz"}
    assert all(a.submission is not None for a in listed)
