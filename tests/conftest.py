from __future__ import annotations

from datetime import datetime

import pytest

from src.school_portal.school_portal.container import wire_services
from src.school_portal.school_portal.core.enums import Role

from tests.fakes import InMemoryRecordStore, RecordingNotifier, StepClock, make_profile


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def container(store, notifier):
    return wire_services(store, notifier=notifier, clock=StepClock())


@pytest.fixture
def admin(store):
    return make_profile(store, Role.ADMIN, "admin@school.test", "Ada Admin")


@pytest.fixture
def lecturer(store):
    return make_profile(store, Role.LECTURER, "lee@school.test", "Lee Lecturer")


@pytest.fixture
def student(store):
    return make_profile(store, Role.STUDENT, "sam@school.test", "Sam Student")


@pytest.fixture
def other_student(store):
    return make_profile(store, Role.STUDENT, "kim@school.test", "Kim Student")


@pytest.fixture
def course(container, admin, lecturer):
    return container.course_service.create_course(
        admin, course_code="cs101", title="Intro to Programming", credits=3, lecturer_id=lecturer.user_id
    )


@pytest.fixture
def enroll(store):
    """Insert an active enrollment directly, bypassing the request workflow."""

    def do(student_ctx, course):
        return store.insert(
            "enrollments",
            {
                "student_id": student_ctx.user_id,
                "course_id": course.id,
                "status": "active",
                "enrollment_date": datetime(2026, 1, 2),
                "source_request_id": None,
            },
        )

    return do
