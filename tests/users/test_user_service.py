from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import Role
from src.school_portal.school_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def test_create_user_normalises_email_and_parses_role(container, admin):
    profile = container.user_service.create_user(admin, email=" New.Person@School.TEST ", full_name="New Person", role="Lecturer")

    assert profile.email == "new.person@school.test"
    assert profile.role is Role.LECTURER
    assert container.user_service.role_of(profile.id) is Role.LECTURER


@pytest.mark.parametrize(
    "email, role",
    [("not-an-email", "student"), ("ok@school.test", "janitor"), ("sam@school.test", "student")],
)
def test_create_user_validation(container, admin, student, email, role):
    with pytest.raises(ValidationError):
        container.user_service.create_user(admin, email=email, full_name="X", role=role)


def test_lecturer_link_only_for_students(container, admin, lecturer):
    svc = container.user_service
    with pytest.raises(ValidationError):
        svc.create_user(admin, email="l2@school.test", full_name="L2", role="lecturer", lecturer_id=lecturer.user_id)
    with pytest.raises(ValidationError):
        svc.create_user(admin, email="s2@school.test", full_name="S2", role="student", lecturer_id=admin.user_id)

    advisee = svc.create_user(admin, email="s3@school.test", full_name="S3", role="student", lecturer_id=lecturer.user_id)
    assert [p.id for p in svc.advisees(lecturer)] == [advisee.id]


def test_role_change_clears_lecturer_link(container, admin, lecturer, student):
    svc = container.user_service
    svc.assign_lecturer(admin, student.user_id, lecturer.user_id)

    changed = svc.change_role(admin, student.user_id, "lecturer")

    assert changed.role is Role.LECTURER
    assert changed.lecturer_id is None
    with pytest.raises(ValidationError):
        svc.change_role(admin, admin.user_id, "student")


def test_delete_user_guards(container, store, admin, student):
    svc = container.user_service
    other_admin = svc.create_user(admin, email="root2@school.test", full_name="Root", role="admin")

    with pytest.raises(ValidationError):
        svc.delete_user(admin, admin.user_id)
    with pytest.raises(ValidationError):
        svc.delete_user(admin, other_admin.id)
    with pytest.raises(AuthorizationError):
        svc.delete_user(student, other_admin.id)

    svc.delete_user(admin, student.user_id)
    assert svc.find_profile(student.user_id) is None
    with pytest.raises(NotFoundError):
        svc.get_profile(student.user_id)
